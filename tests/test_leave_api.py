from datetime import date, timedelta

import pytest
from fastapi import status

from app.models.leave_policy import LeavePolicy
from app.models.leave_request import LeaveRequest, LeaveStatus, LeaveType
from app.models.user import UserRole


def _application(start_in=10, days=3, leave_type="ANNUAL", **extra):
    start = date.today() + timedelta(days=start_in)
    end = start + timedelta(days=days - 1)
    payload = {
        "leave_type": leave_type,
        "start_date": start.isoformat(),
        "end_date": end.isoformat(),
        "reason": "Visiting family abroad",
    }
    payload.update(extra)
    return payload


@pytest.fixture
def manager(make_user, org):
    return make_user("manager@acme.com", role=UserRole.MANAGER, organization=org)


@pytest.fixture
def submitted(client, employee, auth_headers):
    response = client.post("/api/leave", headers=auth_headers(employee), json=_application())
    assert response.status_code == status.HTTP_201_CREATED
    return response.json()["data"]


def test_apply_creates_pending_request(client, employee, org, auth_headers):
    response = client.post("/api/leave", headers=auth_headers(employee), json=_application(days=3))
    assert response.status_code == status.HTTP_201_CREATED
    data = response.json()["data"]
    assert data["status"] == "PENDING"
    assert data["total_days"] == 3
    assert data["user_id"] == employee.id
    assert data["organization_id"] == org.id


def test_client_cannot_self_approve(client, employee, auth_headers):
    response = client.post(
        "/api/leave",
        headers=auth_headers(employee),
        json=_application(status="APPROVED", total_days=1),
    )
    assert response.status_code == status.HTTP_201_CREATED
    assert response.json()["data"]["status"] == "PENDING"
    assert response.json()["data"]["total_days"] == 3


def test_client_cannot_apply_on_behalf_of_someone_else(client, employee, admin_user, auth_headers):
    response = client.post(
        "/api/leave",
        headers=auth_headers(employee),
        json=_application(user_id=admin_user.id),
    )
    assert response.json()["data"]["user_id"] == employee.id


def test_invalid_application_reports_fields(client, employee, db_session, auth_headers):
    payload = _application(reason="too short")
    payload["end_date"] = (date.today() + timedelta(days=1)).isoformat()

    response = client.post("/api/leave", headers=auth_headers(employee), json=payload)
    assert response.status_code == 422
    fields = {e["field"] for e in response.json()["errors"]}
    assert fields == {"end_date", "reason"}
    assert db_session.query(LeaveRequest).count() == 0


def test_backdated_application_is_rejected(client, employee, auth_headers):
    response = client.post("/api/leave", headers=auth_headers(employee), json=_application(start_in=-2))
    assert response.status_code == 422
    assert response.json()["errors"][0]["field"] == "start_date"


def test_balance_covers_every_leave_type(client, employee, auth_headers):
    response = client.get(f"/api/leave/balance/{employee.id}", headers=auth_headers(employee))
    assert response.status_code == 200
    data = response.json()["data"]
    assert set(data) == {t.value for t in LeaveType}
    assert data["ANNUAL"] == {"limit": 20, "taken": 0, "remaining": 20}
    assert data["UNPAID"] == {"limit": "No Limit", "taken": 0, "remaining": "No Limit"}


def test_balance_counts_pending_and_approved_but_not_rejected(client, employee, org, db_session, auth_headers):
    start = date.today() + timedelta(days=30)
    for days, leave_status in ((5, LeaveStatus.APPROVED), (3, LeaveStatus.PENDING), (4, LeaveStatus.REJECTED)):
        db_session.add(LeaveRequest(
            user_id=employee.id,
            organization_id=org.id,
            leave_type=LeaveType.ANNUAL,
            start_date=start,
            end_date=start + timedelta(days=days - 1),
            total_days=days,
            reason="Seeded for balance test",
            status=leave_status,
        ))
    db_session.commit()

    response = client.get(f"/api/leave/balance/{employee.id}", headers=auth_headers(employee))
    assert response.json()["data"]["ANNUAL"] == {"limit": 20, "taken": 8, "remaining": 12}


def test_balance_uses_organization_policy_override(client, employee, org, db_session, auth_headers):
    db_session.add(LeavePolicy(organization_id=org.id, leave_type=LeaveType.SICK, max_days_per_year=15))
    db_session.commit()

    response = client.get(f"/api/leave/balance/{employee.id}", headers=auth_headers(employee))
    assert response.json()["data"]["SICK"]["limit"] == 15


def test_admin_sets_policy_limit(client, admin_user, employee, auth_headers):
    response = client.put(
        "/api/leave/policy/PERSONAL",
        headers=auth_headers(admin_user),
        json={"max_days_per_year": None},
    )
    assert response.status_code == 200

    policy = client.get("/api/leave/policy", headers=auth_headers(employee)).json()["data"]
    assert policy["PERSONAL"] == "No Limit"
    assert policy["ANNUAL"] == 20


def test_employee_cannot_read_colleague_balance(client, employee, admin_user, auth_headers):
    response = client.get(f"/api/leave/balance/{admin_user.id}", headers=auth_headers(employee))
    assert response.status_code == status.HTTP_403_FORBIDDEN


def test_manager_reads_employee_requests(client, manager, employee, submitted, auth_headers):
    response = client.get(f"/api/leave/user/{employee.id}", headers=auth_headers(manager))
    assert response.status_code == 200
    assert [r["id"] for r in response.json()["data"]] == [submitted["id"]]


def test_filter_requests_by_status(client, employee, submitted, auth_headers):
    response = client.get(f"/api/leave/user/{employee.id}?status=APPROVED", headers=auth_headers(employee))
    assert response.json()["data"] == []


def test_manager_approves_request(client, manager, submitted, auth_headers):
    response = client.post(
        f"/api/leave/{submitted['id']}/approve",
        headers=auth_headers(manager),
        json={"comment": "Enjoy"},
    )
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["status"] == "APPROVED"
    assert data["reviewed_by_id"] == manager.id
    assert data["review_comment"] == "Enjoy"


def test_reject_without_body(client, manager, submitted, auth_headers):
    response = client.post(f"/api/leave/{submitted['id']}/reject", headers=auth_headers(manager))
    assert response.status_code == 200
    assert response.json()["data"]["status"] == "REJECTED"


def test_reviewed_request_is_terminal(client, manager, submitted, auth_headers):
    client.post(f"/api/leave/{submitted['id']}/reject", headers=auth_headers(manager))
    response = client.post(f"/api/leave/{submitted['id']}/approve", headers=auth_headers(manager))
    assert response.status_code == status.HTTP_409_CONFLICT
    assert response.json()["details"]["status"] == "REJECTED"


def test_employee_cannot_review(client, employee, submitted, auth_headers):
    response = client.post(f"/api/leave/{submitted['id']}/approve", headers=auth_headers(employee))
    assert response.status_code == status.HTTP_403_FORBIDDEN


def test_reviewer_cannot_approve_own_request(client, manager, auth_headers):
    own = client.post("/api/leave", headers=auth_headers(manager), json=_application()).json()["data"]
    response = client.post(f"/api/leave/{own['id']}/approve", headers=auth_headers(manager))
    assert response.status_code == status.HTTP_403_FORBIDDEN


def test_review_missing_request(client, manager, auth_headers):
    response = client.post("/api/leave/999/approve", headers=auth_headers(manager))
    assert response.status_code == status.HTTP_404_NOT_FOUND
