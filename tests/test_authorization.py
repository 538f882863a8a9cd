import pytest

from app.models.user import UserRole
from app.services.authorization import POLICY, Action, authorize


@pytest.mark.parametrize("role", [UserRole.SUPER_ADMIN, UserRole.ADMIN])
def test_admins_manage_organizations(role):
    assert authorize(role, Action.ORGANIZATION_CREATE)
    assert authorize(role, Action.ORGANIZATION_DELETE)
    assert authorize(role, Action.DEPARTMENT_WRITE)
    assert authorize(role, Action.USER_WRITE)


@pytest.mark.parametrize("role", [UserRole.HR, UserRole.MANAGER, UserRole.EMPLOYEE])
def test_non_admins_cannot_change_structure(role):
    assert not authorize(role, Action.ORGANIZATION_DELETE)
    assert not authorize(role, Action.DEPARTMENT_WRITE)
    assert not authorize(role, Action.USER_WRITE)


def test_hr_reads_organizations_and_reviews_leave():
    assert authorize(UserRole.HR, Action.ORGANIZATION_READ)
    assert authorize(UserRole.HR, Action.LEAVE_REVIEW)


def test_employee_is_self_service_only():
    assert authorize(UserRole.EMPLOYEE, Action.LEAVE_APPLY)
    assert authorize(UserRole.EMPLOYEE, Action.LEAVE_READ_OWN)
    assert not authorize(UserRole.EMPLOYEE, Action.LEAVE_READ_ANY)
    assert not authorize(UserRole.EMPLOYEE, Action.LEAVE_REVIEW)
    assert not authorize(UserRole.EMPLOYEE, Action.ORGANIZATION_READ)


def test_string_roles_and_actions_are_accepted():
    assert authorize("MANAGER", "leave:review")
    assert not authorize("EMPLOYEE", "leave:review")


def test_unknown_role_or_action_is_denied():
    assert not authorize("JANITOR", Action.LEAVE_APPLY)
    assert not authorize(None, Action.LEAVE_APPLY)
    assert not authorize(UserRole.SUPER_ADMIN, "organization:explode")


def test_every_action_has_a_policy_entry():
    assert set(POLICY) == set(Action)
