import random
from datetime import date

import pytest

from app.models.leave_request import LeaveStatus, LeaveType
from app.services.leave_balance import (
    UNLIMITED,
    LeaveBalance,
    balance_to_dict,
    calculate_balance,
    count_leave_days,
    resolve_policy,
)

POLICY = {LeaveType.ANNUAL: 20, LeaveType.SICK: 10, LeaveType.UNPAID: UNLIMITED}


def _req(leave_type, days, status=LeaveStatus.APPROVED):
    return {"leave_type": leave_type, "total_days": days, "status": status}


def test_reference_scenario():
    """Annual and sick usage summed per type, unlimited type untouched."""
    requests = [
        {"leave_type": "ANNUAL", "total_days": 5},
        {"leave_type": "ANNUAL", "total_days": 3},
        {"leave_type": "SICK", "total_days": 2},
    ]
    balance = calculate_balance(requests, POLICY)

    assert balance[LeaveType.ANNUAL] == LeaveBalance(limit=20, taken=8, remaining=12)
    assert balance[LeaveType.SICK] == LeaveBalance(limit=10, taken=2, remaining=8)
    assert balance[LeaveType.UNPAID] == LeaveBalance(limit=UNLIMITED, taken=0, remaining=UNLIMITED)


def test_every_policy_type_has_exactly_one_entry():
    balance = calculate_balance([], POLICY)
    assert list(balance.keys()) == [LeaveType.ANNUAL, LeaveType.SICK, LeaveType.UNPAID]
    assert all(entry.taken == 0 for entry in balance.values())


def test_over_limit_is_not_clamped():
    balance = calculate_balance([_req("SICK", 7), _req("SICK", 6)], POLICY)
    assert balance[LeaveType.SICK].remaining == -3
    assert balance[LeaveType.SICK].is_overdrawn


def test_unlimited_type_still_tracks_taken():
    balance = calculate_balance([_req("UNPAID", 40)], POLICY)
    entry = balance[LeaveType.UNPAID]
    assert entry.taken == 40
    assert entry.remaining is UNLIMITED
    assert not entry.is_overdrawn


def test_types_outside_policy_are_ignored():
    balance = calculate_balance([_req("PERSONAL", 4)], POLICY)
    assert LeaveType.PERSONAL not in balance


def test_rejected_requests_do_not_count_by_default():
    requests = [
        _req("ANNUAL", 5, LeaveStatus.APPROVED),
        _req("ANNUAL", 2, LeaveStatus.PENDING),
        _req("ANNUAL", 9, LeaveStatus.REJECTED),
    ]
    assert calculate_balance(requests, POLICY)[LeaveType.ANNUAL].taken == 7


def test_counted_statuses_is_a_policy_parameter():
    requests = [
        _req("ANNUAL", 5, LeaveStatus.APPROVED),
        _req("ANNUAL", 2, LeaveStatus.PENDING),
        _req("ANNUAL", 9, LeaveStatus.REJECTED),
    ]
    approved_only = calculate_balance(requests, POLICY, counted_statuses=["APPROVED"])
    everything = calculate_balance(requests, POLICY, counted_statuses=None)

    assert approved_only[LeaveType.ANNUAL].taken == 5
    assert everything[LeaveType.ANNUAL].taken == 16


def test_result_does_not_depend_on_input_order():
    requests = [_req("ANNUAL", n) for n in (1, 2, 3)] + [_req("SICK", n) for n in (4, 5)]
    expected = calculate_balance(requests, POLICY)
    shuffled = list(requests)
    random.Random(7).shuffle(shuffled)
    assert calculate_balance(shuffled, POLICY) == expected


def test_accepts_objects_with_attributes():
    class Row:
        leave_type = LeaveType.ANNUAL
        total_days = 4
        status = LeaveStatus.APPROVED

    assert calculate_balance([Row()], POLICY)[LeaveType.ANNUAL].remaining == 16


def test_balance_to_dict_renders_unlimited_as_no_limit():
    rendered = balance_to_dict(calculate_balance([_req("ANNUAL", 5)], POLICY))
    assert rendered["ANNUAL"] == {"limit": 20, "taken": 5, "remaining": 15}
    assert rendered["UNPAID"] == {"limit": "No Limit", "taken": 0, "remaining": "No Limit"}


def test_count_leave_days_is_inclusive():
    assert count_leave_days(date(2024, 3, 10), date(2024, 3, 12)) == 3
    assert count_leave_days(date(2024, 3, 10), date(2024, 3, 10)) == 1
    # Leap day included
    assert count_leave_days(date(2024, 2, 28), date(2024, 3, 1)) == 3


def test_count_leave_days_rejects_reversed_range():
    with pytest.raises(ValueError):
        count_leave_days(date(2024, 3, 12), date(2024, 3, 10))


class _PolicyRow:
    def __init__(self, leave_type, max_days, organization_id=None):
        self.leave_type = leave_type
        self.max_days_per_year = max_days
        self.organization_id = organization_id


def test_resolve_policy_organization_rows_win_over_global_rows():
    defaults = {"ANNUAL": 20, "SICK": 10, "UNPAID": None}
    overrides = [
        _PolicyRow(LeaveType.ANNUAL, 25, organization_id=1),
        _PolicyRow(LeaveType.ANNUAL, 22),
        _PolicyRow(LeaveType.UNPAID, 30, organization_id=1),
    ]
    policy = resolve_policy(defaults, overrides)

    assert policy[LeaveType.ANNUAL] == 25
    assert policy[LeaveType.SICK] == 10
    assert policy[LeaveType.UNPAID] == 30


def test_resolve_policy_rejects_negative_limits():
    with pytest.raises(ValueError):
        resolve_policy({"ANNUAL": -1})


def test_requests_without_status_always_count():
    requests = [
        {"leave_type": "ANNUAL", "total_days": 4},
        _req("ANNUAL", 2, LeaveStatus.REJECTED),
    ]
    balance = calculate_balance(requests, POLICY, counted_statuses=[LeaveStatus.APPROVED])
    assert balance[LeaveType.ANNUAL].taken == 4
