"""
Leave balance engine.

Turns a user's leave history and the applicable policy table into a
per-type summary of limit, days taken and days remaining. Everything here
is a pure function over data the caller already loaded.
"""
import enum
from collections import OrderedDict
from dataclasses import dataclass
from datetime import date
from typing import Any, Dict, Iterable, Mapping, Optional, Union

from app.models.leave_request import LeaveStatus, LeaveType


class Limit(str, enum.Enum):
    """Sentinel for leave types without an annual cap."""
    UNLIMITED = "No Limit"


UNLIMITED = Limit.UNLIMITED

LimitValue = Union[int, Limit]

DEFAULT_COUNTED_STATUSES = (LeaveStatus.APPROVED, LeaveStatus.PENDING)


@dataclass(frozen=True)
class LeaveBalance:
    limit: LimitValue
    taken: int
    remaining: LimitValue

    @property
    def is_unlimited(self) -> bool:
        return self.limit is UNLIMITED

    @property
    def is_overdrawn(self) -> bool:
        return not self.is_unlimited and self.remaining < 0

    def to_dict(self) -> Dict[str, Any]:
        def render(value: LimitValue):
            return value.value if isinstance(value, Limit) else value

        return {"limit": render(self.limit), "taken": self.taken, "remaining": render(self.remaining)}


def count_leave_days(start_date: date, end_date: date) -> int:
    """Inclusive calendar-day count between two dates. Raises ValueError if end precedes start."""
    if end_date < start_date:
        raise ValueError(f"end_date {end_date} is before start_date {start_date}")
    return (end_date - start_date).days + 1


def _normalize_limit(value: Any) -> LimitValue:
    if value is None or value is UNLIMITED:
        return UNLIMITED
    if isinstance(value, str) and value.strip().lower() in ("unlimited", "no limit"):
        return UNLIMITED
    if isinstance(value, bool) or int(value) != value:
        raise ValueError(f"Leave limit must be a whole number of days, got {value!r}")
    if value < 0:
        raise ValueError(f"Leave limit cannot be negative, got {value!r}")
    return int(value)


def resolve_policy(defaults: Mapping[str, Any], overrides: Iterable[Any] = ()) -> "OrderedDict[LeaveType, LimitValue]":
    """
    Build the policy table for one organization.

    ``defaults`` maps leave type to a limit (None or "unlimited" for no cap).
    ``overrides`` are LeavePolicy-like rows; global rows (no organization)
    apply first so organization rows win.
    """
    policy: "OrderedDict[LeaveType, LimitValue]" = OrderedDict()
    for leave_type, limit in defaults.items():
        policy[LeaveType(leave_type)] = _normalize_limit(limit)

    ordered = sorted(overrides, key=lambda row: getattr(row, "organization_id", None) is not None)
    for row in ordered:
        policy[LeaveType(row.leave_type)] = _normalize_limit(row.max_days_per_year)
    return policy


def _field(record: Any, name: str) -> Any:
    if isinstance(record, Mapping):
        return record.get(name)
    return getattr(record, name, None)


def calculate_balance(
    requests: Iterable[Any],
    policy: Mapping[Any, Any],
    counted_statuses: Optional[Iterable[Any]] = DEFAULT_COUNTED_STATUSES,
) -> "OrderedDict[LeaveType, LeaveBalance]":
    """
    Summarize leave usage per type.

    Every leave type in ``policy`` gets exactly one entry, in policy order.
    ``taken`` sums ``total_days`` of the requests of that type whose status is
    in ``counted_statuses`` (None counts every status); requests without a status
    always count. Requests of types the policy does not define are ignored. ``remaining`` is ``limit - taken`` and
    may go negative; unlimited types report UNLIMITED for both.
    """
    counted = None if counted_statuses is None else {LeaveStatus(s) for s in counted_statuses}
    limits = OrderedDict((LeaveType(k), _normalize_limit(v)) for k, v in policy.items())

    taken: Dict[LeaveType, int] = {leave_type: 0 for leave_type in limits}
    for request in requests:
        leave_type = LeaveType(_field(request, "leave_type"))
        if leave_type not in taken:
            continue
        if counted is not None:
            status = _field(request, "status")
            if status is not None and LeaveStatus(status) not in counted:
                continue
        taken[leave_type] += int(_field(request, "total_days"))

    balance: "OrderedDict[LeaveType, LeaveBalance]" = OrderedDict()
    for leave_type, limit in limits.items():
        used = taken[leave_type]
        remaining = UNLIMITED if limit is UNLIMITED else limit - used
        balance[leave_type] = LeaveBalance(limit=limit, taken=used, remaining=remaining)
    return balance


def balance_to_dict(balance: Mapping[LeaveType, LeaveBalance]) -> Dict[str, Dict[str, Any]]:
    """JSON-ready form keyed by leave type name."""
    return {leave_type.value: entry.to_dict() for leave_type, entry in balance.items()}
