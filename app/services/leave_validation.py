"""
Validation of new leave applications.

A raw payload either becomes a normalized ``LeaveDraft`` (derived day
count, status forced to PENDING) or a list of field-level errors. Nothing
is persisted here.
"""
from dataclasses import asdict, dataclass, field
from datetime import date
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, ValidationError, ValidationInfo, field_validator
from pydantic_core import PydanticCustomError

from app.models.leave_request import LeaveStatus, LeaveType
from app.services.leave_balance import count_leave_days

DEFAULT_MIN_REASON_LENGTH = 10


class LeaveApplication(BaseModel):
    # Client-supplied status / total_days are dropped, both are derived server-side
    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True)

    user_id: int
    organization_id: int
    leave_type: LeaveType
    start_date: date
    end_date: date
    reason: str

    @field_validator("leave_type", mode="before")
    @classmethod
    def upper_leave_type(cls, value: Any) -> Any:
        return value.strip().upper() if isinstance(value, str) else value

    @field_validator("start_date")
    @classmethod
    def not_backdated(cls, value: date, info: ValidationInfo) -> date:
        today = (info.context or {}).get("today") or date.today()
        if value < today:
            raise PydanticCustomError("backdated", "start_date cannot be before {today}", {"today": today.isoformat()})
        return value

    @field_validator("end_date")
    @classmethod
    def not_before_start(cls, value: date, info: ValidationInfo) -> date:
        start = info.data.get("start_date")
        if start is not None and value < start:
            raise PydanticCustomError("date_order", "end_date cannot be before start_date")
        return value

    @field_validator("reason")
    @classmethod
    def long_enough(cls, value: str, info: ValidationInfo) -> str:
        min_length = (info.context or {}).get("min_reason_length", DEFAULT_MIN_REASON_LENGTH)
        if len(value) < min_length:
            raise PydanticCustomError(
                "reason_too_short",
                "reason must be at least {min_length} characters",
                {"min_length": min_length},
            )
        return value


@dataclass(frozen=True)
class FieldError:
    field: str
    code: str
    message: str

    def to_dict(self) -> Dict[str, str]:
        return asdict(self)


@dataclass(frozen=True)
class LeaveDraft:
    """Normalized leave request, ready to be stored."""
    user_id: int
    organization_id: int
    leave_type: LeaveType
    start_date: date
    end_date: date
    total_days: int
    reason: str
    status: LeaveStatus = LeaveStatus.PENDING

    def as_model_kwargs(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class LeaveValidationResult:
    record: Optional[LeaveDraft] = None
    errors: List[FieldError] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return self.record is not None and not self.errors


def _field_errors(exc: ValidationError) -> List[FieldError]:
    errors = []
    for error in exc.errors(include_url=False):
        loc = error.get("loc") or ()
        errors.append(FieldError(
            field=str(loc[0]) if loc else "body",
            code=error["type"],
            message=error["msg"],
        ))
    return errors


def validate_leave_application(
    payload: Any,
    today: Optional[date] = None,
    min_reason_length: int = DEFAULT_MIN_REASON_LENGTH,
) -> LeaveValidationResult:
    """Validate a raw leave application; never raises for bad input."""
    context = {"today": today or date.today(), "min_reason_length": min_reason_length}
    try:
        application = LeaveApplication.model_validate(payload, context=context)
    except ValidationError as exc:
        return LeaveValidationResult(errors=_field_errors(exc))

    draft = LeaveDraft(
        user_id=application.user_id,
        organization_id=application.organization_id,
        leave_type=application.leave_type,
        start_date=application.start_date,
        end_date=application.end_date,
        total_days=count_leave_days(application.start_date, application.end_date),
        reason=application.reason,
    )
    return LeaveValidationResult(record=draft)
