from pydantic import BaseModel, ConfigDict, Field
from datetime import date, datetime
from typing import Optional, Union
from app.models.leave_request import LeaveStatus, LeaveType


class LeaveRequestResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    organization_id: int
    leave_type: LeaveType
    start_date: date
    end_date: date
    total_days: int
    reason: str
    status: LeaveStatus
    reviewed_by_id: Optional[int] = None
    reviewed_at: Optional[datetime] = None
    review_comment: Optional[str] = None
    created_at: Optional[datetime] = None


class LeaveReviewRequest(BaseModel):
    comment: Optional[str] = Field(None, max_length=500)


class LeaveBalanceEntry(BaseModel):
    # "No Limit" for leave types without an annual cap
    limit: Union[int, str]
    taken: int
    remaining: Union[int, str]


class LeavePolicyUpdate(BaseModel):
    # None removes the cap
    max_days_per_year: Optional[int] = Field(None, ge=0)
