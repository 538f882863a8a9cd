"""
Leave workflow: applications, balances, policy overrides and reviews.
"""
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional

from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.exceptions import AccessDeniedError, ConflictError, NotFoundError, ValidationFailed
from app.models.leave_request import LeaveRequest, LeaveStatus, LeaveType
from app.models.user import User
from app.repositories.leave import LeavePolicyRepository, LeaveRequestRepository
from app.services.base import BaseService
from app.services.leave_balance import LeaveBalance, LimitValue, calculate_balance, resolve_policy
from app.services.leave_validation import validate_leave_application

# PENDING is the only state with outgoing transitions
ALLOWED_TRANSITIONS: Dict[LeaveStatus, frozenset] = {
    LeaveStatus.PENDING: frozenset({LeaveStatus.APPROVED, LeaveStatus.REJECTED}),
    LeaveStatus.APPROVED: frozenset(),
    LeaveStatus.REJECTED: frozenset(),
}


def transition_status(current: LeaveStatus, target: LeaveStatus) -> Optional[LeaveStatus]:
    """The new status, or None when ``current`` cannot move to ``target``."""
    target = LeaveStatus(target)
    if target in ALLOWED_TRANSITIONS[LeaveStatus(current)]:
        return target
    return None


class LeaveService(BaseService):
    def __init__(self, db: Session):
        super().__init__(db)
        self.requests = LeaveRequestRepository(db)
        self.policies = LeavePolicyRepository(db)

    def apply(self, payload: Mapping[str, Any], applicant: User) -> LeaveRequest:
        """Validate and store a new application for ``applicant``; it always starts PENDING."""
        data = dict(payload or {})
        # Owner and tenant come from the authenticated user, never the body
        data["user_id"] = applicant.id
        data["organization_id"] = applicant.organization_id

        result = validate_leave_application(data, min_reason_length=settings.leave.min_reason_length)
        if not result.is_valid:
            raise ValidationFailed("Invalid leave application", errors=[e.to_dict() for e in result.errors])

        leave = self.requests.create(**result.record.as_model_kwargs())
        self.log_info(
            f"Leave request submitted: {leave.leave_type.value} x{leave.total_days}",
            user_id=applicant.id,
        )
        return leave

    def list_for_user(self, user_id: int, status: Optional[str] = None) -> List[LeaveRequest]:
        return self.requests.find_for_user(user_id, status)

    def policy_for(self, organization_id: Optional[int]) -> "Dict[LeaveType, LimitValue]":
        return resolve_policy(settings.leave.default_limits, self.policies.for_organization(organization_id))

    def balance_for(self, user: User) -> "Dict[LeaveType, LeaveBalance]":
        policy = self.policy_for(user.organization_id)
        return calculate_balance(
            self.requests.find_for_user(user.id),
            policy,
            counted_statuses=settings.leave.counted_statuses,
        )

    def set_policy_limit(self, organization_id: int, leave_type: LeaveType, max_days: Optional[int]):
        existing = [
            row for row in self.policies.for_organization(organization_id)
            if row.organization_id == organization_id and row.leave_type == leave_type
        ]
        if existing:
            return self.policies.update(existing[0], max_days_per_year=max_days)
        return self.policies.create(
            organization_id=organization_id,
            leave_type=leave_type,
            max_days_per_year=max_days,
        )

    def get(self, request_id: int) -> LeaveRequest:
        leave = self.requests.find_by_id(request_id)
        if not leave:
            raise NotFoundError("Leave request", request_id)
        return leave

    def review(self, request_id: int, approve: bool, reviewer: User, comment: Optional[str] = None) -> LeaveRequest:
        leave = self.get(request_id)
        if leave.user_id == reviewer.id:
            raise AccessDeniedError("You cannot review your own leave request")

        requested = LeaveStatus.APPROVED if approve else LeaveStatus.REJECTED
        target = transition_status(leave.status, requested)
        if target is None:
            raise ConflictError(
                f"Leave request already {leave.status.value.lower()}",
                details={"status": leave.status.value},
            )

        leave = self.requests.update(
            leave,
            status=target,
            reviewed_by_id=reviewer.id,
            reviewed_at=datetime.now(timezone.utc),
            review_comment=comment,
        )
        self.log_info(f"Leave request {leave.id} {target.value.lower()}", reviewer_id=reviewer.id)
        return leave
