import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Body, Depends, Query, status
from sqlalchemy.orm import Session

from app.core.exceptions import AccessDeniedError, ValidationFailed
from app.core.schemas import ApiResponse
from app.database import get_db
from app.models.leave_request import LeaveStatus, LeaveType
from app.models.user import User
from app.routers.auth_deps import require_action, scoped_organization_id, validate_organization_access
from app.schemas.leave import LeaveBalanceEntry, LeavePolicyUpdate, LeaveRequestResponse, LeaveReviewRequest
from app.services.authorization import Action, authorize
from app.services.directory import UserService
from app.services.leave_balance import Limit, balance_to_dict
from app.services.leave_service import LeaveService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/leave", tags=["leave"])


def _target_user(user_id: int, current_user: User, db: Session) -> User:
    """The user whose leave is being read; others' records need LEAVE_READ_ANY within the same organization."""
    if user_id == current_user.id:
        return current_user
    if not authorize(current_user.role, Action.LEAVE_READ_ANY):
        raise AccessDeniedError("You can only view your own leave records")
    user = UserService(db).get(user_id)
    validate_organization_access(current_user, user.organization_id)
    return user


@router.post("", response_model=ApiResponse[LeaveRequestResponse], status_code=status.HTTP_201_CREATED)
def apply_for_leave(
    payload: Dict[str, Any] = Body(...),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_action(Action.LEAVE_APPLY)),
):
    leave = LeaveService(db).apply(payload, current_user)
    db.commit()
    db.refresh(leave)
    return ApiResponse.ok(
        LeaveRequestResponse.model_validate(leave),
        message="Leave application submitted successfully",
    )


@router.get("/user/{user_id}", response_model=ApiResponse[List[LeaveRequestResponse]])
def list_user_leave(
    user_id: int,
    status_filter: Optional[LeaveStatus] = Query(None, alias="status"),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_action(Action.LEAVE_READ_OWN)),
):
    user = _target_user(user_id, current_user, db)
    leaves = LeaveService(db).list_for_user(user.id, status_filter)
    return ApiResponse.ok([LeaveRequestResponse.model_validate(leave) for leave in leaves])


@router.get("/balance/{user_id}", response_model=ApiResponse[Dict[str, LeaveBalanceEntry]])
def get_leave_balance(
    user_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_action(Action.LEAVE_READ_OWN)),
):
    user = _target_user(user_id, current_user, db)
    balance = LeaveService(db).balance_for(user)
    return ApiResponse.ok(balance_to_dict(balance))


@router.get("/policy", response_model=ApiResponse[Dict[str, Any]])
def get_leave_policy(
    organization_id: Optional[int] = Query(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_action(Action.LEAVE_READ_OWN)),
):
    """Effective annual limits for an organization."""
    org_filter = scoped_organization_id(current_user, organization_id)
    policy = LeaveService(db).policy_for(org_filter)
    return ApiResponse.ok({
        leave_type.value: (limit.value if isinstance(limit, Limit) else limit)
        for leave_type, limit in policy.items()
    })


@router.put("/policy/{leave_type}", response_model=ApiResponse[Dict[str, Any]])
def set_leave_policy(
    leave_type: LeaveType,
    data: LeavePolicyUpdate,
    organization_id: Optional[int] = Query(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_action(Action.ORGANIZATION_UPDATE)),
):
    org_id = scoped_organization_id(current_user, organization_id)
    if org_id is None:
        raise ValidationFailed(errors=[{
            "field": "organization_id",
            "code": "missing",
            "message": "organization_id is required",
        }])
    row = LeaveService(db).set_policy_limit(org_id, leave_type, data.max_days_per_year)
    db.commit()
    logger.info(f"Leave policy updated: {leave_type.value}", extra={"organization_id": org_id})
    return ApiResponse.ok(
        {"leave_type": row.leave_type.value, "max_days_per_year": row.max_days_per_year, "organization_id": org_id},
        message="Leave policy updated",
    )


def _review(request_id: int, approve: bool, review: Optional[LeaveReviewRequest], db: Session, reviewer: User):
    service = LeaveService(db)
    validate_organization_access(reviewer, service.get(request_id).organization_id)
    leave = service.review(request_id, approve, reviewer, review.comment if review else None)
    db.commit()
    db.refresh(leave)
    return LeaveRequestResponse.model_validate(leave)


@router.post("/{request_id}/approve", response_model=ApiResponse[LeaveRequestResponse])
def approve_leave(
    request_id: int,
    review: Optional[LeaveReviewRequest] = Body(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_action(Action.LEAVE_REVIEW)),
):
    return ApiResponse.ok(_review(request_id, True, review, db, current_user), message="Leave request approved")


@router.post("/{request_id}/reject", response_model=ApiResponse[LeaveRequestResponse])
def reject_leave(
    request_id: int,
    review: Optional[LeaveReviewRequest] = Body(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_action(Action.LEAVE_REVIEW)),
):
    return ApiResponse.ok(_review(request_id, False, review, db, current_user), message="Leave request rejected")
