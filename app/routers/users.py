from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.core.exceptions import AccessDeniedError, ConflictError
from app.core.schemas import ApiResponse
from app.database import get_db
from app.models.user import User, UserRole
from app.routers.auth_deps import require_action, scoped_organization_id, validate_organization_access
from app.schemas.user import UserCreate, UserResponse, UserUpdate
from app.services.authorization import Action
from app.services.directory import UserService

router = APIRouter(prefix="/users", tags=["users"])


def _guard_role_grant(current_user: User, role: Optional[UserRole]) -> None:
    # Only a SUPER_ADMIN can mint another SUPER_ADMIN
    if role == UserRole.SUPER_ADMIN and current_user.role != UserRole.SUPER_ADMIN:
        raise AccessDeniedError("Only a super admin can grant the SUPER_ADMIN role")


def _guard_target(current_user: User, target: User) -> None:
    """Existing super admins are managed by super admins only."""
    validate_organization_access(current_user, target.organization_id)
    if target.role == UserRole.SUPER_ADMIN and current_user.role != UserRole.SUPER_ADMIN:
        raise AccessDeniedError("Only a super admin can modify a super admin account")


@router.get("", response_model=ApiResponse[List[UserResponse]])
def list_users(
    organization_id: Optional[int] = Query(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_action(Action.USER_READ)),
):
    org_filter = scoped_organization_id(current_user, organization_id)
    users = UserService(db).list(org_filter)
    return ApiResponse.ok([UserResponse.model_validate(u) for u in users])


@router.get("/{user_id}", response_model=ApiResponse[UserResponse])
def get_user(
    user_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_action(Action.USER_READ)),
):
    user = UserService(db).get(user_id)
    validate_organization_access(current_user, user.organization_id)
    return ApiResponse.ok(UserResponse.model_validate(user))


@router.post("", response_model=ApiResponse[UserResponse], status_code=status.HTTP_201_CREATED)
def create_user(
    data: UserCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_action(Action.USER_WRITE)),
):
    validate_organization_access(current_user, data.organization_id)
    _guard_role_grant(current_user, data.role)
    user = UserService(db).create(data)
    db.commit()
    db.refresh(user)
    return ApiResponse.ok(UserResponse.model_validate(user), message="User created successfully")


@router.put("/{user_id}", response_model=ApiResponse[UserResponse])
def update_user(
    user_id: int,
    data: UserUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_action(Action.USER_WRITE)),
):
    service = UserService(db)
    _guard_target(current_user, service.get(user_id))
    _guard_role_grant(current_user, data.role)
    user = service.update(user_id, data)
    db.commit()
    db.refresh(user)
    return ApiResponse.ok(UserResponse.model_validate(user), message="User updated successfully")


@router.delete("/{user_id}", response_model=ApiResponse[Optional[dict]])
def delete_user(
    user_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_action(Action.USER_WRITE)),
):
    if user_id == current_user.id:
        raise ConflictError("You cannot delete your own account")
    service = UserService(db)
    _guard_target(current_user, service.get(user_id))
    service.delete(user_id)
    db.commit()
    return ApiResponse.ok(message="User deleted successfully")
