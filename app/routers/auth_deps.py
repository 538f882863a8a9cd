"""
Request-scoped auth dependencies.

Bearer tokens resolve to an active User; endpoints declare the Action they
perform and ``require_action`` checks it against the role policy. Tenant
scoping helpers pin non-super-admins to their own organization.
"""
import logging
from typing import Callable, Optional

from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session

from app.core.exceptions import AccessDeniedError, AuthenticationError
from app.database import get_db
from app.models.user import User, UserRole
from app.repositories.directory import UserRepository
from app.services import auth as auth_service
from app.services.authorization import Action, authorize

logger = logging.getLogger(__name__)

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login")


def _claims_subject(token: str) -> str:
    payload = auth_service.decode_access_token(token)
    if payload is None:
        raise AuthenticationError()
    if payload.get("error") == "TOKEN_EXPIRED":
        raise AuthenticationError("TOKEN_EXPIRED")
    if payload.get("type") != "access":
        raise AuthenticationError("Invalid token type")
    if not payload.get("sub"):
        raise AuthenticationError("Missing subject in token")
    return payload["sub"]


def get_current_user(token: str = Depends(oauth2_scheme), db: Session = Depends(get_db)) -> User:
    try:
        email = _claims_subject(token)
    except AuthenticationError as exc:
        logger.info(f"Rejected bearer token: {exc.message}")
        raise

    user = UserRepository(db).find_by_email(email)
    if user is None:
        logger.warning("Token subject no longer exists", extra={"email": email})
        raise AuthenticationError("User not found")
    if not user.is_active:
        logger.warning("Inactive user presented a token", extra={"user_id": user.id})
        raise AccessDeniedError("User is inactive")
    return user


def require_action(action: Action) -> Callable:
    """
    Dependency factory that checks the current user's role against the authorization policy.

    Usage:
        @router.delete("/{id}")
        def delete_thing(user: User = Depends(require_action(Action.ORGANIZATION_DELETE))):
            ...
    """
    def action_checker(current_user: User = Depends(get_current_user)) -> User:
        if not authorize(current_user.role, action):
            logger.warning(f"Access denied: {current_user.role.value} attempted {action.value}")
            raise AccessDeniedError(f"Access denied for action '{action.value}'")
        return current_user
    return action_checker


def validate_organization_access(user: User, entity_org_id: Optional[int]) -> None:
    """
    Ensure user can only access entities within their organization.
    SUPER_ADMIN operates across organizations.
    """
    if user.role == UserRole.SUPER_ADMIN:
        return
    if entity_org_id is None or user.organization_id != entity_org_id:
        raise AccessDeniedError("Access denied: Entity belongs to a different organization.")


def scoped_organization_id(user: User, requested_org_id: Optional[int]) -> Optional[int]:
    """
    Organization filter for list endpoints: SUPER_ADMIN may pick any (or none),
    everyone else is pinned to their own organization.
    """
    if user.role == UserRole.SUPER_ADMIN:
        return requested_org_id
    if requested_org_id is not None and requested_org_id != user.organization_id:
        raise AccessDeniedError("Access denied: Entity belongs to a different organization.")
    return user.organization_id
