"""
Role-based authorization policy.

The API layer asks ``authorize(role, action)`` before calling into the
services; the table below is the single source of truth for who may do what.
"""
import enum
from typing import Dict, FrozenSet, Optional, Union

from app.models.user import UserRole


class Action(str, enum.Enum):
    ORGANIZATION_CREATE = "organization:create"
    ORGANIZATION_READ = "organization:read"
    ORGANIZATION_UPDATE = "organization:update"
    ORGANIZATION_DELETE = "organization:delete"

    DEPARTMENT_READ = "department:read"
    DEPARTMENT_WRITE = "department:write"

    USER_READ = "user:read"
    USER_WRITE = "user:write"

    LEAVE_APPLY = "leave:apply"
    LEAVE_READ_OWN = "leave:read_own"
    LEAVE_READ_ANY = "leave:read_any"
    LEAVE_REVIEW = "leave:review"


_ADMINS = frozenset({UserRole.SUPER_ADMIN, UserRole.ADMIN})
_REVIEWERS = _ADMINS | {UserRole.HR, UserRole.MANAGER}
_EVERYONE = frozenset(UserRole)

POLICY: Dict[Action, FrozenSet[UserRole]] = {
    Action.ORGANIZATION_CREATE: _ADMINS,
    Action.ORGANIZATION_READ: _ADMINS | {UserRole.HR},
    Action.ORGANIZATION_UPDATE: _ADMINS,
    Action.ORGANIZATION_DELETE: _ADMINS,
    Action.DEPARTMENT_READ: _EVERYONE,
    Action.DEPARTMENT_WRITE: _ADMINS,
    Action.USER_READ: _EVERYONE,
    Action.USER_WRITE: _ADMINS,
    Action.LEAVE_APPLY: _EVERYONE,
    Action.LEAVE_READ_OWN: _EVERYONE,
    Action.LEAVE_READ_ANY: _REVIEWERS,
    Action.LEAVE_REVIEW: _REVIEWERS,
}


def _as_role(role: Union[UserRole, str, None]) -> Optional[UserRole]:
    if isinstance(role, UserRole):
        return role
    try:
        return UserRole(role)
    except ValueError:
        return None


def authorize(role: Union[UserRole, str, None], action: Union[Action, str]) -> bool:
    """True when ``role`` may perform ``action``. Unknown roles and actions are denied."""
    resolved = _as_role(role)
    if resolved is None:
        return False
    try:
        allowed = POLICY[Action(action)]
    except ValueError:
        return False
    return resolved in allowed
