# Models package
# Importing modules here ensures they are registered with SQLAlchemy Base
from . import (
    organization, department, user, leave_request, leave_policy
)

# Explicit class exports for cleaner imports
from .user import User, UserRole
from .organization import Organization
from .department import Department
from .leave_request import LeaveRequest, LeaveStatus, LeaveType
from .leave_policy import LeavePolicy

__all__ = [
    "User",
    "UserRole",
    "Organization",
    "Department",
    "LeaveRequest",
    "LeaveStatus",
    "LeaveType",
    "LeavePolicy",
]
