from app.repositories.base import Repository
from app.repositories.directory import DepartmentRepository, OrganizationRepository, UserRepository
from app.repositories.leave import LeavePolicyRepository, LeaveRequestRepository

__all__ = [
    "Repository",
    "OrganizationRepository",
    "DepartmentRepository",
    "UserRepository",
    "LeaveRequestRepository",
    "LeavePolicyRepository",
]
