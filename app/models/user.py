"""
User Model with RBAC.
Supports organization, department and reporting-line context.
"""
from sqlalchemy import Column, Integer, String, Enum, DateTime, Boolean, ForeignKey
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
import enum
from app.database import Base


class UserRole(str, enum.Enum):
    """
    User roles with hierarchical permissions.

    Hierarchy (most to least permissions):
    - SUPER_ADMIN: Platform-wide access (multi-org management)
    - ADMIN: Organization administrator (structure and user management)
    - HR: Human resources (leave review, read access to organizations)
    - MANAGER: Team manager (leave review for reports)
    - EMPLOYEE: Self-service access
    """
    SUPER_ADMIN = "SUPER_ADMIN"
    ADMIN = "ADMIN"
    HR = "HR"
    MANAGER = "MANAGER"
    EMPLOYEE = "EMPLOYEE"


ADMIN_ROLES = (UserRole.SUPER_ADMIN, UserRole.ADMIN)


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, unique=True, index=True, nullable=False)
    hashed_password = Column(String, nullable=False)
    name = Column(String, nullable=True)

    role = Column(Enum(UserRole), default=UserRole.EMPLOYEE, nullable=False)

    organization_id = Column(Integer, ForeignKey("organizations.id"), nullable=True, index=True)
    department_id = Column(
        Integer,
        ForeignKey("departments.id", use_alter=True, name="fk_user_department_id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    reports_to_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    # Relationships
    organization = relationship("Organization", back_populates="users")
    department = relationship("Department", foreign_keys=[department_id], back_populates="members")
    headed_departments = relationship("Department", foreign_keys="Department.head_id", back_populates="head")
    reports_to = relationship("User", remote_side=[id], back_populates="direct_reports")
    direct_reports = relationship("User", back_populates="reports_to")

    # Leave Workflow
    leave_requests = relationship(
        "LeaveRequest",
        foreign_keys="LeaveRequest.user_id",
        back_populates="user",
        cascade="all, delete-orphan",
    )

    def __repr__(self):
        return f"<User {self.email} ({self.role.value})>"

    @property
    def is_admin(self) -> bool:
        return self.role in ADMIN_ROLES
