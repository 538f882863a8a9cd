"""
Department Model with Hierarchy Support.
Supports parent-child relationships for organizational structure.
"""
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Boolean, Text, UniqueConstraint
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from app.database import Base


class Department(Base):
    __tablename__ = "departments"
    __table_args__ = (
        UniqueConstraint("code", "organization_id", name="uq_department_code_org"),
    )

    id = Column(Integer, primary_key=True, index=True)
    organization_id = Column(Integer, ForeignKey("organizations.id"), nullable=False, index=True)

    name = Column(String, nullable=False, index=True)
    code = Column(String, nullable=False, index=True)  # Short code like "ENG", "HR", "FIN"
    description = Column(Text, nullable=True)
    location = Column(String, nullable=True)

    # Hierarchy support: parent department for nested structures
    parent_id = Column(Integer, ForeignKey("departments.id"), nullable=True, index=True)

    # Department head (user who leads this department)
    head_id = Column(
        Integer,
        ForeignKey("users.id", use_alter=True, name="fk_department_head_id", ondelete="SET NULL"),
        nullable=True,
    )

    is_active = Column(Boolean, default=True, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    # Relationships
    organization = relationship("Organization", back_populates="departments")
    parent = relationship("Department", remote_side=[id], back_populates="sub_departments")
    sub_departments = relationship("Department", back_populates="parent")
    head = relationship("User", foreign_keys=[head_id], back_populates="headed_departments")
    members = relationship("User", foreign_keys="User.department_id", back_populates="department")

    def __repr__(self):
        return f"<Department {self.code}: {self.name}>"

    @property
    def full_path(self) -> str:
        """Returns the full hierarchical path of the department."""
        if self.parent:
            return f"{self.parent.full_path} > {self.name}"
        return self.name
