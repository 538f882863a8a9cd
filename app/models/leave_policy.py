from sqlalchemy import Column, Integer, Enum, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from app.database import Base
from app.models.leave_request import LeaveType


class LeavePolicy(Base):
    """Per-organization override of the annual day limit for one leave type."""
    __tablename__ = "leave_policies"
    __table_args__ = (
        UniqueConstraint("organization_id", "leave_type", name="uq_leave_policy_org_type"),
    )

    id = Column(Integer, primary_key=True, index=True)
    # NULL organization marks a global row
    organization_id = Column(Integer, ForeignKey("organizations.id"), nullable=True, index=True)
    leave_type = Column(Enum(LeaveType), nullable=False, index=True)
    max_days_per_year = Column(Integer, nullable=True)  # NULL = no limit

    organization = relationship("Organization", back_populates="leave_policies")
