from sqlalchemy import Column, Integer, String, Text, DateTime, Boolean
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from app.database import Base


class Organization(Base):
    __tablename__ = "organizations"

    id = Column(Integer, primary_key=True, index=True)
    # Uniqueness enforced by the database, not only by the create handler
    code = Column(String, unique=True, index=True, nullable=False)
    name = Column(String, nullable=False, index=True)

    address = Column(String, nullable=True)
    phone = Column(String, nullable=True)
    email = Column(String, nullable=True)
    website = Column(String, nullable=True)
    description = Column(Text, nullable=True)

    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    departments = relationship("Department", back_populates="organization")
    users = relationship("User", back_populates="organization")
    leave_policies = relationship("LeavePolicy", back_populates="organization", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<Organization {self.code}: {self.name}>"
