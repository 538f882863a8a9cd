from pydantic import BaseModel, EmailStr, ConfigDict, Field, field_validator
from typing import Optional
from app.models.user import UserRole
from datetime import datetime


class UserBase(BaseModel):
    email: EmailStr
    name: Optional[str] = None
    role: UserRole = UserRole.EMPLOYEE
    department_id: Optional[int] = None
    reports_to_id: Optional[int] = None


class UserCreate(UserBase):
    password: str = Field(..., min_length=8)
    organization_id: int


class UserUpdate(BaseModel):
    email: Optional[EmailStr] = None
    name: Optional[str] = None
    role: Optional[UserRole] = None
    department_id: Optional[int] = None
    reports_to_id: Optional[int] = None
    is_active: Optional[bool] = None

    @field_validator("email", "role", "is_active")
    @classmethod
    def not_null(cls, value):
        if value is None:
            raise ValueError("cannot be null")
        return value


class UserResponse(UserBase):
    model_config = ConfigDict(from_attributes=True)

    id: int
    email: str
    organization_id: Optional[int] = None
    is_active: bool
    created_at: Optional[datetime] = None
