from pydantic import BaseModel, Field, ConfigDict, field_validator
from typing import Optional, List
from datetime import datetime


class DepartmentBase(BaseModel):
    """Base schema for department data."""
    name: str = Field(..., min_length=1, max_length=100)
    code: str = Field(..., min_length=1, max_length=20, pattern="^[A-Za-z0-9_-]+$")
    description: Optional[str] = None
    location: Optional[str] = None
    parent_id: Optional[int] = None
    head_id: Optional[int] = None


class DepartmentCreate(DepartmentBase):
    """Schema for creating a new department."""
    organization_id: int


class DepartmentUpdate(BaseModel):
    """Schema for updating a department. Only fields sent by the client are applied."""
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    code: Optional[str] = Field(None, min_length=1, max_length=20, pattern="^[A-Za-z0-9_-]+$")
    description: Optional[str] = None
    location: Optional[str] = None
    parent_id: Optional[int] = None
    head_id: Optional[int] = None
    is_active: Optional[bool] = None

    @field_validator("name", "code", "is_active")
    @classmethod
    def not_null(cls, value):
        if value is None:
            raise ValueError("cannot be null")
        return value


class DepartmentCounts(BaseModel):
    # Keys match the dependent names reported by the delete guard
    model_config = ConfigDict(populate_by_name=True)

    members: int = 0
    sub_departments: int = Field(0, alias="subDepartments")


class DepartmentResponse(DepartmentBase):
    """Schema for department response."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    organization_id: int
    is_active: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    # Computed fields
    full_path: Optional[str] = None
    counts: Optional[DepartmentCounts] = None


class DepartmentWithChildren(DepartmentResponse):
    """Schema for department with nested sub-departments."""
    model_config = ConfigDict(from_attributes=True)

    sub_departments: List["DepartmentWithChildren"] = []


# Update forward references
DepartmentWithChildren.model_rebuild()
