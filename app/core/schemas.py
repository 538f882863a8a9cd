from datetime import datetime, timezone
from typing import Generic, List, Optional, TypeVar

from pydantic import BaseModel, Field

T = TypeVar("T")


class ErrorInfo(BaseModel):
    msg: str
    code: Optional[str] = None
    field: Optional[str] = None


class ApiResponse(BaseModel, Generic[T]):
    """Success envelope for every /api response; errors are rendered by the app's exception handlers."""
    success: bool
    data: Optional[T] = None
    message: Optional[str] = None
    errors: List[ErrorInfo] = []
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @classmethod
    def ok(cls, data: Optional[T] = None, message: Optional[str] = None) -> "ApiResponse[T]":
        return cls(success=True, data=data, message=message)
