from typing import Optional

from pydantic import BaseModel, EmailStr, Field

from app.schemas.user import UserResponse


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int
    user: UserResponse


class TokenClaims(BaseModel):
    """Identity claims signed into an access token; exp and type are added when encoding."""
    sub: EmailStr
    role: str
    user_id: int
    org_id: Optional[int] = None
