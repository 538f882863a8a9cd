import logging

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.exceptions import AccessDeniedError, AuthenticationError
from app.core.limiter import LOGIN_RATE_LIMIT, limiter
from app.database import get_db
from app.models.user import User
from app.repositories.directory import UserRepository
from app.routers.auth_deps import get_current_user
from app.schemas.auth import LoginRequest, Token, TokenClaims
from app.schemas.user import UserResponse
from app.services import auth as auth_service

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/auth",
    tags=["auth"]
)


@router.post("/login", response_model=Token)
@limiter.limit(LOGIN_RATE_LIMIT)
def login(request: Request, login_data: LoginRequest, db: Session = Depends(get_db)):
    # JSON body instead of form-data for frontend compatibility
    user = UserRepository(db).find_by_email(login_data.email)
    if not user or not auth_service.verify_password(login_data.password, user.hashed_password):
        logger.warning("Failed login attempt", extra={"email": login_data.email})
        raise AuthenticationError("Incorrect email or password")

    if not user.is_active:
        raise AccessDeniedError("User is inactive")

    claims = TokenClaims(sub=user.email, role=user.role.value, user_id=user.id, org_id=user.organization_id)
    access_token = auth_service.create_access_token(data=claims.model_dump())
    logger.info("User logged in", extra={"user_id": user.id})
    return Token(
        access_token=access_token,
        expires_in=settings.access_token_expire_minutes * 60,
        user=UserResponse.model_validate(user),
    )


@router.get("/me", response_model=UserResponse)
def get_me(current_user: User = Depends(get_current_user)):
    return current_user
