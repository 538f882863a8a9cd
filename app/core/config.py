import os
import logging
from pydantic import BaseModel, Field
from typing import Dict, List, Optional
from dotenv import load_dotenv

load_dotenv()

UNLIMITED_TOKENS = {"unlimited", "none", "no limit", "-1", ""}


def _parse_limits(raw: str) -> Dict[str, Optional[int]]:
    """
    Parse "ANNUAL=20,SICK=10,UNPAID=unlimited" into {"ANNUAL": 20, ..., "UNPAID": None}.
    None marks a leave type without an annual cap.
    """
    limits: Dict[str, Optional[int]] = {}
    for item in raw.split(","):
        if "=" not in item:
            continue
        leave_type, value = item.split("=", 1)
        value = value.strip()
        limits[leave_type.strip().upper()] = None if value.lower() in UNLIMITED_TOKENS else int(value)
    return limits


def _parse_list(raw: str) -> List[str]:
    return [item.strip().upper() for item in raw.split(",") if item.strip()]


class LeaveSettings(BaseModel):
    min_reason_length: int = Field(default=int(os.getenv("LEAVE_MIN_REASON_LENGTH", "10")))
    # Statuses whose days count toward "taken" in the balance
    counted_statuses: List[str] = Field(
        default_factory=lambda: _parse_list(os.getenv("LEAVE_COUNTED_STATUSES", "APPROVED,PENDING"))
    )
    default_limits: Dict[str, Optional[int]] = Field(
        default_factory=lambda: _parse_limits(
            os.getenv("LEAVE_DEFAULT_LIMITS", "ANNUAL=20,SICK=10,PERSONAL=5,UNPAID=unlimited")
        )
    )


class Config(BaseModel):
    app_name: str = "Org Management Platform"
    environment: str = os.getenv("APP_ENV", "development")
    api_prefix: str = "/api"
    version: str = "1.0.0"
    request_id_header: str = "X-Request-ID"

    # Logging: LOG_FORMAT is "json" or "text"
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    log_format: str = os.getenv("LOG_FORMAT", "json").lower()

    # Database
    database_url: str = os.getenv("DATABASE_URL", "sqlite:///./database.db")

    # Auth
    secret_key: str = os.getenv("SECRET_KEY", "dev-only-insecure-key-DO-NOT-USE-IN-PROD")
    jwt_algorithm: str = "HS256"
    access_token_expire_minutes: int = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", str(60 * 24)))

    # Comma-separated browser origins
    cors_origins: List[str] = Field(
        default_factory=lambda: [
            o.strip()
            for o in os.getenv(
                "CORS_ORIGINS",
                "http://localhost:3000,http://localhost:5173,"
                "http://127.0.0.1:3000,http://127.0.0.1:5173",
            ).split(",")
            if o.strip()
        ]
    )

    rate_limit_per_minute: int = int(os.getenv("RATE_LIMIT_PER_MINUTE", "60"))
    rate_limit_enabled: bool = os.getenv("RATE_LIMIT_ENABLED", "true").lower() == "true"

    # Leave workflow
    leave: LeaveSettings = LeaveSettings()


settings = Config()

# --- Startup Validation for Production ---
_logger = logging.getLogger(__name__)
if settings.environment not in ("development", "testing"):
    if "dev-only" in settings.secret_key:
        raise RuntimeError(
            "FATAL: SECRET_KEY must be set for non-development environments. "
            "Set it as an environment variable."
        )
elif "dev-only" in settings.secret_key:
    _logger.warning("Using the built-in SECRET_KEY; set SECRET_KEY before deploying.")
