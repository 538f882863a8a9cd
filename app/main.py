"""
Org Management Platform API.

Routers live under settings.api_prefix; /docs, /health and /readiness stay at
the root. Every error leaves as {"success": false, "message", "code", "errors"}.
"""
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from sqlalchemy import text
from starlette.exceptions import HTTPException as StarletteHTTPException

import app.models  # noqa: F401  registers every table on Base.metadata
from app.core.config import settings
from app.core.exceptions import AppException
from app.core.limiter import limiter
from app.core.logging import setup_logging
from app.core.middleware import CorrelationIdMiddleware, LoggingMiddleware
from app.database import SessionLocal, init_db
from app.routers.api_router import api_router

setup_logging()
logger = logging.getLogger(__name__)


def _error_body(message: str, code: str, errors: List[Dict[str, Any]], details: Optional[dict] = None) -> dict:
    body = {"success": False, "message": message, "code": code, "errors": errors}
    if details:
        body["details"] = details
    return body


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"Starting {settings.app_name} v{settings.version}", extra={"environment": settings.environment})
    try:
        init_db()
    except Exception:
        logger.exception("Database initialization failed")
        raise
    yield
    logger.info("Shutting down")


async def request_validation_handler(request: Request, exc: RequestValidationError):
    errors = [
        {
            # loc is ("body" | "query" | "path", field, ...)
            "field": ".".join(str(part) for part in error["loc"][1:]) or str(error["loc"][0]),
            "code": error.get("type"),
            "msg": error["msg"],
        }
        for error in exc.errors()
    ]
    logger.warning("Request validation failed", extra={"path": request.url.path, "errors": errors})
    return JSONResponse(status_code=422, content=_error_body("Validation failed", "VALIDATION_ERROR", errors))


async def app_exception_handler(request: Request, exc: AppException):
    logger.warning(exc.message, extra={"code": exc.error_code, "path": request.url.path})
    details = dict(exc.details or {})
    field_errors = details.pop("errors", None)
    if field_errors:
        errors = [{"field": e.get("field"), "code": e.get("code"), "msg": e.get("message")} for e in field_errors]
    else:
        errors = [{"msg": exc.message, "code": exc.error_code}]
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(exc.message, exc.error_code, errors, details),
        headers={"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None,
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    message = exc.detail if isinstance(exc.detail, str) else "Request failed"
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(message, "HTTP_ERROR", [{"msg": message}]),
        headers=getattr(exc, "headers", None),
    )


async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled server error", extra={"path": request.url.path})
    message = "An unexpected server error occurred."
    return JSONResponse(status_code=500, content=_error_body(message, "INTERNAL_ERROR", [{"msg": message}]))


def create_app() -> FastAPI:
    application = FastAPI(
        title=settings.app_name,
        version=settings.version,
        description="Multi-tenant organization, department, user and leave management API",
        docs_url="/docs",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    application.state.limiter = limiter
    application.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
    application.add_exception_handler(RequestValidationError, request_validation_handler)
    application.add_exception_handler(AppException, app_exception_handler)
    application.add_exception_handler(StarletteHTTPException, http_exception_handler)
    application.add_exception_handler(Exception, unhandled_exception_handler)

    # Last added runs first: CORS, then correlation id, then request logging
    application.add_middleware(LoggingMiddleware)
    application.add_middleware(CorrelationIdMiddleware)
    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=[settings.request_id_header, "X-Process-Time"],
    )

    application.include_router(api_router, prefix=settings.api_prefix)
    return application


app = create_app()


@app.get("/", tags=["Health"])
def root():
    return {"message": f"{settings.app_name} API", "version": settings.version, "docs": "/docs"}


@app.get("/health", tags=["Health"])
def health_check():
    """Liveness probe."""
    return {
        "status": "up",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "version": settings.version,
        "environment": settings.environment,
    }


@app.get("/readiness", tags=["Health"])
def readiness_check():
    """Readiness probe; fails with 503 when the database is unreachable."""
    try:
        with SessionLocal() as session:
            session.execute(text("SELECT 1"))
    except Exception as exc:
        logger.error(f"Readiness check failed: {exc}")
        raise HTTPException(status_code=503, detail="Service not ready")
    return {"status": "ready", "components": {"database": "connected"}}
