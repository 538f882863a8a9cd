"""
Structured logging for the API.

Every record carries the service name, environment and the current request's
correlation id. Set LOG_FORMAT=text for human-readable console output.
"""
import logging
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from pythonjsonlogger import jsonlogger

from app.core.config import settings

# Correlation id of the request being handled; set by CorrelationIdMiddleware
request_id_var: ContextVar[str] = ContextVar("request_id", default="")

TEXT_FORMAT = "%(asctime)s %(levelname)-7s [%(request_id)s] %(name)s: %(message)s"
JSON_FORMAT = "%(timestamp) %(level) %(name) %(message) %(request_id)"
QUIET_LOGGERS = ("uvicorn.access", "sqlalchemy.engine", "passlib")


class RequestIdFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = request_id_var.get() or "-"
        return True


class OrgJsonFormatter(jsonlogger.JsonFormatter):
    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]) -> None:
        super().add_fields(log_record, record, message_dict)
        if not log_record.get("timestamp"):
            log_record["timestamp"] = datetime.now(timezone.utc).isoformat()
        log_record["level"] = record.levelname
        log_record["service"] = settings.app_name
        log_record["environment"] = settings.environment
        if log_record.get("request_id") in (None, "", "-"):
            log_record.pop("request_id", None)


def setup_logging(level: Optional[str] = None, fmt: Optional[str] = None) -> None:
    root = logging.getLogger()
    # Importing the app twice (tests, --reload) must not stack handlers
    if any(getattr(h, "_org_handler", False) for h in root.handlers):
        return

    handler = logging.StreamHandler()
    handler._org_handler = True
    handler.addFilter(RequestIdFilter())
    if (fmt or settings.log_format) == "text":
        handler.setFormatter(logging.Formatter(TEXT_FORMAT))
    else:
        handler.setFormatter(OrgJsonFormatter(JSON_FORMAT))

    root.addHandler(handler)
    root.setLevel((level or settings.log_level).upper())

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
