"""Structured JSON Logging with Correlation ID Support

Every record is one JSON object. Engine and service code passes request,
ledger and actor identifiers through ``extra=`` so a request's lifecycle can
be followed across log lines; the HTTP correlation ID is attached from
context.
"""
import json
import logging
import os
import sys
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from typing import Any, Dict, Optional
from contextvars import ContextVar

from ..config.settings import settings


correlation_id_var: ContextVar[Optional[str]] = ContextVar("correlation_id", default=None)

# Record attributes copied into the payload when passed via extra=
EXTRA_FIELDS = (
    "request_id",
    "entry_id",
    "template_id",
    "actor_id",
    "user_id",
    "step_index",
    "action",
    "status",
    "error_code",
)

_MAX_LOG_BYTES = 10 * 1024 * 1024
_LOG_BACKUPS = 5


class JsonFormatter(logging.Formatter):
    """One JSON object per record"""

    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        correlation_id = correlation_id_var.get()
        if correlation_id:
            payload["correlation_id"] = correlation_id

        payload.update(
            (field, getattr(record, field)) for field in EXTRA_FIELDS if hasattr(record, field)
        )

        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)

        return json.dumps(payload, default=str)


def _rotating_handler(filename: str, formatter: logging.Formatter, level: int = logging.NOTSET) -> RotatingFileHandler:
    handler = RotatingFileHandler(
        os.path.join(settings.logs_path, filename),
        maxBytes=_MAX_LOG_BYTES,
        backupCount=_LOG_BACKUPS,
        encoding="utf-8"
    )
    handler.setLevel(level)
    handler.setFormatter(formatter)
    return handler


def setup_logging() -> None:
    """
    Route all logging through the JSON formatter

    Writes to stdout, ``app.log`` and an errors-only
    ``error.log`` under ``settings.logs_path``.
    """
    os.makedirs(settings.logs_path, exist_ok=True)
    formatter = JsonFormatter()

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, settings.log_level.upper(), logging.INFO))
    root_logger.handlers.clear()

    console = logging.StreamHandler(sys.stdout)
    console.setFormatter(formatter)
    root_logger.addHandler(console)
    root_logger.addHandler(_rotating_handler("app.log", formatter))
    root_logger.addHandler(_rotating_handler("error.log", formatter, logging.ERROR))

    # Third-party noise
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("pymongo").setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


def set_correlation_id(correlation_id: str) -> None:
    correlation_id_var.set(correlation_id)


def get_correlation_id() -> Optional[str]:
    return correlation_id_var.get()
