"""Logging configuration for the school API.

Uses the standard logging module configured through dictConfig. Production
deployments can switch to one-object-per-line JSON output with LOG_FORMAT=json.
"""

import json
import logging
import logging.config
import sys
import traceback
from datetime import datetime
from typing import Any, Dict, Optional

from school.app.core.config import settings

# Attributes every LogRecord carries; anything else came in through extra=.
_RECORD_ATTRS = frozenset((
    "name", "msg", "args", "levelname", "levelno", "pathname",
    "filename", "module", "exc_info", "exc_text", "stack_info",
    "lineno", "funcName", "created", "msecs", "relativeCreated",
    "thread", "threadName", "processName", "process", "message",
    "asctime", "taskName",
))


class JSONFormatter(logging.Formatter):
    """Render log records as single-line JSON objects."""

    CONTEXT_FIELDS = [
        "request_id",    # X-Request-ID of the current request
        "client_ip",     # Remote address used as the rate limit key
        "user_id",       # Authenticated entity id
        "role",          # admin | manager | teacher | student
        "path",
        "method",
        "status_code",
        "duration_ms",
    ]

    def format(self, record: logging.LogRecord) -> str:
        record.message = record.getMessage()

        log_data: Dict[str, Any] = {
            "timestamp": datetime.now().astimezone().isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.message,
            "source": {
                "file": record.pathname,
                "line": record.lineno,
                "function": record.funcName,
            },
        }

        for field in self.CONTEXT_FIELDS:
            value = getattr(record, field, None)
            if value is not None and value != "-":
                log_data[field] = value

        extra = {
            key: value
            for key, value in record.__dict__.items()
            if key not in _RECORD_ATTRS and key not in self.CONTEXT_FIELDS
        }
        if extra:
            log_data["extra"] = extra

        if record.exc_info and record.exc_info != (None, None, None):
            log_data["exception"] = traceback.format_exception(*record.exc_info)

        return json.dumps(log_data, default=str, ensure_ascii=False)


class ContextFilter(logging.Filter):
    """Fill in request context fields so format strings never KeyError."""

    CONTEXT_DEFAULTS = {
        "request_id": None,
        "client_ip": None,
        "user_id": None,
        "role": None,
        "path": None,
        "method": None,
        "status_code": None,
        "duration_ms": None,
    }

    def filter(self, record: logging.LogRecord) -> bool:
        for field, default in self.CONTEXT_DEFAULTS.items():
            if not hasattr(record, field):
                setattr(record, field, default)
        return True


def get_logging_config() -> Dict[str, Any]:
    """Get logging configuration dictionary.

    Returns:
        Logging configuration dict compatible with logging.config.dictConfig
    """
    log_format = settings.log_format.lower()
    log_level = settings.log_level.upper()

    formatters: Dict[str, Any] = {
        "standard": {
            "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        },
        "structured": {
            "format": (
                "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
                " - request_id=%(request_id)s - client_ip=%(client_ip)s"
                " - user_id=%(user_id)s"
            )
        },
    }

    if log_format == "json":
        formatters["json"] = {"()": "school.app.core.logging.JSONFormatter"}
        default_formatter = "json"
    else:
        default_formatter = "structured" if log_format == "structured" else "standard"

    handlers = {
        "console": {
            "class": "logging.StreamHandler",
            "level": log_level,
            "formatter": default_formatter,
            "stream": sys.stdout,
            "filters": ["context"],
        },
        "error_console": {
            "class": "logging.StreamHandler",
            "level": "ERROR",
            "formatter": default_formatter,
            "stream": sys.stderr,
            "filters": ["context"],
        },
    }

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": formatters,
        "filters": {
            "context": {"()": "school.app.core.logging.ContextFilter"},
        },
        "handlers": handlers,
        "loggers": {
            "school": {
                "level": log_level,
                "handlers": ["console", "error_console"],
                "propagate": False,
            },
            "uvicorn": {
                "level": log_level,
                "handlers": ["console"],
                "propagate": False,
            },
        },
        "root": {
            "level": log_level,
            "handlers": ["console"],
        },
    }


def setup_logging() -> None:
    """Configure logging for the application."""
    logging.config.dictConfig(get_logging_config())

    # Reduce noise from third-party libraries
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)


def get_logger(name: str = "school") -> logging.Logger:
    """Get a logger instance with the specified name."""
    return logging.getLogger(name)


def get_log_context(
    request_id: Optional[str] = None,
    client_ip: Optional[str] = None,
    user_id: Optional[int] = None,
    role: Optional[str] = None,
    **extra: Any,
) -> Dict[str, Any]:
    """Build an ``extra=`` mapping for structured log calls.

    None values are dropped so the ContextFilter defaults stay in place.

    Example:
        >>> logger.info(
        ...     "Attendance marked",
        ...     extra=get_log_context(request_id="abc123", user_id=7, role="teacher"),
        ... )
    """
    context: Dict[str, Any] = {
        "request_id": request_id,
        "client_ip": client_ip,
        "user_id": user_id,
        "role": role,
    }
    context.update(extra)
    return {k: v for k, v in context.items() if v is not None}
