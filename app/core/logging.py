"""Central logging configuration for the application.

Logs go to stdout, as text or one JSON object per line. Only the HTTP edge
logs (request middleware, exception handlers, health probe); the moderation
core reports through return values and exceptions.

Configuration is read from environment variables so it works before typed
Settings are importable.
"""

from __future__ import annotations

import json
import logging
import logging.config
import os
import sys
from datetime import UTC, datetime
from typing import Any

# Structured fields that middleware and handlers attach via ``extra=``.
LOG_EXTRA_KEYS = (
    "request_id",
    "method",
    "path",
    "query",
    "status_code",
    "duration_ms",
    "client_ip",
    "user_agent",
    "error_type",
    "error_kind",
)


def env_bool(name: str, *, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "t", "yes", "y", "on"}


class JsonFormatter(logging.Formatter):
    """One JSON object per record, carrying the known extras."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        payload.update(
            (key, record.__dict__[key])
            for key in LOG_EXTRA_KEYS
            if key in record.__dict__
        )
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)

        return json.dumps(payload, ensure_ascii=False, default=str)


def _library_levels(level: str, *, uvicorn_access: bool) -> dict[str, Any]:
    return {
        # Uvicorn manages these loggers; route them into the root handler.
        "uvicorn": {"level": level, "propagate": True},
        "uvicorn.error": {"level": level, "propagate": True},
        "uvicorn.access": {
            "level": "INFO" if uvicorn_access else "WARNING",
            "propagate": True,
        },
        # INFO prints every statement, including the conditional UPDATEs.
        "sqlalchemy.engine": {
            "level": os.getenv("SQL_LOG_LEVEL", "WARNING").upper(),
            "propagate": True,
        },
    }


def configure_logging() -> None:
    """Configure stdlib logging for app + uvicorn.

    Env vars:
    - LOG_LEVEL: DEBUG|INFO|WARNING|ERROR (default: INFO)
    - LOG_JSON: true/false (default: false)
    - LOG_REQUESTS: true/false (default: true)
    - LOG_UVICORN_ACCESS: true/false; defaults to the opposite of LOG_REQUESTS
      so access lines are not written twice
    - SQL_LOG_LEVEL: level for sqlalchemy.engine (default: WARNING)
    """

    level = os.getenv("LOG_LEVEL", "INFO").upper()
    log_json = env_bool("LOG_JSON", default=False)
    uvicorn_access = env_bool(
        "LOG_UVICORN_ACCESS",
        default=not env_bool("LOG_REQUESTS", default=True),
    )

    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "text": {
                    "format": "%(asctime)s | %(levelname)s | %(name)s | %(message)s",
                },
                "json": {"()": "app.core.logging.JsonFormatter"},
            },
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "level": level,
                    "formatter": "json" if log_json else "text",
                    "stream": sys.stdout,
                }
            },
            "root": {"handlers": ["console"], "level": level},
            "loggers": _library_levels(level, uvicorn_access=uvicorn_access),
        }
    )
