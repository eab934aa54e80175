"""
Structured logging for the movie catalog core.

The CLI and scripts call ``configure_logging`` once at startup; library
modules only ask for a logger and pass context through ``extra=``:

    from moviecatalog.utils.logging import configure_logging, get_logger

    configure_logging(level="INFO", json_logs=True, app_env="production")
    log = get_logger(__name__)
    log.info("[CREATE] record stored", extra={"record_id": "abc", "caller": "cli"})

With ``json_logs`` every ``extra`` key becomes a top-level JSON field, which
keeps record ids, versions and update outcomes queryable in a log store.
Driver and SDK loggers (botocore, psycopg pool) are capped at WARNING so
they do not drown the catalog's own events at DEBUG.
"""

from __future__ import annotations

import json
import logging
import logging.config
from datetime import datetime, timezone
from typing import Any, Dict, Optional

SERVICE_NAME = "moviecatalog"

_NOISY_LOGGERS = ("boto3", "botocore", "urllib3", "psycopg.pool")

# Attributes every LogRecord carries; anything else arrived through `extra=`.
_STANDARD_ATTRS = frozenset(
    logging.LogRecord(
        name="", level=0, pathname="", lineno=0, msg="", args=(), exc_info=None
    ).__dict__.keys()
) | {"message", "asctime", "taskName"}


class ServiceFilter(logging.Filter):
    """Stamp each record with the service name and deployment environment."""

    def __init__(self, env: str = "development") -> None:
        super().__init__()
        self.env = env

    def filter(self, record: logging.LogRecord) -> bool:
        record.service = SERVICE_NAME
        record.env = self.env
        return True


def _json_formatter(record: logging.LogRecord) -> str:
    """Render a log record as a single JSON line."""
    payload: Dict[str, Any] = {
        "time": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
        "level": record.levelname,
        "logger": record.name,
        "message": record.getMessage(),
    }
    payload.update(
        (key, value)
        for key, value in record.__dict__.items()
        if key not in _STANDARD_ATTRS and key != "extra"
    )
    # Older call sites pass a nested dict as `extra={"extra": {...}}`.
    nested = getattr(record, "extra", None)
    if isinstance(nested, dict):
        payload.update(nested)
    if record.exc_info:
        payload["exc_info"] = logging.Formatter().formatException(record.exc_info)
    if record.stack_info:
        payload["stack_info"] = record.stack_info
    return json.dumps(payload, default=str)


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:  # type: ignore[override]
        return _json_formatter(record)


def configure_logging(
    level: str = "INFO",
    json_logs: bool = False,
    app_env: str = "development",
) -> None:
    """
    Install the root handler on stderr.

    Parameters
    ----------
    level : str
        Level name applied to the root logger and handler.
    json_logs : bool
        Emit one JSON object per line instead of the console format.
    app_env : str
        Value stamped into every record's ``env`` field.
    """
    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "filters": {"service": {"()": ServiceFilter, "env": app_env}},
            "formatters": {
                "console": {
                    "format": "%(asctime)s | %(levelname)s | %(env)s | %(name)s | %(message)s",
                    "datefmt": "%Y-%m-%d %H:%M:%S",
                },
                "json": {"()": JsonFormatter},
            },
            "handlers": {
                "stderr": {
                    "class": "logging.StreamHandler",
                    "stream": "ext://sys.stderr",
                    "formatter": "json" if json_logs else "console",
                    "filters": ["service"],
                    "level": level,
                }
            },
            "loggers": {name: {"level": "WARNING"} for name in _NOISY_LOGGERS},
            "root": {"handlers": ["stderr"], "level": level},
        }
    )


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Module logger; the root logger when ``name`` is None."""
    return logging.getLogger(name)


__all__ = ["configure_logging", "get_logger", "JsonFormatter", "ServiceFilter"]
