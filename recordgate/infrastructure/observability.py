"""Structured Logging — JSON formatter and one-call setup driven by Settings.

Invariants:
    - All logs include timestamp, level, logger name, and message
    - Record context (table_name, operation, actor_id, affected_rows, error_code) surfaced when present
    - A logged RecordGateError contributes its code and category even without explicit extras
    - Repeated configure_logging() calls replace the installed handler, never stack a second one

Design Decisions:
    - The library only emits through module loggers; the host application calls
      configure_logging(settings) once at startup (RECORDGATE_LOG_LEVEL / RECORDGATE_LOG_FORMAT)
    - JSON by default, "text" for local development
"""

import logging
import json
from datetime import datetime, timezone

from recordgate.config import Settings, get_settings
from recordgate.core.errors import RecordGateError

EXTRA_FIELDS = (
    "table_name", "operation", "actor_id", "affected_rows", "error_code",
)

TEXT_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

# Handler installed per logger name by setup_logging()
_installed: dict[str, logging.Handler] = {}


class JSONFormatter(logging.Formatter):
    """One JSON object per record, with record-gateway context fields."""

    def format(self, record: logging.LogRecord) -> str:
        log = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key in EXTRA_FIELDS:
            val = record.__dict__.get(key)
            if val is not None:
                log[key] = val
        if record.exc_info:
            exc = record.exc_info[1]
            if isinstance(exc, RecordGateError):
                log.setdefault("error_code", exc.code)
                log["error_category"] = exc.category.value
                log.setdefault("table_name", exc.context.table_name)
            log["exception"] = self.formatException(record.exc_info)
        return json.dumps(log, ensure_ascii=False, default=str)


def setup_logging(
    level: str = "INFO", fmt: str = "json", logger_name: str = "",
) -> logging.Handler:
    """Install a stream handler on logger_name (root by default)."""
    target = logging.getLogger(logger_name or None)
    previous = _installed.pop(logger_name, None)
    if previous is not None:
        target.removeHandler(previous)

    handler = logging.StreamHandler()
    if fmt == "json":
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter(TEXT_FORMAT))
    target.addHandler(handler)
    target.setLevel(getattr(logging, level.upper(), logging.INFO))
    _installed[logger_name] = handler
    return handler


def configure_logging(settings: Settings | None = None, logger_name: str = "") -> logging.Handler:
    """Apply log_level / log_format from Settings."""
    settings = settings or get_settings()
    return setup_logging(settings.log_level, settings.log_format, logger_name)
