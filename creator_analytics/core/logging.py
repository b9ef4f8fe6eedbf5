"""
creator_analytics/core/logging.py

Purpose: Logging configuration

- JSON lines in production, colored single lines elsewhere
- Request-independent context (user, store, pipeline entry, stage, event type)
  attached to every record emitted inside a LogContext block
- Quiets driver and access-log chatter
"""

import logging
import sys
import json
from datetime import datetime, timezone
from typing import Any, Dict
from creator_analytics.core.config import settings

SERVICE_NAME = "creator-analytics"

# record attribute -> short label used by the development formatter
CONTEXT_FIELDS = {
    "user_id": "user",
    "store_id": "store",
    "creator_id": "entry",
    "stage": "stage",
    "event_type": "event",
}

NOISY_LOGGERS = ("motor", "pymongo", "uvicorn.access")

LEVEL_COLORS = {
    "DEBUG": "\033[36m",
    "INFO": "\033[32m",
    "WARNING": "\033[33m",
    "ERROR": "\033[31m",
    "CRITICAL": "\033[35m",
}
RESET = "\033[0m"


def record_context(record: logging.LogRecord) -> Dict[str, Any]:
    return {
        field: getattr(record, field)
        for field in CONTEXT_FIELDS
        if getattr(record, field, None) is not None
    }


class StructuredFormatter(logging.Formatter):
    """
    One JSON object per line, for log shipping in production.
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "service": SERVICE_NAME,
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "function": record.funcName,
            "line": record.lineno,
        }
        log_data.update(record_context(record))

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)


class DevelopmentFormatter(logging.Formatter):
    """
    Human-readable formatter for development environment.
    """

    def format(self, record: logging.LogRecord) -> str:
        color = LEVEL_COLORS.get(record.levelname, RESET)
        timestamp = datetime.fromtimestamp(record.created).strftime("%H:%M:%S")

        message = f"{color}[{timestamp}] {record.levelname:<8}{RESET} {record.name}: {record.getMessage()}"

        context = record_context(record)
        if context:
            parts = [f"{CONTEXT_FIELDS[field]}={value}" for field, value in context.items()]
            message += f" [{', '.join(parts)}]"

        if record.exc_info:
            message += "\n" + self.formatException(record.exc_info)

        return message


def setup_logging():
    """
    Installs a single stdout handler on the root logger.
    """
    log_level = getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(StructuredFormatter() if settings.is_production else DevelopmentFormatter())

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers.clear()
    root_logger.addHandler(handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logger = logging.getLogger("creator_analytics")
    logger.info(f"Logging configured (environment={settings.ENVIRONMENT}, level={settings.LOG_LEVEL})")
    return logger


def get_logger(name: str) -> logging.Logger:
    """
    Logger under the `creator_analytics` namespace.

    Args:
        name: Logger name (usually __name__)
    """
    if name.startswith("creator_analytics"):
        return logging.getLogger(name)
    return logging.getLogger(f"creator_analytics.{name}")


class LogContext:
    """
    Attaches context fields to every record created inside the block.

    Usage:
        with LogContext(creator_id=entry_id, stage="drafting"):
            logger.info("Stage updated")

    Do not pass the same keys through `extra=` inside the block; logging
    refuses to overwrite an existing record attribute.
    """

    def __init__(self, **kwargs):
        self.context = kwargs
        self._old_factory = None

    def __enter__(self):
        self._old_factory = logging.getLogRecordFactory()

        def record_factory(*args, **kwargs):
            record = self._old_factory(*args, **kwargs)
            for key, value in self.context.items():
                setattr(record, key, value)
            return record

        logging.setLogRecordFactory(record_factory)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        logging.setLogRecordFactory(self._old_factory)
