"""Logging configuration for kubectl-who-can."""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from pythonjsonlogger import jsonlogger

from whocan.core.config import Settings, get_settings


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """Custom JSON formatter for structured logging."""

    def __init__(self, *args, settings: Optional[Settings] = None, **kwargs):
        super().__init__(*args, **kwargs)
        self._settings = settings or get_settings()

    def add_fields(
        self,
        log_record: Dict[str, Any],
        record: logging.LogRecord,
        message_dict: Dict[str, Any],
    ) -> None:
        """Add custom fields to log record."""
        super().add_fields(log_record, record, message_dict)

        log_record["timestamp"] = datetime.now(timezone.utc).isoformat()

        # Application context
        log_record["app_name"] = self._settings.app_name
        log_record["app_version"] = self._settings.app_version

        log_record["level"] = record.levelname
        log_record["logger"] = record.name

        # Query context, when the caller attached it
        for key in ("verb", "resource", "namespace", "context"):
            if hasattr(record, key):
                log_record[key] = getattr(record, key)


def setup_logging(settings: Optional[Settings] = None) -> None:
    """Configure logging for the application.

    Log output goes to stderr so that stdout only carries query results.
    """
    settings = settings or get_settings()

    root_logger = logging.getLogger()
    root_logger.setLevel(settings.log_level.value)

    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(settings.log_level.value)

    if settings.log_json:
        formatter = CustomJsonFormatter(
            "%(timestamp)s %(level)s %(name)s %(message)s", settings=settings
        )
    else:
        formatter = logging.Formatter(settings.log_format)

    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    # Set log levels for third-party libraries
    logging.getLogger("kubernetes").setLevel(logging.WARNING)
    logging.getLogger("urllib3").setLevel(logging.WARNING)

    logger = get_logger(__name__)
    logger.debug(
        "Logging configured",
        extra={
            "log_level": settings.log_level.value,
            "log_json": settings.log_json,
        },
    )


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance with the given name."""
    return logging.getLogger(name)


def log_event(logger: logging.Logger, level: str, event: str, **kwargs) -> None:
    """Log a structured event."""
    extra = {"event": event, **kwargs}

    message = f"{event}: {json.dumps(kwargs, default=str)}" if kwargs else event

    log_method = getattr(logger, level, None)
    if log_method is None:
        raise ValueError(f"Unknown log level: {level}")
    log_method(message, extra=extra)
