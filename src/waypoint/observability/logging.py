"""Logging setup for Waypoint.

Human-readable lines on the console, JSON lines in a rotating file.
"""

import logging
import logging.config
from collections.abc import MutableMapping
from typing import Any

from pythonjsonlogger.json import JsonFormatter

LOGGER_NAME = "waypoint"
CONSOLE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
JSON_FIELDS = "%(asctime)s %(name)s %(levelname)s %(message)s"
LOG_FILE_MAX_BYTES = 10 * 1024 * 1024
LOG_FILE_BACKUPS = 5


def build_logging_config(level: str, log_file: str | None) -> dict[str, Any]:
    """dictConfig schema for the ``waypoint`` logger tree."""
    level = level.upper()
    handlers: dict[str, dict[str, Any]] = {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "console",
            "level": level,
        }
    }
    formatters: dict[str, dict[str, Any]] = {
        "console": {"format": CONSOLE_FORMAT, "datefmt": "%Y-%m-%d %H:%M:%S"}
    }
    if log_file:
        formatters["json"] = {"()": JsonFormatter, "fmt": JSON_FIELDS}
        handlers["file"] = {
            "class": "logging.handlers.RotatingFileHandler",
            "filename": log_file,
            "maxBytes": LOG_FILE_MAX_BYTES,
            "backupCount": LOG_FILE_BACKUPS,
            "encoding": "utf-8",
            "formatter": "json",
            "level": level,
        }

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": formatters,
        "handlers": handlers,
        "loggers": {
            LOGGER_NAME: {"handlers": list(handlers), "level": level, "propagate": False},
        },
        "root": {"handlers": ["console"], "level": "WARNING"},
    }


def setup_logging(level: str = "INFO", log_file: str | None = "waypoint.log") -> None:
    """
    Configure logging for the process.

    Args:
        level: Log level for waypoint loggers (DEBUG, INFO, WARNING, ERROR)
        log_file: Rotating JSON log file. None disables it.
    """
    logging.config.dictConfig(build_logging_config(level, log_file))


class ContextAdapter(logging.LoggerAdapter):
    """Adapter that tags each message with its context, e.g. ``[session_id=abc]``.

    The context also lands on the record, so the JSON file gets it as fields.
    """

    def process(
        self, msg: Any, kwargs: MutableMapping[str, Any]
    ) -> tuple[Any, MutableMapping[str, Any]]:
        context = dict(self.extra or {})
        kwargs["extra"] = {**context, **kwargs.get("extra", {})}
        if not context:
            return msg, kwargs
        tags = " ".join(f"{key}={value}" for key, value in context.items())
        return f"[{tags}] {msg}", kwargs


class ContextLogger:
    """Logger that hands out context-bound adapters."""

    def __init__(self, name: str):
        self.logger = logging.getLogger(name)

    def with_context(self, **context: Any) -> ContextAdapter:
        """
        Bind context to log messages.

        Args:
            **context: Context key-value pairs (e.g. session_id)
        """
        return ContextAdapter(self.logger, context)
