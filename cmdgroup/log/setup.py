import sys
import json
import logging
from typing import Any, Optional, Union

from cmdgroup import settings
from cmdgroup.errors import InvalidLoggerError

LoggerLike = Union[logging.Logger, logging.LoggerAdapter]

# Structured fields attached through LoggerAdapter extras.
CONTEXT_FIELDS = ("index", "cmd", "pid", "reason", "error")

NULL_LOGGER_NAME = "cmdgroup.null"


def _context_items(record: logging.LogRecord):
    for key in CONTEXT_FIELDS:
        value = getattr(record, key, None)
        if value is not None:
            yield key, value


class MainFormatter(logging.Formatter):
    """Human readable formatter that appends structured fields as key=value."""

    def __init__(self) -> None:
        super().__init__('%(asctime)s - %(levelname)-8s - [%(name)s] - %(message)s')

    def format(self, record):
        formatted_message = super().format(record)
        extras = " ".join(f"{key}={value}" for key, value in _context_items(record))
        return f"{formatted_message} {extras}" if extras else formatted_message


class JsonFormatter(logging.Formatter):
    """Emits one JSON object per record, structured fields as top-level keys."""

    def format(self, record):
        entry = {
            "time": self.formatTime(record, "%Y-%m-%dT%H:%M:%S%z"),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        for key, value in _context_items(record):
            entry[key] = value if isinstance(value, (int, float, bool)) else str(value)
        if record.exc_info:
            entry["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(entry)


class ContextAdapter(logging.LoggerAdapter):
    """A LoggerAdapter that merges call-site extras with its own fields."""

    def __init__(self, logger: LoggerLike, extra: Optional[dict] = None) -> None:
        # Flatten nested adapters so their fields are not dropped.
        if isinstance(logger, logging.LoggerAdapter):
            extra = {**(logger.extra or {}), **(extra or {})}
            logger = logger.logger
        super().__init__(logger, extra or {})

    def process(self, msg, kwargs):
        kwargs["extra"] = {**self.extra, **(kwargs.get("extra") or {})}
        return msg, kwargs

    def with_fields(self, **fields: Any) -> "ContextAdapter":
        """Returns a new adapter carrying additional structured fields."""
        return ContextAdapter(self.logger, {**self.extra, **fields})


def setup_logging(level: Any = None, fmt: Optional[str] = None) -> None:
    """
    Configures the root logger for the application.
    A single stderr handler is installed, clearing any previously configured
    handlers to prevent duplication. Standard output is left to the children.

    :param level: The logging level (e.g., logging.INFO or "DEBUG"). Defaults to settings.LOG_LEVEL.
    :param fmt: "json" or "text". Defaults to settings.LOG_FORMAT.
    """
    level = level if level is not None else settings.LOG_LEVEL
    fmt = (fmt or settings.LOG_FORMAT).lower()

    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    if root_logger.hasHandlers():
        root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(JsonFormatter() if fmt == "json" else MainFormatter())
    root_logger.addHandler(console_handler)


def null_logger() -> logging.Logger:
    """Returns the no-op log sink used when no logger is configured."""
    logger = logging.getLogger(NULL_LOGGER_NAME)
    if not logger.handlers:
        logger.addHandler(logging.NullHandler())
    logger.propagate = False
    return logger


def validate_logger(logger: Any) -> LoggerLike:
    """
    Ensures the given log sink can be used by the group.

    :param logger: A logging.Logger or logging.LoggerAdapter.
    :return: The logger unchanged.
    :raises InvalidLoggerError: If the sink is None or not a logger.
    """
    if logger is None:
        raise InvalidLoggerError("log sink is required; use null_logger() to discard logs")
    if not isinstance(logger, (logging.Logger, logging.LoggerAdapter)):
        raise InvalidLoggerError(f"invalid log sink of type {type(logger).__name__}")
    return logger
