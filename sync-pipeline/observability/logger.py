"""Structured logger for the sync pipeline.

Provides context-aware logging with optional JSON formatting.

Usage:
    from observability import get_logger, log_context

    logger = get_logger(__name__)

    with log_context(entity="posts", phase="fetch"):
        logger.info("Fetching batch", extra={"batch_size": 5})
        # Output: {"timestamp": "...", "entity": "posts", "phase": "fetch", "message": "...", "batch_size": 5}
"""

from __future__ import annotations

import contextvars
import json
import logging
import sys
from dataclasses import asdict, dataclass, fields
from datetime import datetime, timezone
from typing import Any

ROOT_LOGGER_NAME = "hunt_sync"

# LogRecord attributes that are not user-supplied extras
_RESERVED_ATTRS = frozenset(
    {
        "name",
        "msg",
        "args",
        "created",
        "filename",
        "funcName",
        "levelname",
        "levelno",
        "lineno",
        "module",
        "msecs",
        "pathname",
        "process",
        "processName",
        "relativeCreated",
        "stack_info",
        "exc_info",
        "exc_text",
        "thread",
        "threadName",
        "taskName",
        "message",
    }
)


@dataclass
class LogContext:
    """Context for structured logging.

    Attributes are automatically included in all log messages
    within this context.
    """

    entity: str | None = None
    phase: str | None = None
    operation: str | None = None
    round_index: int | None = None
    batch_index: int | None = None
    correlation_id: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dict, excluding None values."""
        return {k: v for k, v in asdict(self).items() if v is not None}


_log_context: contextvars.ContextVar[LogContext] = contextvars.ContextVar(
    "log_context",
    default=LogContext(),
)


class _ContextManager:
    """Context manager for setting log context."""

    def __init__(self, **kwargs: Any) -> None:
        unknown = set(kwargs) - {f.name for f in fields(LogContext)}
        if unknown:
            raise TypeError(f"Unknown log context fields: {sorted(unknown)}")
        self.kwargs = kwargs
        self.token: contextvars.Token[LogContext] | None = None

    def __enter__(self) -> LogContext:
        current = _log_context.get()
        # Merge with current context
        merged = {**asdict(current), **self.kwargs}
        new_context = LogContext(**merged)
        self.token = _log_context.set(new_context)
        return new_context

    def __exit__(self, *args: Any) -> None:
        if self.token is not None:
            _log_context.reset(self.token)


def log_context(**kwargs: Any) -> _ContextManager:
    """Create a context manager for setting log context.

    Args:
        **kwargs: Context fields to set (entity, phase, operation, etc.)

    Example:
        with log_context(entity="topics", round_index=2):
            logger.info("Syncing batch")
    """
    return _ContextManager(**kwargs)


def current_context() -> LogContext:
    """Return the active log context."""
    return _log_context.get()


def _extras(record: logging.LogRecord) -> dict[str, Any]:
    return {k: v for k, v in record.__dict__.items() if k not in _RESERVED_ATTRS}


class StructuredFormatter(logging.Formatter):
    """JSON formatter with context support."""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname.lower(),
            "logger": record.name,
            "message": record.getMessage(),
        }
        entry.update(_log_context.get().to_dict())
        entry.update(_extras(record))

        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=str, ensure_ascii=False)


class PrettyFormatter(logging.Formatter):
    """Human-readable formatter for development."""

    COLORS = {
        "DEBUG": "\033[36m",  # Cyan
        "INFO": "\033[32m",  # Green
        "WARNING": "\033[33m",  # Yellow
        "ERROR": "\033[31m",  # Red
        "CRITICAL": "\033[35m",  # Magenta
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        ctx = _log_context.get()
        color = self.COLORS.get(record.levelname, "")

        prefix_parts = []
        if ctx.entity:
            prefix_parts.append(f"[{ctx.entity.upper()}]")
        if ctx.phase:
            prefix_parts.append(f"[{ctx.phase}]")
        if ctx.round_index is not None:
            prefix_parts.append(f"[round {ctx.round_index}]")

        prefix = " ".join(prefix_parts)
        if prefix:
            prefix += " "

        timestamp = datetime.now().strftime("%H:%M:%S")
        level = record.levelname[:4]
        message = record.getMessage()

        extras = [f"{key}={value}" for key, value in _extras(record).items()]
        extra_str = " | " + ", ".join(extras) if extras else ""

        formatted = f"{timestamp} {color}{level}{self.RESET} {prefix}{message}{extra_str}"

        if record.exc_info:
            formatted += "\n" + self.formatException(record.exc_info)

        return formatted


_logging_configured = False


def setup_logging(
    level: int = logging.INFO,
    json_format: bool = False,
    quiet: bool = False,
    handler: logging.Handler | None = None,
    force: bool = False,
) -> None:
    """Set up logging for the pipeline.

    Args:
        level: Logging level (default: INFO)
        json_format: Use JSON format (default: False, use pretty format)
        quiet: Suppress all output except errors (default: False)
        handler: Handler to install instead of a stderr stream handler
        force: Reconfigure even if logging was already set up
    """
    global _logging_configured

    if _logging_configured and not force:
        return

    root = logging.getLogger(ROOT_LOGGER_NAME)
    root.setLevel(level)
    root.handlers.clear()

    if handler is None:
        handler = logging.StreamHandler(sys.stderr)
        if json_format:
            handler.setFormatter(StructuredFormatter())
        else:
            handler.setFormatter(PrettyFormatter())
    handler.setLevel(logging.ERROR if quiet else level)

    root.addHandler(handler)

    # Suppress noisy loggers
    logging.getLogger("aiohttp").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)

    _logging_configured = True


def get_logger(name: str) -> logging.Logger:
    """Get a logger for the given module.

    Args:
        name: Module name (usually __name__)

    Returns:
        Logger under the hunt_sync namespace
    """
    if not name.startswith(ROOT_LOGGER_NAME):
        name = f"{ROOT_LOGGER_NAME}.{name}"

    return logging.getLogger(name)
