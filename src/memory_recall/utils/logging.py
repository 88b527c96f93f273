"""Structured logging for the retrieval engine using structlog.

Log records flow through the stdlib logging bridge so host applications keep
control of handlers. Per-request fields (query, limit, mode) are carried in
contextvars and merged into every record emitted while a retrieval runs.
"""

import logging
import sys
from typing import TYPE_CHECKING, Any

import structlog
from structlog.contextvars import (
    bind_contextvars,
    clear_contextvars,
    merge_contextvars,
)

if TYPE_CHECKING:
    from memory_recall.config import Settings


def _build_processors(json_format: bool, add_timestamps: bool) -> list[Any]:
    processors: list[Any] = [merge_contextvars]
    if add_timestamps:
        processors.append(structlog.processors.TimeStamper(fmt="iso", utc=True))
    processors += [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    if json_format:
        processors.append(structlog.processors.JSONRenderer(sort_keys=True))
    else:
        processors.append(structlog.dev.ConsoleRenderer())
    return processors


def configure_logging(
    level: str = "INFO",
    json_format: bool = True,
    add_timestamps: bool = True,
) -> None:
    """Configure structlog and the stdlib root logger.

    Args:
        level: Log level name; unknown names fall back to INFO.
        json_format: Render JSON lines (True) or colored console output (False).
        add_timestamps: Prefix records with an ISO-8601 UTC timestamp.
    """
    log_level = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=log_level)
    logging.getLogger("memory_recall").setLevel(log_level)

    structlog.configure(
        processors=_build_processors(json_format, add_timestamps),
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def configure_logging_from_settings(settings: "Settings") -> None:
    """Configure logging from the ``log_level`` and ``log_json`` settings."""
    configure_logging(level=settings.log_level, json_format=settings.log_json)


def get_logger(name: str | None = None) -> Any:
    """Return a structlog logger bound to ``name``."""
    return structlog.get_logger(name)


def bind_context(**kwargs: Any) -> None:
    """Attach key/value pairs to every record logged in the current context.

    Example:
        >>> bind_context(query="coffee", limit=5, mode="hybrid")
        >>> logger.info("Retrieval completed")
        # Output includes: {"query": "coffee", "limit": 5, "mode": "hybrid", ...}
    """
    bind_contextvars(**kwargs)


def clear_context() -> None:
    """Drop all context bound with ``bind_context``."""
    clear_contextvars()
