"""Utility modules for the retrieval engine."""

from memory_recall.utils.logging import (
    bind_context,
    clear_context,
    configure_logging,
    configure_logging_from_settings,
    get_logger,
)
from memory_recall.utils.metrics import NullMetrics, RetrievalMetrics

__all__ = [
    # Logging
    "configure_logging",
    "configure_logging_from_settings",
    "get_logger",
    "bind_context",
    "clear_context",
    # Metrics
    "RetrievalMetrics",
    "NullMetrics",
]
