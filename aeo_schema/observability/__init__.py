"""Observability module for pipeline monitoring.

This module provides:
- Event: Structured event schema
- EventEmitter: Log-backed event emission with an in-memory buffer
- Structured logging with request/provider context
"""

from .events import Event, EventEmitter, EventType
from .logger import (
    StructuredLogger,
    clear_context,
    configure_logging,
    get_logger,
    get_request_id,
    request_context,
    set_context,
)

__all__ = [
    "Event",
    "EventType",
    "EventEmitter",
    "StructuredLogger",
    "clear_context",
    "configure_logging",
    "get_logger",
    "get_request_id",
    "request_context",
    "set_context",
]
