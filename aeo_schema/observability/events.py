"""Event emission for pipeline observability.

Every stage transition and provider attempt emits an event. Events are
written to the structured log, and kept on the emitter so a monitoring
collaborator can aggregate them (success rate, overload rate, latency).
"""

import logging
from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field

from .logger import StructuredLogger, get_logger, get_request_id


class EventType(str, Enum):
    """Types of pipeline events."""

    # Provider attempts
    ATTEMPT_STARTED = "attempt.started"
    ATTEMPT_SUCCEEDED = "attempt.succeeded"
    ATTEMPT_FAILED = "attempt.failed"
    RETRY_SCHEDULED = "retry.scheduled"
    RETRY_EXHAUSTED = "retry.exhausted"

    # Pipeline lifecycle
    GENERATION_STARTED = "generation.started"
    GENERATION_COMPLETED = "generation.completed"
    GENERATION_FAILED = "generation.failed"
    STAGE_COMPLETED = "stage.completed"

    # Parsing / validation
    PARSE_FAILED = "parse.failed"
    VALIDATION_PASSED = "validation.passed"
    VALIDATION_FAILED = "validation.failed"

    # Mode enforcement
    MODE_VIOLATION = "mode.violation"

    # Completion
    PROPERTY_FILLED = "property.filled"
    PROPERTY_OMITTED = "property.omitted"

    # Refinement
    REFINEMENT_STARTED = "refinement.started"
    REFINEMENT_COMPLETED = "refinement.completed"
    REFINEMENT_FAILED = "refinement.failed"
    PROPERTY_REJECTED = "property.rejected"


_WARNING_EVENTS = frozenset(
    {
        EventType.ATTEMPT_FAILED,
        EventType.RETRY_SCHEDULED,
        EventType.MODE_VIOLATION,
        EventType.VALIDATION_FAILED,
        EventType.PROPERTY_REJECTED,
    }
)
_ERROR_EVENTS = frozenset(
    {
        EventType.RETRY_EXHAUSTED,
        EventType.GENERATION_FAILED,
        EventType.PARSE_FAILED,
        EventType.REFINEMENT_FAILED,
    }
)


class Event(BaseModel):
    """Structured event for pipeline observability."""

    event_type: EventType = Field(..., description="Type of the event")
    request_id: str | None = Field(default=None, description="Request identifier")
    payload: dict[str, Any] = Field(default_factory=dict, description="Event-specific data")
    timestamp: datetime = Field(
        default_factory=datetime.now,
        description="When the event occurred",
    )

    @property
    def level(self) -> int:
        if self.event_type in _ERROR_EVENTS:
            return logging.ERROR
        if self.event_type in _WARNING_EVENTS:
            return logging.WARNING
        return logging.INFO

    def to_log_dict(self) -> dict[str, Any]:
        """Convert to the ``extra_data`` shape written by the formatter."""
        return {
            "event": self.event_type.value,
            "request_id": self.request_id,
            "timestamp": self.timestamp.isoformat(),
            **self.payload,
        }


class EventEmitter:
    """Emits events to the structured log.

    Emitted events are also buffered in memory; ``drain`` hands them to
    the caller and clears the buffer.
    """

    def __init__(self, logger: StructuredLogger | None = None) -> None:
        """Initialize event emitter.

        Args:
            logger: Structured logger (defaults to ``aeo_schema.events``)
        """
        self._logger = logger or get_logger("aeo_schema.events")
        self._buffer: list[Event] = []

    @property
    def events(self) -> list[Event]:
        return list(self._buffer)

    def emit(self, event_type: EventType, **payload: Any) -> Event:
        """Create, log and buffer an event.

        Args:
            event_type: Event type
            **payload: Event-specific data

        Returns:
            Event: The emitted event
        """
        event = Event(
            event_type=event_type,
            request_id=get_request_id(),
            payload=payload,
        )
        self._logger.log(
            event.level,
            event_type.value,
            extra={"event_type": event_type.value},
            extra_data=event.to_log_dict(),
        )
        self._buffer.append(event)
        return event

    def of_type(self, event_type: EventType) -> list[Event]:
        """Buffered events of a single type."""
        return [event for event in self._buffer if event.event_type == event_type]

    def drain(self) -> list[Event]:
        """Return and clear buffered events.

        Returns:
            list[Event]: Events emitted since the last drain
        """
        drained = list(self._buffer)
        self._buffer.clear()
        return drained
