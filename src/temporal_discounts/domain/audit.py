"""
Structured trace channel for discount calculations.

The engine reports what it is doing (rules matched, final totals) as
`TraceEvent`s. These are observability output, never control flow: callers
may log them, show them, or ignore them. A sink that blows up is reported and
skipped so the calculation always completes.
"""

import logging
from enum import Enum
from typing import Any, Callable, Iterable

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)


class TraceKind(str, Enum):
    ANALYZING = "ANALYZING"
    RULE_MATCHED = "RULE_MATCHED"
    NO_DISCOUNT = "NO_DISCOUNT"
    RESULT = "RESULT"
    INVALID_CONTEXT = "INVALID_CONTEXT"


class TraceEvent(BaseModel):
    kind: TraceKind
    message: str
    data: dict[str, Any] = Field(default_factory=dict)


TraceSink = Callable[[TraceEvent], None]


def log_sink(event: TraceEvent) -> None:
    """Default sink: write the event to the module logger."""
    logger.info("%s", event.message)


class AuditTrail:
    """Ordered record of trace events, fanned out to sinks as they arrive."""

    def __init__(self, sinks: Iterable[TraceSink] | None = None) -> None:
        self.sinks: list[TraceSink] = list(sinks) if sinks is not None else [log_sink]
        self.events: list[TraceEvent] = []

    def emit(self, kind: TraceKind, message: str, **data: Any) -> TraceEvent:
        event = TraceEvent(kind=kind, message=message, data=data)
        self.events.append(event)
        for sink in self.sinks:
            try:
                sink(event)
            except Exception:
                logger.warning("Trace sink %r failed on %s event", sink, kind.value, exc_info=True)
        return event

    def messages(self) -> list[str]:
        return [event.message for event in self.events]

    def of_kind(self, kind: TraceKind) -> list[TraceEvent]:
        return [event for event in self.events if event.kind == kind]
