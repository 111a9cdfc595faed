"""Event recorders for rebalancer decisions."""

import logging
from abc import ABC, abstractmethod
from typing import Iterable, List

from kube_balance.core.events_model import EVENT_WARNING, RebalanceEvent

logger = logging.getLogger(__name__)


ALLOWED_REASONS = {
    "NodeDegraded",
    "EvictionSkipped",
    "PDBViolation",
    "PodEvicted",
    "EvictionRateLimited",
    "EvictionFailed",
    "CooldownSet",
    "CooldownAnnotationFailed",
}


def validate_event(event: RebalanceEvent) -> None:
    if event.reason not in ALLOWED_REASONS:
        raise ValueError(f"Invalid event reason: {event.reason}")
    if not event.involved.name:
        raise ValueError("Event must reference an object")


class EventRecorder(ABC):
    """Abstract event recorder."""

    @abstractmethod
    def record(self, event: RebalanceEvent) -> None:
        """Record one event. Must not raise on delivery failure."""
        pass


class InMemoryEventRecorder(EventRecorder):
    """Keeps events in memory (tests, dry runs)."""

    def __init__(self):
        self.events: List[RebalanceEvent] = []

    def record(self, event: RebalanceEvent) -> None:
        validate_event(event)
        self.events.append(event)

    def reasons(self) -> List[str]:
        return [e.reason for e in self.events]


class LoggingEventRecorder(EventRecorder):
    """Writes events to the log."""

    def record(self, event: RebalanceEvent) -> None:
        validate_event(event)
        level = logging.WARNING if event.event_type == EVENT_WARNING else logging.INFO
        logger.log(
            level,
            f"[event] {event.reason} | {event.involved.kind}/{event.involved.name} | {event.message}",
        )


class MultiEventRecorder(EventRecorder):
    """Fan-out to multiple recorders."""

    def __init__(self, recorders: Iterable[EventRecorder]):
        self._recorders = list(recorders)

    def record(self, event: RebalanceEvent) -> None:
        for recorder in self._recorders:
            recorder.record(event)

