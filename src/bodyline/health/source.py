"""
EventSource protocol and base class.

Any provider of a user's health events (HealthKit bridge, sync layer,
export file, …) implements this interface so the timeline can pull from
them uniformly.  Persistence and sync live behind it.
"""

from abc import ABC, abstractmethod
from typing import Any, Protocol, runtime_checkable

from .models import HealthEvent


@runtime_checkable
class EventSource(Protocol):
    """Protocol that every event source must satisfy."""

    name: str

    def fetch_events(self, user_id: str) -> list[HealthEvent]:
        """Return the full relevant event set for *user_id*."""
        ...

    def validate(self) -> bool:
        """Check that the backing store is reachable."""
        ...

    def get_config_schema(self) -> dict[str, Any]:
        """Describe required config keys so consumers know what to provide."""
        ...


class BaseEventSource(ABC):
    """Optional ABC providing shared plumbing for event sources.

    Subclass this for call stats, or just implement the ``EventSource``
    protocol directly.
    """

    name: str = "base"

    def __init__(self, **config: Any):
        self.config = config
        self.stats: dict[str, int] = {"fetches": 0, "events": 0, "errors": 0}

    @abstractmethod
    def fetch_events(self, user_id: str) -> list[HealthEvent]:
        """Return the full relevant event set for *user_id*."""

    def validate(self) -> bool:
        """Default validation; override for real checks."""
        return True

    def get_config_schema(self) -> dict[str, Any]:
        """Override to advertise required config keys."""
        return {}

    def _record_fetch(self, events: list[HealthEvent]) -> list[HealthEvent]:
        self.stats["fetches"] += 1
        self.stats["events"] += len(events)
        return events
