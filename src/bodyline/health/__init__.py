"""
Health event inputs for the timeline.

Event records, the ``EventSource`` collaborator protocol and plugin
discovery.  Sources own persistence and sync; the timeline only reads.
"""

from .models import HealthEvent, StreamType, validate_event
from .registry import EventSourceRegistry
from .source import BaseEventSource, EventSource

__all__ = [
    "BaseEventSource",
    "EventSource",
    "EventSourceRegistry",
    "HealthEvent",
    "StreamType",
    "validate_event",
]
