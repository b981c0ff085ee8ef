"""Notification bus between the timeline service and its surfaces.

The dashboard, photo gallery and metrics tab never keep their own time
cursor; they subscribe here and render whatever ``(cursor, bucket)`` pair
the timeline publishes.  Hooks can be sync or async.

Usage::

    from bodyline.core.events import EventBus, Event, TIMELINE_CURSOR_MOVED

    bus = EventBus()

    def render(event: Event) -> None:
        print(event.payload["bucket"])

    bus.on(TIMELINE_CURSOR_MOVED, render)
    bus.emit_sync(Event(name=TIMELINE_CURSOR_MOVED, payload={...}, source="timeline"))
"""

from __future__ import annotations

import asyncio
import inspect
from collections import defaultdict
from dataclasses import dataclass, field
from time import time
from typing import Any

from loguru import logger

# ---------------------------------------------------------------------------
# Well-known event names
# ---------------------------------------------------------------------------

TIMELINE_UPDATED = "timeline.updated"
TIMELINE_CURSOR_MOVED = "timeline.cursor.moved"
EVENTS_SKIPPED = "timeline.events.skipped"

# Type alias for hook callables (sync or async)
Hook = Any  # Callable[[Event], None] | Callable[[Event], Awaitable[None]]


# ---------------------------------------------------------------------------
# Event model
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Event:
    """An immutable notification that flows through the bus."""

    name: str
    payload: dict[str, Any] = field(default_factory=dict)
    timestamp: float = field(default_factory=time)
    source: str = ""


# ---------------------------------------------------------------------------
# EventBus
# ---------------------------------------------------------------------------


class EventBus:
    """Simple pub/sub bus supporting sync and async hooks."""

    def __init__(self) -> None:
        self._hooks: dict[str, list[Hook]] = defaultdict(list)
        self._background_tasks: set[asyncio.Task] = set()

    def on(self, event_name: str, hook: Hook) -> None:
        """Register *hook* for a specific event name."""
        self._hooks[event_name].append(hook)

    def off(self, event_name: str, hook: Hook) -> None:
        """Unregister *hook* from a specific event name."""
        try:
            self._hooks[event_name].remove(hook)
        except ValueError:
            pass

    def emit_sync(self, event: Event) -> None:
        """Emit from a sync context.

        If a running event loop exists, schedules async hooks as tasks.
        Otherwise, only runs sync hooks (async hooks are skipped).
        """
        loop: asyncio.AbstractEventLoop | None = None
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            pass

        for hook in list(self._hooks.get(event.name, [])):
            try:
                if inspect.iscoroutinefunction(hook):
                    if loop is not None:
                        task = loop.create_task(hook(event))
                        self._background_tasks.add(task)
                        task.add_done_callback(self._background_tasks.discard)
                    else:
                        logger.debug(f"Skipping async hook {hook!r}: no running event loop")
                else:
                    hook(event)
            except Exception as exc:
                logger.warning(f"Event hook failed for {event.name}: {exc}")
