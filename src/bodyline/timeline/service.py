"""
Timeline service.

Composes builder → aggregator → interpolation → scoring into one
``TimelineState`` and publishes it to the surfaces (dashboard, gallery,
metrics tab) together with the shared cursor.

Rebuilds are wholesale and single-writer: a request that arrives while a
rebuild is running is absorbed by that rebuild instead of starting a second
one, and readers only ever see a fully built state.

Usage::

    service = TimelineService(score_function=my_score_fn, source=my_source)
    service.subscribe(render_dashboard)
    service.refresh(user_id)
    cursor, bucket = service.selection()
"""

from __future__ import annotations

import threading
from collections.abc import Callable, Iterable
from datetime import date

from loguru import logger

from bodyline.core.events import EVENTS_SKIPPED, TIMELINE_CURSOR_MOVED, TIMELINE_UPDATED, Event, EventBus, Hook
from bodyline.core.exceptions import EventSourceError, InvalidEventError
from bodyline.health.models import HealthEvent, validate_event
from bodyline.health.source import EventSource

from .aggregator import EventIndex, aggregate_parents, aggregate_weeks
from .builder import build_month_buckets, build_year_buckets, month_series, rendered_years, weekly_history
from .config import TimelineConfig
from .cursor import CursorController
from .interpolation import interpolate_buckets
from .models import TimelineBucket, TimelineCursor, TimelineScale, TimelineState
from .scoring import ScoreFunction, score_bucket


def prepare_events(events: Iterable[HealthEvent], config: TimelineConfig) -> tuple[list[HealthEvent], list[str]]:
    """Validate every event; bad ones are logged and skipped, never fatal."""
    valid: list[HealthEvent] = []
    skipped: list[str] = []
    tz = config.tz
    for event in events:
        try:
            valid.append(validate_event(event, tz))
        except InvalidEventError as e:
            reason = f"{e.event_id or '<no id>'}: {e}"
            logger.warning(f"Skipping health event {reason}")
            skipped.append(reason)
    return valid, skipped


def build_timeline(
    events: Iterable[HealthEvent],
    config: TimelineConfig,
    score_function: ScoreFunction | None,
    today: date,
) -> TimelineState:
    """Pure rebuild of every scale from an event set."""
    valid, skipped = prepare_events(events, config)
    version = score_function.version if score_function else None
    index = EventIndex(valid)
    if not len(index):
        return TimelineState(score_version=version, skipped_events=tuple(skipped))

    ordered = index.events

    def has_events(bucket: TimelineBucket) -> bool:
        return index.has_events(bucket.start_date, bucket.end_date)

    def scored(buckets: Iterable[TimelineBucket]) -> tuple[TimelineBucket, ...]:
        return tuple(score_bucket(b, score_function) for b in buckets)

    history = aggregate_weeks(weekly_history(ordered, config), index, config)

    # Months and years aggregate from the un-interpolated finer series.
    month_raw = aggregate_parents(month_series(ordered, config), history, index, config)
    months = interpolate_buckets(month_raw, config.max_interpolation_gap, has_events)
    shown_months = {b.id for b in build_month_buckets(ordered, config)}

    year_raw = aggregate_parents(build_year_buckets(ordered, today), month_raw, index, config)
    years = rendered_years(interpolate_buckets(year_raw, config.max_interpolation_gap, has_events), has_events)

    week_history = scored(history)
    return TimelineState(
        weeks=week_history[-config.weeks_rendered :],
        months=scored(b for b in months if b.id in shown_months),
        years=scored(years),
        week_history=week_history,
        score_version=version,
        skipped_events=tuple(skipped),
    )


class TimelineService:
    """Per-session owner of the bucket cache and the shared cursor."""

    def __init__(
        self,
        config: TimelineConfig | None = None,
        score_function: ScoreFunction | None = None,
        source: EventSource | None = None,
        bus: EventBus | None = None,
        clock: Callable[[], date] = date.today,
    ):
        """
        Args:
            config: Bucketing policy. Defaults to ``TimelineConfig()``.
            score_function: External body-score function, or None for no scores.
            source: Event source used by ``refresh()``.
            bus: Notification bus for surfaces. A private one is created if omitted.
            clock: Supplies "today" for the year range.
        """
        self.config = config or TimelineConfig()
        self.source = source
        self.bus = bus or EventBus()
        self._clock = clock
        self._score_function = score_function

        self._lock = threading.Lock()
        self._state = TimelineState(score_version=score_function.version if score_function else None)
        self._events: tuple[HealthEvent, ...] = ()
        self._pending: list[HealthEvent] | None = None
        self._running = False
        self.stats: dict[str, int] = {"rebuilds": 0, "coalesced": 0, "skipped_events": 0}

        self.cursor = CursorController(lambda: self._state, self.bus)

    # ── Read model ───────────────────────────────────────────────────

    @property
    def state(self) -> TimelineState:
        """Last published state."""
        return self._state

    @property
    def score_function(self) -> ScoreFunction | None:
        return self._score_function

    def buckets(self, scale: TimelineScale) -> list[TimelineBucket]:
        return list(self._state.buckets(scale))

    def bucket(self, cursor: TimelineCursor | None = None) -> TimelineBucket | None:
        """Bucket under *cursor* (the shared cursor when omitted)."""
        cursor = cursor or self.cursor.cursor
        if cursor is None:
            return None
        return self._state.find(cursor.scale, cursor.bucket_id)

    def weekly_history(self) -> list[TimelineBucket]:
        """All data-bearing weeks, including those older than the fine zone."""
        return list(self._state.week_history)

    def selection(self) -> tuple[TimelineCursor | None, TimelineBucket | None]:
        cursor = self.cursor.cursor
        return cursor, self.bucket(cursor)

    def subscribe(self, hook: Hook, *, cursor_moves: bool = True) -> None:
        """Register a surface for rebuilds (and cursor moves)."""
        self.bus.on(TIMELINE_UPDATED, hook)
        if cursor_moves:
            self.bus.on(TIMELINE_CURSOR_MOVED, hook)

    def unsubscribe(self, hook: Hook) -> None:
        self.bus.off(TIMELINE_UPDATED, hook)
        self.bus.off(TIMELINE_CURSOR_MOVED, hook)

    # ── Inputs ───────────────────────────────────────────────────────

    def update_metrics(self, events: Iterable[HealthEvent]) -> bool:
        """Rebuild from *events*.

        Returns False when the request was absorbed by a rebuild already in
        flight; that rebuild picks up these events before it publishes.
        """
        with self._lock:
            self._pending = list(events)
            if self._running:
                self.stats["coalesced"] += 1
                logger.debug("Timeline rebuild in flight; request coalesced")
                return False
            self._running = True

        try:
            while True:
                with self._lock:
                    events_now, self._pending = self._pending or [], None
                    score_function = self._score_function
                state = build_timeline(events_now, self.config, score_function, self._clock())
                with self._lock:
                    self._events = tuple(events_now)
                    self._state = state
                    self.stats["rebuilds"] += 1
                    if self._pending is None:
                        self._running = False
                        break
        except BaseException:
            with self._lock:
                self._running = False
            raise

        self._publish()
        return True

    def on_events_changed(self, events: Iterable[HealthEvent]) -> bool:
        """Push-style entry point for event sources."""
        return self.update_metrics(events)

    def refresh(self, user_id: str) -> bool:
        """Pull the event set from the configured source and rebuild.

        Source failures propagate unchanged; retrying is the caller's call.
        """
        if self.source is None:
            raise EventSourceError("No event source configured")
        events = self.source.fetch_events(user_id)
        logger.info(f"Fetched {len(events)} events for {user_id} from {self.source.name}")
        return self.update_metrics(events)

    def recompute(self) -> bool:
        """Rebuild from the last event set (e.g. after a scorer upgrade)."""
        return self.update_metrics(self._events)

    def set_score_function(self, score_function: ScoreFunction | None, *, recompute: bool = False) -> None:
        """Swap the scorer.  Existing buckets keep their version tag until rebuilt."""
        with self._lock:
            self._score_function = score_function
        if recompute:
            self.recompute()

    # ── Cursor passthrough ───────────────────────────────────────────

    def select_bucket(self, scale: TimelineScale, bucket_id: str) -> TimelineCursor:
        return self.cursor.select_bucket(scale, bucket_id)

    def select_today(self) -> TimelineCursor | None:
        return self.cursor.select_today()

    def change_scale(self, scale: TimelineScale) -> TimelineCursor | None:
        return self.cursor.change_scale(scale)

    def drag_to(self, position: float) -> TimelineBucket | None:
        return self.cursor.drag_to(position)

    def end_drag(self) -> TimelineCursor | None:
        return self.cursor.end_drag()

    # ── internals ────────────────────────────────────────────────────

    def _publish(self) -> None:
        state = self._state
        self.cursor.reconcile(state)
        if state.skipped_events:
            self.stats["skipped_events"] += len(state.skipped_events)
            self.bus.emit_sync(
                Event(
                    name=EVENTS_SKIPPED,
                    payload={"count": len(state.skipped_events), "reasons": list(state.skipped_events)},
                    source="timeline",
                )
            )
        cursor, bucket = self.selection()
        logger.debug(
            f"Timeline published: {len(state.weeks)} weeks, {len(state.months)} months, "
            f"{len(state.years)} years; cursor={cursor and cursor.bucket_id}"
        )
        self.bus.emit_sync(
            Event(
                name=TIMELINE_UPDATED,
                payload={"state": state, "cursor": cursor, "bucket": bucket},
                source="timeline",
            )
        )
