"""
Cursor controller.

Owns the single shared cursor.  It is either unset (no data) or points at
a bucket that exists in the last published ``TimelineState``.  Reads never
wait for a rebuild: they use whatever state was published last.

    Unset ──(data arrives / reconcile)──▶ Positioned(scale, bucket_id)
    Positioned ──select / drag+release / today / change_scale──▶ Positioned
    Positioned ──(rebuild removes every bucket)──▶ Unset
"""

from __future__ import annotations

import threading
from collections.abc import Callable

from loguru import logger

from bodyline.core.events import TIMELINE_CURSOR_MOVED, Event, EventBus
from bodyline.core.exceptions import UnknownBucketError

from .models import TimelineBucket, TimelineCursor, TimelineScale, TimelineState


def _cursor_at(bucket: TimelineBucket) -> TimelineCursor:
    return TimelineCursor(date=bucket.last_day, scale=bucket.scale, bucket_id=bucket.id)


def _nearest(buckets: tuple[TimelineBucket, ...], ordinal: float) -> TimelineBucket:
    """Bucket whose midpoint is closest to *ordinal*; ties go to the older one."""
    return min(enumerate(buckets), key=lambda ib: (abs(ib[1].midpoint_days - ordinal), ib[0]))[1]


class CursorController:
    """Single "where am I" pointer shared by every timeline surface."""

    def __init__(self, state: Callable[[], TimelineState], bus: EventBus | None = None):
        """
        Args:
            state: Returns the last published ``TimelineState``.
            bus: Where ``timeline.cursor.moved`` notifications go.
        """
        self._state = state
        self._bus = bus
        self._lock = threading.Lock()
        self._cursor: TimelineCursor | None = None
        self._pending: TimelineBucket | None = None

    # ── Queries ──────────────────────────────────────────────────────

    @property
    def cursor(self) -> TimelineCursor | None:
        return self._cursor

    @property
    def is_set(self) -> bool:
        return self._cursor is not None

    @property
    def pending(self) -> TimelineBucket | None:
        """Bucket under the finger during a drag, not yet committed."""
        return self._pending

    def current_bucket(self) -> TimelineBucket | None:
        if self._cursor is None:
            return None
        return self._state().find(self._cursor.scale, self._cursor.bucket_id)

    # ── Transitions ──────────────────────────────────────────────────

    def reconcile(self, state: TimelineState) -> TimelineCursor | None:
        """Re-resolve after a rebuild so the cursor never dangles.

        Keeps the current bucket if it survived, else the nearest bucket of
        the same scale, else the most recent week, else unsets.
        """
        with self._lock:
            self._pending = None
            current = self._cursor
            if current is not None and state.find(current.scale, current.bucket_id) is not None:
                return current

            target: TimelineCursor | None = None
            same_scale = state.buckets(current.scale) if current is not None else ()
            if current is not None and same_scale:
                bucket = _nearest(same_scale, current.date.toordinal())
                if bucket.contains(current.date):
                    target = TimelineCursor(current.date, bucket.scale, bucket.id)
                else:
                    target = _cursor_at(bucket)
            elif state.weeks:
                target = _cursor_at(state.weeks[-1])

            if current is not None:
                logger.debug(f"Cursor {current.bucket_id} gone after rebuild, now {target and target.bucket_id}")
        return self._commit(target)

    def select_bucket(self, scale: TimelineScale, bucket_id: str) -> TimelineCursor:
        """Jump straight to a bucket (tap)."""
        bucket = self._state().find(scale, bucket_id)
        if bucket is None:
            raise UnknownBucketError(f"No {scale} bucket '{bucket_id}' in the current timeline")
        with self._lock:
            self._pending = None
        return self._commit(_cursor_at(bucket))

    def select_today(self) -> TimelineCursor | None:
        """Jump to the most recent week; a no-op when there is no data."""
        weeks = self._state().weeks
        if not weeks:
            return self._cursor
        with self._lock:
            self._pending = None
        return self._commit(_cursor_at(weeks[-1]))

    def change_scale(self, scale: TimelineScale) -> TimelineCursor | None:
        """Move to *scale*, keeping the cursor date when a bucket there holds it."""
        scale = TimelineScale(scale)
        buckets = self._state().buckets(scale)
        if not buckets:
            return self._cursor
        current = self._cursor
        if current is None:
            return self._commit(_cursor_at(buckets[-1]))
        for bucket in buckets:
            if bucket.contains(current.date):
                return self._commit(TimelineCursor(current.date, scale, bucket.id))
        return self._commit(_cursor_at(_nearest(buckets, current.date.toordinal())))

    def drag_to(self, position: float) -> TimelineBucket | None:
        """Track a drag at *position* (0 = oldest edge, 1 = newest edge).

        Only records the snapped bucket; nothing is published until
        ``end_drag()``.
        """
        scale = self._cursor.scale if self._cursor else TimelineScale.WEEK
        buckets = self._state().buckets(scale)
        if not buckets:
            return None
        position = min(max(position, 0.0), 1.0)
        first = buckets[0].start_date.toordinal()
        last = buckets[-1].end_date.toordinal()
        bucket = _nearest(buckets, first + position * (last - first))
        with self._lock:
            self._pending = bucket
        return bucket

    def end_drag(self) -> TimelineCursor | None:
        """Commit the snapped bucket from the last ``drag_to()``."""
        with self._lock:
            bucket, self._pending = self._pending, None
        if bucket is None:
            return self._cursor
        if self._state().find(bucket.scale, bucket.id) is None:
            # A rebuild landed mid-drag and dropped the bucket.
            return self._cursor
        return self._commit(_cursor_at(bucket))

    def cancel_drag(self) -> None:
        with self._lock:
            self._pending = None

    # ── internals ────────────────────────────────────────────────────

    def _commit(self, cursor: TimelineCursor | None) -> TimelineCursor | None:
        with self._lock:
            if cursor == self._cursor:
                return cursor
            self._cursor = cursor
        if self._bus is not None:
            self._bus.emit_sync(
                Event(
                    name=TIMELINE_CURSOR_MOVED,
                    payload={"cursor": cursor, "bucket": self.current_bucket()},
                    source="timeline.cursor",
                )
            )
        return cursor
