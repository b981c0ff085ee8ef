"""
Health event models.

Every reading that reaches the timeline is a ``HealthEvent``: an immutable,
timestamped record from one stream.  New readings are new events; nothing
is ever patched in place.
"""

import math
from dataclasses import dataclass, field
from datetime import date, datetime, time, tzinfo
from enum import StrEnum
from typing import Any

from bodyline.core.exceptions import InvalidEventError

# ── Streams ──────────────────────────────────────────────────────────


class StreamType(StrEnum):
    """Kinds of event stream the timeline understands."""

    WEIGHT = "weight"
    BODY_FAT = "body_fat"
    DEXA = "dexa"
    STEPS = "steps"
    PHOTO = "photo"


DEXA_FIELDS = ("ffmi", "lean_mass", "fat_mass", "body_fat")

# Accepted range (inclusive) per payload field.
VALUE_RANGES: dict[str, tuple[float, float]] = {
    "weight": (20.0, 400.0),
    "body_fat": (2.0, 75.0),
    "ffmi": (5.0, 40.0),
    "lean_mass": (0.0, 300.0),
    "fat_mass": (0.0, 300.0),
    "steps": (0.0, 100_000.0),
}


# ── Event record ─────────────────────────────────────────────────────


@dataclass(frozen=True)
class HealthEvent:
    """A single timestamped reading.

    Payload keys by stream:
      - weight: ``value`` (kg)
      - body_fat: ``value`` (percent)
      - dexa: any of ``ffmi``, ``lean_mass``, ``fat_mass``, ``body_fat``
      - steps: ``count``
      - photo: ``photo_id`` (falls back to ``event_id``)
    """

    timestamp: datetime
    stream: StreamType
    payload: dict[str, Any] = field(default_factory=dict)
    event_id: str = ""

    @classmethod
    def weight(cls, timestamp: datetime, kg: float, event_id: str = "") -> "HealthEvent":
        return cls(timestamp, StreamType.WEIGHT, {"value": kg}, event_id)

    @classmethod
    def body_fat(cls, timestamp: datetime, percent: float, event_id: str = "") -> "HealthEvent":
        return cls(timestamp, StreamType.BODY_FAT, {"value": percent}, event_id)

    @classmethod
    def dexa(
        cls,
        timestamp: datetime,
        *,
        ffmi: float | None = None,
        lean_mass: float | None = None,
        fat_mass: float | None = None,
        body_fat: float | None = None,
        event_id: str = "",
    ) -> "HealthEvent":
        values = {"ffmi": ffmi, "lean_mass": lean_mass, "fat_mass": fat_mass, "body_fat": body_fat}
        return cls(timestamp, StreamType.DEXA, {k: v for k, v in values.items() if v is not None}, event_id)

    @classmethod
    def steps(cls, timestamp: datetime, count: int, event_id: str = "") -> "HealthEvent":
        return cls(timestamp, StreamType.STEPS, {"count": count}, event_id)

    @classmethod
    def photo(cls, timestamp: datetime, photo_id: str, event_id: str = "") -> "HealthEvent":
        return cls(timestamp, StreamType.PHOTO, {"photo_id": photo_id}, event_id or photo_id)

    @property
    def day(self) -> date:
        return self.timestamp.date()

    @property
    def photo_id(self) -> str:
        return str(self.payload.get("photo_id") or self.event_id)


# ── Validation ───────────────────────────────────────────────────────


def _number(event: HealthEvent, key: str, range_key: str) -> float:
    raw = event.payload.get(key)
    if isinstance(raw, bool) or raw is None:
        raise InvalidEventError(f"{event.stream} event missing numeric '{key}'", event.event_id)
    try:
        value = float(raw)
    except (TypeError, ValueError) as e:
        raise InvalidEventError(f"{event.stream} '{key}' is not a number: {raw!r}", event.event_id) from e
    if not math.isfinite(value):
        raise InvalidEventError(f"{event.stream} '{key}' is not finite", event.event_id)
    low, high = VALUE_RANGES[range_key]
    if not low <= value <= high:
        raise InvalidEventError(
            f"{event.stream} '{key}'={value} outside [{low}, {high}]",
            event.event_id,
        )
    return value


def _local_timestamp(value: Any, tz: tzinfo | None, event_id: str) -> datetime:
    if isinstance(value, datetime):
        ts = value
    elif isinstance(value, date):
        ts = datetime.combine(value, time())
    else:
        raise InvalidEventError(f"timestamp is not a datetime: {value!r}", event_id)
    if ts.tzinfo is not None:
        if tz is not None:
            ts = ts.astimezone(tz)
        ts = ts.replace(tzinfo=None)
    return ts


def validate_event(event: HealthEvent, tz: tzinfo | None = None) -> HealthEvent:
    """Return a normalised copy of *event* or raise ``InvalidEventError``.

    Normalisation coerces the stream to ``StreamType``, numeric payload
    values to ``float`` and the timestamp to naive local time (aware
    timestamps are converted to *tz* first).
    """
    try:
        stream = StreamType(event.stream)
    except ValueError as e:
        raise InvalidEventError(f"unknown stream {event.stream!r}", event.event_id) from e
    if not isinstance(event.payload, dict):
        raise InvalidEventError("payload must be a mapping", event.event_id)

    timestamp = _local_timestamp(event.timestamp, tz, event.event_id)
    event = HealthEvent(timestamp, stream, event.payload, str(event.event_id or ""))

    if stream in (StreamType.WEIGHT, StreamType.BODY_FAT):
        payload: dict[str, Any] = {"value": _number(event, "value", stream.value)}
    elif stream == StreamType.DEXA:
        present = [k for k in DEXA_FIELDS if event.payload.get(k) is not None]
        if not present:
            raise InvalidEventError("dexa event has no measurements", event.event_id)
        payload = {k: _number(event, k, k) for k in present}
    elif stream == StreamType.STEPS:
        payload = {"count": _number(event, "count", "steps")}
    else:
        if not event.photo_id:
            raise InvalidEventError("photo event has no photo_id", event.event_id)
        payload = {"photo_id": event.photo_id}

    return HealthEvent(timestamp, stream, payload, event.event_id)
