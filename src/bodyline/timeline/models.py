"""
Timeline read-model types.

Buckets and snapshots are pure derived data: created by a recomputation,
never patched, and discarded wholesale when the event set changes.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, timedelta
from enum import StrEnum
from types import MappingProxyType
from typing import Any, Mapping

from bodyline.health.models import StreamType

# ── Enumerations ─────────────────────────────────────────────────────


class TimelineScale(StrEnum):
    """Bucket granularity; each feeds one zone of the scrubber."""

    WEEK = "week"
    MONTH = "month"
    YEAR = "year"

    @property
    def zone(self) -> str:
        return {"week": "recent", "month": "medium", "year": "coarse"}[self.value]

    @property
    def finer(self) -> TimelineScale | None:
        return {"week": None, "month": TimelineScale.WEEK, "year": TimelineScale.MONTH}[self.value]


class Metric(StrEnum):
    WEIGHT = "weight"
    BODY_FAT = "body_fat"
    FFMI = "ffmi"
    LEAN_MASS = "lean_mass"
    FAT_MASS = "fat_mass"
    STEPS = "steps"


# Where each metric is observed: (stream, payload key).
METRIC_SOURCES: dict[Metric, tuple[tuple[StreamType, str], ...]] = {
    Metric.WEIGHT: ((StreamType.WEIGHT, "value"),),
    Metric.BODY_FAT: ((StreamType.BODY_FAT, "value"), (StreamType.DEXA, "body_fat")),
    Metric.FFMI: ((StreamType.DEXA, "ffmi"),),
    Metric.LEAN_MASS: ((StreamType.DEXA, "lean_mass"),),
    Metric.FAT_MASS: ((StreamType.DEXA, "fat_mass"),),
    Metric.STEPS: ((StreamType.STEPS, "count"),),
}

SCALAR_METRICS = (Metric.WEIGHT, Metric.BODY_FAT, Metric.FFMI, Metric.LEAN_MASS, Metric.FAT_MASS)


class MetricPresence(StrEnum):
    PRESENT = "present"
    ESTIMATED = "estimated"
    MISSING = "missing"


class Confidence(StrEnum):
    """How far an estimate reaches from the readings behind it."""

    HIGH = "high"  # ≤7 days
    MEDIUM = "medium"  # 8-14 days
    LOW = "low"  # anything wider

    @classmethod
    def for_gap(cls, days: float) -> Confidence:
        if days <= 7:
            return cls.HIGH
        if days <= 14:
            return cls.MEDIUM
        return cls.LOW

    @classmethod
    def lowest(cls, *levels: Confidence) -> Confidence:
        order = list(cls)
        return max(levels, key=order.index)


class BodyScoreCompleteness(StrEnum):
    FULL = "full"
    PARTIAL = "partial"
    NONE = "none"


# ── Values ───────────────────────────────────────────────────────────


@dataclass(frozen=True)
class MetricValue:
    """One metric for one bucket.

    ``missing`` always carries ``value=None``; ``present`` and ``estimated``
    always carry a number.  ``confidence`` is set for estimates only.
    """

    value: float | None
    presence: MetricPresence
    confidence: Confidence | None = None

    def __post_init__(self) -> None:
        if (self.presence == MetricPresence.MISSING) != (self.value is None):
            raise ValueError(f"{self.presence} metric cannot have value {self.value!r}")
        if self.presence != MetricPresence.ESTIMATED and self.confidence is not None:
            raise ValueError("only estimated values carry a confidence")

    @classmethod
    def missing(cls) -> MetricValue:
        return cls(None, MetricPresence.MISSING)

    @classmethod
    def present(cls, value: float) -> MetricValue:
        return cls(value, MetricPresence.PRESENT)

    @classmethod
    def estimated(cls, value: float, confidence: Confidence) -> MetricValue:
        return cls(value, MetricPresence.ESTIMATED, confidence)

    @property
    def is_missing(self) -> bool:
        return self.presence == MetricPresence.MISSING

    @property
    def is_usable(self) -> bool:
        """Present, or estimated with high confidence."""
        if self.presence == MetricPresence.PRESENT:
            return True
        return self.presence == MetricPresence.ESTIMATED and self.confidence == Confidence.HIGH

    def to_dict(self) -> dict[str, Any]:
        return {
            "value": self.value,
            "presence": self.presence.value,
            "confidence": self.confidence.value if self.confidence else None,
        }


@dataclass(frozen=True)
class MetricsSnapshot:
    """Aggregated view of one bucket."""

    values: Mapping[Metric, MetricValue] = field(default_factory=dict)
    canonical_photo_id: str | None = None
    has_photos_in_range: bool = False
    body_score: float | None = None
    body_score_completeness: BodyScoreCompleteness = BodyScoreCompleteness.NONE
    body_score_version: str | None = None

    def __post_init__(self) -> None:
        filled = {m: self.values.get(m, MetricValue.missing()) for m in Metric}
        object.__setattr__(self, "values", MappingProxyType(filled))
        if self.body_score_completeness == BodyScoreCompleteness.NONE and self.body_score is not None:
            raise ValueError("a body score requires completeness other than 'none'")

    def __getitem__(self, metric: Metric | str) -> MetricValue:
        return self.values[Metric(metric)]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, MetricsSnapshot):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    @property
    def has_observations(self) -> bool:
        return self.has_photos_in_range or any(v.presence == MetricPresence.PRESENT for v in self.values.values())

    @property
    def has_estimates(self) -> bool:
        return any(v.presence == MetricPresence.ESTIMATED for v in self.values.values())

    def with_values(self, values: Mapping[Metric, MetricValue]) -> MetricsSnapshot:
        return MetricsSnapshot(
            values={**self.values, **values},
            canonical_photo_id=self.canonical_photo_id,
            has_photos_in_range=self.has_photos_in_range,
        )

    def with_score(
        self,
        score: float | None,
        completeness: BodyScoreCompleteness,
        version: str | None,
    ) -> MetricsSnapshot:
        return MetricsSnapshot(
            values=self.values,
            canonical_photo_id=self.canonical_photo_id,
            has_photos_in_range=self.has_photos_in_range,
            body_score=score,
            body_score_completeness=completeness,
            body_score_version=version,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "metrics": {m.value: self.values[m].to_dict() for m in Metric},
            "canonical_photo_id": self.canonical_photo_id,
            "has_photos_in_range": self.has_photos_in_range,
            "body_score": self.body_score,
            "body_score_completeness": self.body_score_completeness.value,
            "body_score_version": self.body_score_version,
        }


# ── Buckets and cursor ───────────────────────────────────────────────


@dataclass(frozen=True)
class TimelineBucket:
    """A half-open calendar window ``[start_date, end_date)`` with its metrics."""

    id: str
    scale: TimelineScale
    start_date: date
    end_date: date
    metrics: MetricsSnapshot = field(default_factory=MetricsSnapshot)
    is_bridge: bool = False

    def __post_init__(self) -> None:
        if self.end_date <= self.start_date:
            raise ValueError(f"bucket {self.id} ends before it starts")

    @property
    def last_day(self) -> date:
        return self.end_date - timedelta(days=1)

    @property
    def midpoint_days(self) -> float:
        """Midpoint as a proleptic ordinal, for time-weighted arithmetic."""
        return (self.start_date.toordinal() + self.end_date.toordinal()) / 2

    def contains(self, day: date) -> bool:
        return self.start_date <= day < self.end_date

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "scale": self.scale.value,
            "start_date": self.start_date.isoformat(),
            "end_date": self.end_date.isoformat(),
            "is_bridge": self.is_bridge,
            **self.metrics.to_dict(),
        }


@dataclass(frozen=True)
class TimelineCursor:
    """The one shared "where am I" pointer."""

    date: date
    scale: TimelineScale
    bucket_id: str

    def to_dict(self) -> dict[str, Any]:
        return {"date": self.date.isoformat(), "scale": self.scale.value, "bucket_id": self.bucket_id}


@dataclass(frozen=True)
class TimelineState:
    """One published, immutable result of a rebuild.

    ``weeks``/``months``/``years`` are the rendered buckets; ``week_history``
    holds every data-bearing week so older weeks can be shown on demand.
    Lookups go through a cache keyed by ``(scale, bucket_id)``.
    """

    weeks: tuple[TimelineBucket, ...] = ()
    months: tuple[TimelineBucket, ...] = ()
    years: tuple[TimelineBucket, ...] = ()
    week_history: tuple[TimelineBucket, ...] = ()
    score_version: str | None = None
    skipped_events: tuple[str, ...] = ()
    _index: Mapping[tuple[TimelineScale, str], TimelineBucket] = field(
        default_factory=dict, init=False, repr=False, compare=False
    )

    def __post_init__(self) -> None:
        index = {(b.scale, b.id): b for b in (*self.weeks, *self.months, *self.years)}
        object.__setattr__(self, "_index", MappingProxyType(index))

    @property
    def is_empty(self) -> bool:
        return not (self.weeks or self.months or self.years)

    def buckets(self, scale: TimelineScale) -> tuple[TimelineBucket, ...]:
        return {
            TimelineScale.WEEK: self.weeks,
            TimelineScale.MONTH: self.months,
            TimelineScale.YEAR: self.years,
        }[TimelineScale(scale)]

    def find(self, scale: TimelineScale, bucket_id: str) -> TimelineBucket | None:
        return self._index.get((TimelineScale(scale), bucket_id))

    def to_dict(self) -> dict[str, Any]:
        return {
            "weeks": [b.to_dict() for b in self.weeks],
            "months": [b.to_dict() for b in self.months],
            "years": [b.to_dict() for b in self.years],
            "week_history": [b.id for b in self.week_history],
            "score_version": self.score_version,
            "skipped_events": list(self.skipped_events),
        }
