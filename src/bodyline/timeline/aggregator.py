"""
Metric aggregator.

Reduces the events (weeks) or the finer-scale buckets (months, years) that
fall in a window to one ``MetricValue`` per metric, plus the window's
canonical photo.  Output depends only on the event set and the window
bounds; there is no clock here.
"""

from __future__ import annotations

import math
import statistics
from bisect import bisect_left
from collections import defaultdict
from collections.abc import Iterable, Sequence
from dataclasses import replace
from datetime import date, datetime, time

from bodyline.health.models import HealthEvent, StreamType

from .calendar import midpoint
from .config import TimelineConfig
from .models import (
    METRIC_SOURCES,
    SCALAR_METRICS,
    Confidence,
    Metric,
    MetricsSnapshot,
    MetricValue,
    TimelineBucket,
)

_SECONDS_PER_DAY = 86400.0


def _at(day: date) -> datetime:
    return datetime.combine(day, time())


def median(values: Iterable[float]) -> float | None:
    values = list(values)
    return statistics.median(values) if values else None


class EventIndex:
    """Validated events sorted and split per metric for window lookups."""

    def __init__(self, events: Iterable[HealthEvent]):
        self.events = sorted(events, key=lambda e: (e.timestamp, e.stream.value, e.event_id))
        self._observations: dict[Metric, list[tuple[datetime, float]]] = defaultdict(list)
        self._step_totals: dict[date, float] = defaultdict(float)
        self._photos: list[tuple[datetime, str]] = []

        for event in self.events:
            if event.stream == StreamType.PHOTO:
                self._photos.append((event.timestamp, event.photo_id))
            elif event.stream == StreamType.STEPS:
                self._step_totals[event.day] += event.payload["count"]
            for metric in SCALAR_METRICS:
                for stream, key in METRIC_SOURCES[metric]:
                    if event.stream == stream and key in event.payload:
                        self._observations[metric].append((event.timestamp, event.payload[key]))

        self._timestamps = [e.timestamp for e in self.events]

    def __len__(self) -> int:
        return len(self.events)

    @staticmethod
    def _slice(items: list, start: date, end: date) -> list:
        lo = bisect_left(items, _at(start), key=lambda item: item[0])
        hi = bisect_left(items, _at(end), key=lambda item: item[0])
        return items[lo:hi]

    def has_events(self, start: date, end: date) -> bool:
        lo = bisect_left(self._timestamps, _at(start))
        return lo < len(self._timestamps) and self._timestamps[lo] < _at(end)

    def observations(self, metric: Metric, start: date, end: date) -> list[float]:
        return [value for _, value in self._slice(self._observations[metric], start, end)]

    def latest_before(self, metric: Metric, start: date) -> tuple[datetime, float] | None:
        items = self._observations[metric]
        i = bisect_left(items, _at(start), key=lambda item: item[0])
        return items[i - 1] if i else None

    def step_totals(self, start: date, end: date) -> dict[date, float]:
        return {day: total for day, total in self._step_totals.items() if start <= day < end}

    def photos(self, start: date, end: date) -> list[tuple[datetime, str]]:
        return self._slice(self._photos, start, end)


# ── Weekly rules ─────────────────────────────────────────────────────


def weekly_scalar(
    metric: Metric,
    start: date,
    end: date,
    index: EventIndex,
    config: TimelineConfig,
) -> MetricValue:
    """Median of in-window readings, else a fresh enough carried-forward reading."""
    direct = median(index.observations(metric, start, end))
    if direct is not None:
        return MetricValue.present(direct)

    previous = index.latest_before(metric, start)
    if previous is None:
        return MetricValue.missing()
    observed_at, value = previous
    if (start - observed_at.date()).days > config.freshness_for(metric):
        return MetricValue.missing()
    reach = (midpoint(start, end) - observed_at).total_seconds() / _SECONDS_PER_DAY
    return MetricValue.estimated(value, Confidence.for_gap(reach))


def weekly_steps(start: date, end: date, index: EventIndex, config: TimelineConfig) -> MetricValue:
    """Mean of daily totals; full only with enough covered days.

    The coverage bar scales with the window, so a week clipped at a month
    boundary needs proportionally fewer days.
    """
    totals = index.step_totals(start, end)
    if not totals:
        return MetricValue.missing()
    mean = statistics.fmean(totals[day] for day in sorted(totals))
    required = math.ceil(config.steps_full_coverage_days * (end - start).days / 7)
    if len(totals) >= required:
        return MetricValue.present(mean)
    confidence = Confidence.MEDIUM if len(totals) >= 3 else Confidence.LOW
    return MetricValue.estimated(mean, confidence)


def select_photo(start: date, end: date, index: EventIndex) -> tuple[str | None, bool]:
    """Photo nearest the window midpoint; ties go to the smallest id."""
    photos = index.photos(start, end)
    if not photos:
        return None, False
    mid = midpoint(start, end)
    _, photo_id = min(photos, key=lambda p: (abs(p[0] - mid), p[1]))
    return photo_id, True


def derive_composition(weight: MetricValue, body_fat: MetricValue) -> tuple[MetricValue, MetricValue]:
    """Lean and fat mass estimated from weight and body-fat percentage.

    Both come out ``estimated`` at the lower confidence of the two inputs
    (a present input counts as high).  Missing if either input is missing.
    """
    if weight.is_missing or body_fat.is_missing:
        return MetricValue.missing(), MetricValue.missing()
    confidence = Confidence.lowest(weight.confidence or Confidence.HIGH, body_fat.confidence or Confidence.HIGH)
    fat = weight.value * body_fat.value / 100
    return MetricValue.estimated(weight.value - fat, confidence), MetricValue.estimated(fat, confidence)


def aggregate_week(bucket: TimelineBucket, index: EventIndex, config: TimelineConfig) -> TimelineBucket:
    start, end = bucket.start_date, bucket.end_date
    values = {m: weekly_scalar(m, start, end, index, config) for m in SCALAR_METRICS}
    values[Metric.STEPS] = weekly_steps(start, end, index, config)

    # DEXA readings win; otherwise fall back to weight x body fat
    lean, fat = derive_composition(values[Metric.WEIGHT], values[Metric.BODY_FAT])
    if values[Metric.LEAN_MASS].is_missing:
        values[Metric.LEAN_MASS] = lean
    if values[Metric.FAT_MASS].is_missing:
        values[Metric.FAT_MASS] = fat

    photo_id, has_photos = select_photo(start, end, index)
    snapshot = MetricsSnapshot(values=values, canonical_photo_id=photo_id, has_photos_in_range=has_photos)
    return replace(bucket, metrics=snapshot)


def aggregate_weeks(
    shells: Sequence[TimelineBucket],
    index: EventIndex,
    config: TimelineConfig,
) -> list[TimelineBucket]:
    return [aggregate_week(b, index, config) for b in shells]


# ── Month / year rules ───────────────────────────────────────────────


def children_within(
    parent: TimelineBucket,
    children: Sequence[TimelineBucket],
    index: EventIndex,
    config: TimelineConfig,
) -> list[TimelineBucket]:
    """Children that hold events inside *parent*, clipped to its window.

    A week straddling a month boundary is re-aggregated over each side
    separately, so every reading lands in the month that contains it.
    """
    result = []
    for child in children:
        start = max(child.start_date, parent.start_date)
        end = min(child.end_date, parent.end_date)
        if start >= end or not index.has_events(start, end):
            continue
        if (start, end) == (child.start_date, child.end_date):
            result.append(child)
        else:
            result.append(aggregate_week(replace(child, start_date=start, end_date=end), index, config))
    return result


def aggregate_parent(
    bucket: TimelineBucket,
    children: Sequence[TimelineBucket],
    index: EventIndex,
) -> TimelineBucket:
    """Median of the children's usable values; present if any, else missing."""
    values = {}
    for metric in Metric:
        usable = [c.metrics[metric].value for c in children if c.metrics[metric].is_usable]
        value = median(usable)
        values[metric] = MetricValue.present(value) if value is not None else MetricValue.missing()
    photo_id, has_photos = select_photo(bucket.start_date, bucket.end_date, index)
    snapshot = MetricsSnapshot(values=values, canonical_photo_id=photo_id, has_photos_in_range=has_photos)
    return replace(bucket, metrics=snapshot)


def aggregate_parents(
    shells: Sequence[TimelineBucket],
    children: Sequence[TimelineBucket],
    index: EventIndex,
    config: TimelineConfig,
) -> list[TimelineBucket]:
    return [aggregate_parent(b, children_within(b, children, index, config), index) for b in shells]
