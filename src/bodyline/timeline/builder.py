"""
Bucket builder.

Partitions time into week, month and year windows and returns ordered
``TimelineBucket`` shells (ids and ranges only); the aggregator fills in
the metrics.  Every function here is pure: the only notion of "now" is
the ``today`` argument used for the year range.
"""

from collections.abc import Callable, Sequence
from datetime import date, timedelta

from bodyline.health.models import HealthEvent

from .calendar import (
    WEEK,
    add_months,
    month_id,
    month_range,
    month_start,
    week_id,
    week_start_for,
    year_id,
    year_window,
)
from .config import TimelineConfig
from .models import TimelineBucket, TimelineScale


def _week_bucket(start: date) -> TimelineBucket:
    return TimelineBucket(id=week_id(start), scale=TimelineScale.WEEK, start_date=start, end_date=start + WEEK)


def _month_bucket(start: date) -> TimelineBucket:
    return TimelineBucket(
        id=month_id(start),
        scale=TimelineScale.MONTH,
        start_date=start,
        end_date=add_months(start, 1),
    )


def _year_bucket(year: int) -> TimelineBucket:
    start, end = year_window(year)
    return TimelineBucket(id=year_id(year), scale=TimelineScale.YEAR, start_date=start, end_date=end)


# ── Weeks ────────────────────────────────────────────────────────────


def weekly_history(events: Sequence[HealthEvent], config: TimelineConfig) -> list[TimelineBucket]:
    """Every data-bearing week, oldest first."""
    starts = sorted({week_start_for(e.day, config.week_start) for e in events})
    return [_week_bucket(s) for s in starts]


def build_week_buckets(events: Sequence[HealthEvent], config: TimelineConfig) -> list[TimelineBucket]:
    """The most recent ``weeks_rendered`` data-bearing weeks."""
    return weekly_history(events, config)[-config.weeks_rendered :]


# ── Months ───────────────────────────────────────────────────────────


def rendered_month_starts(oldest_week_start: date, count: int) -> list[date]:
    """*count* months ending with the month of the day before the oldest week."""
    last = month_start(oldest_week_start - timedelta(days=1))
    return month_range(add_months(last, -(count - 1)), last)


def build_month_buckets(events: Sequence[HealthEvent], config: TimelineConfig) -> list[TimelineBucket]:
    """Trailing month window before the fine zone; empty months included."""
    weeks = build_week_buckets(events, config)
    if not weeks:
        return []
    return [_month_bucket(m) for m in rendered_month_starts(weeks[0].start_date, config.months_rendered)]


def month_series(events: Sequence[HealthEvent], config: TimelineConfig) -> list[TimelineBucket]:
    """Contiguous months covering all events and the rendered month window.

    Aggregation and interpolation run over this series so that anchors
    outside the rendered window still count.
    """
    rendered = build_month_buckets(events, config)
    if not rendered:
        return []
    days = [e.day for e in events]
    first = min(min(days), rendered[0].start_date)
    last = max(max(days), rendered[-1].start_date)
    return [_month_bucket(m) for m in month_range(first, last)]


# ── Years ────────────────────────────────────────────────────────────


def build_year_buckets(events: Sequence[HealthEvent], today: date) -> list[TimelineBucket]:
    """One bucket per year from the earliest event's year to the current year."""
    if not events:
        return []
    years = [e.day.year for e in events]
    last = max(today.year, max(years))
    return [_year_bucket(y) for y in range(min(years), last + 1)]


def rendered_years(
    buckets: Sequence[TimelineBucket],
    has_events: Callable[[TimelineBucket], bool],
) -> list[TimelineBucket]:
    """Data-bearing years plus bridge years; unbridged gap years are dropped."""
    return [b for b in buckets if b.is_bridge or has_events(b)]


def build_buckets(
    scale: TimelineScale,
    events: Sequence[HealthEvent],
    config: TimelineConfig,
    today: date,
) -> list[TimelineBucket]:
    """Shells for one scale.  No events means no buckets at any scale."""
    if scale == TimelineScale.WEEK:
        return build_week_buckets(events, config)
    if scale == TimelineScale.MONTH:
        return build_month_buckets(events, config)
    return build_year_buckets(events, today)
