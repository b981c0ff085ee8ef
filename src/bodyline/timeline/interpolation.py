"""
Interpolation engine.

Fills short runs of missing month or year values by linear interpolation
between the real values on either side.  Runs longer than the configured
cap stay missing in full, and nothing is ever extrapolated past the first
or last real value.  Results are re-derived on every rebuild and are never
fed back in as observations.
"""

from collections.abc import Callable, Sequence
from dataclasses import replace

from .models import Confidence, Metric, MetricValue, TimelineBucket, TimelineScale


def fill_gaps(points: Sequence[tuple[float, MetricValue]], max_gap: int) -> list[MetricValue]:
    """Interpolate bounded runs of missing values.

    Args:
        points: ``(x, value)`` pairs in x order; x is a time position in days.
        max_gap: Longest run of consecutive missing entries that may be filled.

    Returns:
        One ``MetricValue`` per point.  Filled entries are ``estimated``, with
        confidence taken from the distance between the two anchors.
    """
    result = [value for _, value in points]
    anchors = [i for i, value in enumerate(result) if not value.is_missing]

    for left, right in zip(anchors, anchors[1:]):
        run = right - left - 1
        if run == 0 or run > max_gap:
            continue
        x0, v0 = points[left]
        x1, v1 = points[right]
        confidence = Confidence.for_gap(x1 - x0)
        for i in range(left + 1, right):
            fraction = (points[i][0] - x0) / (x1 - x0)
            result[i] = MetricValue.estimated(v0.value + (v1.value - v0.value) * fraction, confidence)

    return result


def interpolate_buckets(
    buckets: Sequence[TimelineBucket],
    max_gap: int,
    has_events: Callable[[TimelineBucket], bool] | None = None,
) -> list[TimelineBucket]:
    """Interpolate every metric across a contiguous month or year series.

    A bucket that gains estimates but holds no events of its own is marked
    as a bridge.  Without *has_events*, "holds events" falls back to having
    a present metric or a photo.
    """
    if not buckets:
        return []
    if any(b.scale == TimelineScale.WEEK for b in buckets):
        raise ValueError("weekly buckets are never interpolated")

    filled = {m: fill_gaps([(b.midpoint_days, b.metrics[m]) for b in buckets], max_gap) for m in Metric}

    result = []
    for i, bucket in enumerate(buckets):
        snapshot = bucket.metrics.with_values({m: filled[m][i] for m in Metric})
        has_data = has_events(bucket) if has_events else bucket.metrics.has_observations
        result.append(replace(bucket, metrics=snapshot, is_bridge=snapshot.has_estimates and not has_data))
    return result
