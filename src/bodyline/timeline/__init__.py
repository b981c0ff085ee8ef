"""
Global timeline aggregation engine.

Turns irregular health events into week / month / year buckets that every
surface scrubs through with one shared cursor.
"""

from .config import TimelineConfig
from .cursor import CursorController
from .models import (
    BodyScoreCompleteness,
    Confidence,
    Metric,
    MetricPresence,
    MetricsSnapshot,
    MetricValue,
    TimelineBucket,
    TimelineCursor,
    TimelineScale,
    TimelineState,
)
from .scoring import ScoreFunction
from .service import TimelineService, build_timeline

__all__ = [
    "BodyScoreCompleteness",
    "Confidence",
    "CursorController",
    "Metric",
    "MetricPresence",
    "MetricValue",
    "MetricsSnapshot",
    "ScoreFunction",
    "TimelineBucket",
    "TimelineConfig",
    "TimelineCursor",
    "TimelineScale",
    "TimelineService",
    "TimelineState",
    "build_timeline",
]
