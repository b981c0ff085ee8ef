"""Engine knobs for the timeline.

Pure data with sensible defaults.  Build one from YAML/env through
``TimelineConfig.from_config(Config(...))`` or pass values directly.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from zoneinfo import ZoneInfo

from bodyline.core.config import Config
from bodyline.core.config_schema import WEEKDAYS, TimelineSettings

from .models import Metric

DEFAULT_FRESHNESS_DAYS: dict[Metric, int] = {
    Metric.WEIGHT: 14,
    Metric.BODY_FAT: 30,
    Metric.FFMI: 90,
    Metric.LEAN_MASS: 90,
    Metric.FAT_MASS: 90,
}


@dataclass(frozen=True)
class TimelineConfig:
    """Bucketing and interpolation policy.

    Attributes:
        weeks_rendered: Most recent data-bearing weeks shown in the fine zone.
        months_rendered: Trailing months shown before the oldest rendered week.
        week_start: First day of a week, ``date.weekday()`` numbering (0 = Monday).
        max_interpolation_gap: Longest run of missing months or years that may be
            bridged. One cap for both scales; wider gaps stay missing.
        steps_full_coverage_days: Days of step data a week needs to count as present.
        timezone: IANA zone that aware timestamps are converted to before bucketing.
        freshness_days: How long a scalar reading may be carried into later weeks.
    """

    weeks_rendered: int = 4
    months_rendered: int = 6
    week_start: int = 0
    max_interpolation_gap: int = 2
    steps_full_coverage_days: int = 5
    timezone: str | None = None
    freshness_days: dict[Metric, int] = field(default_factory=lambda: dict(DEFAULT_FRESHNESS_DAYS))

    def __post_init__(self) -> None:
        if not 0 <= self.week_start <= 6:
            raise ValueError(f"week_start must be 0..6, got {self.week_start}")
        if self.max_interpolation_gap < 0:
            raise ValueError("max_interpolation_gap cannot be negative")

    @property
    def tz(self) -> ZoneInfo | None:
        return ZoneInfo(self.timezone) if self.timezone else None

    def freshness_for(self, metric: Metric) -> int:
        return self.freshness_days.get(metric, 0)

    @classmethod
    def from_settings(cls, settings: TimelineSettings) -> TimelineConfig:
        return cls(
            weeks_rendered=settings.weeks_rendered,
            months_rendered=settings.months_rendered,
            week_start=WEEKDAYS.index(settings.week_start),
            max_interpolation_gap=settings.max_interpolation_gap,
            steps_full_coverage_days=settings.steps_full_coverage_days,
            timezone=settings.timezone,
            freshness_days={Metric(k): v for k, v in settings.freshness_days.model_dump().items()},
        )

    @classmethod
    def from_config(cls, config: Config) -> TimelineConfig:
        """Read the ``timeline`` section of a loaded ``Config``."""
        return cls.from_settings(config.validated().timeline)
