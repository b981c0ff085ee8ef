"""Pydantic models for config validation.

``Config.validated()`` returns a ``BodylineConfig``; the timeline engine
reads its knobs from the ``timeline`` section through
``TimelineConfig.from_config()``.
"""

from __future__ import annotations

from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import BaseModel, ConfigDict, Field, field_validator

WEEKDAYS = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")


class LoggingConfig(BaseModel):
    """Loguru sink settings."""

    level: str = "WARNING"
    file: str | None = None

    @field_validator("level", mode="before")
    @classmethod
    def _upper(cls, v: object) -> object:
        return v.upper() if isinstance(v, str) else v


class FreshnessConfig(BaseModel):
    """How many days a scalar reading may be carried forward into a later week."""

    weight: int = Field(default=14, ge=0)
    body_fat: int = Field(default=30, ge=0)
    ffmi: int = Field(default=90, ge=0)
    lean_mass: int = Field(default=90, ge=0)
    fat_mass: int = Field(default=90, ge=0)


class TimelineSettings(BaseModel):
    """Bucketing and interpolation policy."""

    weeks_rendered: int = Field(default=4, ge=1)
    months_rendered: int = Field(default=6, ge=1)
    week_start: str = "monday"
    max_interpolation_gap: int = Field(default=2, ge=0)
    steps_full_coverage_days: int = Field(default=5, ge=1, le=7)
    timezone: str | None = None
    freshness_days: FreshnessConfig = FreshnessConfig()

    @field_validator("week_start", mode="before")
    @classmethod
    def _known_weekday(cls, v: object) -> object:
        if isinstance(v, str):
            v = v.strip().lower()
            if v not in WEEKDAYS:
                raise ValueError(f"week_start must be one of {WEEKDAYS}, got {v!r}")
        return v

    @field_validator("timezone")
    @classmethod
    def _known_timezone(cls, v: str | None) -> str | None:
        if v:
            try:
                ZoneInfo(v)
            except (ZoneInfoNotFoundError, ValueError) as e:
                raise ValueError(f"unknown timezone {v!r}") from e
        return v or None


class BodylineConfig(BaseModel):
    """Root configuration model.

    Uses ``extra="allow"`` so consumers can bolt on custom sections
    without touching this schema.
    """

    model_config = ConfigDict(extra="allow")

    logging: LoggingConfig = LoggingConfig()
    timeline: TimelineSettings = TimelineSettings()
