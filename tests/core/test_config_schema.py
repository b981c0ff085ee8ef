"""Tests for config_schema Pydantic models."""

import pytest
from pydantic import ValidationError

from bodyline.core.config_schema import BodylineConfig, FreshnessConfig, LoggingConfig, TimelineSettings


class TestLoggingConfig:
    def test_level_is_uppercased(self):
        assert LoggingConfig(level="debug").level == "DEBUG"

    def test_defaults(self):
        cfg = LoggingConfig()
        assert cfg.level == "WARNING"
        assert cfg.file is None


class TestTimelineSettings:
    def test_defaults(self):
        s = TimelineSettings()
        assert s.weeks_rendered == 4
        assert s.months_rendered == 6
        assert s.week_start == "monday"
        assert s.max_interpolation_gap == 2
        assert s.freshness_days == FreshnessConfig()

    def test_week_start_normalised(self):
        assert TimelineSettings(week_start=" Sunday ").week_start == "sunday"

    def test_unknown_week_start_rejected(self):
        with pytest.raises(ValidationError):
            TimelineSettings(week_start="someday")

    def test_timezone_validated(self):
        assert TimelineSettings(timezone="Europe/London").timezone == "Europe/London"
        with pytest.raises(ValidationError):
            TimelineSettings(timezone="Mars/Olympus_Mons")

    def test_empty_timezone_is_none(self):
        assert TimelineSettings(timezone="").timezone is None

    def test_bounds(self):
        with pytest.raises(ValidationError):
            TimelineSettings(max_interpolation_gap=-1)
        with pytest.raises(ValidationError):
            TimelineSettings(steps_full_coverage_days=8)

    def test_negative_freshness_rejected(self):
        with pytest.raises(ValidationError):
            FreshnessConfig(weight=-1)


class TestBodylineConfig:
    def test_empty_is_valid(self):
        cfg = BodylineConfig.model_validate({})
        assert cfg.timeline.weeks_rendered == 4

    def test_extra_sections_allowed(self):
        cfg = BodylineConfig.model_validate({"dashboard": {"theme": "dark"}})
        assert cfg.model_extra["dashboard"] == {"theme": "dark"}
