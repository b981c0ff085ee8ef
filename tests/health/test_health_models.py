"""Tests for health.models: event records and validation."""

from datetime import date, datetime, timedelta, timezone

import pytest

from bodyline.core.exceptions import InvalidEventError
from bodyline.health.models import HealthEvent, StreamType, validate_event

TS = datetime(2025, 3, 5, 7, 30)


class TestHealthEvent:
    def test_factories(self):
        assert HealthEvent.weight(TS, 80.5).payload == {"value": 80.5}
        assert HealthEvent.body_fat(TS, 18).stream == StreamType.BODY_FAT
        assert HealthEvent.steps(TS, 9000).payload == {"count": 9000}

    def test_dexa_drops_unset_fields(self):
        event = HealthEvent.dexa(TS, ffmi=21.0, lean_mass=62.0)
        assert event.payload == {"ffmi": 21.0, "lean_mass": 62.0}

    def test_photo_id_falls_back_to_event_id(self):
        assert HealthEvent.photo(TS, "p-7").event_id == "p-7"
        assert HealthEvent(TS, StreamType.PHOTO, {}, "evt-1").photo_id == "evt-1"

    def test_day(self):
        assert HealthEvent.weight(TS, 80).day == date(2025, 3, 5)


class TestValidateEvent:
    def test_normalises_stream_and_numbers(self):
        event = validate_event(HealthEvent(TS, "weight", {"value": "81"}, "w-1"))
        assert event.stream is StreamType.WEIGHT
        assert event.payload == {"value": 81.0}

    def test_date_becomes_midnight(self):
        event = validate_event(HealthEvent(date(2025, 3, 5), StreamType.STEPS, {"count": 100}))
        assert event.timestamp == datetime(2025, 3, 5)

    def test_aware_timestamp_converted_to_zone(self):
        aware = datetime(2025, 3, 5, 23, 30, tzinfo=timezone.utc)
        event = validate_event(HealthEvent.weight(aware, 80), timezone(timedelta(hours=9)))
        assert event.timestamp == datetime(2025, 3, 6, 8, 30)
        assert event.timestamp.tzinfo is None

    def test_aware_timestamp_without_zone_keeps_wall_clock(self):
        aware = datetime(2025, 3, 5, 23, 30, tzinfo=timezone(timedelta(hours=-5)))
        assert validate_event(HealthEvent.weight(aware, 80)).timestamp == datetime(2025, 3, 5, 23, 30)

    def test_unknown_stream(self):
        with pytest.raises(InvalidEventError, match="unknown stream"):
            validate_event(HealthEvent(TS, "sleep", {"value": 1}, "s-1"))

    @pytest.mark.parametrize(
        "event",
        [
            HealthEvent.weight(TS, 19.9),
            HealthEvent.weight(TS, 400.1),
            HealthEvent.body_fat(TS, 1.0),
            HealthEvent.steps(TS, -1),
            HealthEvent.steps(TS, 100_001),
            HealthEvent.dexa(TS, ffmi=45.0),
        ],
    )
    def test_out_of_range_rejected(self, event):
        with pytest.raises(InvalidEventError, match="outside"):
            validate_event(event)

    @pytest.mark.parametrize("value", [None, True, "heavy", float("nan"), float("inf")])
    def test_non_numeric_rejected(self, value):
        with pytest.raises(InvalidEventError):
            validate_event(HealthEvent(TS, StreamType.WEIGHT, {"value": value}, "w-x"))

    def test_error_carries_event_id(self):
        with pytest.raises(InvalidEventError) as exc:
            validate_event(HealthEvent.weight(TS, 999, event_id="w-9"))
        assert exc.value.event_id == "w-9"

    def test_empty_dexa_rejected(self):
        with pytest.raises(InvalidEventError, match="no measurements"):
            validate_event(HealthEvent(TS, StreamType.DEXA, {}))

    def test_dexa_keeps_only_known_fields(self):
        event = validate_event(HealthEvent(TS, StreamType.DEXA, {"ffmi": 20, "bone": 3.1}))
        assert event.payload == {"ffmi": 20.0}

    def test_photo_without_id_rejected(self):
        with pytest.raises(InvalidEventError, match="photo_id"):
            validate_event(HealthEvent(TS, StreamType.PHOTO, {}))

    def test_bad_timestamp_rejected(self):
        with pytest.raises(InvalidEventError, match="timestamp"):
            validate_event(HealthEvent("yesterday", StreamType.WEIGHT, {"value": 80}))

    def test_boundaries_accepted(self):
        assert validate_event(HealthEvent.weight(TS, 20)).payload["value"] == 20.0
        assert validate_event(HealthEvent.steps(TS, 0)).payload["count"] == 0.0
