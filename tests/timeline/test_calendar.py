"""Tests for timeline.calendar: windows and bucket ids."""

from datetime import date, datetime

from bodyline.timeline.calendar import (
    add_months,
    midpoint,
    month_id,
    month_range,
    month_window,
    week_id,
    week_start_for,
    week_window,
    year_id,
    year_window,
)


class TestWeeks:
    def test_monday_start(self):
        assert week_start_for(date(2025, 3, 5)) == date(2025, 3, 3)
        assert week_start_for(date(2025, 3, 3)) == date(2025, 3, 3)
        assert week_start_for(date(2025, 3, 9)) == date(2025, 3, 3)

    def test_sunday_start(self):
        assert week_start_for(date(2025, 3, 5), week_start=6) == date(2025, 3, 2)
        assert week_start_for(date(2025, 3, 2), week_start=6) == date(2025, 3, 2)

    def test_window_is_half_open_week(self):
        assert week_window(date(2025, 3, 5)) == (date(2025, 3, 3), date(2025, 3, 10))

    def test_iso_id(self):
        assert week_id(date(2025, 3, 3)) == "2025-W10"

    def test_id_across_year_boundary(self):
        # Dec 29 2025 .. Jan 4 2026 is ISO week 1 of 2026
        assert week_id(date(2025, 12, 29)) == "2026-W01"
        assert week_id(date(2025, 12, 22)) == "2025-W52"

    def test_ids_unique_for_sunday_weeks(self):
        starts = [date(2025, 12, 21), date(2025, 12, 28), date(2026, 1, 4)]
        ids = [week_id(s) for s in starts]
        assert ids == ["2025-W52", "2026-W01", "2026-W02"]

    def test_id_is_stable(self):
        assert week_id(week_start_for(date(2025, 3, 7))) == week_id(week_start_for(date(2025, 3, 4)))


class TestMonths:
    def test_window(self):
        assert month_window(date(2025, 2, 14)) == (date(2025, 2, 1), date(2025, 3, 1))
        assert month_window(date(2025, 12, 31)) == (date(2025, 12, 1), date(2026, 1, 1))

    def test_add_months(self):
        assert add_months(date(2025, 11, 1), 3) == date(2026, 2, 1)
        assert add_months(date(2025, 1, 1), -1) == date(2024, 12, 1)

    def test_range(self):
        assert month_range(date(2024, 11, 15), date(2025, 2, 1)) == [
            date(2024, 11, 1),
            date(2024, 12, 1),
            date(2025, 1, 1),
            date(2025, 2, 1),
        ]

    def test_id(self):
        assert month_id(date(2025, 3, 1)) == "2025-03"


class TestYears:
    def test_window_and_id(self):
        assert year_window(2024) == (date(2024, 1, 1), date(2025, 1, 1))
        assert year_id(2024) == "2024"


def test_midpoint():
    assert midpoint(date(2025, 3, 10), date(2025, 3, 17)) == datetime(2025, 3, 13, 12)
