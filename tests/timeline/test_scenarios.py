"""End-to-end timeline scenarios through TimelineService."""

from datetime import date, datetime

import pytest

from bodyline.health.models import HealthEvent
from bodyline.timeline.config import TimelineConfig
from bodyline.timeline.models import (
    BodyScoreCompleteness,
    Confidence,
    Metric,
    MetricPresence,
    MetricValue,
    TimelineScale,
)
from bodyline.timeline.scoring import ScoreFunction
from bodyline.timeline.service import TimelineService

TODAY = date(2025, 10, 1)


def at(y: int, m: int, d: int, hour: int = 8) -> datetime:
    return datetime(y, m, d, hour)


def scorer(*core: Metric) -> ScoreFunction:
    return ScoreFunction("body", "1", core, lambda s, v: (50.0, [m.value for m in core if s[m].is_usable]))


def make_service(score_function: ScoreFunction | None = None, today: date = TODAY) -> TimelineService:
    return TimelineService(score_function=score_function, clock=lambda: today)


class TestSingleWeighIn:
    def test_weight_present_body_fat_missing(self):
        service = make_service(scorer(Metric.WEIGHT, Metric.BODY_FAT))
        service.update_metrics([HealthEvent.weight(at(2025, 3, 5), 80.0)])

        [week] = service.buckets(TimelineScale.WEEK)
        assert week.id == "2025-W10"
        assert week.metrics[Metric.WEIGHT].presence == MetricPresence.PRESENT
        assert week.metrics[Metric.BODY_FAT].presence == MetricPresence.MISSING
        assert week.metrics.body_score_completeness == BodyScoreCompleteness.PARTIAL

    def test_score_none_when_no_core_metric(self):
        service = make_service(scorer(Metric.BODY_FAT))
        service.update_metrics([HealthEvent.weight(at(2025, 3, 5), 80.0)])
        [week] = service.buckets(TimelineScale.WEEK)
        assert week.metrics.body_score_completeness == BodyScoreCompleteness.NONE
        assert week.metrics.body_score is None


def test_no_events():
    service = make_service()
    service.update_metrics([])
    assert all(service.buckets(scale) == [] for scale in TimelineScale)
    assert service.cursor.cursor is None
    assert not service.cursor.is_set


class TestDexaGap:
    """DEXA in March and May, nothing in April."""

    @pytest.fixture
    def months(self):
        events = [
            HealthEvent.dexa(at(2025, 3, 5), ffmi=20.0, lean_mass=60.0),
            HealthEvent.dexa(at(2025, 5, 20), ffmi=21.0, lean_mass=62.0),
        ]
        # Four later weeks push the month zone to Jan..Jun
        events += [HealthEvent.weight(at(2025, 7, d), 80.0) for d in (9, 16, 23, 30)]
        service = make_service()
        service.update_metrics(events)
        return {b.id: b for b in service.buckets(TimelineScale.MONTH)}

    def test_rendered_window(self, months):
        assert list(months) == ["2025-01", "2025-02", "2025-03", "2025-04", "2025-05", "2025-06"]

    def test_march_and_may_present(self, months):
        assert months["2025-03"].metrics[Metric.FFMI].presence == MetricPresence.PRESENT
        assert months["2025-05"].metrics[Metric.FFMI].value == 21.0

    def test_april_interpolated(self, months):
        april = months["2025-04"]
        ffmi = april.metrics[Metric.FFMI]
        assert ffmi.presence == MetricPresence.ESTIMATED
        assert ffmi.value == pytest.approx(20.5)
        assert ffmi.confidence == Confidence.LOW
        assert april.metrics[Metric.LEAN_MASS].value == pytest.approx(61.0)
        assert april.is_bridge

    def test_no_extrapolation_beyond_anchors(self, months):
        assert months["2025-02"].metrics[Metric.FFMI].is_missing
        assert months["2025-06"].metrics[Metric.FFMI].is_missing


def test_photo_only_week():
    service = make_service(scorer(Metric.WEIGHT, Metric.BODY_FAT))
    service.update_metrics([HealthEvent.photo(at(2025, 3, 6, 19), "selfie-1")])

    [week] = service.buckets(TimelineScale.WEEK)
    assert week.metrics.has_photos_in_range
    assert week.metrics.canonical_photo_id == "selfie-1"
    assert all(week.metrics[m].is_missing for m in Metric)
    assert week.metrics.body_score_completeness == BodyScoreCompleteness.NONE


class TestYearGaps:
    def test_three_year_gap_not_bridged(self):
        service = make_service()
        service.update_metrics([HealthEvent.weight(at(2019, 6, 12), 80.0), HealthEvent.weight(at(2023, 6, 14), 74.0)])
        years = service.buckets(TimelineScale.YEAR)
        assert [b.id for b in years] == ["2019", "2023"]
        assert not any(b.is_bridge for b in years)

    def test_two_year_gap_bridged(self):
        service = make_service()
        service.update_metrics([HealthEvent.weight(at(2019, 6, 12), 80.0), HealthEvent.weight(at(2022, 6, 15), 74.0)])
        years = service.buckets(TimelineScale.YEAR)
        assert [b.id for b in years] == ["2019", "2020", "2021", "2022"]
        assert [b.is_bridge for b in years] == [False, True, True, False]
        assert years[1].metrics[Metric.WEIGHT].presence == MetricPresence.ESTIMATED
        assert years[1].metrics[Metric.WEIGHT].value == pytest.approx(78.0, abs=0.05)
        assert years[2].metrics[Metric.WEIGHT].value == pytest.approx(76.0, abs=0.05)

    def test_tighter_cap(self):
        service = TimelineService(config=TimelineConfig(max_interpolation_gap=1), clock=lambda: TODAY)
        service.update_metrics([HealthEvent.weight(at(2019, 6, 12), 80.0), HealthEvent.weight(at(2022, 6, 15), 74.0)])
        assert [b.id for b in service.buckets(TimelineScale.YEAR)] == ["2019", "2022"]


def _presence_map(service: TimelineService) -> dict:
    state = service.state
    result = {}
    for bucket in (*state.week_history, *state.months, *state.years):
        for metric in Metric:
            result[(bucket.scale, bucket.id, metric)] = bucket.metrics[metric].presence
    return result


@pytest.mark.parametrize(
    "extra",
    [
        HealthEvent.body_fat(at(2025, 3, 12), 19.0),
        HealthEvent.weight(at(2025, 4, 30), 78.0),
        HealthEvent.dexa(at(2024, 11, 2), ffmi=20.0),
    ],
)
def test_adding_an_event_never_loses_presence(extra):
    base = [HealthEvent.weight(at(2025, 3, d), 80.0) for d in (5, 12, 19, 26)]
    base += [HealthEvent.dexa(at(2024, 12, 4), ffmi=19.5), HealthEvent.dexa(at(2025, 2, 26), ffmi=20.5)]

    before = make_service()
    before.update_metrics(base)
    after = make_service()
    after.update_metrics([*base, extra])

    new = _presence_map(after)
    for key, presence in _presence_map(before).items():
        if presence != MetricPresence.MISSING and key in new:
            assert new[key] != MetricPresence.MISSING, key


def test_bucket_ids_stable_across_rebuilds():
    events = [HealthEvent.weight(at(2025, 3, d), 80.0) for d in (5, 12, 19)]
    service = make_service()
    service.update_metrics(events)
    ids = [b.id for s in TimelineScale for b in service.buckets(s)]
    service.update_metrics([*events, HealthEvent.body_fat(at(2025, 3, 13), 18.0)])
    assert [b.id for s in TimelineScale for b in service.buckets(s)] == ids


def test_cursor_never_dangles_after_rebuild():
    service = make_service()
    service.update_metrics([HealthEvent.weight(at(2025, 3, d), 80.0) for d in (5, 12, 19, 26)])
    service.select_bucket(TimelineScale.WEEK, "2025-W10")

    service.update_metrics([HealthEvent.weight(at(2025, 6, d), 79.0) for d in (4, 11)])
    cursor, bucket = service.selection()
    assert bucket is not None
    assert service.state.find(cursor.scale, cursor.bucket_id) is bucket
    assert cursor.scale == TimelineScale.WEEK


class TestWeekAcrossMonthBoundary:
    """A week straddling two months files each reading under the month that holds it."""

    def test_year_end_weigh_in(self):
        # Week of Monday Dec 29 is ISO 2026-W01
        service = make_service(today=date(2025, 12, 31))
        service.update_metrics([HealthEvent.weight(at(2025, 12, 30), 80.0)])

        [week] = service.buckets(TimelineScale.WEEK)
        assert week.id == "2026-W01"
        december = service.state.find(TimelineScale.MONTH, "2025-12")
        assert december.metrics[Metric.WEIGHT] == MetricValue.present(80.0)
        [year] = service.buckets(TimelineScale.YEAR)
        assert year.id == "2025"
        assert year.metrics[Metric.WEIGHT] == MetricValue.present(80.0)

    def test_month_end_weigh_in(self):
        service = make_service()
        service.update_metrics([HealthEvent.weight(at(2025, 3, 31), 80.0)])

        months = service.buckets(TimelineScale.MONTH)
        assert months[-1].id == "2025-03"
        assert months[-1].metrics[Metric.WEIGHT] == MetricValue.present(80.0)
        [year] = service.buckets(TimelineScale.YEAR)
        assert year.metrics[Metric.WEIGHT] == MetricValue.present(80.0)
