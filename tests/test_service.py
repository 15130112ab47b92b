"""
Tests for the shared metrics service: filtering, rejected records, and report shape.

Run: python -m pytest tests/test_service.py -v
"""

from datetime import date

import pytest

from opsmetrics.config import load_metrics_config
from opsmetrics.domains.shift.models import DowntimeEvent, DowntimeReason
from opsmetrics.domains.shift.validation import ShiftValidationError
from opsmetrics.service import MetricsService
from opsmetrics.utils.types import DateRange, MetricsQuery, Period

MARCH = DateRange(date(2024, 3, 1), date(2024, 3, 31))


@pytest.fixture
def service():
    return MetricsService(config=load_metrics_config("production"))


class TestShiftReport:

    def test_invalid_records_are_skipped_and_listed(self, service, make_shift):
        shifts = [make_shift(record_id="ok"), make_shift(record_id="bad", setup_number="S9", actual_quantity=-4)]
        report = service.shift_report(shifts, MetricsQuery(date_range=MARCH))

        assert list(report["shift_metrics"]["record_id"]) == ["ok"]
        assert report["rejected_records"] == ["bad"]

    def test_duplicate_shift_keys_are_kept_and_reported(self, service, make_shift):
        shifts = [make_shift(record_id="a"), make_shift(record_id="b")]
        report = service.shift_report(shifts, MetricsQuery(date_range=MARCH))

        assert len(report["shift_metrics"]) == 2
        assert list(report["duplicates"]["record_id"]) == ["a", "b"]

    def test_machine_and_shift_filters(self, service, make_shift):
        shifts = [
            make_shift(record_id="a"),
            make_shift(record_id="b", machine_id="CNC-02"),
            make_shift(record_id="c", shift="B"),
        ]
        report = service.shift_report(shifts, MetricsQuery(date_range=MARCH, machine_id="CNC-01", shift="A"))
        assert list(report["shift_metrics"]["record_id"]) == ["a"]

    def test_period_rollup(self, service, make_shift):
        report = service.shift_report([make_shift()], MetricsQuery(date_range=MARCH, period=Period.MONTHLY))
        assert list(report["by_period"]["period"]) == [date(2024, 3, 1)]

    def test_configured_shift_minutes_drive_utilization(self, make_shift):
        shifts = [make_shift(downtime_events=(DowntimeEvent(DowntimeReason.MACHINE_BREAKDOWN, 30),))]
        query = MetricsQuery(date_range=MARCH, period=Period.MONTHLY)

        eight_hours = MetricsService(config=load_metrics_config(overrides={"default_shift_minutes": 480}))
        long_shift = MetricsService(config=load_metrics_config(overrides={"default_shift_minutes": 690}))
        short_report = eight_hours.shift_report(shifts, query)
        long_report = long_shift.shift_report(shifts, query)

        assert short_report["daily"].iloc[0]["utilization_percent"] == pytest.approx(93.75)
        assert long_report["daily"].iloc[0]["utilization_percent"] == pytest.approx(65.22)
        assert long_report["by_period"].iloc[0]["utilization_percent"] == pytest.approx(65.22)

    def test_evaluate_shift_rejects_bad_input(self, service, make_shift):
        with pytest.raises(ShiftValidationError):
            service.evaluate_shift(make_shift(shift_start_time="8am"))

    def test_evaluate_shift(self, service, make_shift):
        assert service.evaluate_shift(make_shift()).efficiency_percentage == pytest.approx(83.33)


class TestSetterReport:

    def test_setter_filter_applies_after_repeat_detection(self, service, make_setup):
        """s2 repeats the item/WO s1 set up four hours earlier."""
        setups = [
            make_setup("r1", "s1", "2024-03-01 08:00", "2024-03-01 08:30"),
            make_setup("r2", "s2", "2024-03-01 12:00", "2024-03-01 12:30"),
        ]
        report = service.setter_report(setups, MetricsQuery(date_range=MARCH, setter_id="s2"))

        assert [s.setter_id for s in report["setters"]] == ["s2"]
        assert report["setters"][0].repeat_setup_count == 1
        assert [setup.record_id for setup, _ in report["setup_records"]] == ["r2"]

    def test_configured_window_is_used(self, make_setup):
        service = MetricsService(config=load_metrics_config(overrides={"repeat_window_hours": 2}))
        setups = [
            make_setup("r1", start="2024-03-01 08:00"),
            make_setup("r2", start="2024-03-01 12:00"),
        ]
        report = service.setter_report(setups, MetricsQuery(date_range=MARCH))
        assert report["setters"][0].repeat_setup_count == 0

    def test_report_is_idempotent(self, service, make_setup):
        setups = [make_setup(f"r{i}", start=f"2024-03-0{i + 1} 08:00", end=f"2024-03-0{i + 1} 08:25") for i in range(3)]
        query = MetricsQuery(date_range=MARCH, period=Period.WEEKLY)
        assert service.setter_report(setups, query) == service.setter_report(setups, query)

    def test_empty_input(self, service):
        report = service.setter_report([], MetricsQuery(date_range=MARCH))
        assert report["setters"] == []
        assert report["totals"].setter_count == 0
