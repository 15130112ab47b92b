"""
Unit tests for shift roll-ups, rejection breakdowns, and downtime Pareto.

Run: python -m pytest tests/test_shift_aggregate.py -v
"""

from datetime import date

import pandas as pd
import pytest

from opsmetrics.domains import shift as shift_domain
from opsmetrics.domains.shift.aggregate import (
    filter_shift_range,
    overall_efficiency,
    rejection_breakdown,
    summarize_shifts,
)
from opsmetrics.domains.shift.downtime import (
    categorize_downtime,
    downtime_by_category,
    downtime_pareto,
    explode_downtime_events,
)
from opsmetrics.domains.shift.models import (
    DowntimeCategory,
    DowntimeEvent,
    DowntimeReason,
    RejectionCause,
)
from opsmetrics.domains.shift.transform import build_shift_frame, find_duplicate_shifts
from opsmetrics.utils.types import DateRange, Period
from opsmetrics.utils.validators import validate_dataframe


@pytest.fixture
def day_and_evening(make_shift):
    """Two shifts on the same day on the same machine."""
    return [
        make_shift(
            record_id="log-1",
            downtime_events=(
                DowntimeEvent(DowntimeReason.MACHINE_BREAKDOWN, 20),
                DowntimeEvent(DowntimeReason.TOOL_CHANGE, 10),
            ),
            rejection_breakdown={RejectionCause.DENT: 16, RejectionCause.SCRATCH: 4},
        ),
        make_shift(
            record_id="log-2",
            shift="B",
            setup_number="S2",
            shift_start_time="16:00",
            shift_end_time="00:00",
            cycle_time_seconds=24,
            actual_quantity=600,
        ),
    ]


# =====================================================================
# Frame building
# =====================================================================

class TestShiftFrame:

    def test_one_row_per_shift(self, day_and_evening):
        frame = build_shift_frame(day_and_evening)
        assert list(frame["record_id"]) == ["log-1", "log-2"]
        assert list(frame["effective_target_quantity"]) == [1200, 1200]
        assert frame.loc[0, "rejection_dent"] == 16
        assert frame.loc[1, "rejection_dent"] == 0

    def test_empty_input(self):
        frame = build_shift_frame([])
        assert frame.empty
        assert "efficiency_percentage" in frame.columns

    def test_duplicate_keys_reported(self, make_shift):
        frame = build_shift_frame([make_shift(record_id="a"), make_shift(record_id="b")])
        assert list(find_duplicate_shifts(frame)["record_id"]) == ["a", "b"]

    def test_schema_accepts_derived_frame(self, day_and_evening):
        assert shift_domain.validate(build_shift_frame(day_and_evening))


# =====================================================================
# Roll-ups
# =====================================================================

class TestSummarizeShifts:

    def test_daily_totals(self, day_and_evening):
        summary = summarize_shifts(build_shift_frame(day_and_evening), by="date")
        row = summary.iloc[0]

        assert len(summary) == 1
        assert row["date"] == date(2024, 3, 1)
        assert row["total_output"] == 1600
        assert row["total_ok"] == 1580
        assert row["total_target"] == 2400
        assert row["total_rejections"] == 20
        assert row["total_downtime_minutes"] == 30
        assert row["log_count"] == 2
        # mean of 83.33 and 50.0
        assert row["avg_efficiency"] == pytest.approx(66.665, abs=0.01)
        # 20 / (1580 + 20)
        assert row["rejection_percent"] == pytest.approx(1.25)
        # 930 runtime of 960 paid minutes
        assert row["utilization_percent"] == pytest.approx(96.88, abs=0.01)

    def test_paid_minutes_override(self, day_and_evening):
        summary = summarize_shifts(build_shift_frame(day_and_evening), by="machine", paid_minutes=690)
        # 930 / (690 * 2)
        assert summary.iloc[0]["utilization_percent"] == pytest.approx(67.39, abs=0.01)

    def test_by_shift_label(self, day_and_evening):
        summary = summarize_shifts(build_shift_frame(day_and_evening), by="shift")
        assert list(summary["shift"]) == ["A", "B"]
        assert list(summary["avg_efficiency"]) == pytest.approx([83.33, 50.0])

    def test_weekly_period(self, make_shift):
        shifts = [
            make_shift(record_id="a", log_date=date(2024, 3, 1)),
            make_shift(record_id="b", log_date=date(2024, 3, 5)),
        ]
        summary = summarize_shifts(build_shift_frame(shifts), by="period", period=Period.WEEKLY)
        assert list(summary["period"]) == [date(2024, 2, 26), date(2024, 3, 4)]

    def test_zero_efficiency_shifts_excluded_from_average(self, make_shift):
        shifts = [make_shift(record_id="a"), make_shift(record_id="b", cycle_time_seconds=None)]
        assert overall_efficiency(build_shift_frame(shifts))["overall_efficiency"] == pytest.approx(83.33)

    def test_unknown_grouping(self, day_and_evening):
        with pytest.raises(ValueError):
            summarize_shifts(build_shift_frame(day_and_evening), by="operator")

    def test_empty_frame(self):
        assert summarize_shifts(pd.DataFrame()).empty
        assert overall_efficiency(pd.DataFrame())["log_count"] == 0

    def test_filter_range_inclusive(self, make_shift):
        shifts = [
            make_shift(record_id="a", log_date=date(2024, 3, 1)),
            make_shift(record_id="b", log_date=date(2024, 3, 2)),
            make_shift(record_id="c", log_date=None),
        ]
        frame = filter_shift_range(build_shift_frame(shifts), DateRange(date(2024, 3, 2), date(2024, 3, 2)))
        assert list(frame["record_id"]) == ["b"]


class TestRejectionBreakdown:

    def test_largest_cause_first(self, day_and_evening):
        breakdown = rejection_breakdown(build_shift_frame(day_and_evening))
        assert list(breakdown["cause"]) == ["dent", "scratch"]
        assert list(breakdown["label"]) == ["Dent", "Scratch"]
        assert list(breakdown["percent"]) == pytest.approx([80.0, 20.0])


# =====================================================================
# Downtime
# =====================================================================

class TestDowntime:

    @pytest.mark.parametrize("reason,category", [
        ("Machine Breakdown", DowntimeCategory.MACHINE),
        ("  machine breakdown ", DowntimeCategory.MACHINE),
        ("QC Hold", DowntimeCategory.QC),
        ("Tool Damage", DowntimeCategory.TOOLING),
        ("Coffee", DowntimeCategory.OTHER),
        (None, DowntimeCategory.OTHER),
    ])
    def test_categorize(self, reason, category):
        assert categorize_downtime(reason) == category

    def test_pareto(self, make_shift):
        shifts = [
            make_shift(record_id="a", downtime_events=(
                DowntimeEvent(DowntimeReason.MACHINE_BREAKDOWN, 30),
                DowntimeEvent(DowntimeReason.TOOL_CHANGE, 10),
            )),
            make_shift(record_id="b", downtime_events=(
                DowntimeEvent(DowntimeReason.MACHINE_BREAKDOWN, 20),
                DowntimeEvent(DowntimeReason.MATERIAL_SHORTAGE, 40),
            )),
        ]
        pareto = downtime_pareto(explode_downtime_events(shifts))

        assert list(pareto["reason"]) == ["Machine Breakdown", "Material Shortage", "Tool Change"]
        assert list(pareto["minutes"]) == [50, 40, 10]
        assert list(pareto["occurrences"]) == [2, 1, 1]
        assert list(pareto["cumulative_percent"]) == pytest.approx([50.0, 90.0, 100.0])

        by_category = downtime_by_category(explode_downtime_events(shifts))
        assert list(by_category["category"]) == ["Machine", "Material", "Tooling"]

    def test_no_downtime(self, make_shift):
        events = explode_downtime_events([make_shift()])
        assert events.empty
        assert downtime_pareto(events).empty
        assert downtime_by_category(events).empty


class TestShiftPipeline:

    def test_run_filters_by_log_date(self, make_shift):
        shifts = [
            make_shift(record_id="a", log_date=date(2024, 3, 1)),
            make_shift(record_id="b", log_date=date(2024, 4, 1)),
        ]
        report = shift_domain.run(shifts, DateRange(date(2024, 3, 1), date(2024, 3, 31)))
        assert list(report["shift_metrics"]["record_id"]) == ["a"]
        assert report["totals"]["log_count"] == 1
        assert set(report) >= {"daily", "by_shift", "by_machine", "rejections", "downtime_pareto"}


class TestFrameValidation:

    def test_schema_failures_are_collected(self, day_and_evening):
        frame = build_shift_frame(day_and_evening)
        frame.loc[0, "actual_runtime_minutes"] = 999
        result = validate_dataframe(frame, shift_domain.ShiftMetricsSchema)

        assert not result["valid"]
        assert result["status"] == "error"
        assert result["errors"]
