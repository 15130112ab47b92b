"""Setup domain: setup durations, approval delays, repeat faults, and setter rankings."""

from collections.abc import Iterable

from opsmetrics.config import ScoreBands
from opsmetrics.domains.setup.ingest import load_setup_records, setups_from_frame
from opsmetrics.domains.setup.calculator import compute_setup_metrics
from opsmetrics.domains.setup.repeats import detect_repeats, DEFAULT_WINDOW_HOURS
from opsmetrics.domains.setup.evaluate import evaluate_setups
from opsmetrics.domains.setup.aggregate import (
    aggregate_setters,
    build_setup_frame,
    efficiency_score,
    summaries_to_frame,
    summarize_by_period,
    summarize_totals,
)
from opsmetrics.domains.setup.models import (
    SetterSummarySchema,
    SetupActivityInput,
    SetupMetricsSchema,
)
from opsmetrics.utils.types import DateRange, Period


def validate(frame, schema_name: str = "setups") -> bool:
    """Run pandera validation against the given schema."""
    match schema_name:
        case "setups":
            SetupMetricsSchema.validate(frame)
        case "setters":
            SetterSummarySchema.validate(frame)
        case other:
            raise ValueError(f"No schema registered for: {other}")
    return True


def run(
    records: Iterable[SetupActivityInput],
    date_range: DateRange,
    window_hours: float = DEFAULT_WINDOW_HOURS,
    period: Period | None = None,
    bands: ScoreBands | None = None,
):
    """Execute the full setter efficiency pipeline."""
    evaluated = evaluate_setups(records, window_hours)
    setup_frame = build_setup_frame(evaluated)
    if not setup_frame.empty:
        validate(setup_frame, "setups")

    setters = aggregate_setters(evaluated, date_range, bands)
    if setters:
        validate(summaries_to_frame(setters), "setters")

    results = {
        "setup_records": evaluated,
        "setters": setters,
        "totals": summarize_totals(setters),
    }

    if period is not None:
        results["periods"] = summarize_by_period(evaluated, period, date_range, bands)

    return results
