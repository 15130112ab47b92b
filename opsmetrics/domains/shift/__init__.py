"""Shift domain: production efficiency, target overrides, downtime, and rejections."""

from collections.abc import Collection, Iterable

from opsmetrics.domains.shift.ingest import load_shift_records, shifts_from_frame
from opsmetrics.domains.shift.calculator import compute_shift_metrics
from opsmetrics.domains.shift.override import resolve_target, is_override_authorized
from opsmetrics.domains.shift.validation import (
    ShiftValidationError,
    ensure_valid_shift,
    validate_shift_submission,
)
from opsmetrics.domains.shift.transform import build_shift_frame, find_duplicate_shifts
from opsmetrics.domains.shift.aggregate import (
    filter_shift_range,
    overall_efficiency,
    rejection_breakdown,
    summarize_shifts,
)
from opsmetrics.domains.shift.downtime import (
    downtime_by_category,
    downtime_pareto,
    explode_downtime_events,
)
from opsmetrics.domains.shift.models import ShiftMetricsSchema, ShiftProductionInput
from opsmetrics.utils.types import DateRange


def validate(frame) -> bool:
    """Run pandera validation against the derived shift frame."""
    ShiftMetricsSchema.validate(frame)
    return True


def run(
    shifts: Iterable[ShiftProductionInput],
    date_range: DateRange | None = None,
    authorized_roles: Collection[str] | None = None,
    paid_minutes: int | None = None,
):
    """Derive and summarize shift metrics for a batch of shift records.

    ``paid_minutes`` is the paid length of one shift used for utilization;
    when omitted each shift's own clock duration is used.
    """
    if date_range is not None:
        shifts = [s for s in shifts if s.log_date is not None and date_range.contains(s.log_date)]
    else:
        shifts = list(shifts)

    frame = build_shift_frame(shifts, authorized_roles)
    if not frame.empty:
        validate(frame)
    events = explode_downtime_events(shifts)

    return {
        "shift_metrics": frame,
        "daily": summarize_shifts(frame, by="date", paid_minutes=paid_minutes),
        "by_shift": summarize_shifts(frame, by="shift", paid_minutes=paid_minutes),
        "by_machine": summarize_shifts(frame, by="machine", paid_minutes=paid_minutes),
        "rejections": rejection_breakdown(frame),
        "downtime_pareto": downtime_pareto(events),
        "downtime_by_category": downtime_by_category(events),
        "totals": overall_efficiency(frame),
    }
