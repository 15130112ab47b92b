"""Per-shift production efficiency calculations."""

import math
from collections.abc import Collection

from opsmetrics.config import load_metrics_config
from opsmetrics.domains.shift.models import DerivedShiftMetrics, ShiftProductionInput
from opsmetrics.domains.shift.override import is_override_authorized, resolve_target


MINUTES_PER_DAY = 1440


def parse_clock(value: str) -> int:
    """Convert an HH:MM time of day into minutes since midnight."""
    hours, minutes = value.strip().split(":")[:2]
    return int(hours) * 60 + int(minutes)


def shift_duration_minutes(start: str, end: str) -> int:
    """Shift Duration = Shift End − Shift Start, wrapping past midnight."""
    start_min = parse_clock(start)
    end_min = parse_clock(end)
    if end_min < start_min:
        return (MINUTES_PER_DAY - start_min) + end_min
    return end_min - start_min


def calculated_target(runtime_minutes: int, cycle_time_seconds: float | None) -> int:
    """Target = Runtime × 60 ÷ Cycle Time, counting only whole cycles."""
    if not cycle_time_seconds or cycle_time_seconds <= 0:
        return 0
    return math.floor((runtime_minutes * 60) / cycle_time_seconds)


def efficiency_percentage(actual: int, target: int) -> float:
    if target <= 0:
        return 0.0
    return round((actual / target) * 100, 2)


def compute_shift_metrics(
    shift: ShiftProductionInput,
    authorized_roles: Collection[str] | None = None,
) -> DerivedShiftMetrics:
    if authorized_roles is None:
        authorized_roles = load_metrics_config().override_roles

    duration = shift_duration_minutes(shift.shift_start_time, shift.shift_end_time)
    downtime = sum(event.duration_minutes for event in shift.downtime_events)
    runtime = max(0, duration - downtime)

    calculated = calculated_target(runtime, shift.cycle_time_seconds)
    effective = resolve_target(calculated, shift.target_override, authorized_roles)

    rejections = sum(shift.rejection_breakdown.values())
    ok_quantity = max(0, shift.actual_quantity - rejections)

    return DerivedShiftMetrics(
        shift_duration_minutes=duration,
        total_downtime_minutes=downtime,
        actual_runtime_minutes=runtime,
        calculated_target_quantity=calculated,
        effective_target_quantity=effective,
        total_rejection_quantity=rejections,
        ok_quantity=ok_quantity,
        efficiency_percentage=efficiency_percentage(shift.actual_quantity, effective),
        override_applied=is_override_authorized(shift.target_override, authorized_roles),
    )
