"""Boundary validation for shift submissions before metrics are derived."""

import re

from opsmetrics.domains.shift.models import (
    DowntimeReason,
    RejectionCause,
    ShiftProductionInput,
)
from opsmetrics.utils.types import ValidationResult

_CLOCK_PATTERN = re.compile(r"^([01]\d|2[0-3]):[0-5]\d(:[0-5]\d)?$")
_REJECTION_KEYS = frozenset(cause.value for cause in RejectionCause)
_DOWNTIME_REASONS = frozenset(reason.value for reason in DowntimeReason)


class ShiftValidationError(ValueError):
    """Raised when a shift submission fails boundary validation."""

    def __init__(self, errors: list[str]):
        self.errors = errors
        super().__init__("; ".join(errors))


def _check_clock(label: str, value: str | None) -> list[str]:
    if not value or not _CLOCK_PATTERN.match(value.strip()):
        return [f"{label} must be a HH:MM time of day, got {value!r}"]
    return []


def _check_quantities(shift: ShiftProductionInput) -> list[str]:
    errors = []
    for label, qty in (
        ("actual_quantity", shift.actual_quantity),
        ("rework_quantity", shift.rework_quantity),
    ):
        if qty is None or qty < 0:
            errors.append(f"{label} cannot be negative, got {qty}")

    for cause, count in shift.rejection_breakdown.items():
        if cause not in _REJECTION_KEYS:
            errors.append(f"Unknown rejection cause: {cause}")
        elif count is None or count < 0:
            errors.append(f"Rejection count for {cause} cannot be negative, got {count}")
    return errors


def _check_downtime(shift: ShiftProductionInput) -> list[str]:
    errors = []
    for i, event in enumerate(shift.downtime_events):
        if event.reason not in _DOWNTIME_REASONS:
            errors.append(f"Downtime event {i} has unknown reason {event.reason!r}")
        if event.duration_minutes is None or event.duration_minutes <= 0:
            errors.append(
                f"Downtime event {i} ({event.reason}) must last a positive number of minutes"
            )
    return errors


def _check_override(shift: ShiftProductionInput) -> list[str]:
    override = shift.target_override
    match override:
        case None:
            return []
        case _ if not override.reason or not override.reason.strip():
            return ["Target override requires a reason"]
        case _ if override.value is None or override.value <= 0:
            return [f"Target override must be positive, got {override.value}"]
        case _:
            return []


def validate_shift_submission(shift: ShiftProductionInput) -> ValidationResult:
    """Check a shift submission and collect every problem found."""
    errors = [
        *_check_clock("shift_start_time", shift.shift_start_time),
        *_check_clock("shift_end_time", shift.shift_end_time),
        *_check_quantities(shift),
        *_check_downtime(shift),
        *_check_override(shift),
    ]

    match errors:
        case []:
            return {"valid": True, "status": "ok", "errors": []}
        case found:
            return {"valid": False, "status": "error", "errors": found}


def ensure_valid_shift(shift: ShiftProductionInput) -> None:
    result = validate_shift_submission(shift)
    if not result["valid"]:
        raise ShiftValidationError(result["errors"])
