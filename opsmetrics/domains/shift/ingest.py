"""Build shift production inputs from exported production-log files.

Rows come either flat (CSV: one ``rejection_<cause>`` column per cause and a
JSON-encoded ``downtime_events`` cell) or nested (JSON: ``rejection_breakdown``
mapping and ``target_override`` object).
"""

import logging

import pandas as pd

from opsmetrics.domains.shift.models import (
    DowntimeEvent,
    DowntimeReason,
    RejectionCause,
    ShiftProductionInput,
    TargetOverride,
)
from opsmetrics.utils.io import FilePath, read_records
from opsmetrics.utils.transforms import (
    optional_date,
    optional_float,
    optional_int,
    optional_str,
    parse_json_field,
)
from opsmetrics.utils.validators import validate_required_columns

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = [
    "plant_id",
    "shift",
    "machine_id",
    "shift_start_time",
    "shift_end_time",
    "actual_quantity",
]


_KNOWN_REASONS = {reason.value: reason for reason in DowntimeReason}


def _downtime_events(value) -> tuple[DowntimeEvent, ...]:
    events = []
    for raw in parse_json_field(value, []):
        # Unknown reasons pass through as text so validation can report them.
        reason = str(raw.get("reason") or "").strip()
        events.append(DowntimeEvent(
            reason=_KNOWN_REASONS.get(reason, reason),
            duration_minutes=int(raw.get("duration_minutes", raw.get("duration", 0))),
            remark=raw.get("remark"),
        ))
    return tuple(events)


def _rejection_breakdown(row: dict) -> dict[RejectionCause, int]:
    nested = parse_json_field(row.get("rejection_breakdown"), {})
    breakdown = {}
    for cause in RejectionCause:
        count = optional_int(nested.get(cause.value, row.get(f"rejection_{cause.value}")))
        if count:
            breakdown[cause] = count
    return breakdown


def _target_override(row: dict) -> TargetOverride | None:
    nested = parse_json_field(row.get("target_override"), None)
    if nested:
        return TargetOverride(
            value=int(nested["value"]),
            reason=nested.get("reason") or "",
            approved_by=nested.get("approved_by") or "",
            actor_role=nested.get("actor_role"),
        )

    value = optional_int(row.get("override_value"))
    if value is None:
        return None
    return TargetOverride(
        value=value,
        reason=optional_str(row.get("override_reason")) or "",
        approved_by=optional_str(row.get("override_approved_by")) or "",
        actor_role=optional_str(row.get("override_role")),
    )


def row_to_shift(row: dict) -> ShiftProductionInput:
    return ShiftProductionInput(
        record_id=optional_str(row.get("record_id")),
        log_date=optional_date(row.get("log_date")),
        plant_id=str(row["plant_id"]),
        shift=str(row["shift"]),
        machine_id=str(row["machine_id"]),
        setup_number=optional_str(row.get("setup_number")) or "",
        operator_id=optional_str(row.get("operator_id")),
        shift_start_time=str(row["shift_start_time"]),
        shift_end_time=str(row["shift_end_time"]),
        actual_quantity=optional_int(row.get("actual_quantity")) or 0,
        rework_quantity=optional_int(row.get("rework_quantity")) or 0,
        downtime_events=_downtime_events(row.get("downtime_events")),
        rejection_breakdown=_rejection_breakdown(row),
        cycle_time_seconds=optional_float(row.get("cycle_time_seconds")),
        target_override=_target_override(row),
    )


def shifts_from_frame(df: pd.DataFrame) -> list[ShiftProductionInput]:
    result = validate_required_columns(df, REQUIRED_COLUMNS)
    if not result["valid"]:
        raise ValueError(f"Shift records are malformed: {result['errors']}")
    return [row_to_shift(row) for row in df.to_dict(orient="records")]


def load_shift_records(path: FilePath) -> list[ShiftProductionInput]:
    """Read and parse shift production records from a file or directory."""
    df = read_records(path)
    if df.empty:
        logger.warning(f"No shift records found at {path}")
        return []

    shifts = shifts_from_frame(df)
    logger.info(f"Loaded {len(shifts)} shift records from {path}")
    return shifts
