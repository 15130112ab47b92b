"""Flatten shift records and their derived metrics into analysis frames."""

import logging
from collections.abc import Collection, Iterable
from dataclasses import asdict

import pandas as pd

from opsmetrics.domains.shift.calculator import compute_shift_metrics
from opsmetrics.domains.shift.models import (
    DerivedShiftMetrics,
    RejectionCause,
    ShiftProductionInput,
)

logger = logging.getLogger(__name__)

SHIFT_KEY = ["machine_id", "shift", "setup_number", "log_date"]

_CONTEXT_FIELDS = [
    "record_id",
    "log_date",
    "plant_id",
    "shift",
    "machine_id",
    "setup_number",
    "operator_id",
    "shift_start_time",
    "shift_end_time",
    "cycle_time_seconds",
    "actual_quantity",
    "rework_quantity",
]


def _rejection_columns(shift: ShiftProductionInput) -> dict[str, int]:
    return {
        f"rejection_{cause.value}": int(shift.rejection_breakdown.get(cause, 0))
        for cause in RejectionCause
    }


def shift_row(shift: ShiftProductionInput, metrics: DerivedShiftMetrics) -> dict:
    row = {name: getattr(shift, name) for name in _CONTEXT_FIELDS}
    row.update(_rejection_columns(shift))
    row.update(asdict(metrics))
    return row


def build_shift_frame(
    shifts: Iterable[ShiftProductionInput],
    authorized_roles: Collection[str] | None = None,
) -> pd.DataFrame:
    """Derive metrics for every shift and return one row per shift."""
    rows = [shift_row(shift, compute_shift_metrics(shift, authorized_roles)) for shift in shifts]
    columns = (
        _CONTEXT_FIELDS
        + [f"rejection_{cause.value}" for cause in RejectionCause]
        + list(DerivedShiftMetrics.__dataclass_fields__)
    )
    frame = pd.DataFrame(rows, columns=columns)
    if not frame.empty:
        frame["log_date"] = pd.to_datetime(frame["log_date"])
    logger.info(f"Derived metrics for {len(frame)} shift records")
    return frame


def find_duplicate_shifts(frame: pd.DataFrame) -> pd.DataFrame:
    """Rows sharing a (machine, shift, setup, date) key.

    The record store rejects these on insert; the engine only reports them.
    """
    if frame.empty:
        return frame
    duplicated = frame.duplicated(subset=SHIFT_KEY, keep=False)
    return frame[duplicated].sort_values(SHIFT_KEY + ["record_id"])
