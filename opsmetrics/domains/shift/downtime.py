"""Downtime categorization and Pareto analysis across shift logs."""

import logging
from collections.abc import Iterable

import pandas as pd

from opsmetrics.domains.shift.models import (
    DowntimeCategory,
    DowntimeReason,
    ShiftProductionInput,
)

logger = logging.getLogger(__name__)

DOWNTIME_CATEGORIES = {
    DowntimeCategory.MATERIAL: [
        DowntimeReason.MATERIAL_NOT_AVAILABLE,
        DowntimeReason.MATERIAL_SHORTAGE,
    ],
    DowntimeCategory.MACHINE: [
        DowntimeReason.MACHINE_BREAKDOWN,
        DowntimeReason.MACHINE_MAINTENANCE,
        DowntimeReason.MACHINE_CALIBRATION,
    ],
    DowntimeCategory.POWER: [
        DowntimeReason.NO_POWER,
        DowntimeReason.POWER_FLUCTUATION,
    ],
    DowntimeCategory.QC: [
        DowntimeReason.QUALITY_PROBLEM,
        DowntimeReason.QC_HOLD,
        DowntimeReason.FIRST_PIECE_APPROVAL,
    ],
    DowntimeCategory.OPERATOR: [DowntimeReason.NO_OPERATOR],
    DowntimeCategory.TOOLING: [
        DowntimeReason.TOOL_CHANGE,
        DowntimeReason.TOOL_DAMAGE,
    ],
    DowntimeCategory.OTHER: [
        DowntimeReason.JOB_SETTING,
        DowntimeReason.PROGRAM_UPLOAD,
        DowntimeReason.OTHER,
    ],
}

_REASON_TO_CATEGORY = {
    reason: category
    for category, reasons in DOWNTIME_CATEGORIES.items()
    for reason in reasons
}

_EVENT_COLUMNS = ["record_id", "machine_id", "shift", "log_date", "reason", "category", "minutes"]


def categorize_downtime(reason: str | None) -> DowntimeCategory:
    """Map a downtime reason to its reporting category."""
    if reason is None:
        return DowntimeCategory.OTHER
    for known, category in _REASON_TO_CATEGORY.items():
        if known.lower() == reason.strip().lower():
            return category
    return DowntimeCategory.OTHER


def explode_downtime_events(shifts: Iterable[ShiftProductionInput]) -> pd.DataFrame:
    """One row per downtime event, tagged with its shift context and category."""
    rows = [
        {
            "record_id": shift.record_id,
            "machine_id": shift.machine_id,
            "shift": shift.shift,
            "log_date": shift.log_date,
            "reason": str(event.reason),
            "category": str(categorize_downtime(event.reason)),
            "minutes": event.duration_minutes,
        }
        for shift in shifts
        for event in shift.downtime_events
    ]
    return pd.DataFrame(rows, columns=_EVENT_COLUMNS)


def downtime_pareto(events: pd.DataFrame) -> pd.DataFrame:
    """Rank downtime reasons by lost minutes with their share of all downtime."""
    if events.empty:
        return pd.DataFrame(columns=["reason", "category", "minutes", "occurrences", "percent", "cumulative_percent"])

    pareto = (
        events.groupby(["reason", "category"])
        .agg(minutes=("minutes", "sum"), occurrences=("minutes", "count"))
        .reset_index()
    )
    total = pareto["minutes"].sum()
    pareto["percent"] = (pareto["minutes"] / total * 100).round(2) if total > 0 else 0.0
    pareto = pareto.sort_values(["minutes", "reason"], ascending=[False, True])
    pareto["cumulative_percent"] = pareto["percent"].cumsum().round(2)

    logger.info(f"Downtime pareto: {len(pareto)} reasons, {total} minutes")
    return pareto.reset_index(drop=True)


def downtime_by_category(events: pd.DataFrame) -> pd.DataFrame:
    if events.empty:
        return pd.DataFrame(columns=["category", "minutes", "hours", "occurrences", "percent"])

    summary = (
        events.groupby("category")
        .agg(minutes=("minutes", "sum"), occurrences=("minutes", "count"))
        .reset_index()
    )
    total = summary["minutes"].sum()
    summary["hours"] = (summary["minutes"] / 60).round(2)
    summary["percent"] = (summary["minutes"] / total * 100).round(2) if total > 0 else 0.0
    return summary.sort_values(["minutes", "category"], ascending=[False, True]).reset_index(drop=True)
