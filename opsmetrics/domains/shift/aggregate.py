"""Roll derived shift metrics up by day, shift label, machine, and rejection cause."""

import logging

import numpy as np
import pandas as pd

from opsmetrics.domains.shift.models import RejectionCause
from opsmetrics.utils.periods import period_start
from opsmetrics.utils.types import DateRange, Period

logger = logging.getLogger(__name__)

type GroupKey = str  # "date" | "shift" | "machine" | "period"


def _nonzero_mean(series: pd.Series) -> float:
    """Average efficiency over shifts that actually logged one."""
    positive = series[series > 0]
    if positive.empty:
        return 0.0
    return round(float(positive.mean()), 2)


def _rejection_percent(rejections: pd.Series, output: pd.Series) -> pd.Series:
    denominator = output + rejections
    return np.where(denominator > 0, (rejections / denominator.where(denominator > 0, 1)) * 100, 0.0)


def filter_shift_range(frame: pd.DataFrame, date_range: DateRange) -> pd.DataFrame:
    if frame.empty:
        return frame
    frame = frame.dropna(subset=["log_date"])
    days = frame["log_date"].dt.date
    return frame[(days >= date_range.start) & (days <= date_range.end)]


def summarize_shifts(
    frame: pd.DataFrame,
    by: GroupKey = "date",
    period: Period = Period.DAILY,
    paid_minutes: int | None = None,
) -> pd.DataFrame:
    """Aggregate shift metrics per group.

    Utilization compares logged runtime against the paid shift minutes; when
    ``paid_minutes`` is given it replaces each shift's own duration.
    """
    if frame.empty:
        return pd.DataFrame()

    frame = frame.copy()
    match by:
        case "date":
            frame["group"] = frame["log_date"].dt.date
        case "period":
            frame["group"] = frame["log_date"].dt.date.map(lambda d: period_start(d, period))
        case "shift":
            frame["group"] = frame["shift"].fillna("Unknown")
        case "machine":
            frame["group"] = frame["machine_id"]
        case other:
            raise ValueError(f"Unsupported grouping: {other}")

    frame["paid_minutes"] = paid_minutes if paid_minutes else frame["shift_duration_minutes"]

    summary = (
        frame.groupby("group")
        .agg(
            total_output=("actual_quantity", "sum"),
            total_ok=("ok_quantity", "sum"),
            total_target=("effective_target_quantity", "sum"),
            total_rejections=("total_rejection_quantity", "sum"),
            total_downtime_minutes=("total_downtime_minutes", "sum"),
            total_runtime_minutes=("actual_runtime_minutes", "sum"),
            paid_minutes=("paid_minutes", "sum"),
            avg_efficiency=("efficiency_percentage", _nonzero_mean),
            log_count=("actual_quantity", "count"),
        )
        .reset_index()
        .rename(columns={"group": by})
    )
    summary["rejection_percent"] = np.round(
        _rejection_percent(summary["total_rejections"], summary["total_ok"]), 2
    )
    summary["utilization_percent"] = np.where(
        summary["paid_minutes"] > 0,
        np.minimum(summary["total_runtime_minutes"] / summary["paid_minutes"].clip(lower=1) * 100, 100.0),
        0.0,
    ).round(2)

    logger.info(f"Summarized {len(frame)} shifts into {len(summary)} {by} groups")
    return summary.sort_values(by).reset_index(drop=True)


def rejection_breakdown(frame: pd.DataFrame) -> pd.DataFrame:
    """Total rejected pieces per cause, largest first."""
    rows = []
    for cause in RejectionCause:
        column = f"rejection_{cause.value}"
        count = int(frame[column].sum()) if column in frame.columns else 0
        if count > 0:
            rows.append({"cause": cause.value, "label": cause.label, "count": count})

    breakdown = pd.DataFrame(rows, columns=["cause", "label", "count"])
    total = breakdown["count"].sum()
    breakdown["percent"] = (breakdown["count"] / total * 100).round(2) if total > 0 else 0.0
    return breakdown.sort_values(["count", "cause"], ascending=[False, True]).reset_index(drop=True)


def overall_efficiency(frame: pd.DataFrame) -> dict[str, float | int]:
    """Plant-wide totals for the shifts in ``frame``."""
    if frame.empty:
        return {
            "total_output": 0,
            "total_target": 0,
            "total_rejections": 0,
            "overall_efficiency": 0.0,
            "log_count": 0,
        }
    return {
        "total_output": int(frame["actual_quantity"].sum()),
        "total_target": int(frame["effective_target_quantity"].sum()),
        "total_rejections": int(frame["total_rejection_quantity"].sum()),
        "overall_efficiency": _nonzero_mean(frame["efficiency_percentage"]),
        "log_count": len(frame),
    }
