"""Setter efficiency rankings over a date range and per calendar period."""

import logging
from collections.abc import Iterable
from dataclasses import asdict, replace
from datetime import date

import numpy as np
import pandas as pd

from opsmetrics.config import ScoreBands
from opsmetrics.domains.setup.models import (
    EvaluatedSetup,
    SetterPeriodSummary,
    SetterSummaryTotals,
)
from opsmetrics.utils.periods import period_start
from opsmetrics.utils.types import DateRange, Period

logger = logging.getLogger(__name__)

DELAY_WEIGHT = 0.5
REPEAT_WEIGHT = 10

_FRAME_COLUMNS = [
    "record_id",
    "setter_id",
    "setter_name",
    "item_code",
    "setup_type",
    "setup_date",
    "setup_duration_minutes",
    "approval_delay_minutes",
    "is_repeat_setup",
]


def efficiency_score(
    avg_setup_minutes: float | None,
    avg_delay_minutes: float | None,
    repeat_count: int,
    total_setups: int,
) -> float:
    """Efficiency Score = Avg Setup Time + (Avg Delay × 0.5) + (Repeat % × 10).

    Lower is better. A missing average contributes nothing.
    """
    repeat_pct = (repeat_count / total_setups) * 100 if total_setups > 0 else 0.0
    score = (avg_setup_minutes or 0) + (avg_delay_minutes or 0) * DELAY_WEIGHT + repeat_pct * REPEAT_WEIGHT
    return round(score, 1)


def classify_score_band(score: float, bands: ScoreBands | None = None) -> str:
    bands = bands or ScoreBands()
    match score:
        case s if s <= bands.excellent:
            return "excellent"
        case s if s <= bands.good:
            return "good"
        case s if s <= bands.average:
            return "average"
        case _:
            return "needs_improvement"


def build_setup_frame(evaluated: Iterable[EvaluatedSetup]) -> pd.DataFrame:
    rows = [
        {
            "record_id": setup.record_id,
            "setter_id": setup.setter_id,
            "setter_name": setup.setter_name,
            "item_code": setup.item_code,
            "setup_type": setup.setup_type,
            "setup_date": setup.setup_date,
            "setup_duration_minutes": metrics.setup_duration_minutes,
            "approval_delay_minutes": metrics.approval_delay_minutes,
            "is_repeat_setup": metrics.is_repeat_setup,
        }
        for setup, metrics in evaluated
    ]
    frame = pd.DataFrame(rows, columns=_FRAME_COLUMNS)
    frame["setup_duration_minutes"] = frame["setup_duration_minutes"].astype(float)
    frame["approval_delay_minutes"] = frame["approval_delay_minutes"].astype(float)
    frame["is_repeat_setup"] = frame["is_repeat_setup"].astype(bool)
    return frame


def _optional_int(value) -> int | None:
    return None if pd.isna(value) else int(value)


def _summarize_setter(setter_id: str, group: pd.DataFrame, bands: ScoreBands | None) -> SetterPeriodSummary:
    durations = group["setup_duration_minutes"].dropna()
    delays = group["approval_delay_minutes"].dropna()
    repeats = group[group["is_repeat_setup"]]
    setup_types = group["setup_type"].value_counts()

    avg_duration = float(durations.mean()) if len(durations) else None
    avg_delay = float(delays.mean()) if len(delays) else None
    names = group["setter_name"].dropna()
    score = efficiency_score(avg_duration, avg_delay, len(repeats), len(group))

    return SetterPeriodSummary(
        setter_id=setter_id,
        setter_name=names.iloc[0] if len(names) else "Unknown Setter",
        total_setups=len(group),
        setups_with_duration=len(durations),
        avg_setup_duration_minutes=avg_duration,
        min_setup_duration_minutes=_optional_int(durations.min()),
        max_setup_duration_minutes=_optional_int(durations.max()),
        total_setup_duration_minutes=int(durations.sum()),
        setups_with_approval_data=len(delays),
        avg_approval_delay_minutes=avg_delay,
        max_approval_delay_minutes=_optional_int(delays.max()),
        repeat_setup_count=len(repeats),
        repeat_setup_items=tuple(sorted(repeats["item_code"].dropna().unique())),
        new_setup_count=int(setup_types.get("new", 0)),
        repair_setup_count=int(setup_types.get("repair", 0)),
        efficiency_score=score,
        efficiency_band=classify_score_band(score, bands),
    )


def _rank(summaries: list[SetterPeriodSummary]) -> list[SetterPeriodSummary]:
    ordered = sorted(summaries, key=lambda s: (s.efficiency_score, s.setter_id))
    return [
        replace(s, rank=position)
        for position, s in enumerate(ordered, start=1)
    ]


def _summaries_from_frame(frame: pd.DataFrame, bands: ScoreBands | None) -> list[SetterPeriodSummary]:
    summaries = [
        _summarize_setter(setter_id, group, bands)
        for setter_id, group in frame.groupby("setter_id", sort=True)
    ]
    return _rank(summaries)


def aggregate_setters(
    evaluated: Iterable[EvaluatedSetup],
    date_range: DateRange,
    bands: ScoreBands | None = None,
) -> list[SetterPeriodSummary]:
    """Rank setters by efficiency score over setups dated inside ``date_range``.

    Averages use only setups where the value is known; a setup without an end
    time adds to ``total_setups`` but not to the duration average.
    """
    frame = build_setup_frame(evaluated)
    if frame.empty:
        return []

    in_range = frame["setup_date"].map(date_range.contains)
    frame = frame[in_range.astype(bool)]
    summaries = _summaries_from_frame(frame, bands)

    logger.info(
        f"Aggregated {len(frame)} setups for {len(summaries)} setters "
        f"({date_range.start} to {date_range.end})"
    )
    return summaries


def summarize_totals(summaries: list[SetterPeriodSummary]) -> SetterSummaryTotals:
    """Fold per-setter summaries into plant-wide totals."""
    active = [s for s in summaries if s.total_setups > 0]
    if not active:
        return SetterSummaryTotals(
            total_setups=0,
            avg_setup_duration=None,
            avg_approval_delay=None,
            total_repeat_setups=0,
            setter_count=0,
            best_performer=None,
            worst_performer=None,
        )

    duration_weights = np.array([s.setups_with_duration for s in active], dtype=float)
    duration_avgs = np.array([s.avg_setup_duration_minutes or 0 for s in active], dtype=float)
    delay_weights = np.array([s.setups_with_approval_data for s in active], dtype=float)
    delay_avgs = np.array([s.avg_approval_delay_minutes or 0 for s in active], dtype=float)

    ranked = sorted(active, key=lambda s: (s.efficiency_score, s.setter_id))
    return SetterSummaryTotals(
        total_setups=sum(s.total_setups for s in active),
        avg_setup_duration=(
            float(np.average(duration_avgs, weights=duration_weights)) if duration_weights.sum() else None
        ),
        avg_approval_delay=(
            float(np.average(delay_avgs, weights=delay_weights)) if delay_weights.sum() else None
        ),
        total_repeat_setups=sum(s.repeat_setup_count for s in active),
        setter_count=len(active),
        best_performer=ranked[0].setter_name,
        worst_performer=ranked[-1].setter_name,
    )


def summarize_by_period(
    evaluated: Iterable[EvaluatedSetup],
    period: Period,
    date_range: DateRange,
    bands: ScoreBands | None = None,
) -> dict[date, list[SetterPeriodSummary]]:
    """Setter rankings for each day, week (Monday start), or month in the range."""
    frame = build_setup_frame(evaluated)
    if frame.empty:
        return {}

    frame = frame[frame["setup_date"].map(date_range.contains).astype(bool)].copy()
    frame["period_start"] = frame["setup_date"].map(lambda d: period_start(d, period))

    results = {}
    for bucket, group in frame.groupby("period_start", sort=True):
        results[bucket] = _summaries_from_frame(group, bands)

    logger.info(f"Summarized setups into {len(results)} {period} periods")
    return results


def summaries_to_frame(summaries: list[SetterPeriodSummary]) -> pd.DataFrame:
    return pd.DataFrame([asdict(s) for s in summaries], columns=list(SetterPeriodSummary.__dataclass_fields__))
