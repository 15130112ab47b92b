"""Detect repeat setups: the same item and work order set up again within a window.

A repeat usually means the previous setup was faulty. Records are partitioned
by (item, work order) and ordered by setup start; a record is flagged when the
setup just before it in its partition started less than ``window_hours``
earlier. The first setup of a cluster is never flagged, and every later one
inside the rolling window is, so a chain of setups 10h apart stays flagged even
once it spans more than a day.

The whole partition for a key must be passed in a single call.
"""

import logging
from collections.abc import Iterable

import pandas as pd

from opsmetrics.domains.setup.models import SetupActivityInput

logger = logging.getLogger(__name__)

DEFAULT_WINDOW_HOURS = 24


def _partition_frame(records: Iterable[SetupActivityInput]) -> pd.DataFrame:
    rows = [
        {
            "record_id": r.record_id,
            "item_code": r.item_code,
            "wo_id": r.wo_id,
            "started_at": r.reference_time,
            "created_at": r.created_at,
        }
        for r in records
        if r.item_code and r.wo_id
    ]
    return pd.DataFrame(rows, columns=["record_id", "item_code", "wo_id", "started_at", "created_at"])


def detect_repeats(
    records: Iterable[SetupActivityInput],
    window_hours: float = DEFAULT_WINDOW_HOURS,
) -> frozenset[str]:
    """Return the ids of setups that repeat an earlier one within the window."""
    if window_hours <= 0:
        raise ValueError(f"window_hours must be positive, got {window_hours}")

    df = _partition_frame(records)
    if df.empty:
        return frozenset()

    df["started_at"] = pd.to_datetime(df["started_at"])
    df["created_at"] = pd.to_datetime(df["created_at"])
    df = df.sort_values(["item_code", "wo_id", "started_at", "created_at", "record_id"], kind="stable")

    gap = df.groupby(["item_code", "wo_id"], sort=False)["started_at"].diff()
    is_repeat = gap.notna() & (gap < pd.Timedelta(hours=window_hours))
    flagged = frozenset(df.loc[is_repeat, "record_id"])

    logger.info(
        f"Repeat detection: {len(flagged)} of {len(df)} keyed setups flagged "
        f"({window_hours}h window)"
    )
    return flagged
