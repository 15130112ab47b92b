"""Combine per-setup durations with repeat-fault flags."""

import logging
from collections.abc import Iterable

from opsmetrics.domains.setup.calculator import compute_setup_metrics
from opsmetrics.domains.setup.models import (
    DerivedSetupMetrics,
    EvaluatedSetup,
    SetupActivityInput,
)
from opsmetrics.domains.setup.repeats import DEFAULT_WINDOW_HOURS, detect_repeats

logger = logging.getLogger(__name__)


def evaluate_setups(
    records: Iterable[SetupActivityInput],
    window_hours: float = DEFAULT_WINDOW_HOURS,
) -> list[EvaluatedSetup]:
    """Derive metrics for every setup, ordered by setup time then record id."""
    records = sorted(records, key=lambda r: (r.reference_time, r.record_id))
    repeats = detect_repeats(records, window_hours)

    evaluated = []
    for record in records:
        durations = compute_setup_metrics(record)
        if durations.approval_delay_minutes is not None and durations.approval_delay_minutes < 0:
            logger.warning(
                f"Setup {record.record_id}: first piece approved "
                f"{-durations.approval_delay_minutes} min before setup end"
            )
        evaluated.append((
            record,
            DerivedSetupMetrics(
                setup_duration_minutes=durations.setup_duration_minutes,
                approval_delay_minutes=durations.approval_delay_minutes,
                is_repeat_setup=record.record_id in repeats,
            ),
        ))
    return evaluated
