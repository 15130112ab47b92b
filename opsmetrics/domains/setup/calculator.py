"""Setup duration and first-piece approval delay for a single setup."""

from datetime import datetime

from opsmetrics.domains.setup.models import SetupActivityInput, SetupDurations


def minutes_between(start: datetime | None, end: datetime | None) -> int | None:
    """Whole minutes from ``start`` to ``end``, truncated toward zero.

    Returns None when either side is missing. Negative spans are kept.
    """
    if start is None or end is None:
        return None
    return int((end - start).total_seconds() / 60)


def compute_setup_metrics(setup: SetupActivityInput) -> SetupDurations:
    return SetupDurations(
        setup_duration_minutes=minutes_between(setup.setup_start_time, setup.setup_end_time),
        approval_delay_minutes=minutes_between(setup.setup_end_time, setup.first_piece_approval_time),
    )
