"""Setup activity records, derived setup metrics, and setter summaries."""

from dataclasses import dataclass
from datetime import date, datetime

import pandera.pandas as pa
from pandera.pandas import Column, Check


@dataclass(frozen=True)
class SetupActivityInput:
    record_id: str
    setter_id: str
    machine_id: str
    created_at: datetime
    item_code: str | None = None
    wo_id: str | None = None
    setup_start_time: datetime | None = None
    setup_end_time: datetime | None = None
    first_piece_approval_time: datetime | None = None
    setter_name: str | None = None
    setup_type: str = "new"
    activity_date: date | None = None

    @property
    def reference_time(self) -> datetime:
        """Timestamp used to order the setup."""
        return self.setup_start_time or self.created_at

    @property
    def setup_date(self) -> date:
        """Plant calendar day of the setup; the timestamp date only when none was recorded."""
        return self.activity_date or self.reference_time.date()


@dataclass(frozen=True)
class SetupDurations:
    setup_duration_minutes: int | None
    approval_delay_minutes: int | None


@dataclass(frozen=True)
class DerivedSetupMetrics:
    setup_duration_minutes: int | None
    approval_delay_minutes: int | None
    is_repeat_setup: bool = False


type EvaluatedSetup = tuple[SetupActivityInput, DerivedSetupMetrics]


@dataclass(frozen=True)
class SetterPeriodSummary:
    setter_id: str
    setter_name: str
    total_setups: int
    setups_with_duration: int
    avg_setup_duration_minutes: float | None
    min_setup_duration_minutes: int | None
    max_setup_duration_minutes: int | None
    total_setup_duration_minutes: int
    setups_with_approval_data: int
    avg_approval_delay_minutes: float | None
    max_approval_delay_minutes: int | None
    repeat_setup_count: int
    repeat_setup_items: tuple[str, ...]
    new_setup_count: int
    repair_setup_count: int
    efficiency_score: float
    efficiency_band: str
    rank: int = 0


@dataclass(frozen=True)
class SetterSummaryTotals:
    total_setups: int
    avg_setup_duration: float | None
    avg_approval_delay: float | None
    total_repeat_setups: int
    setter_count: int
    best_performer: str | None
    worst_performer: str | None


SetupMetricsSchema = pa.DataFrameSchema(
    columns={
        "record_id": Column(str, nullable=False, unique=True),
        "setter_id": Column(str, nullable=False),
        "setup_date": Column(nullable=False),
        "setup_duration_minutes": Column(float, nullable=True),
        "approval_delay_minutes": Column(float, nullable=True),
        "is_repeat_setup": Column(bool),
    },
    coerce=True,
    strict=False,
)

SetterSummarySchema = pa.DataFrameSchema(
    columns={
        "setter_id": Column(str, nullable=False, unique=True),
        "total_setups": Column(int, Check.greater_than(0)),
        "repeat_setup_count": Column(int, Check.greater_than_or_equal_to(0)),
        "efficiency_score": Column(float, nullable=False),
        "rank": Column(int, Check.greater_than(0)),
    },
    checks=[
        Check(
            lambda df: df["repeat_setup_count"] <= df["total_setups"],
            error="more repeats than setups",
        ),
    ],
    coerce=True,
    strict=False,
)
