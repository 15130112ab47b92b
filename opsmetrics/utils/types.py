"""Shared type definitions for the metrics engine."""

from dataclasses import dataclass
from datetime import date
from enum import StrEnum


type RecordID = str | int
type MetricValue = int | float | None
type ValidationResult = dict[str, bool | str | list[str]]


class Period(StrEnum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"


@dataclass(frozen=True)
class DateRange:
    start: date
    end: date

    def __post_init__(self):
        if self.end < self.start:
            raise ValueError(f"Date range ends before it starts: {self.start} > {self.end}")

    def contains(self, day: date) -> bool:
        return self.start <= day <= self.end


@dataclass(frozen=True)
class MetricsQuery:
    """Immutable filter set handed to the metrics service."""

    date_range: DateRange
    machine_id: str | None = None
    setter_id: str | None = None
    shift: str | None = None
    period: Period | None = None
