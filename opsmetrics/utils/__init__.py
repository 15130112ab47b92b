"""Shared utilities for the metrics engine."""

from opsmetrics.utils.io import read_records, write_output
from opsmetrics.utils.periods import period_start, resolve_period_range
from opsmetrics.utils.transforms import normalize_columns
from opsmetrics.utils.validators import validate_dataframe, validate_unique
from opsmetrics.utils.types import DateRange, MetricsQuery, Period
