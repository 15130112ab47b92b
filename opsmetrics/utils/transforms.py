"""Common record transformation utilities."""

import json
import math
from datetime import date, datetime

import pandas as pd

type ColumnMapping = dict[str, str]


def normalize_columns(df: pd.DataFrame, mapping: ColumnMapping | None = None) -> pd.DataFrame:
    """Normalize column names to snake_case and apply optional mapping."""
    df.columns = [str(col).strip().lower().replace(" ", "_").replace("-", "_") for col in df.columns]

    if mapping:
        df = df.rename(columns=mapping)

    return df


def is_blank(value) -> bool:
    match value:
        case None:
            return True
        case str() if not value.strip():
            return True
        case float() if math.isnan(value):
            return True
        case _:
            return value is pd.NaT or value is pd.NA


def optional_str(value) -> str | None:
    return None if is_blank(value) else str(value).strip()


def optional_int(value) -> int | None:
    return None if is_blank(value) else int(float(value))


def optional_float(value) -> float | None:
    return None if is_blank(value) else float(value)


def optional_datetime(value) -> datetime | None:
    if is_blank(value):
        return None
    return pd.Timestamp(value).to_pydatetime()


def optional_date(value) -> date | None:
    if is_blank(value):
        return None
    return pd.Timestamp(value).date()


def parse_json_field(value, default):
    """Decode a JSON-encoded cell; already-decoded values pass through."""
    if is_blank(value):
        return default
    if isinstance(value, str):
        return json.loads(value)
    return value
