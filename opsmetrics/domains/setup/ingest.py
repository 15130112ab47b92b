"""Build setup activity inputs from exported setter-activity files."""

import logging

import pandas as pd

from opsmetrics.domains.setup.models import SetupActivityInput
from opsmetrics.utils.io import FilePath, read_records
from opsmetrics.utils.transforms import is_blank, optional_date, optional_datetime, optional_str
from opsmetrics.utils.validators import validate_no_nulls, validate_required_columns, validate_unique

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = ["record_id", "setter_id", "machine_id", "created_at"]

# Legacy exports name the setter column after the programmer table.
COLUMN_ALIASES = {"programmer_id": "setter_id", "programmer_name": "setter_name", "id": "record_id"}


def row_to_setup(row: dict) -> SetupActivityInput:
    return SetupActivityInput(
        record_id=str(row["record_id"]),
        setter_id=str(row["setter_id"]),
        setter_name=optional_str(row.get("setter_name")),
        machine_id=str(row["machine_id"]),
        item_code=optional_str(row.get("item_code")),
        wo_id=optional_str(row.get("wo_id")),
        setup_type=optional_str(row.get("setup_type")) or "new",
        setup_start_time=optional_datetime(row.get("setup_start_time")),
        setup_end_time=optional_datetime(row.get("setup_end_time")),
        first_piece_approval_time=optional_datetime(row.get("first_piece_approval_time")),
        created_at=optional_datetime(row["created_at"]),
        activity_date=optional_date(row.get("activity_date")),
    )


def setups_from_frame(df: pd.DataFrame) -> list[SetupActivityInput]:
    df = df.rename(columns={k: v for k, v in COLUMN_ALIASES.items() if v not in df.columns})

    result = validate_required_columns(df, REQUIRED_COLUMNS)
    if not result["valid"]:
        raise ValueError(f"Setup records are malformed: {result['errors']}")

    # Blank cells arrive as empty strings from CSV.
    df[REQUIRED_COLUMNS] = df[REQUIRED_COLUMNS].mask(df[REQUIRED_COLUMNS].map(is_blank))
    completeness = validate_no_nulls(df, REQUIRED_COLUMNS)
    if not completeness["valid"]:
        raise ValueError(f"Setup records are malformed: {completeness['errors']}")

    uniqueness = validate_unique(df, ["record_id"])
    if not uniqueness["valid"]:
        raise ValueError(f"Setup records are malformed: {uniqueness['errors']}")

    return [row_to_setup(row) for row in df.to_dict(orient="records")]


def load_setup_records(path: FilePath) -> list[SetupActivityInput]:
    """Read and parse setup activity records from a file or directory."""
    df = read_records(path)
    if df.empty:
        logger.warning(f"No setup records found at {path}")
        return []

    setups = setups_from_frame(df)
    logger.info(f"Loaded {len(setups)} setup records from {path}")
    return setups
