"""Frame validation utilities using pandera."""

import pandas as pd
from pandera.errors import SchemaErrors
from pandera.pandas import DataFrameSchema

from opsmetrics.utils.types import ValidationResult


def validate_dataframe(df: pd.DataFrame, schema: DataFrameSchema) -> ValidationResult:
    """Validate a DataFrame against a pandera schema, collecting every failure."""
    try:
        schema.validate(df, lazy=True)
        return {"valid": True, "status": "ok", "errors": []}
    except SchemaErrors as e:
        errors = []
        for _, row in e.failure_cases.iterrows():
            match row.to_dict():
                case {"column": col, "check": check, "failure_case": val}:
                    errors.append(f"Column '{col}' failed check '{check}': {val}")
                case failure:
                    errors.append(f"Validation failure: {failure}")
        return {"valid": False, "status": "error", "errors": errors}


def validate_required_columns(df: pd.DataFrame, columns: list[str]) -> ValidationResult:
    """Check that a raw record frame carries every required column."""
    missing = [col for col in columns if col not in df.columns]

    match missing:
        case []:
            return {"valid": True, "status": "ok", "errors": []}
        case cols:
            return {"valid": False, "status": "error", "errors": [f"Missing columns: {cols}"]}


def validate_no_nulls(df: pd.DataFrame, columns: list[str]) -> ValidationResult:
    """Check that specified columns have no null values."""
    issues = []
    for col in columns:
        null_count = df[col].isnull().sum()
        if null_count > 0:
            issues.append(f"Column '{col}' has {null_count} null values")

    match issues:
        case []:
            return {"valid": True, "status": "ok", "errors": []}
        case errors:
            return {"valid": False, "status": "error", "errors": errors}


def validate_unique(df: pd.DataFrame, columns: list[str]) -> ValidationResult:
    """Check that specified columns form a unique key."""
    duplicates = df.duplicated(subset=columns, keep=False)
    dup_count = duplicates.sum()

    match dup_count:
        case 0:
            return {"valid": True, "status": "ok", "errors": []}
        case n:
            return {
                "valid": False,
                "status": "error",
                "errors": [f"Found {n} duplicate rows on columns {columns}"],
            }
