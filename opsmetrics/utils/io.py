"""File I/O utilities for reading raw records and writing metric exports."""

from pathlib import Path

import pandas as pd
from rich.console import Console

from opsmetrics.utils.transforms import normalize_columns

type FilePath = str | Path

console = Console(stderr=True)


def read_records(path: FilePath) -> pd.DataFrame:
    """Read a record file (or every CSV in a directory) into a DataFrame."""
    path = Path(path)
    if path.is_dir():
        return read_csv_files(path)

    match path.suffix.lower():
        case ".csv":
            df = pd.read_csv(path, dtype=str, keep_default_na=False)
        case ".json":
            df = pd.read_json(path, orient="records", dtype=False, convert_dates=False)
        case ".parquet":
            df = pd.read_parquet(path)
        case ".xlsx":
            df = pd.read_excel(path, engine="openpyxl", dtype=str)
        case ext:
            raise ValueError(f"Unsupported record format: {ext}")

    return normalize_columns(df)


def read_csv_files(directory: FilePath, pattern: str = "*.csv") -> pd.DataFrame:
    """Read all CSV files from a directory and concatenate them."""
    directory = Path(directory)
    chunks = []

    for csv_file in sorted(directory.glob(pattern)):
        console.print(f"  Reading {csv_file.name}...")
        chunks.append(normalize_columns(pd.read_csv(csv_file, dtype=str, keep_default_na=False)))

    if not chunks:
        return pd.DataFrame()
    return pd.concat(chunks, ignore_index=True)


def write_output(df: pd.DataFrame, path: FilePath, fmt: str | None = None) -> Path:
    """Write a DataFrame to the format implied by ``fmt`` or the file suffix."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    match fmt or path.suffix.lstrip(".").lower():
        case "csv":
            df.to_csv(path, index=False)
        case "parquet":
            df.to_parquet(path, index=False)
        case "excel" | "xlsx":
            df.to_excel(path, index=False)
        case "json":
            df.to_json(path, orient="records", indent=2, date_format="iso")
        case other:
            raise ValueError(f"Unsupported output format: {other}")

    console.print(f"  Wrote {len(df)} rows to {path}")
    return path
