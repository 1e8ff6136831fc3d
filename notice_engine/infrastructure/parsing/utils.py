"""Shared parsing utilities for spreadsheet ingestion."""
from __future__ import annotations

from io import BytesIO
from pathlib import Path
from typing import Iterable

import pandas as pd


def ensure_bytes(source: BytesIO | Path | bytes) -> bytes:
    if isinstance(source, bytes):
        return source
    if isinstance(source, BytesIO):
        return source.getvalue()
    if isinstance(source, Path):
        return source.read_bytes()
    raise TypeError(f"Unsupported source type: {type(source)!r}")


def first_present(row: pd.Series, columns: Iterable[str]) -> object:
    """Value of the first listed column holding a non-blank value, else None."""
    for column in columns:
        if column not in row.index:
            continue
        value = row[column]
        if value is None or (isinstance(value, float) and pd.isna(value)):
            continue
        if isinstance(value, str) and not value.strip():
            continue
        return value
    return None


def normalize_columns(df: pd.DataFrame) -> pd.DataFrame:
    work = df.copy()
    work.columns = [str(column).strip() for column in work.columns]
    return work
