"""Spreadsheet parser producing imported reconciliation period rows."""
from __future__ import annotations

from io import BytesIO
from pathlib import Path
from typing import Sequence

import pandas as pd

from notice_engine.domain.money import parse_amount
from notice_engine.domain.reconciliation.entities import ImportedPeriodRow
from notice_engine.exceptions import WorksheetImportError
from notice_engine.infrastructure.parsing.utils import ensure_bytes, first_present, normalize_columns

PERIOD_COLUMNS = ("Period", "Month")
SOURCE_A_COLUMNS = ("GSTR-1", "GSTR-3B", "Portal", "Source A", "GSTR1")
SOURCE_B_COLUMNS = ("Books", "Tally", "Source B", "Ledger")
REMARKS_COLUMNS = ("Remarks", "Reason", "Note")


EXCEL_ENGINES = ("openpyxl", "xlrd")


def read_worksheet_raw(source: BytesIO | Path | bytes, filename: str | None = None) -> pd.DataFrame:
    """First sheet of an xlsx/xls workbook, or a CSV when the file name says so."""
    if filename is None and isinstance(source, Path):
        filename = source.name
    raw_bytes = ensure_bytes(source)
    if filename and filename.lower().endswith(".csv"):
        try:
            return pd.read_csv(BytesIO(raw_bytes), dtype=str, keep_default_na=False)
        except (ValueError, pd.errors.ParserError) as exc:
            raise WorksheetImportError(f"Could not read {filename} as CSV") from exc

    # openpyxl handles xlsx; fall back to xlrd for legacy xls
    last_error: Exception | None = None
    for engine in EXCEL_ENGINES:
        try:
            return pd.read_excel(
                BytesIO(raw_bytes),
                sheet_name=0,
                engine=engine,
                dtype=str,
                keep_default_na=False,
            )
        except Exception as exc:
            last_error = exc
    raise WorksheetImportError(
        f"Could not read {filename or 'worksheet'}; expected columns like 'Period', 'Portal', 'Books'"
    ) from last_error


def rows_from_dataframe(df: pd.DataFrame) -> Sequence[ImportedPeriodRow]:
    work = normalize_columns(df)
    if not any(column in work.columns for column in PERIOD_COLUMNS):
        raise WorksheetImportError(
            f"No period column found; expected one of {', '.join(PERIOD_COLUMNS)}"
        )

    rows: list[ImportedPeriodRow] = []
    for _, row in work.iterrows():
        period = first_present(row, PERIOD_COLUMNS)
        if period is None:
            continue
        remarks = first_present(row, REMARKS_COLUMNS)
        rows.append(
            ImportedPeriodRow(
                period=str(period).strip(),
                source_a=parse_amount(first_present(row, SOURCE_A_COLUMNS)),
                source_b=parse_amount(first_present(row, SOURCE_B_COLUMNS)),
                remarks="" if remarks is None else str(remarks).strip(),
            )
        )
    return rows


def worksheet_to_imported_rows(
    source: BytesIO | Path | bytes, filename: str | None = None
) -> Sequence[ImportedPeriodRow]:
    return rows_from_dataframe(read_worksheet_raw(source, filename=filename))
