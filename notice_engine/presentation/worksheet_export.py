"""Worksheet export as tabular rows and Excel workbooks."""
from __future__ import annotations

from io import BytesIO

import pandas as pd

from notice_engine.domain.reconciliation.entities import ReconciliationRecord
from notice_engine.domain.reconciliation.services import ReconciliationDiffEngine

SHEET_NAME = "Reconciliation"


def source_a_label(record: ReconciliationRecord) -> str:
    label = record.type.value
    if "GSTR-1" in label:
        return "GSTR-1"
    if "GSTR-3B" in label:
        return "GSTR-3B"
    return "Portal"


def worksheet_to_rows(record: ReconciliationRecord) -> list[dict[str, object]]:
    """Period rows followed by a TOTAL row; amounts stay as Decimal."""
    column_a = source_a_label(record)
    rows: list[dict[str, object]] = [
        {
            "Period": row.period,
            column_a: row.source_a,
            "Books": row.source_b,
            "Difference": row.diff,
            "Remarks": row.remarks,
        }
        for row in record.rows
    ]
    totals = ReconciliationDiffEngine.totals(record)
    rows.append(
        {
            "Period": "TOTAL",
            column_a: totals.sum_a,
            "Books": totals.sum_b,
            "Difference": totals.sum_diff,
            "Remarks": "",
        }
    )
    return rows


def export_filename(record: ReconciliationRecord) -> str:
    return f"Recon_{record.gstin}_{record.financial_year}.xlsx"


def render_xlsx(record: ReconciliationRecord) -> bytes:
    frame = pd.DataFrame(worksheet_to_rows(record))
    for column in frame.columns:
        if column not in ("Period", "Remarks"):
            frame[column] = frame[column].astype(float)
    buffer = BytesIO()
    with pd.ExcelWriter(buffer, engine="xlsxwriter") as writer:
        frame.to_excel(writer, sheet_name=SHEET_NAME, index=False)
    return buffer.getvalue()
