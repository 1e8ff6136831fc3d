"""Per-period variance rules for reconciliation worksheets."""
from __future__ import annotations

import re
from dataclasses import dataclass, replace
from decimal import Decimal
from enum import Enum
from typing import Sequence

from notice_engine.config import SETTINGS
from notice_engine.domain.money import ZERO, parse_amount
from notice_engine.exceptions import InvalidRowIndexError, InvalidWorksheetFieldError

from .entities import ImportedPeriodRow, ReconciliationRecord, ReconciliationRow

EDITABLE_FIELDS = ("source_a", "source_b", "remarks")


class PeriodMatchMode(str, Enum):
    EXACT = "exact"
    SUBSTRING = "substring"


@dataclass(frozen=True)
class ReconciliationTotals:
    sum_a: Decimal
    sum_b: Decimal
    sum_diff: Decimal


@dataclass(frozen=True)
class ImportMergeResult:
    record: ReconciliationRecord
    matched: tuple[str, ...]
    unmatched: tuple[str, ...]


def _normalize_period(label: object) -> str:
    return re.sub(r"\s+", " ", str(label or "")).strip().lower()


def period_matches(canonical: str, imported: object, mode: PeriodMatchMode) -> bool:
    """Whether an imported period label refers to the canonical period.

    Exact mode accepts the bare name or the name followed by a separator and
    a suffix (``April-2023``, ``april 2023``). Substring mode is the legacy
    heuristic where any label containing the name matches.
    """
    wanted = _normalize_period(canonical)
    label = _normalize_period(imported)
    if not wanted or not label:
        return False
    if mode is PeriodMatchMode.SUBSTRING:
        return wanted in label
    if label == wanted:
        return True
    return re.match(rf"{re.escape(wanted)}[\s\-/_,'.]", label) is not None


class ReconciliationDiffEngine:
    """Applies cell edits and imports to worksheets and folds their totals."""

    def __init__(self, match_mode: PeriodMatchMode | str | None = None) -> None:
        if match_mode is None:
            match_mode = SETTINGS.period_match_mode
        self._match_mode = PeriodMatchMode(match_mode)

    def set_cell(self, record: ReconciliationRecord, row_index: int, field: str, value: object) -> ReconciliationRecord:
        if field not in EDITABLE_FIELDS:
            raise InvalidWorksheetFieldError(field)
        rows = list(record.rows)
        if not 0 <= row_index < len(rows):
            raise InvalidRowIndexError(row_index, len(rows))
        if field == "remarks":
            updated = replace(rows[row_index], remarks="" if value is None else str(value))
        else:
            updated = replace(rows[row_index], **{field: parse_amount(value)})
        rows[row_index] = updated
        return replace(record, rows=tuple(rows))

    @staticmethod
    def totals(record: ReconciliationRecord) -> ReconciliationTotals:
        sum_a = sum((row.source_a for row in record.rows), ZERO)
        sum_b = sum((row.source_b for row in record.rows), ZERO)
        return ReconciliationTotals(sum_a=sum_a, sum_b=sum_b, sum_diff=sum_a - sum_b)

    def merge_import(self, record: ReconciliationRecord, imported: Sequence[ImportedPeriodRow]) -> ImportMergeResult:
        rows: list[ReconciliationRow] = []
        matched: list[str] = []
        unmatched: list[str] = []
        for row in record.rows:
            found = next(
                (item for item in imported if period_matches(row.period, item.period, self._match_mode)),
                None,
            )
            if found is None:
                rows.append(row)
                unmatched.append(row.period)
                continue
            rows.append(
                ReconciliationRow(
                    period=row.period,
                    source_a=found.source_a,
                    source_b=found.source_b,
                    remarks=found.remarks,
                )
            )
            matched.append(row.period)
        return ImportMergeResult(
            record=replace(record, rows=tuple(rows)),
            matched=tuple(matched),
            unmatched=tuple(unmatched),
        )
