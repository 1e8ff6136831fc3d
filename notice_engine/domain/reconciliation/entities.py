"""Reconciliation worksheet entities comparing two reported figures per period."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Sequence, Union

from notice_engine.config import SETTINGS
from notice_engine.domain.money import ZERO, parse_amount


class ReconciliationType(str, Enum):
    TURNOVER = "Turnover (GSTR-1 vs Books)"
    TAX_LIABILITY = "Tax Liability (GSTR-3B vs Books)"
    ITC = "ITC (GSTR-2B vs Books)"
    EWAY_BILL = "E-Way Bill vs GSTR-1"


@dataclass(frozen=True)
class CustomReconciliationType:
    label: str

    @property
    def value(self) -> str:
        return self.label


WorksheetType = Union[ReconciliationType, CustomReconciliationType]


def parse_worksheet_type(label: str | WorksheetType | None) -> WorksheetType:
    if isinstance(label, (ReconciliationType, CustomReconciliationType)):
        return label
    text = (label or "").strip()
    for member in ReconciliationType:
        if member.value.lower() == text.lower():
            return member
    return CustomReconciliationType(text or "Custom")


@dataclass(frozen=True)
class ReconciliationRow:
    """One period of a worksheet; ``diff`` always follows the two sources."""

    period: str
    source_a: Decimal = ZERO
    source_b: Decimal = ZERO
    remarks: str = ""

    def __post_init__(self) -> None:
        object.__setattr__(self, "source_a", parse_amount(self.source_a))
        object.__setattr__(self, "source_b", parse_amount(self.source_b))
        object.__setattr__(self, "remarks", "" if self.remarks is None else str(self.remarks))

    @property
    def diff(self) -> Decimal:
        return self.source_a - self.source_b


@dataclass(frozen=True)
class ReconciliationRecord:
    id: int | None
    gstin: str
    type: WorksheetType
    financial_year: str
    rows: Sequence[ReconciliationRow]
    notice_id: int | None = None
    updated_at: datetime | None = None
    last_modified_by: str = ""

    def __post_init__(self) -> None:
        object.__setattr__(self, "type", parse_worksheet_type(self.type))
        object.__setattr__(self, "rows", tuple(self.rows))


@dataclass(frozen=True)
class ImportedPeriodRow:
    """Shape supplied by the spreadsheet import collaborator."""

    period: str
    source_a: Decimal = ZERO
    source_b: Decimal = ZERO
    remarks: str = ""


def new_worksheet(
    gstin: str,
    worksheet_type: str | WorksheetType = ReconciliationType.TURNOVER,
    financial_year: str = "",
    notice_id: int | None = None,
    periods: Sequence[str] | None = None,
) -> ReconciliationRecord:
    periods = SETTINGS.financial_year_months if periods is None else periods
    return ReconciliationRecord(
        id=None,
        gstin=gstin,
        type=parse_worksheet_type(worksheet_type),
        financial_year=financial_year,
        rows=tuple(ReconciliationRow(period=period) for period in periods),
        notice_id=notice_id,
    )
