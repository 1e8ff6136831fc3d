"""Domain services implementing interest accrual and demand aggregation."""
from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal, localcontext
from typing import Iterable, Mapping

from notice_engine.config import SETTINGS

from .models import Defect, TaxHead, TaxHeadLedger
from .money import ZERO, non_negative, parse_amount, round_whole
from .results import DefectTotals


def as_calendar_date(value: date | datetime) -> date:
    if isinstance(value, datetime):
        return value.date()
    return value


def elapsed_days(from_date: date | datetime, to_date: date | datetime) -> int:
    """Whole calendar days from ``from_date`` to ``to_date``; time of day is ignored."""
    return (as_calendar_date(to_date) - as_calendar_date(from_date)).days


class InterestAccrualCalculator:
    """Simple interest on a 365-day year, rounded half-up to whole units."""

    def __init__(self, day_basis: Decimal | None = None) -> None:
        if day_basis is None:
            day_basis = SETTINGS.interest_day_basis
        self._day_basis = day_basis

    def compute_interest(
        self,
        principal: object,
        annual_rate_percent: object,
        from_date: date | datetime,
        to_date: date | datetime,
    ) -> Decimal:
        days = elapsed_days(from_date, to_date)
        if days <= 0:
            return ZERO
        return self.interest_for_days(principal, annual_rate_percent, days)

    def interest_for_days(self, principal: object, annual_rate_percent: object, days: int) -> Decimal:
        amount = non_negative(principal)
        if days <= 0 or amount == ZERO:
            return ZERO
        rate = parse_amount(annual_rate_percent)
        with localcontext(SETTINGS.decimal_context):
            raw = amount * rate * Decimal(days) / self._day_basis
        return round_whole(raw)

    def interest_by_head(self, ledger: TaxHeadLedger, annual_rate_percent: object, days: int) -> Mapping[TaxHead, Decimal]:
        """Interest owed under each head, using that head's tax as principal."""
        return {
            head: self.interest_for_days(values.tax, annual_rate_percent, days)
            for head, values in ledger.items()
        }


class DefectDemandAggregator:
    """Derives defect-level totals and a notice's overall demand."""

    def recompute_defect_totals(self, defect: Defect) -> DefectTotals:
        ledger = defect.ledger
        return DefectTotals(
            tax_demand=ledger.tax_demand,
            interest_demand=ledger.interest_demand,
            penalty_demand=ledger.penalty_demand,
            grand_total=ledger.grand_total,
        )

    def recompute_notice_demand(self, defects: Iterable[Defect]) -> Decimal:
        return sum((defect.ledger.grand_total for defect in defects), ZERO)

    def find_drift(self, defect: Defect, cached: Mapping[str, object]) -> tuple[str, ...]:
        """Names of cached total columns that disagree with the defect's ledger."""
        expected = self.recompute_defect_totals(defect)
        drifted = []
        for name in ("tax_demand", "interest_demand", "penalty_demand"):
            if name not in cached:
                continue
            if parse_amount(cached[name]) != getattr(expected, name):
                drifted.append(name)
        return tuple(drifted)
