"""Domain-level results for demand aggregation."""
from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal


@dataclass(frozen=True)
class DefectTotals:
    """Cached columns persisted alongside a defect for filtering and reports."""

    tax_demand: Decimal
    interest_demand: Decimal
    penalty_demand: Decimal
    grand_total: Decimal

    def to_dict(self) -> dict[str, str]:
        return {
            "tax_demand": str(self.tax_demand),
            "interest_demand": str(self.interest_demand),
            "penalty_demand": str(self.penalty_demand),
        }
