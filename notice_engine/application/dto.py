"""Application-level DTOs for interest recompute and defect maintenance."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from notice_engine.domain.models import Defect, Notice


@dataclass(slots=True, frozen=True)
class BulkRecomputeRequest:
    target_date: date
    annual_rate_percent: Decimal | float | int | str
    actor: str = "System"


@dataclass(slots=True, frozen=True)
class BulkRecomputeResult:
    updated_count: int
    defects_updated: int
    target_date: date
    annual_rate_percent: Decimal


@dataclass(slots=True, frozen=True)
class DefectWriteResult:
    defect: Defect | None
    notice: Notice
