"""Central configuration for the notice engine package."""
from __future__ import annotations

from dataclasses import dataclass
from decimal import Context, Decimal
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent.parent
DATA_DIR = BASE_DIR / "data"
AUDIT_DIR = DATA_DIR / "audit"
STORE_PATH = DATA_DIR / "store.json"
AUDIT_LOG_PATH = AUDIT_DIR / "audit.jsonl"

# Fiscal-year month order; the worksheet always carries exactly these periods.
FINANCIAL_YEAR_MONTHS = (
    "April",
    "May",
    "June",
    "July",
    "August",
    "September",
    "October",
    "November",
    "December",
    "January",
    "February",
    "March",
)


@dataclass(slots=True, frozen=True)
class Settings:
    decimal_context: Context
    default_interest_rate: Decimal
    interest_day_basis: Decimal
    period_match_mode: str
    financial_year_months: tuple[str, ...]
    store_path: Path
    audit_log_path: Path


SETTINGS = Settings(
    decimal_context=Context(prec=28),
    default_interest_rate=Decimal("18"),
    interest_day_basis=Decimal("36500"),
    period_match_mode="exact",
    financial_year_months=FINANCIAL_YEAR_MONTHS,
    store_path=STORE_PATH,
    audit_log_path=AUDIT_LOG_PATH,
)
