"""Money coercion shared by tax-head ledgers and reconciliation worksheets."""
from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

ZERO = Decimal("0")
WHOLE_UNIT = Decimal("1")

_STRIP_CHARS = (",", "₹", "$", "€", "£", " ")


def parse_amount(value: object) -> Decimal:
    """Parse an operator-entered or imported amount.

    Absent, blank, non-numeric and non-finite values all read as zero.
    Accounting-style ``(1,234)`` reads as negative.
    """
    if value is None or isinstance(value, bool):
        return ZERO
    if isinstance(value, Decimal):
        return value if value.is_finite() else ZERO
    s = str(value).strip()
    if not s or s.upper() in {"NAN", "NONE", "NULL", "-"}:
        return ZERO
    negative = False
    if s.startswith("(") and s.endswith(")"):
        negative = True
        s = s[1:-1]
    for ch in _STRIP_CHARS:
        s = s.replace(ch, "")
    try:
        result = Decimal(s)
    except InvalidOperation:
        return ZERO
    if not result.is_finite():
        return ZERO
    if negative:
        result = -result
    return result


def non_negative(value: object) -> Decimal:
    amount = parse_amount(value)
    return amount if amount > ZERO else ZERO


def round_whole(value: Decimal) -> Decimal:
    """Round to the nearest whole currency unit, halves away from zero."""
    return value.quantize(WHOLE_UNIT, rounding=ROUND_HALF_UP)
