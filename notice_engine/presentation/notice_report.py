"""Outstanding-demand report generators for notices."""
from __future__ import annotations

import csv
import io
from decimal import Decimal
from typing import Sequence

from notice_engine.domain.models import Notice, Payment
from notice_engine.domain.money import ZERO
from notice_engine.domain.repositories import CaseRepository


def outstanding_amount(notice: Notice, payments: Sequence[Payment]) -> Decimal:
    return notice.demand_amount - sum((payment.amount for payment in payments), ZERO)


def notices_to_rows(repository: CaseRepository, notices: Sequence[Notice] | None = None) -> list[dict[str, str]]:
    rows: list[dict[str, str]] = []
    for notice in notices if notices is not None else repository.list_notices():
        payments = repository.list_payments(notice.id)
        paid = sum((payment.amount for payment in payments), ZERO)
        rows.append(
            {
                "notice_id": str(notice.id),
                "gstin": notice.gstin,
                "notice_number": notice.notice_number,
                "status": notice.status.value,
                "due_date": notice.due_date.isoformat() if notice.due_date else "",
                "demand_amount": str(notice.demand_amount),
                "paid": str(paid),
                "outstanding": str(outstanding_amount(notice, payments)),
            }
        )
    return rows


def render_csv(rows: Sequence[dict[str, str]]) -> bytes:
    buffer = io.StringIO()
    writer = csv.DictWriter(buffer, fieldnames=list(rows[0].keys()) if rows else [])
    if rows:
        writer.writeheader()
        writer.writerows(rows)
    return buffer.getvalue().encode("utf-8")
