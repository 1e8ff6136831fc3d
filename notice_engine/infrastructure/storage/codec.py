"""JSON-ready encoding of case records and worksheets."""
from __future__ import annotations

from datetime import date, datetime
from typing import Any, Mapping

from notice_engine.domain.models import Defect, Notice, Payment, TaxHead, TaxHeadLedger, TaxHeadValues
from notice_engine.domain.reconciliation.entities import ReconciliationRecord, ReconciliationRow
from notice_engine.domain.services import DefectDemandAggregator

_AGGREGATOR = DefectDemandAggregator()


def _date_or_none(value: Any) -> date | None:
    if not value:
        return None
    return date.fromisoformat(str(value)[:10])


def _iso(value: date | datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def notice_to_dict(notice: Notice) -> dict[str, Any]:
    return {
        "id": notice.id,
        "gstin": notice.gstin,
        "notice_number": notice.notice_number,
        "arn": notice.arn,
        "notice_type": notice.notice_type,
        "section": notice.section,
        "period": notice.period,
        "date_of_issue": _iso(notice.date_of_issue),
        "due_date": _iso(notice.due_date),
        "status": notice.status.value,
        "demand_amount": str(notice.demand_amount),
        "version": notice.version,
    }


def notice_from_dict(raw: Mapping[str, Any]) -> Notice:
    return Notice(
        id=raw.get("id"),
        gstin=raw.get("gstin", ""),
        notice_number=raw.get("notice_number", ""),
        arn=raw.get("arn") or "",
        notice_type=raw.get("notice_type") or "",
        section=raw.get("section") or "",
        period=raw.get("period") or "",
        date_of_issue=_date_or_none(raw.get("date_of_issue")),
        due_date=_date_or_none(raw.get("due_date")),
        status=raw.get("status"),
        demand_amount=raw.get("demand_amount"),
        version=int(raw.get("version", 0)),
    )


def defect_to_dict(defect: Defect) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "id": defect.id,
        "notice_id": defect.notice_id,
        "defect_type": defect.defect_type,
        "section": defect.section,
        "description": defect.description,
        "version": defect.version,
    }
    for head, values in defect.ledger.items():
        payload[head.name.lower()] = values.to_dict()
    payload.update(_AGGREGATOR.recompute_defect_totals(defect).to_dict())
    return payload


def defect_from_dict(raw: Mapping[str, Any]) -> Defect:
    ledger = TaxHeadLedger.from_heads(
        {head: TaxHeadValues.from_mapping(raw.get(head.name.lower())) for head in TaxHead}
    )
    return Defect(
        id=raw.get("id"),
        notice_id=raw["notice_id"],
        defect_type=raw.get("defect_type") or "General",
        ledger=ledger,
        section=raw.get("section") or "",
        description=raw.get("description") or "",
        version=int(raw.get("version", 0)),
    )


def payment_to_dict(payment: Payment) -> dict[str, Any]:
    return {
        "id": payment.id,
        "notice_id": payment.notice_id,
        "defect_id": payment.defect_id,
        "major_head": payment.major_head.value,
        "minor_head": payment.minor_head,
        "amount": str(payment.amount),
        "payment_date": _iso(payment.payment_date),
        "challan_number": payment.challan_number,
    }


def payment_from_dict(raw: Mapping[str, Any]) -> Payment:
    return Payment(
        id=raw.get("id"),
        notice_id=raw["notice_id"],
        defect_id=raw.get("defect_id"),
        major_head=TaxHead(raw.get("major_head") or TaxHead.IGST.value),
        minor_head=raw.get("minor_head") or "Tax",
        amount=raw.get("amount"),
        payment_date=_date_or_none(raw.get("payment_date")),
        challan_number=raw.get("challan_number") or "",
    )


def worksheet_to_dict(record: ReconciliationRecord) -> dict[str, Any]:
    return {
        "id": record.id,
        "gstin": record.gstin,
        "notice_id": record.notice_id,
        "type": record.type.value,
        "financial_year": record.financial_year,
        "rows": [
            {
                "period": row.period,
                "source_a": str(row.source_a),
                "source_b": str(row.source_b),
                "diff": str(row.diff),
                "remarks": row.remarks,
            }
            for row in record.rows
        ],
        "updated_at": _iso(record.updated_at),
        "last_modified_by": record.last_modified_by,
    }


def worksheet_from_dict(raw: Mapping[str, Any]) -> ReconciliationRecord:
    updated_at = raw.get("updated_at")
    return ReconciliationRecord(
        id=raw.get("id"),
        gstin=raw.get("gstin", ""),
        notice_id=raw.get("notice_id"),
        type=raw.get("type"),
        financial_year=raw.get("financial_year", ""),
        rows=tuple(
            ReconciliationRow(
                period=row.get("period", ""),
                source_a=row.get("source_a"),
                source_b=row.get("source_b"),
                remarks=row.get("remarks") or "",
            )
            for row in raw.get("rows", [])
        ),
        updated_at=datetime.fromisoformat(updated_at) if updated_at else None,
        last_modified_by=raw.get("last_modified_by") or "",
    )
