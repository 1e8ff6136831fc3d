"""Domain models for notices, defects and their tax-head breakdown.

Monetary breakdowns are immutable; derived totals are properties computed
from the per-head values so they cannot drift from their components.
"""
from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Iterator, Mapping, Union

from .money import ZERO, non_negative, parse_amount

COMPONENTS = ("tax", "interest", "penalty", "late_fee", "others")


class TaxHead(str, Enum):
    IGST = "IGST"
    CGST = "CGST"
    SGST = "SGST"
    CESS = "Cess"


class NoticeStatus(str, Enum):
    RECEIVED = "Received"
    ASSIGNED = "Assigned"
    DRAFTING = "Drafting"
    FILED = "Reply Filed"
    HEARING = "Hearing Scheduled"
    CLOSED = "Closed"
    APPEAL = "Appeal"


@dataclass(frozen=True)
class CustomStatus:
    """Operator-configured status outside the built-in workflow."""

    label: str

    @property
    def value(self) -> str:
        return self.label


StatusValue = Union[NoticeStatus, CustomStatus]


def parse_status(label: str | NoticeStatus | CustomStatus | None) -> StatusValue:
    if isinstance(label, (NoticeStatus, CustomStatus)):
        return label
    text = (label or "").strip()
    for member in NoticeStatus:
        if member.value.lower() == text.lower():
            return member
    return CustomStatus(text)


def is_closed(status: StatusValue) -> bool:
    return status is NoticeStatus.CLOSED


@dataclass(frozen=True)
class TaxHeadValues:
    """Five non-negative components tracked under one statutory head."""

    tax: Decimal = ZERO
    interest: Decimal = ZERO
    penalty: Decimal = ZERO
    late_fee: Decimal = ZERO
    others: Decimal = ZERO

    def __post_init__(self) -> None:
        for name in COMPONENTS:
            object.__setattr__(self, name, non_negative(getattr(self, name)))

    @classmethod
    def from_mapping(cls, raw: Mapping[str, object] | None) -> "TaxHeadValues":
        raw = raw or {}
        return cls(
            tax=raw.get("tax"),
            interest=raw.get("interest"),
            penalty=raw.get("penalty"),
            late_fee=raw.get("late_fee", raw.get("lateFee")),
            others=raw.get("others"),
        )

    @property
    def total(self) -> Decimal:
        return self.tax + self.interest + self.penalty + self.late_fee + self.others

    def with_interest(self, interest: Decimal) -> "TaxHeadValues":
        return replace(self, interest=interest)

    def to_dict(self) -> dict[str, str]:
        return {name: str(getattr(self, name)) for name in COMPONENTS}


@dataclass(frozen=True)
class TaxHeadLedger:
    """Breakdown of a demand across IGST, CGST, SGST and Cess."""

    igst: TaxHeadValues = field(default_factory=TaxHeadValues)
    cgst: TaxHeadValues = field(default_factory=TaxHeadValues)
    sgst: TaxHeadValues = field(default_factory=TaxHeadValues)
    cess: TaxHeadValues = field(default_factory=TaxHeadValues)

    @classmethod
    def from_heads(cls, heads: Mapping[TaxHead, TaxHeadValues]) -> "TaxHeadLedger":
        return cls(**{head.name.lower(): heads.get(head, TaxHeadValues()) for head in TaxHead})

    def head(self, head: TaxHead) -> TaxHeadValues:
        return getattr(self, head.name.lower())

    def items(self) -> Iterator[tuple[TaxHead, TaxHeadValues]]:
        for head in TaxHead:
            yield head, self.head(head)

    def component_total(self, component: str) -> Decimal:
        if component not in COMPONENTS:
            raise KeyError(component)
        return sum((getattr(values, component) for _, values in self.items()), ZERO)

    @property
    def tax_demand(self) -> Decimal:
        return self.component_total("tax")

    @property
    def interest_demand(self) -> Decimal:
        return self.component_total("interest")

    @property
    def penalty_demand(self) -> Decimal:
        return self.component_total("penalty")

    @property
    def grand_total(self) -> Decimal:
        return sum((values.total for _, values in self.items()), ZERO)

    def with_interest(self, interest: Mapping[TaxHead, Decimal]) -> "TaxHeadLedger":
        heads = {head: values for head, values in self.items()}
        for head, amount in interest.items():
            heads[head] = heads[head].with_interest(amount)
        return TaxHeadLedger.from_heads(heads)


@dataclass(frozen=True)
class Defect:
    """One itemized charge within a notice, owned exclusively by that notice."""

    id: int | None
    notice_id: int
    defect_type: str
    ledger: TaxHeadLedger = field(default_factory=TaxHeadLedger)
    section: str = ""
    description: str = ""
    version: int = 0

    @property
    def tax_demand(self) -> Decimal:
        return self.ledger.tax_demand

    @property
    def interest_demand(self) -> Decimal:
        return self.ledger.interest_demand

    @property
    def penalty_demand(self) -> Decimal:
        return self.ledger.penalty_demand


@dataclass(frozen=True)
class Notice:
    """A tax-authority communication carrying a due date and cached demand."""

    id: int | None
    gstin: str
    notice_number: str
    status: StatusValue = NoticeStatus.RECEIVED
    due_date: date | None = None
    demand_amount: Decimal = ZERO
    arn: str = ""
    notice_type: str = ""
    section: str = ""
    period: str = ""
    date_of_issue: date | None = None
    version: int = 0

    def __post_init__(self) -> None:
        object.__setattr__(self, "status", parse_status(self.status))
        object.__setattr__(self, "demand_amount", parse_amount(self.demand_amount))


@dataclass(frozen=True)
class Payment:
    """Payment logged against a notice; consumed by reports, not by the engine."""

    id: int | None
    notice_id: int
    amount: Decimal
    payment_date: date
    major_head: TaxHead = TaxHead.IGST
    minor_head: str = "Tax"
    challan_number: str = ""
    defect_id: int | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "amount", parse_amount(self.amount))
