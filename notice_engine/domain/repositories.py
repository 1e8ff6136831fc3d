"""Repository interfaces anchoring the domain layer."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Optional, Protocol, Sequence

from .models import Defect, Notice, Payment
from .reconciliation.entities import ReconciliationRecord

NoticePredicate = Callable[[Notice], bool]


@dataclass(frozen=True)
class ChangeSet:
    """Writes a case repository must apply all-or-nothing.

    ``version`` on each saved record is the version the writer read; the
    repository rejects the whole set if any stored version has moved on.
    """

    defects: Sequence[Defect] = field(default_factory=tuple)
    deleted_defect_ids: Sequence[int] = field(default_factory=tuple)
    notices: Sequence[Notice] = field(default_factory=tuple)
    deleted_notice_ids: Sequence[int] = field(default_factory=tuple)

    def is_empty(self) -> bool:
        return not (self.defects or self.deleted_defect_ids or self.notices or self.deleted_notice_ids)


@dataclass(frozen=True)
class AuditEntry:
    entity_type: str
    entity_id: object
    action: str
    timestamp: datetime
    actor: str
    details: str


class NoticeRepository(Protocol):
    """Provides notices."""

    def get_notice(self, notice_id: int) -> Notice:
        ...

    def list_notices(self, predicate: Optional[NoticePredicate] = None) -> Sequence[Notice]:
        ...


class DefectRepository(Protocol):
    """Provides defects grouped by owning notice."""

    def get_defect(self, defect_id: int) -> Defect:
        ...

    def list_defects(self, notice_id: int) -> Sequence[Defect]:
        ...


class CaseRepository(NoticeRepository, DefectRepository, Protocol):
    """Notices, their defects and payments, with atomic multi-record writes."""

    def apply_changes(self, changes: ChangeSet) -> ChangeSet:
        """Apply every write or none; returns the stored records with ids and versions."""
        ...

    def list_payments(self, notice_id: int) -> Sequence[Payment]:
        ...


class ReconciliationRepository(Protocol):
    def get_worksheet(self, worksheet_id: int) -> ReconciliationRecord:
        ...

    def save_worksheet(self, record: ReconciliationRecord) -> ReconciliationRecord:
        ...

    def list_worksheets(self) -> Sequence[ReconciliationRecord]:
        ...


class AuditTrail(Protocol):
    """Append-only store of audit entries, one per logical operation."""

    def record(self, entry: AuditEntry) -> None:
        ...
