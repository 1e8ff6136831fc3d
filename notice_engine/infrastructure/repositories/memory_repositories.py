"""In-process repositories for notices, defects, worksheets and audit entries."""
from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Iterable, Optional, Sequence

from notice_engine.domain.models import Defect, Notice, Payment
from notice_engine.domain.reconciliation.entities import ReconciliationRecord
from notice_engine.domain.repositories import (
    AuditEntry,
    AuditTrail,
    CaseRepository,
    ChangeSet,
    NoticePredicate,
    ReconciliationRepository,
)
from notice_engine.exceptions import ConcurrentModificationError, RecordNotFoundError


@dataclass(slots=True)
class _CaseState:
    notices: dict[int, Notice]
    defects: dict[int, Defect]


def _next_id(existing: Iterable[int]) -> int:
    return max(existing, default=0) + 1


def _check_version(entity_type: str, stored: Notice | Defect | None, incoming: Notice | Defect) -> None:
    if stored is None:
        raise RecordNotFoundError(entity_type, incoming.id)
    if stored.version != incoming.version:
        raise ConcurrentModificationError(entity_type, incoming.id, incoming.version, stored.version)


class InMemoryCaseRepository(CaseRepository):
    """Case repository holding records in dictionaries.

    ``apply_changes`` stages every write on a copy of the state and swaps it
    in only once the whole change set has been validated and persisted.
    """

    def __init__(
        self,
        notices: Iterable[Notice] = (),
        defects: Iterable[Defect] = (),
        payments: Iterable[Payment] = (),
    ) -> None:
        self._state = _CaseState(notices={}, defects={})
        self._payments: list[Payment] = []
        for notice in notices:
            self.add_notice(notice)
        for defect in defects:
            self.add_defect(defect)
        for payment in payments:
            self.add_payment(payment)

    def add_notice(self, notice: Notice) -> Notice:
        return self.apply_changes(ChangeSet(notices=(notice,))).notices[0]

    def add_defect(self, defect: Defect) -> Defect:
        return self.apply_changes(ChangeSet(defects=(defect,))).defects[0]

    def add_payment(self, payment: Payment) -> Payment:
        if payment.id is None:
            payment = replace(payment, id=_next_id(p.id for p in self._payments if p.id is not None))
        payments = [*self._payments, payment]
        self._persist_payments(payments)
        self._payments = payments
        return payment

    def get_notice(self, notice_id: int) -> Notice:
        try:
            return self._state.notices[notice_id]
        except KeyError:
            raise RecordNotFoundError("Notice", notice_id) from None

    def list_notices(self, predicate: Optional[NoticePredicate] = None) -> Sequence[Notice]:
        notices = sorted(self._state.notices.values(), key=lambda notice: notice.id)
        if predicate is None:
            return notices
        return [notice for notice in notices if predicate(notice)]

    def get_defect(self, defect_id: int) -> Defect:
        try:
            return self._state.defects[defect_id]
        except KeyError:
            raise RecordNotFoundError("Defect", defect_id) from None

    def list_defects(self, notice_id: int) -> Sequence[Defect]:
        return sorted(
            (defect for defect in self._state.defects.values() if defect.notice_id == notice_id),
            key=lambda defect: defect.id,
        )

    def list_payments(self, notice_id: int) -> Sequence[Payment]:
        return [payment for payment in self._payments if payment.notice_id == notice_id]

    def apply_changes(self, changes: ChangeSet) -> ChangeSet:
        staged, stored = self._stage(changes)
        self._persist(staged)
        self._state = staged
        return stored

    def _stage(self, changes: ChangeSet) -> tuple[_CaseState, ChangeSet]:
        notices = dict(self._state.notices)
        defects = dict(self._state.defects)

        stored_notices: list[Notice] = []
        for notice in changes.notices:
            if notice.id is None:
                saved = replace(notice, id=_next_id(notices), version=0)
            else:
                _check_version("Notice", notices.get(notice.id), notice)
                saved = replace(notice, version=notice.version + 1)
            notices[saved.id] = saved
            stored_notices.append(saved)

        for notice_id in changes.deleted_notice_ids:
            if notice_id not in notices:
                raise RecordNotFoundError("Notice", notice_id)
            del notices[notice_id]
            for defect_id in [key for key, defect in defects.items() if defect.notice_id == notice_id]:
                del defects[defect_id]

        stored_defects: list[Defect] = []
        for defect in changes.defects:
            if defect.notice_id not in notices:
                raise RecordNotFoundError("Notice", defect.notice_id)
            if defect.id is None:
                saved_defect = replace(defect, id=_next_id(defects), version=0)
            else:
                _check_version("Defect", defects.get(defect.id), defect)
                saved_defect = replace(defect, version=defect.version + 1)
            defects[saved_defect.id] = saved_defect
            stored_defects.append(saved_defect)

        for defect_id in changes.deleted_defect_ids:
            if defect_id not in defects:
                raise RecordNotFoundError("Defect", defect_id)
            del defects[defect_id]

        stored = ChangeSet(
            defects=tuple(stored_defects),
            deleted_defect_ids=tuple(changes.deleted_defect_ids),
            notices=tuple(stored_notices),
            deleted_notice_ids=tuple(changes.deleted_notice_ids),
        )
        return _CaseState(notices=notices, defects=defects), stored

    def _persist(self, state: _CaseState) -> None:
        """Hook for durable subclasses; raising here leaves the current state untouched."""

    def _persist_payments(self, payments: list[Payment]) -> None:
        """Hook for durable subclasses."""


class InMemoryReconciliationRepository(ReconciliationRepository):
    def __init__(self, worksheets: Iterable[ReconciliationRecord] = ()) -> None:
        self._worksheets: dict[int, ReconciliationRecord] = {}
        for record in worksheets:
            self.save_worksheet(record)

    def get_worksheet(self, worksheet_id: int) -> ReconciliationRecord:
        try:
            return self._worksheets[worksheet_id]
        except KeyError:
            raise RecordNotFoundError("Reconciliation", worksheet_id) from None

    def save_worksheet(self, record: ReconciliationRecord) -> ReconciliationRecord:
        worksheets = dict(self._worksheets)
        if record.id is None:
            record = replace(record, id=_next_id(worksheets))
        worksheets[record.id] = record
        self._persist(worksheets)
        self._worksheets = worksheets
        return record

    def list_worksheets(self) -> Sequence[ReconciliationRecord]:
        return sorted(self._worksheets.values(), key=lambda record: record.id, reverse=True)

    def _persist(self, worksheets: dict[int, ReconciliationRecord]) -> None:
        """Hook for durable subclasses."""


class InMemoryAuditTrail(AuditTrail):
    def __init__(self) -> None:
        self.entries: list[AuditEntry] = []

    def record(self, entry: AuditEntry) -> None:
        self.entries.append(entry)
