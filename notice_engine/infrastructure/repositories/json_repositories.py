"""JSON-file-backed repositories for case records and worksheets."""
from __future__ import annotations

from pathlib import Path

from notice_engine.domain.models import Payment
from notice_engine.domain.reconciliation.entities import ReconciliationRecord
from notice_engine.domain.repositories import ChangeSet
from notice_engine.domain.services import DefectDemandAggregator
from notice_engine.exceptions import InvariantViolationError
from notice_engine.infrastructure.repositories.memory_repositories import (
    InMemoryCaseRepository,
    InMemoryReconciliationRepository,
    _CaseState,
)
from notice_engine.infrastructure.storage.codec import (
    defect_from_dict,
    defect_to_dict,
    notice_from_dict,
    notice_to_dict,
    payment_from_dict,
    payment_to_dict,
    worksheet_from_dict,
    worksheet_to_dict,
)
from notice_engine.infrastructure.storage.json_store import load_document, update_section, write_document
from notice_engine.logging_config import get_logger

logger = get_logger(__name__)


class JsonCaseRepository(InMemoryCaseRepository):
    """Case repository persisted to a single JSON document.

    Every write first reloads the document, so version checks and new ids are
    taken from the file and records committed by other instances are kept.
    The merged sections are then rewritten through an atomic file replace
    before the in-memory state is swapped.

    With ``strict`` a defect whose cached totals disagree with its tax heads
    fails the load instead of being logged.
    """

    def __init__(self, path: Path, *, strict: bool = False) -> None:
        self._path = Path(path)
        self._strict = strict
        super().__init__()
        self._reload(check_drift=True)

    def _reload(self, check_drift: bool = False) -> None:
        document = load_document(self._path)
        aggregator = DefectDemandAggregator()
        notices = {}
        for raw in document.get("notices", []):
            notice = notice_from_dict(raw)
            notices[notice.id] = notice
        defects = {}
        for raw in document.get("defects", []):
            defect = defect_from_dict(raw)
            drifted = aggregator.find_drift(defect, raw) if check_drift else ()
            if drifted and self._strict:
                raise InvariantViolationError("Defect", defect.id, drifted)
            if drifted:
                logger.warning(
                    "Defect %s cached totals disagree with its tax heads: %s",
                    defect.id,
                    ", ".join(drifted),
                    extra={"defect_id": defect.id, "fields": drifted},
                )
            defects[defect.id] = defect
        self._state = _CaseState(notices=notices, defects=defects)
        self._payments = [payment_from_dict(raw) for raw in document.get("payments", [])]

    def apply_changes(self, changes: ChangeSet) -> ChangeSet:
        self._reload()
        return super().apply_changes(changes)

    def add_payment(self, payment: Payment) -> Payment:
        self._reload()
        return super().add_payment(payment)

    def _persist_payments(self, payments: list[Payment]) -> None:
        update_section(self._path, "payments", [payment_to_dict(item) for item in payments])

    def _persist(self, state: _CaseState) -> None:
        document = load_document(self._path)
        document["notices"] = [notice_to_dict(state.notices[key]) for key in sorted(state.notices)]
        document["defects"] = [defect_to_dict(state.defects[key]) for key in sorted(state.defects)]
        document["payments"] = [payment_to_dict(item) for item in self._payments]
        write_document(self._path, document)


class JsonReconciliationRepository(InMemoryReconciliationRepository):
    """Worksheet repository persisted to the ``worksheets`` section of the store.

    Saves reload the section first so worksheets saved by other instances
    are kept.
    """

    def __init__(self, path: Path) -> None:
        self._path = Path(path)
        super().__init__()
        self._reload()

    def _reload(self) -> None:
        document = load_document(self._path)
        worksheets = {}
        for raw in document.get("worksheets", []):
            record = worksheet_from_dict(raw)
            worksheets[record.id] = record
        self._worksheets = worksheets

    def save_worksheet(self, record: ReconciliationRecord) -> ReconciliationRecord:
        self._reload()
        return super().save_worksheet(record)

    def _persist(self, worksheets: dict[int, ReconciliationRecord]) -> None:
        update_section(
            self._path,
            "worksheets",
            [worksheet_to_dict(worksheets[key]) for key in sorted(worksheets)],
        )
