"""Reconciliation worksheet application use cases."""
from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Sequence

from notice_engine.domain.reconciliation.entities import ImportedPeriodRow, ReconciliationRecord
from notice_engine.domain.reconciliation.services import ImportMergeResult, ReconciliationDiffEngine
from notice_engine.domain.repositories import AuditEntry, AuditTrail, ReconciliationRepository


@dataclass(slots=True)
class SaveWorksheetUseCase:
    repository: ReconciliationRepository
    audit_trail: AuditTrail

    def execute(self, record: ReconciliationRecord, actor: str = "System") -> ReconciliationRecord:
        action = "Create" if record.id is None else "Update"
        stamped = replace(record, updated_at=datetime.now(timezone.utc), last_modified_by=actor)
        saved = self.repository.save_worksheet(stamped)
        self.audit_trail.record(
            AuditEntry(
                entity_type="Reconciliation",
                entity_id=saved.id,
                action=action,
                timestamp=stamped.updated_at,
                actor=actor,
                details=f"{'Created' if action == 'Create' else 'Updated'} {saved.type.value} for {saved.gstin}",
            )
        )
        return saved


@dataclass(slots=True)
class ImportWorksheetUseCase:
    """Merges spreadsheet rows into a stored worksheet and saves the result."""

    repository: ReconciliationRepository
    audit_trail: AuditTrail
    engine: ReconciliationDiffEngine = field(default_factory=ReconciliationDiffEngine)

    def execute(
        self, worksheet_id: int, imported: Sequence[ImportedPeriodRow], actor: str = "System"
    ) -> ImportMergeResult:
        record = self.repository.get_worksheet(worksheet_id)
        merged = self.engine.merge_import(record, imported)
        saved = SaveWorksheetUseCase(self.repository, self.audit_trail).execute(merged.record, actor=actor)
        return replace(merged, record=saved)
