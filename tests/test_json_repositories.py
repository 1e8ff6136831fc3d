import json
import logging
from dataclasses import replace
from datetime import date, datetime, timezone
from decimal import Decimal

import pytest

from notice_engine.application.dto import BulkRecomputeRequest
from notice_engine.application.reconciliation.use_cases import ImportWorksheetUseCase, SaveWorksheetUseCase
from notice_engine.application.use_cases import BulkInterestRecomputeUseCase, CaseContext
from notice_engine.domain.models import Defect, Notice, NoticeStatus, Payment, TaxHeadLedger, TaxHeadValues
from notice_engine.domain.reconciliation.entities import ImportedPeriodRow, ReconciliationType, new_worksheet
from notice_engine.domain.repositories import AuditEntry, ChangeSet
from notice_engine.exceptions import (
    ConcurrentModificationError,
    InvariantViolationError,
    PersistenceFailureError,
    RecordNotFoundError,
)
from notice_engine.infrastructure.audit.jsonl_audit_trail import JsonLinesAuditTrail
from notice_engine.infrastructure.repositories import json_repositories
from notice_engine.infrastructure.repositories.json_repositories import (
    JsonCaseRepository,
    JsonReconciliationRepository,
)
from notice_engine.infrastructure.repositories.memory_repositories import InMemoryAuditTrail


def seed(path):
    repository = JsonCaseRepository(path)
    notice = repository.add_notice(
        Notice(
            id=None,
            gstin="33AAACB1234C1Z5",
            notice_number="DRC-07/19",
            status=NoticeStatus.HEARING,
            due_date=date(2023, 11, 30),
            demand_amount=Decimal("1500"),
        )
    )
    defect = repository.add_defect(
        Defect(
            id=None,
            notice_id=notice.id,
            defect_type="Mismatch",
            ledger=TaxHeadLedger(igst=TaxHeadValues(tax=1000, interest=300), cess=TaxHeadValues(penalty=200)),
        )
    )
    return repository, notice, defect


def test_case_records_survive_reload(tmp_path):
    path = tmp_path / "store.json"
    _, notice, defect = seed(path)

    reloaded = JsonCaseRepository(path)

    assert reloaded.get_notice(notice.id) == notice
    assert reloaded.get_defect(defect.id) == defect
    assert reloaded.get_notice(notice.id).status is NoticeStatus.HEARING


def test_defect_document_carries_cached_totals(tmp_path):
    path = tmp_path / "store.json"
    seed(path)

    [raw] = json.loads(path.read_text(encoding="utf-8"))["defects"]

    assert raw["tax_demand"] == "1000"
    assert raw["interest_demand"] == "300"
    assert raw["penalty_demand"] == "200"
    assert raw["igst"]["interest"] == "300"


def test_drifted_cached_totals_are_logged_and_ignored(tmp_path, caplog):
    path = tmp_path / "store.json"
    _, _, defect = seed(path)
    document = json.loads(path.read_text(encoding="utf-8"))
    document["defects"][0]["interest_demand"] = "9999"
    path.write_text(json.dumps(document), encoding="utf-8")

    with caplog.at_level(logging.WARNING):
        reloaded = JsonCaseRepository(path)

    assert reloaded.get_defect(defect.id).interest_demand == Decimal("300")
    assert any("interest_demand" in record.getMessage() for record in caplog.records)


def test_strict_load_rejects_drifted_totals(tmp_path):
    path = tmp_path / "store.json"
    _, _, defect = seed(path)
    document = json.loads(path.read_text(encoding="utf-8"))
    document["defects"][0]["tax_demand"] = "1"
    path.write_text(json.dumps(document), encoding="utf-8")

    with pytest.raises(InvariantViolationError) as excinfo:
        JsonCaseRepository(path, strict=True)

    assert excinfo.value.entity_id == defect.id
    assert excinfo.value.fields == ("tax_demand",)


def test_failed_write_keeps_file_and_memory_unchanged(tmp_path, monkeypatch):
    path = tmp_path / "store.json"
    repository, notice, _ = seed(path)
    before = path.read_text(encoding="utf-8")

    def broken_write(target, document):
        raise OSError("read-only file system")

    monkeypatch.setattr(json_repositories, "write_document", broken_write)

    with pytest.raises(OSError):
        repository.apply_changes(ChangeSet(deleted_notice_ids=(notice.id,)))

    assert path.read_text(encoding="utf-8") == before
    assert repository.get_notice(notice.id) == notice


def test_corrupt_store_raises_persistence_failure(tmp_path):
    path = tmp_path / "store.json"
    path.write_text("{not json", encoding="utf-8")

    with pytest.raises(PersistenceFailureError):
        JsonCaseRepository(path)


def test_payments_are_persisted(tmp_path):
    path = tmp_path / "store.json"
    repository, notice, _ = seed(path)
    repository.add_payment(Payment(id=None, notice_id=notice.id, amount="500", payment_date=date(2024, 1, 5)))

    [payment] = JsonCaseRepository(path).list_payments(notice.id)

    assert payment.amount == Decimal("500")
    assert payment.id == 1


def test_worksheets_share_the_store_with_case_records(tmp_path):
    path = tmp_path / "store.json"
    _, notice, _ = seed(path)
    audit = InMemoryAuditTrail()
    worksheets = JsonReconciliationRepository(path)

    saved = SaveWorksheetUseCase(worksheets, audit).execute(
        new_worksheet("33AAACB1234C1Z5", ReconciliationType.ITC, "2022-23", notice_id=notice.id), actor="ravi"
    )
    result = ImportWorksheetUseCase(worksheets, audit).execute(
        saved.id, [ImportedPeriodRow(period="October", source_a=Decimal("80"), source_b=Decimal("100"))]
    )

    reloaded = JsonReconciliationRepository(path).get_worksheet(saved.id)
    assert reloaded.rows[6].diff == Decimal("-20")
    assert reloaded.last_modified_by == "System"
    assert result.matched == ("October",)
    assert [entry.action for entry in audit.entries] == ["Create", "Update"]
    assert JsonCaseRepository(path).get_notice(notice.id) == notice


def test_audit_lines_round_trip(tmp_path):
    trail = JsonLinesAuditTrail(tmp_path / "audit" / "audit.jsonl")
    entry = AuditEntry(
        entity_type="System",
        entity_id="BULK_UPDATE",
        action="Update",
        timestamp=datetime(2024, 2, 10, 9, 30, tzinfo=timezone.utc),
        actor="priya",
        details="Bulk Interest Update: 3 notices. Rate: 18%, Target: 2024-02-10",
    )

    trail.record(entry)
    trail.record(entry)

    assert list(trail.iter_entries()) == [entry, entry]
    first_line = (tmp_path / "audit" / "audit.jsonl").read_text(encoding="utf-8").splitlines()[0]
    assert json.loads(first_line)["user"] == "priya"


def test_commit_keeps_records_written_by_another_instance(tmp_path):
    path = tmp_path / "store.json"
    _, first, defect = seed(path)
    stale = JsonCaseRepository(path)
    other = JsonCaseRepository(path)
    second = other.add_notice(Notice(id=None, gstin="33AAACB1234C1Z5", notice_number="DRC-07/20"))

    context = CaseContext(repository=stale, audit_trail=InMemoryAuditTrail())
    result = BulkInterestRecomputeUseCase(context).execute(
        BulkRecomputeRequest(target_date=date(2024, 1, 9), annual_rate_percent="18")
    )

    reloaded = JsonCaseRepository(path)
    assert result.updated_count == 1
    assert [notice.notice_number for notice in reloaded.list_notices()] == ["DRC-07/19", "DRC-07/20"]
    assert reloaded.get_notice(second.id) == second
    # 1000 * 18 * 40 / 36500 = 19.73
    assert reloaded.get_defect(defect.id).ledger.igst.interest == Decimal("20")
    assert reloaded.get_notice(first.id).demand_amount == Decimal("1220")


def test_new_ids_come_from_the_file(tmp_path):
    path = tmp_path / "store.json"
    seed(path)
    stale = JsonCaseRepository(path)
    other = JsonCaseRepository(path)

    from_other = other.add_notice(Notice(id=None, gstin="33AAACB1234C1Z5", notice_number="ASMT-10/1"))
    from_stale = stale.add_notice(Notice(id=None, gstin="33AAACB1234C1Z5", notice_number="ASMT-10/2"))

    assert from_stale.id != from_other.id
    assert len(JsonCaseRepository(path).list_notices()) == 3


def test_version_is_checked_against_the_file(tmp_path):
    path = tmp_path / "store.json"
    _, _, defect = seed(path)
    stale = JsonCaseRepository(path)
    other = JsonCaseRepository(path)
    edited = other.apply_changes(
        ChangeSet(defects=(replace(defect, ledger=TaxHeadLedger(igst=TaxHeadValues(tax=5000))),))
    ).defects[0]

    with pytest.raises(ConcurrentModificationError):
        stale.apply_changes(ChangeSet(defects=(replace(defect, description="stale edit"),)))

    assert JsonCaseRepository(path).get_defect(defect.id) == edited


def test_record_deleted_by_another_instance_is_not_recreated(tmp_path):
    path = tmp_path / "store.json"
    _, notice, _ = seed(path)
    stale = JsonCaseRepository(path)
    JsonCaseRepository(path).apply_changes(ChangeSet(deleted_notice_ids=(notice.id,)))

    with pytest.raises(RecordNotFoundError):
        stale.apply_changes(ChangeSet(notices=(replace(notice, period="2019-20"),)))

    assert JsonCaseRepository(path).list_notices() == []


def test_worksheets_saved_by_another_instance_are_kept(tmp_path):
    path = tmp_path / "store.json"
    first = JsonReconciliationRepository(path)
    second = JsonReconciliationRepository(path)

    a = first.save_worksheet(new_worksheet("33AAACB1234C1Z5", ReconciliationType.TURNOVER, "2023-24"))
    b = second.save_worksheet(new_worksheet("33AAACB1234C1Z5", ReconciliationType.ITC, "2023-24"))

    assert a.id != b.id
    assert {record.id for record in JsonReconciliationRepository(path).list_worksheets()} == {a.id, b.id}
