import csv
import io
import json
from datetime import date
from decimal import Decimal

import pandas as pd

from notice_engine.cli import main
from notice_engine.domain.models import Defect, Notice, Payment, TaxHeadLedger, TaxHeadValues
from notice_engine.domain.reconciliation.entities import ReconciliationType, new_worksheet
from notice_engine.infrastructure.repositories.json_repositories import (
    JsonCaseRepository,
    JsonReconciliationRepository,
)
from notice_engine.presentation.notice_report import notices_to_rows, outstanding_amount


def seed_store(path):
    repository = JsonCaseRepository(path)
    notice = repository.add_notice(
        Notice(
            id=None,
            gstin="27AAACB1234C1Z5",
            notice_number="DRC-01/2024/1",
            due_date=date(2024, 1, 1),
            demand_amount=Decimal("270000"),
        )
    )
    repository.add_defect(
        Defect(
            id=None,
            notice_id=notice.id,
            defect_type="Excess ITC",
            ledger=TaxHeadLedger(igst=TaxHeadValues(tax=250000, interest=20000)),
        )
    )
    return repository, notice


def base_args(tmp_path):
    return ["--store", str(tmp_path / "store.json"), "--audit-log", str(tmp_path / "audit.jsonl")]


def test_recompute_interest_with_confirmation_flag(tmp_path, capsys):
    _, notice = seed_store(tmp_path / "store.json")

    code = main(base_args(tmp_path) + ["recompute-interest", "--rate", "18", "--target-date", "2024-02-10", "--yes"])

    assert code == 0
    assert "Updated interest for 1 notices" in capsys.readouterr().out
    reloaded = JsonCaseRepository(tmp_path / "store.json")
    assert reloaded.list_defects(notice.id)[0].ledger.igst.interest == Decimal("4932")
    [line] = (tmp_path / "audit.jsonl").read_text(encoding="utf-8").splitlines()
    assert json.loads(line)["entity_id"] == "BULK_UPDATE"


def test_declined_confirmation_changes_nothing(tmp_path, monkeypatch):
    _, notice = seed_store(tmp_path / "store.json")
    monkeypatch.setattr("builtins.input", lambda prompt: "n")

    code = main(base_args(tmp_path) + ["recompute-interest", "--target-date", "2024-02-10"])

    assert code == 1
    reloaded = JsonCaseRepository(tmp_path / "store.json")
    assert reloaded.list_defects(notice.id)[0].ledger.igst.interest == Decimal("20000")
    assert not (tmp_path / "audit.jsonl").exists()


def test_invalid_rate_reports_error_code(tmp_path, capsys):
    seed_store(tmp_path / "store.json")

    code = main(base_args(tmp_path) + ["recompute-interest", "--rate", "0", "--target-date", "2024-02-10", "--yes"])

    assert code == 1
    assert "INVALID_RECOMPUTE_PARAMETERS" in capsys.readouterr().err


def test_malformed_target_date_is_rejected(tmp_path, capsys):
    seed_store(tmp_path / "store.json")

    code = main(base_args(tmp_path) + ["recompute-interest", "--target-date", "10/02/2024", "--yes"])

    assert code == 1
    assert "INVALID_RECOMPUTE_PARAMETERS" in capsys.readouterr().err


def test_recon_import_and_export(tmp_path):
    store = tmp_path / "store.json"
    saved = JsonReconciliationRepository(store).save_worksheet(
        new_worksheet("27AAACB1234C1Z5", ReconciliationType.TURNOVER, "2023-24")
    )
    upload = tmp_path / "upload.xlsx"
    pd.DataFrame({"Period": ["April", "May"], "GSTR-1": [100, 200], "Books": [100, 150]}).to_excel(
        upload, index=False, engine="xlsxwriter"
    )
    out = tmp_path / "out.xlsx"

    assert main(base_args(tmp_path) + ["recon-import", "--worksheet-id", str(saved.id), str(upload)]) == 0
    assert main(base_args(tmp_path) + ["recon-export", "--worksheet-id", str(saved.id), str(out)]) == 0

    frame = pd.read_excel(out, engine="openpyxl")
    assert frame.iloc[-1]["Difference"] == 50
    assert JsonReconciliationRepository(store).get_worksheet(saved.id).rows[1].diff == Decimal("50")


def test_unknown_worksheet_is_reported(tmp_path, capsys):
    code = main(base_args(tmp_path) + ["recon-export", "--worksheet-id", "42", str(tmp_path / "out.xlsx")])

    assert code == 1
    assert "RECORD_NOT_FOUND" in capsys.readouterr().err


def test_notice_report_lists_outstanding_demand(tmp_path, capsys):
    repository, notice = seed_store(tmp_path / "store.json")
    repository.add_payment(Payment(id=None, notice_id=notice.id, amount="70000", payment_date=date(2024, 1, 20)))

    assert main(base_args(tmp_path) + ["notice-report"]) == 0

    [row] = list(csv.DictReader(io.StringIO(capsys.readouterr().out)))
    assert row["paid"] == "70000"
    assert row["outstanding"] == "200000"


def test_outstanding_amount_without_payments_is_demand(tmp_path):
    repository, notice = seed_store(tmp_path / "store.json")

    assert outstanding_amount(notice, []) == Decimal("270000")
    assert notices_to_rows(repository)[0]["status"] == "Received"
