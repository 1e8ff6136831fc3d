"""Command-line entrypoint for interest recompute, worksheet import/export and reports."""
from __future__ import annotations

import argparse
import logging
import sys
from datetime import date
from pathlib import Path

from notice_engine.application.dto import BulkRecomputeRequest
from notice_engine.application.reconciliation.use_cases import ImportWorksheetUseCase
from notice_engine.application.use_cases import BulkInterestRecomputeUseCase, CaseContext
from notice_engine.config import SETTINGS
from notice_engine.exceptions import InvalidRecomputeParametersError, NoticeEngineError
from notice_engine.infrastructure.audit.jsonl_audit_trail import JsonLinesAuditTrail
from notice_engine.infrastructure.parsing.worksheet import worksheet_to_imported_rows
from notice_engine.infrastructure.repositories.json_repositories import (
    JsonCaseRepository,
    JsonReconciliationRepository,
)
from notice_engine.logging_config import configure_logging
from notice_engine.presentation.notice_report import notices_to_rows, render_csv
from notice_engine.presentation.worksheet_export import render_xlsx


def parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Tax notice interest and reconciliation engine")
    parser.add_argument("--store", type=Path, default=SETTINGS.store_path, help="Path to the JSON case store")
    parser.add_argument("--audit-log", type=Path, default=SETTINGS.audit_log_path, help="Path to the audit JSONL file")
    parser.add_argument("--actor", type=str, default="System", help="User recorded in the audit trail")
    parser.add_argument("--log-level", type=str, default="WARNING")
    sub = parser.add_subparsers(dest="command", required=True)

    recompute = sub.add_parser("recompute-interest", help="Recalculate interest for all open notices")
    recompute.add_argument("--rate", type=str, default=str(SETTINGS.default_interest_rate), help="Annual rate in percent")
    recompute.add_argument("--target-date", type=str, help="Calculate up to this date (YYYY-MM-DD); defaults to today")
    recompute.add_argument("--yes", action="store_true", help="Skip the overwrite confirmation prompt")

    recon_import = sub.add_parser("recon-import", help="Merge a spreadsheet into a reconciliation worksheet")
    recon_import.add_argument("--worksheet-id", type=int, required=True)
    recon_import.add_argument("file", type=Path)

    recon_export = sub.add_parser("recon-export", help="Write a reconciliation worksheet to Excel")
    recon_export.add_argument("--worksheet-id", type=int, required=True)
    recon_export.add_argument("out", type=Path)

    report = sub.add_parser("notice-report", help="Demand, paid and outstanding amounts per notice")
    report.add_argument("--out", type=Path, help="Write CSV here instead of stdout")
    return parser.parse_args(argv)


def _confirm(rate: str, target_date: date) -> bool:
    print("This will recalculate interest for ALL open notices (Status != Closed).")
    print(f"  Interest Rate: {rate}%")
    print(f"  Calculation Period: Due Date -> {target_date.isoformat()}")
    answer = input("Existing interest values will be overwritten. Continue? [y/N] ")
    return answer.strip().lower() in {"y", "yes"}


def _recompute_interest(args: argparse.Namespace) -> int:
    try:
        target_date = date.fromisoformat(args.target_date) if args.target_date else date.today()
    except ValueError as exc:
        raise InvalidRecomputeParametersError(f"Target date must be YYYY-MM-DD, got {args.target_date!r}") from exc
    if not args.yes and not _confirm(args.rate, target_date):
        print("Aborted; no notices were changed.")
        return 1

    context = CaseContext(
        repository=JsonCaseRepository(args.store),
        audit_trail=JsonLinesAuditTrail(args.audit_log),
    )
    result = BulkInterestRecomputeUseCase(context).execute(
        BulkRecomputeRequest(target_date=target_date, annual_rate_percent=args.rate, actor=args.actor)
    )
    if result.updated_count:
        print(f"Success! Updated interest for {result.updated_count} notices ({result.defects_updated} defects).")
    else:
        print("No notices required updates.")
    return 0


def _recon_import(args: argparse.Namespace) -> int:
    use_case = ImportWorksheetUseCase(
        repository=JsonReconciliationRepository(args.store),
        audit_trail=JsonLinesAuditTrail(args.audit_log),
    )
    result = use_case.execute(args.worksheet_id, worksheet_to_imported_rows(args.file), actor=args.actor)
    print(f"Imported {len(result.matched)} periods into worksheet {result.record.id}.")
    if result.unmatched:
        print(f"Unchanged periods: {', '.join(result.unmatched)}")
    return 0


def _recon_export(args: argparse.Namespace) -> int:
    record = JsonReconciliationRepository(args.store).get_worksheet(args.worksheet_id)
    args.out.write_bytes(render_xlsx(record))
    print(f"Wrote {args.out}")
    return 0


def _notice_report(args: argparse.Namespace) -> int:
    payload = render_csv(notices_to_rows(JsonCaseRepository(args.store)))
    if args.out:
        args.out.write_bytes(payload)
    else:
        sys.stdout.write(payload.decode("utf-8"))
    return 0


COMMANDS = {
    "recompute-interest": _recompute_interest,
    "recon-import": _recon_import,
    "recon-export": _recon_export,
    "notice-report": _notice_report,
}


def main(argv: list[str] | None = None) -> int:
    args = parse_args(sys.argv[1:] if argv is None else argv)
    configure_logging(level=getattr(logging, args.log_level.upper(), logging.WARNING))
    try:
        return COMMANDS[args.command](args)
    except NoticeEngineError as exc:
        print(f"Error [{exc.code}]: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
