"""Application services orchestrating interest recompute and defect maintenance."""
from __future__ import annotations

import threading
from dataclasses import dataclass, field, replace
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Callable, Sequence

from notice_engine.application.dto import (
    BulkRecomputeRequest,
    BulkRecomputeResult,
    DefectWriteResult,
)
from notice_engine.domain.models import Defect, Notice, is_closed
from notice_engine.domain.money import ZERO, parse_amount
from notice_engine.domain.repositories import AuditEntry, AuditTrail, CaseRepository, ChangeSet
from notice_engine.domain.services import (
    DefectDemandAggregator,
    InterestAccrualCalculator,
    as_calendar_date,
    elapsed_days,
)
from notice_engine.exceptions import (
    BulkRecomputeInProgressError,
    ConcurrencyError,
    InvalidRecomputeParametersError,
    PersistenceFailureError,
    RecordNotFoundError,
)
from notice_engine.logging_config import get_logger

logger = get_logger(__name__)

# One bulk recompute per process; a second caller is rejected, not queued.
_BULK_LOCK = threading.Lock()


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(slots=True)
class CaseContext:
    repository: CaseRepository
    audit_trail: AuditTrail
    calculator: InterestAccrualCalculator = field(default_factory=InterestAccrualCalculator)
    aggregator: DefectDemandAggregator = field(default_factory=DefectDemandAggregator)
    clock: Callable[[], datetime] = _utcnow


def validate_rate(value: object) -> Decimal:
    rate = parse_amount(value)
    if rate <= ZERO:
        raise InvalidRecomputeParametersError(f"Interest rate must be a positive number, got {value!r}")
    return rate


def validate_target_date(value: object) -> date:
    if not isinstance(value, date):
        raise InvalidRecomputeParametersError(f"Target date must be a calendar date, got {value!r}")
    return as_calendar_date(value)


@dataclass(slots=True, frozen=True)
class _NoticePlan:
    notice: Notice
    defects: tuple[Defect, ...]


def _plan_notice_interest(
    context: CaseContext, notice: Notice, target_date: date, rate: Decimal
) -> _NoticePlan | None:
    """Recomputed defects and demand for one notice, or None when nothing changes.

    Notices without a due date, or whose due date is on or after the target
    date, are left alone so stored interest is never reduced or zeroed.
    """
    if notice.due_date is None or notice.id is None:
        return None
    days = elapsed_days(notice.due_date, target_date)
    if days <= 0:
        return None

    current: list[Defect] = []
    changed: list[Defect] = []
    for defect in context.repository.list_defects(notice.id):
        interest = context.calculator.interest_by_head(defect.ledger, rate, days)
        if all(defect.ledger.head(head).interest == amount for head, amount in interest.items()):
            current.append(defect)
            continue
        updated = replace(defect, ledger=defect.ledger.with_interest(interest))
        current.append(updated)
        changed.append(updated)

    if not changed:
        return None
    demand = context.aggregator.recompute_notice_demand(current)
    return _NoticePlan(notice=replace(notice, demand_amount=demand), defects=tuple(changed))


def _commit(context: CaseContext, changes: ChangeSet, planned: int) -> ChangeSet:
    try:
        return context.repository.apply_changes(changes)
    except (ConcurrencyError, RecordNotFoundError, PersistenceFailureError, OSError) as exc:
        logger.error(
            "Case repository rejected change set; 0 of %d notices committed",
            planned,
            extra={"planned": planned, "committed": 0},
            exc_info=True,
        )
        raise PersistenceFailureError(
            f"Failed to commit {planned} notice update(s): {exc}", committed=0, planned=planned
        ) from exc


class BulkInterestRecomputeUseCase:
    """Recomputes interest on every defect of every open notice.

    Existing interest figures, including manual overrides, are overwritten for
    every notice in scope. Callers must obtain operator confirmation first.
    The batch is planned in full and committed as one change set.
    """

    def __init__(self, context: CaseContext) -> None:
        self._context = context

    def execute(self, request: BulkRecomputeRequest) -> BulkRecomputeResult:
        rate = validate_rate(request.annual_rate_percent)
        target_date = validate_target_date(request.target_date)
        if not _BULK_LOCK.acquire(blocking=False):
            raise BulkRecomputeInProgressError()
        try:
            return self._run(target_date, rate, request.actor)
        finally:
            _BULK_LOCK.release()

    def _run(self, target_date: date, rate: Decimal, actor: str) -> BulkRecomputeResult:
        context = self._context
        open_notices = context.repository.list_notices(lambda notice: not is_closed(notice.status))

        plans: list[_NoticePlan] = []
        for notice in open_notices:
            plan = _plan_notice_interest(context, notice, target_date, rate)
            if plan is not None:
                plans.append(plan)

        changes = ChangeSet(
            defects=tuple(defect for plan in plans for defect in plan.defects),
            notices=tuple(plan.notice for plan in plans),
        )
        if not changes.is_empty():
            _commit(context, changes, planned=len(plans))

        result = BulkRecomputeResult(
            updated_count=len(plans),
            defects_updated=len(changes.defects),
            target_date=target_date,
            annual_rate_percent=rate,
        )
        context.audit_trail.record(
            AuditEntry(
                entity_type="System",
                entity_id="BULK_UPDATE",
                action="Update",
                timestamp=context.clock(),
                actor=actor,
                details=(
                    f"Bulk Interest Update: {result.updated_count} notices. "
                    f"Rate: {rate}%, Target: {target_date.isoformat()}"
                ),
            )
        )
        logger.info(
            "Bulk interest recompute finished: %d notices, %d defects",
            result.updated_count,
            result.defects_updated,
            extra={
                "open_notices": len(open_notices),
                "rate": rate,
                "target_date": target_date,
            },
        )
        return result


class RecomputeNoticeInterestUseCase:
    """Recomputes interest for the defects of a single notice."""

    def __init__(self, context: CaseContext) -> None:
        self._context = context

    def execute(self, notice_id: int, request: BulkRecomputeRequest) -> BulkRecomputeResult:
        rate = validate_rate(request.annual_rate_percent)
        target_date = validate_target_date(request.target_date)
        context = self._context
        notice = context.repository.get_notice(notice_id)

        plan = _plan_notice_interest(context, notice, target_date, rate)
        if plan is not None:
            _commit(context, ChangeSet(defects=plan.defects, notices=(plan.notice,)), planned=1)

        context.audit_trail.record(
            AuditEntry(
                entity_type="Notice",
                entity_id=notice_id,
                action="Update",
                timestamp=context.clock(),
                actor=request.actor,
                details=f"Interest Recalculation (Individual Notice) @ {rate}% till {target_date.isoformat()}",
            )
        )
        return BulkRecomputeResult(
            updated_count=0 if plan is None else 1,
            defects_updated=0 if plan is None else len(plan.defects),
            target_date=target_date,
            annual_rate_percent=rate,
        )


def _notice_with_demand(context: CaseContext, notice: Notice, defects: Sequence[Defect]) -> Notice:
    return replace(notice, demand_amount=context.aggregator.recompute_notice_demand(defects))


class SaveDefectUseCase:
    """Creates or updates a defect and restores its notice's demand in one write.

    Moving a defect to another notice also restores the demand of the notice
    it left, in the same change set.
    """

    def __init__(self, context: CaseContext) -> None:
        self._context = context

    def execute(self, defect: Defect, actor: str = "System") -> DefectWriteResult:
        context = self._context
        previous = None if defect.id is None else context.repository.get_defect(defect.id)
        notice = context.repository.get_notice(defect.notice_id)
        siblings = [item for item in context.repository.list_defects(defect.notice_id) if item.id != defect.id]
        notices = [_notice_with_demand(context, notice, [*siblings, defect])]
        if previous is not None and previous.notice_id != defect.notice_id:
            source = context.repository.get_notice(previous.notice_id)
            remaining = [item for item in context.repository.list_defects(source.id) if item.id != defect.id]
            notices.append(_notice_with_demand(context, source, remaining))

        stored = _commit(context, ChangeSet(defects=(defect,), notices=tuple(notices)), planned=len(notices))
        if previous is None:
            details = f"Added Defect: {defect.defect_type}"
        elif previous.notice_id != defect.notice_id:
            details = f"Moved Defect: {defect.defect_type} from notice {previous.notice_id}"
        else:
            details = f"Updated Defect: {defect.defect_type}"
        context.audit_trail.record(
            AuditEntry(
                entity_type="Notice",
                entity_id=defect.notice_id,
                action="Update",
                timestamp=context.clock(),
                actor=actor,
                details=details,
            )
        )
        return DefectWriteResult(defect=stored.defects[0], notice=stored.notices[0])


class DeleteDefectUseCase:
    def __init__(self, context: CaseContext) -> None:
        self._context = context

    def execute(self, defect_id: int, actor: str = "System") -> DefectWriteResult:
        context = self._context
        defect = context.repository.get_defect(defect_id)
        notice = context.repository.get_notice(defect.notice_id)
        remaining = [item for item in context.repository.list_defects(notice.id) if item.id != defect_id]
        updated_notice = _notice_with_demand(context, notice, remaining)

        stored = _commit(
            context,
            ChangeSet(deleted_defect_ids=(defect_id,), notices=(updated_notice,)),
            planned=1,
        )
        context.audit_trail.record(
            AuditEntry(
                entity_type="Notice",
                entity_id=notice.id,
                action="Update",
                timestamp=context.clock(),
                actor=actor,
                details=f"Deleted Defect #{defect_id}",
            )
        )
        return DefectWriteResult(defect=None, notice=stored.notices[0])


class DeleteNoticeUseCase:
    """Deletes a notice together with every defect it owns."""

    def __init__(self, context: CaseContext) -> None:
        self._context = context

    def execute(self, notice_id: int, actor: str = "System") -> None:
        context = self._context
        notice = context.repository.get_notice(notice_id)
        _commit(context, ChangeSet(deleted_notice_ids=(notice_id,)), planned=1)
        context.audit_trail.record(
            AuditEntry(
                entity_type="Notice",
                entity_id=notice_id,
                action="Delete",
                timestamp=context.clock(),
                actor=actor,
                details=f"Deleted notice {notice.notice_number}",
            )
        )
