"""Tax-notice interest accrual, demand aggregation and reconciliation toolkit."""
from notice_engine.application.use_cases import (
    BulkInterestRecomputeUseCase,
    CaseContext,
    RecomputeNoticeInterestUseCase,
)
from notice_engine.domain.reconciliation.services import ReconciliationDiffEngine
from notice_engine.domain.services import DefectDemandAggregator, InterestAccrualCalculator
from notice_engine.infrastructure.repositories.json_repositories import (
    JsonCaseRepository,
    JsonReconciliationRepository,
)
from notice_engine.infrastructure.repositories.memory_repositories import (
    InMemoryAuditTrail,
    InMemoryCaseRepository,
    InMemoryReconciliationRepository,
)

__all__ = [
    "BulkInterestRecomputeUseCase",
    "RecomputeNoticeInterestUseCase",
    "CaseContext",
    "InterestAccrualCalculator",
    "DefectDemandAggregator",
    "ReconciliationDiffEngine",
    "InMemoryCaseRepository",
    "InMemoryReconciliationRepository",
    "InMemoryAuditTrail",
    "JsonCaseRepository",
    "JsonReconciliationRepository",
]
