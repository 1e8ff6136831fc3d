"""Typed exceptions raised by the notice engine.

Every error carries a ``code`` class attribute so callers (CLI, Streamlit
front end) can branch on type and report a stable identifier instead of
parsing messages.

    NoticeEngineError
    +-- InvalidRecomputeParametersError
    +-- RecordNotFoundError
    +-- PersistenceFailureError
    +-- ConcurrencyError
    |   +-- ConcurrentModificationError
    |   +-- BulkRecomputeInProgressError
    +-- InvariantViolationError
    +-- WorksheetError
    |   +-- InvalidRowIndexError
    |   +-- InvalidWorksheetFieldError
    +-- WorksheetImportError
"""
from __future__ import annotations

from typing import Sequence


class NoticeEngineError(Exception):
    """Base exception for all notice engine errors."""

    code: str = "NOTICE_ENGINE_ERROR"


class InvalidRecomputeParametersError(NoticeEngineError):
    """Rate or target date supplied to an interest recompute is unusable."""

    code: str = "INVALID_RECOMPUTE_PARAMETERS"


class RecordNotFoundError(NoticeEngineError):
    code: str = "RECORD_NOT_FOUND"

    def __init__(self, entity_type: str, entity_id: object) -> None:
        self.entity_type = entity_type
        self.entity_id = entity_id
        super().__init__(f"{entity_type} {entity_id} not found")


class PersistenceFailureError(NoticeEngineError):
    """A write to the case repository failed.

    ``committed`` is how many notices were durably updated before the fault,
    ``planned`` how many the batch intended to update.
    """

    code: str = "PERSISTENCE_FAILURE"

    def __init__(self, message: str, *, committed: int = 0, planned: int = 0) -> None:
        self.committed = committed
        self.planned = planned
        super().__init__(message)


class ConcurrencyError(NoticeEngineError):
    code: str = "CONCURRENCY_ERROR"


class ConcurrentModificationError(ConcurrencyError):
    """Optimistic version check failed on a notice or defect."""

    code: str = "CONCURRENT_MODIFICATION"

    def __init__(self, entity_type: str, entity_id: object, expected: int, actual: int) -> None:
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"{entity_type} {entity_id} was modified concurrently "
            f"(expected version {expected}, found {actual})"
        )


class BulkRecomputeInProgressError(ConcurrencyError):
    code: str = "BULK_RECOMPUTE_IN_PROGRESS"

    def __init__(self) -> None:
        super().__init__("Another bulk interest recompute is already running")


class InvariantViolationError(NoticeEngineError):
    """Cached totals disagree with the values they are derived from."""

    code: str = "INVARIANT_VIOLATION"

    def __init__(self, entity_type: str, entity_id: object, fields: Sequence[str]) -> None:
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.fields = tuple(fields)
        super().__init__(f"{entity_type} {entity_id} has drifted totals: {', '.join(self.fields)}")


class WorksheetError(NoticeEngineError):
    code: str = "WORKSHEET_ERROR"


class InvalidRowIndexError(WorksheetError):
    code: str = "INVALID_ROW_INDEX"

    def __init__(self, row_index: int, row_count: int) -> None:
        self.row_index = row_index
        self.row_count = row_count
        super().__init__(f"Row index {row_index} outside 0..{row_count - 1}")


class InvalidWorksheetFieldError(WorksheetError):
    code: str = "INVALID_WORKSHEET_FIELD"

    def __init__(self, field: str) -> None:
        self.field = field
        super().__init__(f"Unknown worksheet field {field!r}")


class WorksheetImportError(NoticeEngineError):
    """Imported spreadsheet has no usable period column or cannot be read."""

    code: str = "WORKSHEET_IMPORT_ERROR"
