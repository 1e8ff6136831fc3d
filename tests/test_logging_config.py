import io
import json
import logging
from decimal import Decimal

from notice_engine.exceptions import PersistenceFailureError
from notice_engine.logging_config import configure_logging, get_logger


def test_logger_names_are_namespaced_once():
    assert get_logger("reports").name == "notice_engine.reports"
    assert get_logger("notice_engine.cli").name == "notice_engine.cli"


def test_records_are_json_lines_with_extra_fields():
    stream = io.StringIO()
    configure_logging(level=logging.INFO, stream=stream)

    get_logger("tests").info("recompute finished", extra={"rate": Decimal("18"), "updated": 3})

    payload = json.loads(stream.getvalue().splitlines()[0])
    assert payload["message"] == "recompute finished"
    assert payload["logger"] == "notice_engine.tests"
    assert payload["rate"] == "18"
    assert payload["updated"] == 3


def test_error_code_is_included_for_engine_exceptions():
    stream = io.StringIO()
    configure_logging(level=logging.INFO, stream=stream)

    try:
        raise PersistenceFailureError("disk full", committed=0, planned=2)
    except PersistenceFailureError:
        get_logger("tests").error("commit failed", exc_info=True)

    payload = json.loads(stream.getvalue().splitlines()[0])
    assert payload["exc_code"] == "PERSISTENCE_FAILURE"
    assert payload["exc_type"] == "PersistenceFailureError"


def test_configure_is_idempotent():
    stream = io.StringIO()
    configure_logging(stream=stream)
    configure_logging(stream=stream)

    assert len(logging.getLogger("notice_engine").handlers) == 1
