"""
Tests for structured logging.
"""
import json
import sys
from datetime import datetime, timezone
from types import SimpleNamespace

import pytest
from loguru import logger

from bqtables.shared_logging import create_structured_log, get_app_name, log_with_context
from bqtables.utils import logger as app_logger


def _record(message="Created table p.d.events", exception=None, extra=None):
    return {
        "time": datetime(2024, 1, 15, 12, 0, tzinfo=timezone.utc),
        "level": SimpleNamespace(name="WARNING"),
        "message": message,
        "file": SimpleNamespace(name="admin.py"),
        "line": 42,
        "function": "create_table",
        "name": "bqtables.utils.bigquery.admin",
        "exception": exception,
        "extra": extra or {},
    }


class TestStructuredLog:
    """Test Cloud Logging JSON entries."""

    def test_basic_entry(self):
        entry = json.loads(create_structured_log(_record(extra={"table_id": "p.d.events"})))

        assert entry["severity"] == "WARNING"
        assert entry["message"] == "Created table p.d.events"
        assert entry["sourceLocation"] == {"file": "admin.py", "line": 42, "function": "create_table"}
        assert entry["module"] == "bqtables.utils.bigquery.admin"
        assert entry["extra"] == {"table_id": "p.d.events"}
        assert "exception" not in entry

    def test_exception_entry(self):
        try:
            raise RuntimeError("copy failed")
        except RuntimeError:
            exc_info = sys.exc_info()

        entry = json.loads(create_structured_log(_record(exception=exc_info)))

        assert entry["exception"]["type"] == "RuntimeError"
        assert entry["exception"]["message"] == "copy failed"
        assert "Traceback" in entry["exception"]["traceback"]
        assert "RuntimeError: copy failed" in entry["message"]


class TestLogWithContext:
    """Test level selection and context binding."""

    @pytest.fixture
    def captured(self):
        messages = []
        handler_id = logger.add(messages.append, level="DEBUG")
        yield messages
        logger.remove(handler_id)

    def test_level_and_context(self, captured):
        log_with_context("Copy submitted", level="warning", table_id="p.d.events")

        record = captured[-1].record
        assert record["level"].name == "WARNING"
        assert record["extra"]["table_id"] == "p.d.events"

    def test_unknown_level_logs_info(self, captured):
        log_with_context("Partition summary fetched", level="verbose")

        assert captured[-1].record["level"].name == "INFO"


class TestAppLoggerError:
    """Test source location and tracebacks of error()."""

    @pytest.fixture
    def captured(self):
        messages = []
        handler_id = logger.add(messages.append, level="DEBUG")
        yield messages
        logger.remove(handler_id)

    def test_error_outside_except(self, captured):
        app_logger.error("Copy rejected")

        record = captured[-1].record
        assert record["function"] == "test_error_outside_except"
        assert record["exception"] is None

    def test_error_inside_except_reports_caller(self, captured):
        try:
            raise RuntimeError("copy failed")
        except RuntimeError:
            app_logger.error("Copy rejected", table_id="p.d.events")

        record = captured[-1].record
        assert record["function"] == "test_error_inside_except_reports_caller"
        assert record["file"].name == "test_logging.py"
        assert record["exception"].type is RuntimeError
        assert record["extra"]["table_id"] == "p.d.events"


def test_app_name_from_environment(monkeypatch):
    monkeypatch.delenv("K_SERVICE", raising=False)
    monkeypatch.setenv("APP_NAME", "nightly-copy")

    assert get_app_name() == "nightly-copy"
