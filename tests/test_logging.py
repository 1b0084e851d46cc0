"""Tests for structured logging.

Verifies that:
- AA_LOG_FORMAT=json produces valid JSON log lines with required fields.
- AA_LOG_FORMAT=text (or unset) produces human-readable output.
- AA_LOG_LEVEL controls the effective log level.
- Startup log includes version and rule counts.
- Request middleware attaches request_id, path, method, status_code, duration_ms.
- Error logs include a ``traceback`` structured field.
"""

from __future__ import annotations

import json
import logging
import sys

import pytest

from agriaccess.logging_config import (
    StructuredJsonFormatter,
    log_startup_info,
    setup_logging,
)


@pytest.fixture(autouse=True)
def _restore_root_logger():
    """setup_logging() rewires the root logger; put it back afterwards."""
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


def _record(msg: str = "hello world", **extra) -> logging.LogRecord:
    record = logging.LogRecord(
        name="agriaccess",
        level=logging.INFO,
        pathname="test.py",
        lineno=1,
        msg=msg,
        args=(),
        exc_info=None,
    )
    for k, v in extra.items():
        setattr(record, k, v)
    return record


# ---------------------------------------------------------------------------
# Unit tests — StructuredJsonFormatter
# ---------------------------------------------------------------------------


class TestStructuredJsonFormatter:
    def test_basic_log_record_is_valid_json(self):
        parsed = json.loads(StructuredJsonFormatter().format(_record()))
        assert parsed["message"] == "hello world"
        assert parsed["levelname"] == "INFO"
        assert parsed["name"] == "agriaccess"
        assert "asctime" in parsed

    def test_request_fields_included(self):
        record = _record(
            request_id="abc123",
            path="/access/route",
            method="POST",
            status_code=200,
            duration_ms=1.5,
        )
        parsed = json.loads(StructuredJsonFormatter().format(record))
        assert parsed["request_id"] == "abc123"
        assert parsed["path"] == "/access/route"
        assert parsed["method"] == "POST"
        assert parsed["status_code"] == 200
        assert parsed["duration_ms"] == 1.5

    def test_audit_fields_included(self):
        record = _record(event_category="audit", action="access_denied")
        parsed = json.loads(StructuredJsonFormatter().format(record))
        assert parsed["event_category"] == "audit"
        assert parsed["action"] == "access_denied"

    def test_arbitrary_extra_fields_included(self):
        record = _record(reason="missing_feature", provider="api_key")
        parsed = json.loads(StructuredJsonFormatter().format(record))
        assert parsed["reason"] == "missing_feature"
        assert parsed["provider"] == "api_key"

    def test_traceback_is_structured(self):
        try:
            raise ValueError("boom")
        except ValueError:
            record = _record("failed")
            record.exc_info = sys.exc_info()
        parsed = json.loads(StructuredJsonFormatter().format(record))
        assert isinstance(parsed["traceback"], list)
        assert any("ValueError: boom" in line for line in parsed["traceback"])


# ---------------------------------------------------------------------------
# setup_logging()
# ---------------------------------------------------------------------------


class TestSetupLogging:
    def test_json_mode(self, monkeypatch):
        monkeypatch.setenv("AA_LOG_FORMAT", "json")
        setup_logging()
        root = logging.getLogger()
        assert len(root.handlers) == 1
        assert isinstance(root.handlers[0].formatter, StructuredJsonFormatter)

    def test_text_mode_default(self, monkeypatch):
        monkeypatch.delenv("AA_LOG_FORMAT", raising=False)
        setup_logging()
        formatter = logging.getLogger().handlers[0].formatter
        assert not isinstance(formatter, StructuredJsonFormatter)

    def test_log_level(self, monkeypatch):
        monkeypatch.setenv("AA_LOG_LEVEL", "WARNING")
        setup_logging()
        assert logging.getLogger().level == logging.WARNING

    def test_invalid_level_falls_back_to_info(self, monkeypatch):
        monkeypatch.setenv("AA_LOG_LEVEL", "CHATTY")
        setup_logging()
        assert logging.getLogger().level == logging.INFO


class TestStartupInfo:
    def test_startup_line(self, caplog, monkeypatch):
        monkeypatch.setenv("AA_STRICT_ROUTES", "true")
        with caplog.at_level(logging.INFO, logger="agriaccess"):
            log_startup_info()
        record = next(r for r in caplog.records if r.getMessage() == "AgriAccess started")
        assert record.version == "0.1.0"
        assert record.route_rules == 24
        assert record.feature_rules == 22
        assert record.strict_routes is True
        assert record.auth_mode == "dev"

    def test_startup_reports_short_strict_flag(self, caplog, monkeypatch):
        monkeypatch.setenv("AA_STRICT_ROUTES", "t")
        with caplog.at_level(logging.INFO, logger="agriaccess"):
            log_startup_info()
        record = next(r for r in caplog.records if r.getMessage() == "AgriAccess started")
        assert record.strict_routes is True


# ---------------------------------------------------------------------------
# Request middleware
# ---------------------------------------------------------------------------


class TestRequestLogging:
    async def test_request_fields_logged(self, client, caplog):
        with caplog.at_level(logging.INFO, logger="agriaccess"):
            resp = await client.get("/roles")
        assert resp.status_code == 200
        assert "X-Request-ID" in resp.headers
        record = next(r for r in caplog.records if getattr(r, "path", None) == "/roles")
        assert record.method == "GET"
        assert record.status_code == 200
        assert record.request_id == resp.headers["X-Request-ID"]
        assert record.duration_ms >= 0
