"""Tests for superengulfing.core.logging: JSON formatter and request context."""

from __future__ import annotations

import json
import logging
import sys

from superengulfing.core.logging import JSONFormatter, ctx_path, ctx_request_id, setup_logging


def _record(msg: str = "hello", **extra: object) -> logging.LogRecord:
    record = logging.LogRecord("superengulfing.test", logging.INFO, __file__, 1, msg, None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestJSONFormatter:
    def test_basic_fields(self) -> None:
        payload = json.loads(JSONFormatter().format(_record()))
        assert payload["level"] == "INFO"
        assert payload["logger"] == "superengulfing.test"
        assert payload["message"] == "hello"
        assert "timestamp" in payload

    def test_extras_included(self) -> None:
        record = _record(event="auth_redirect", redirect_to="/am/login", status_code=302)
        payload = json.loads(JSONFormatter().format(record))
        assert payload["event"] == "auth_redirect"
        assert payload["redirect_to"] == "/am/login"
        assert payload["status_code"] == 302

    def test_unknown_extras_skipped(self) -> None:
        payload = json.loads(JSONFormatter().format(_record(secret="x")))
        assert "secret" not in payload

    def test_request_context_attached(self) -> None:
        tok_rid = ctx_request_id.set("abc123")
        tok_path = ctx_path.set("/am/dashboard")
        try:
            payload = json.loads(JSONFormatter().format(_record()))
        finally:
            ctx_request_id.reset(tok_rid)
            ctx_path.reset(tok_path)
        assert payload["request_id"] == "abc123"
        assert payload["path"] == "/am/dashboard"

    def test_armenian_text_not_escaped(self) -> None:
        line = JSONFormatter().format(_record("Գլխավոր"))
        assert "Գլխավոր" in line

    def test_exception_included(self) -> None:
        try:
            raise ValueError("bad")
        except ValueError:
            record = _record()
            record.exc_info = sys.exc_info()
        payload = json.loads(JSONFormatter().format(record))
        assert "ValueError: bad" in payload["exception"]


class TestSetupLogging:
    def test_installs_json_handler(self) -> None:
        root = logging.getLogger()
        saved_handlers, saved_level = root.handlers[:], root.level
        try:
            setup_logging("debug")
            assert root.level == logging.DEBUG
            assert len(root.handlers) == 1
            assert isinstance(root.handlers[0].formatter, JSONFormatter)
            assert logging.getLogger("httpx").level == logging.WARNING
        finally:
            root.handlers[:] = saved_handlers
            root.setLevel(saved_level)
