"""Tests for structured logging configuration."""

import json
import logging
import sys

from school.app.core.config import settings
from school.app.core.logging import (
    ContextFilter,
    JSONFormatter,
    get_log_context,
    get_logger,
    get_logging_config,
)


def _record(msg: str = "Test message", **extra) -> logging.LogRecord:
    record = logging.LogRecord(
        name="school.test",
        level=logging.INFO,
        pathname="test.py",
        lineno=1,
        msg=msg,
        args=(),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestJSONFormatter:
    """Test JSON formatter for structured logging."""

    def test_basic_json_format(self):
        data = json.loads(JSONFormatter().format(_record()))

        assert data["level"] == "INFO"
        assert data["logger"] == "school.test"
        assert data["message"] == "Test message"
        assert "timestamp" in data
        assert data["source"]["file"] == "test.py"
        assert data["source"]["line"] == 1

    def test_context_fields_promoted(self):
        record = _record(request_id="req-1", client_ip="10.0.0.1", user_id=7, role="teacher")
        data = json.loads(JSONFormatter().format(record))

        assert data["request_id"] == "req-1"
        assert data["client_ip"] == "10.0.0.1"
        assert data["user_id"] == 7
        assert data["role"] == "teacher"
        assert "extra" not in data

    def test_unset_context_fields_omitted(self):
        record = _record()
        ContextFilter().filter(record)
        data = json.loads(JSONFormatter().format(record))
        assert "request_id" not in data
        assert "status_code" not in data

    def test_unknown_extra_fields_nested(self):
        data = json.loads(JSONFormatter().format(_record(classroom_id=3)))
        assert data["extra"] == {"classroom_id": 3}

    def test_exception_included(self):
        try:
            raise ValueError("boom")
        except ValueError:
            record = logging.LogRecord(
                name="school.test",
                level=logging.ERROR,
                pathname="test.py",
                lineno=1,
                msg="failed",
                args=(),
                exc_info=sys.exc_info(),
            )
        data = json.loads(JSONFormatter().format(record))
        assert any("ValueError: boom" in line for line in data["exception"])


class TestContextFilter:
    """Test the context defaults filter."""

    def test_fills_missing_fields(self):
        record = _record()
        assert ContextFilter().filter(record) is True
        assert record.request_id is None
        assert record.user_id is None

    def test_keeps_existing_fields(self):
        record = _record(request_id="abc")
        ContextFilter().filter(record)
        assert record.request_id == "abc"


class TestLoggingConfig:
    """Test dictConfig generation."""

    def test_text_format_uses_standard_formatter(self, monkeypatch):
        monkeypatch.setattr(settings, "log_format", "text")
        config = get_logging_config()
        assert config["handlers"]["console"]["formatter"] == "standard"
        assert "json" not in config["formatters"]

    def test_json_format(self, monkeypatch):
        monkeypatch.setattr(settings, "log_format", "json")
        config = get_logging_config()
        assert config["handlers"]["console"]["formatter"] == "json"
        assert config["formatters"]["json"]["()"] == "school.app.core.logging.JSONFormatter"

    def test_structured_format(self, monkeypatch):
        monkeypatch.setattr(settings, "log_format", "structured")
        config = get_logging_config()
        assert config["handlers"]["console"]["formatter"] == "structured"
        assert "request_id" in config["formatters"]["structured"]["format"]

    def test_level_follows_settings(self, monkeypatch):
        monkeypatch.setattr(settings, "log_level", "debug")
        config = get_logging_config()
        assert config["loggers"]["school"]["level"] == "DEBUG"


def test_get_log_context_drops_none():
    ctx = get_log_context(request_id="abc", user_id=None, role="admin", path="/v1/execs")
    assert ctx == {"request_id": "abc", "role": "admin", "path": "/v1/execs"}


def test_get_logger_default_name():
    assert get_logger().name == "school"
