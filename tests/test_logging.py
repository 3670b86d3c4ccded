"""Tests for structured logging configuration."""

import json
import logging
import sys
from unittest.mock import patch

from foodlink.app.core.logging import (
    ContextFilter,
    JSONFormatter,
    get_log_context,
    get_logger,
    get_logging_config,
    setup_logging,
)


def _record(msg: str = "Test message", level: int = logging.INFO, exc_info=None) -> logging.LogRecord:
    return logging.LogRecord(
        name="test",
        level=level,
        pathname="test.py",
        lineno=1,
        msg=msg,
        args=(),
        exc_info=exc_info,
    )


class TestJSONFormatter:
    """Test JSON formatter for structured logging."""

    def test_basic_json_format(self):
        data = json.loads(JSONFormatter().format(_record()))

        assert data["level"] == "INFO"
        assert data["logger"] == "test"
        assert data["message"] == "Test message"
        assert "timestamp" in data
        assert data["source"]["file"] == "test.py"
        assert data["source"]["line"] == 1

    def test_json_format_with_context(self):
        record = _record("Rate limit exceeded")
        record.identifier = "ratelimit:ip:abc"
        record.path = "/reviews"
        record.method = "POST"

        data = json.loads(JSONFormatter().format(record))

        assert data["identifier"] == "ratelimit:ip:abc"
        assert data["path"] == "/reviews"
        assert data["method"] == "POST"

    def test_json_format_with_extra_fields(self):
        record = _record("Custom event")
        record.limit = 10

        data = json.loads(JSONFormatter().format(record))

        assert data["extra"]["limit"] == 10

    def test_none_context_is_omitted(self):
        record = _record()
        ContextFilter().filter(record)

        data = json.loads(JSONFormatter().format(record))

        assert "identifier" not in data
        assert "extra" not in data

    def test_json_format_with_exception(self):
        try:
            raise ValueError("Test error")
        except ValueError:
            record = _record("Error occurred", logging.ERROR, sys.exc_info())

        data = json.loads(JSONFormatter().format(record))

        exception_text = "".join(data["exception"])
        assert "ValueError" in exception_text
        assert "Test error" in exception_text

    def test_json_format_unicode(self):
        data = json.loads(JSONFormatter().format(_record("Despensa de alimentos: ñandú")))
        assert "ñandú" in data["message"]


class TestContextFilter:

    def test_adds_default_fields(self):
        record = _record()
        assert ContextFilter().filter(record) is True
        for field in ("request_id", "identifier", "client_ip", "path", "method", "status_code"):
            assert getattr(record, field) is None

    def test_preserves_existing_values(self):
        record = _record()
        record.path = "/locations"
        ContextFilter().filter(record)
        assert record.path == "/locations"


class TestLoggingConfig:

    def test_text_format(self):
        with patch("foodlink.app.core.logging.settings") as mock_settings:
            mock_settings.log_format = "text"
            mock_settings.log_level = "debug"
            config = get_logging_config()

        assert config["handlers"]["console"]["formatter"] == "standard"
        assert config["loggers"]["foodlink"]["level"] == "DEBUG"
        assert "json" not in config["formatters"]
        assert config["loggers"]["foodlink"]["handlers"] == ["console"]
        assert list(config["handlers"]) == ["console"]

    def test_structured_format(self):
        with patch("foodlink.app.core.logging.settings") as mock_settings:
            mock_settings.log_format = "structured"
            mock_settings.log_level = "INFO"
            config = get_logging_config()

        assert config["handlers"]["console"]["formatter"] == "structured"
        assert "identifier=%(identifier)s" in config["formatters"]["structured"]["format"]

    def test_json_format(self):
        with patch("foodlink.app.core.logging.settings") as mock_settings:
            mock_settings.log_format = "json"
            mock_settings.log_level = "INFO"
            config = get_logging_config()

        assert config["handlers"]["console"]["formatter"] == "json"
        assert config["formatters"]["json"]["()"] == "foodlink.app.core.logging.JSONFormatter"

    def test_setup_logging_applies_config(self):
        with patch("logging.config.dictConfig") as mock_dict_config:
            setup_logging()
        mock_dict_config.assert_called_once()
        assert mock_dict_config.call_args[0][0]["version"] == 1


class TestHelpers:

    def test_get_logger(self):
        assert get_logger("foodlink.test").name == "foodlink.test"
        assert get_logger().name == "foodlink"

    def test_get_log_context_filters_none(self):
        context = get_log_context(identifier="ip:1", path=None, limit=3)
        assert context == {"identifier": "ip:1", "limit": 3}
