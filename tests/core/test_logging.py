"""Tests for structured logging."""

from __future__ import annotations

import json
import logging
import sys

from personapass.core.logging import (
    JSONFormatter,
    StandardFormatter,
    configure_logging,
    correlation_context,
    get_correlation_id,
    redact,
)


def make_record(msg: str = "hello %s", args=("world",), level: int = logging.INFO) -> logging.LogRecord:
    return logging.LogRecord("personapass.test", level, __file__, 10, msg, args, None)


class TestCorrelation:
    def test_unbound_by_default(self):
        assert get_correlation_id() is None

    def test_context_binds_and_resets(self):
        with correlation_context("abc-123") as cid:
            assert cid == "abc-123"
            assert get_correlation_id() == "abc-123"
        assert get_correlation_id() is None

    def test_generates_id(self):
        with correlation_context() as cid:
            assert len(cid) == 36

    def test_nesting(self):
        with correlation_context("outer"):
            with correlation_context("inner"):
                assert get_correlation_id() == "inner"
            assert get_correlation_id() == "outer"


class TestRedact:
    def test_masks_sensitive_keys(self):
        data = {"did": "did:x", "signature": "0xsig", "Code": "123456", "nested": {"secret": "S"}}
        assert redact(data) == {
            "did": "did:x",
            "signature": "[REDACTED]",
            "Code": "[REDACTED]",
            "nested": {"secret": "[REDACTED]"},
        }

    def test_lists(self):
        assert redact([{"token": "t"}, "plain"]) == [{"token": "[REDACTED]"}, "plain"]

    def test_truncates_long_strings(self):
        result = redact("x" * 600)
        assert len(result) == 503
        assert result.endswith("...")

    def test_input_not_mutated(self):
        data = {"api_key": "k"}
        redact(data)
        assert data == {"api_key": "k"}


class TestJSONFormatter:
    def test_basic_fields(self):
        data = json.loads(JSONFormatter().format(make_record()))
        assert data["level"] == "INFO"
        assert data["logger"] == "personapass.test"
        assert data["message"] == "hello world"
        assert "source" not in data
        assert "correlation_id" not in data

    def test_warning_includes_source(self):
        data = json.loads(JSONFormatter().format(make_record(level=logging.WARNING)))
        assert data["source"]["line"] == 10

    def test_correlation_id(self):
        with correlation_context("cid-1"):
            data = json.loads(JSONFormatter().format(make_record()))
        assert data["correlation_id"] == "cid-1"

    def test_extra_data_is_redacted(self):
        record = make_record()
        record.extra_data = {"did": "did:x", "signature": "0xsig"}
        data = json.loads(JSONFormatter().format(record))
        assert data["extra"] == {"did": "did:x", "signature": "[REDACTED]"}

    def test_exception(self):
        try:
            raise ValueError("boom")
        except ValueError:
            record = logging.LogRecord("t", logging.ERROR, __file__, 1, "failed", (), sys.exc_info())
        data = json.loads(JSONFormatter().format(record))
        assert "ValueError: boom" in data["exception"]


class TestStandardFormatter:
    def test_plain_output(self):
        output = StandardFormatter(use_colors=False).format(make_record())
        assert "personapass.test - INFO - hello world" in output

    def test_correlation_prefix_does_not_leak(self):
        record = make_record()
        with correlation_context("abcdef123456"):
            output = StandardFormatter(use_colors=False).format(record)
        assert "[abcdef12] hello world" in output
        assert record.msg == "hello %s"


class TestConfigureLogging:
    def test_text_handler(self, restore_root_logger, clean_env):
        configure_logging(level="DEBUG", json_format=False)
        assert restore_root_logger.level == logging.DEBUG
        assert len(restore_root_logger.handlers) == 1
        assert isinstance(restore_root_logger.handlers[0].formatter, StandardFormatter)

    def test_json_from_settings(self, restore_root_logger, monkeypatch, clean_env):
        monkeypatch.setenv("PERSONAPASS_LOG_FORMAT", "json")
        monkeypatch.setenv("PERSONAPASS_LOG_LEVEL", "WARNING")
        configure_logging()
        assert restore_root_logger.level == logging.WARNING
        assert isinstance(restore_root_logger.handlers[0].formatter, JSONFormatter)

    def test_log_file(self, restore_root_logger, clean_env, tmp_path):
        log_file = tmp_path / "personapass.log"
        configure_logging(level="INFO", json_format=False, log_file=str(log_file))
        logging.getLogger("personapass.test").info("to file")
        for handler in restore_root_logger.handlers:
            handler.flush()
        line = json.loads(log_file.read_text().splitlines()[-1])
        assert line["message"] == "to file"

    def test_quiets_http_libraries(self, restore_root_logger, clean_env):
        configure_logging(level="DEBUG", json_format=False)
        assert logging.getLogger("httpx").level == logging.WARNING
