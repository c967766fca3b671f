# tests/unit/logging/test_logger.py — v1
"""Tests for logging/logger.py — logger factory and formatters."""

from __future__ import annotations

import json
import logging
import sys

from markxiv.logging.context import clear_context, set_document_context, set_stage
from markxiv.logging.logger import JsonFormatter, TextFormatter, get_logger, setup_logging


def _record(msg: str = "Hello", exc_info=None) -> logging.LogRecord:
    return logging.LogRecord(
        name="test", level=logging.INFO, pathname="", lineno=0,
        msg=msg, args=(), exc_info=exc_info,
    )


class TestJsonFormatter:
    def setup_method(self):
        clear_context()

    def teardown_method(self):
        clear_context()

    def test_format_basic(self):
        parsed = json.loads(JsonFormatter().format(_record()))
        assert parsed["level"] == "INFO"
        assert parsed["message"] == "Hello"
        assert "timestamp" in parsed
        assert "context" not in parsed

    def test_format_with_context(self):
        set_document_context("1601.00001", "run1")
        set_stage("convert")
        parsed = json.loads(JsonFormatter().format(_record("test msg")))
        assert parsed["context"] == {"document_id": "1601.00001", "run_id": "run1", "stage": "convert"}

    def test_format_with_data(self):
        record = _record()
        record.data = {"bytes": 12}
        parsed = json.loads(JsonFormatter().format(record))
        assert parsed["data"] == {"bytes": 12}

    def test_format_exception(self):
        try:
            raise RuntimeError("kaput")
        except RuntimeError:
            record = _record(exc_info=sys.exc_info())
        parsed = json.loads(JsonFormatter().format(record))
        assert "kaput" in parsed["exception"]


class TestTextFormatter:
    def teardown_method(self):
        clear_context()

    def test_format_basic(self):
        output = TextFormatter().format(_record("Hello text"))
        assert "Hello text" in output
        assert "INFO" in output

    def test_includes_document_and_stage(self):
        set_document_context("hep-th/9901001", "run1")
        set_stage("fallback")
        output = TextFormatter().format(_record())
        assert "[hep-th/9901001]" in output
        assert "(fallback)" in output


class TestGetLogger:
    def test_returns_logger(self):
        assert get_logger("cache").name == "markxiv.cache"


class TestSetupLogging:
    def test_setup_json(self):
        setup_logging(level="DEBUG", log_format="json")
        root = logging.getLogger("markxiv")
        assert root.level == logging.DEBUG
        assert isinstance(root.handlers[0].formatter, JsonFormatter)

    def test_setup_text(self):
        setup_logging(level="INFO", log_format="text")
        root = logging.getLogger("markxiv")
        assert root.level == logging.INFO
        assert isinstance(root.handlers[0].formatter, TextFormatter)

    def test_reinit_does_not_stack_handlers(self):
        setup_logging()
        setup_logging()
        assert len(logging.getLogger("markxiv").handlers) == 1

    def test_file_handler(self, tmp_path):
        log_file = tmp_path / "logs" / "markxiv.log"
        setup_logging(log_format="json", log_file=log_file)
        logging.getLogger("markxiv.test").info("to file")
        for handler in logging.getLogger("markxiv").handlers:
            handler.flush()
        assert "to file" in log_file.read_text()
        setup_logging()
