"""Tests for logging helpers."""

import json
import logging

import pytest

from satirefeed.utils.logging import (
    ColoredConsoleFormatter,
    PerformanceLogger,
    StructuredFormatter,
    configure_application_logging,
    get_logger_for_component,
)


class ListHandler(logging.Handler):

    def __init__(self):
        super().__init__()
        self.records = []

    def emit(self, record):
        self.records.append(record)


@pytest.fixture
def captured():
    handler = ListHandler()
    logger = logging.getLogger("satirefeed.test_component")
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG)
    yield handler
    logger.removeHandler(handler)


def test_component_context_on_records(captured):
    logger = get_logger_for_component("test_component", provider="groq")

    logger.info("hello", extra={"tokens": 42})

    record = captured.records[0]
    assert record.component == "test_component"
    assert record.ai_provider == "groq"
    assert record.tokens == 42


def test_bind_adds_context(captured):
    logger = get_logger_for_component("test_component").bind(article_id="https://news.example.com/1")

    logger.warning("careful")

    assert captured.records[0].article_id == "https://news.example.com/1"


def test_structured_formatter(captured):
    get_logger_for_component("test_component", provider="ollama").info("done", extra={"items": 3})

    entry = json.loads(StructuredFormatter().format(captured.records[0]))

    assert entry["msg"] == "done"
    assert entry["component"] == "test_component"
    assert entry["ai_provider"] == "ollama"
    assert entry["extra"] == {"items": 3}


def test_console_formatter_without_color(captured):
    get_logger_for_component("test_component", provider="gemini").error("boom")

    line = ColoredConsoleFormatter(use_color=False).format(captured.records[0])

    assert line.endswith("ERROR   test_component[gemini]: boom")
    assert "\033[" not in line


def test_performance_logger(captured):
    logger = get_logger_for_component("test_component")

    with PerformanceLogger(logger, "summarize via groq") as perf:
        pass

    assert perf.duration is not None
    assert captured.records[-1].levelno == logging.INFO
    assert captured.records[-1].success is True


def test_performance_logger_failure(captured):
    logger = get_logger_for_component("test_component")

    with pytest.raises(RuntimeError):
        with PerformanceLogger(logger, "generate_posts via groq"):
            raise RuntimeError("boom")

    assert captured.records[-1].levelno == logging.WARNING
    assert "RuntimeError" in captured.records[-1].getMessage()


def test_configure_application_logging(tmp_path):
    log_file = tmp_path / "logs" / "satirefeed.log"

    logger = configure_application_logging(log_level="DEBUG", log_file=str(log_file), enable_console=False)
    get_logger_for_component("pipeline").info("written to file")
    for handler in logger.handlers:
        handler.flush()

    assert logger.level == logging.DEBUG
    assert json.loads(log_file.read_text().splitlines()[-1])["msg"] == "written to file"

    configure_application_logging(log_file=None, enable_console=False)
