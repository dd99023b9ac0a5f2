"""Tests for logging setup and context propagation."""

import json
import logging

import pytest

from config import Config
from observability.logging import (
    ContextFilter,
    JsonFormatter,
    TextFormatter,
    clear_context,
    set_request_context,
    setup_logging,
)


@pytest.fixture(autouse=True)
def reset_context():
    yield
    clear_context()


def make_record(msg="Stored memory", level=logging.INFO):
    record = logging.LogRecord("orchestrator", level, __file__, 10, msg, (), None)
    ContextFilter().filter(record)
    return record


def test_context_filter_injects_ids():
    set_request_context("req123", "u1")
    record = make_record()
    assert record.request_id == "req123"
    assert record.user_id == "u1"


def test_context_defaults():
    record = make_record()
    assert record.request_id == "-"
    assert record.user_id == "-"


def test_json_formatter():
    set_request_context("req123", "u1")
    data = json.loads(JsonFormatter().format(make_record()))

    assert set(data) == {"timestamp", "level", "logger", "message", "request_id", "user_id"}
    assert data["message"] == "Stored memory"
    assert data["request_id"] == "req123"
    assert data["user_id"] == "u1"


def test_json_formatter_adds_source_for_warnings():
    data = json.loads(JsonFormatter().format(make_record(level=logging.ERROR)))
    assert data["source"]["line"] == 10
    assert "user_id" not in data


def test_text_formatter_includes_context():
    set_request_context("req123", "u1")
    line = TextFormatter().format(make_record())
    assert "[req123 u1] orchestrator: Stored memory" in line


def test_setup_logging_writes_file(tmp_path):
    config = Config(log_dir=tmp_path / "logs")

    assert setup_logging(config) is True
    logging.getLogger("test").info("hello")
    for handler in logging.getLogger().handlers:
        handler.flush()

    assert "hello" in (tmp_path / "logs" / "curo.log").read_text()


def test_setup_logging_falls_back_to_console(tmp_path):
    blocker = tmp_path / "not-a-dir"
    blocker.write_text("")
    config = Config(log_dir=blocker / "logs")

    assert setup_logging(config) is False
