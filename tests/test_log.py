"""Tests for logging setup, formatters and structured fields."""

import json
import logging

import pytest

from cmdgroup.errors import InvalidLoggerError
from cmdgroup.log import ContextAdapter, JsonFormatter, MainFormatter, null_logger, setup_logging, validate_logger


def _record(**extra):
    record = logging.LogRecord("cmdgroup", logging.INFO, __file__, 1, "exited", None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_json_formatter_includes_structured_fields():
    line = JsonFormatter().format(_record(cmd="/bin/echo a", pid=42, reason="exit status 1"))
    entry = json.loads(line)

    assert entry["msg"] == "exited"
    assert entry["level"] == "INFO"
    assert entry["cmd"] == "/bin/echo a"
    assert entry["pid"] == 42
    assert entry["reason"] == "exit status 1"
    assert "error" not in entry


def test_main_formatter_appends_key_values():
    line = MainFormatter().format(_record(index=1, pid=7))
    assert "[cmdgroup] - exited" in line
    assert line.endswith("index=1 pid=7")


def test_adapter_merges_call_site_extras(caplog):
    logger = logging.getLogger("cmdgroup.test")
    adapter = ContextAdapter(logger, {"cmd": "true"}).with_fields(pid=5)

    with caplog.at_level(logging.INFO, logger="cmdgroup.test"):
        adapter.info("exited", extra={"reason": "signal: SIGTERM"})

    record = caplog.records[-1]
    assert (record.cmd, record.pid, record.reason) == ("true", 5, "signal: SIGTERM")


def test_adapter_flattens_nested_adapters(caplog):
    logger = logging.getLogger("cmdgroup.test")
    inner = logging.LoggerAdapter(logger, {"index": 3})

    with caplog.at_level(logging.INFO, logger="cmdgroup.test"):
        ContextAdapter(inner, {"cmd": "true"}).info("started")

    record = caplog.records[-1]
    assert (record.index, record.cmd) == (3, "true")


def test_null_logger_discards():
    logger = null_logger()
    assert logger.propagate is False
    assert any(isinstance(h, logging.NullHandler) for h in logger.handlers)
    assert null_logger() is logger


def test_validate_logger():
    logger = logging.getLogger("cmdgroup.test")
    assert validate_logger(logger) is logger

    with pytest.raises(InvalidLoggerError):
        validate_logger(None)
    with pytest.raises(InvalidLoggerError):
        validate_logger(print)


@pytest.mark.parametrize("fmt, formatter", [("json", JsonFormatter), ("text", MainFormatter)])
def test_setup_logging_installs_single_handler(fmt, formatter):
    root = logging.getLogger()
    saved_handlers, saved_level = root.handlers[:], root.level
    try:
        setup_logging(logging.DEBUG, fmt)
        setup_logging(logging.DEBUG, fmt)

        assert len(root.handlers) == 1
        assert isinstance(root.handlers[0].formatter, formatter)
        assert root.level == logging.DEBUG
    finally:
        root.handlers[:] = saved_handlers
        root.setLevel(saved_level)


def test_adapter_accepts_none_extra(caplog):
    adapter = ContextAdapter(logging.getLogger("cmdgroup.test"), {"cmd": "true"})

    with caplog.at_level(logging.INFO, logger="cmdgroup.test"):
        adapter.info("started", extra=None)

    assert caplog.records[-1].cmd == "true"
