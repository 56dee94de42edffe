"""Tests for the logging setup."""
import logging

from heartbeat.core.logging import QUIET_LOGGERS, RequestIDFilter, _level, setup_logging


def test_request_id_defaults_when_missing():
    record = logging.LogRecord("heartbeat", logging.INFO, __file__, 1, "hello", None, None)
    assert RequestIDFilter().filter(record)
    assert record.request_id == "N/A"

    record.request_id = "abc"
    RequestIDFilter().filter(record)
    assert record.request_id == "abc"


def test_level_names():
    assert _level("debug") == logging.DEBUG
    assert _level("WARNING") == logging.WARNING
    assert _level("chatty") == logging.INFO


def test_setup_logging_formats_request_id(capsys):
    root = logging.getLogger()
    saved = root.handlers[:]
    try:
        logger = setup_logging()
        logger.info("socket opened", extra={"request_id": "req-42"})
        logging.getLogger("heartbeat.services.realtime").info("no request here")
    finally:
        root.handlers[:] = saved

    out = capsys.readouterr().out
    assert "[req-42] socket opened" in out
    assert "[N/A] no request here" in out
    for name, level in QUIET_LOGGERS.items():
        assert logging.getLogger(name).level == level
