"""Tests for JSON logging."""

import json
import logging
from io import StringIO

from gemini_proxy.core.logging import _JsonFormatter, get_logger, setup_logging


def _capture(name: str):
    logger = get_logger(name)
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(_JsonFormatter())
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG)
    logger.propagate = False
    return logger, stream


def test_setup_logging_is_idempotent():
    """Calling setup twice doesn't stack JSON handlers."""
    setup_logging()
    setup_logging()
    root = logging.getLogger()
    json_handlers = [h for h in root.handlers if isinstance(h.formatter, _JsonFormatter)]
    assert len(json_handlers) == 1


def test_setup_logging_accepts_level_names():
    setup_logging("warning")
    assert logging.getLogger().level == logging.WARNING
    setup_logging("not-a-level")
    assert logging.getLogger().level == logging.INFO


def test_get_logger_returns_logger():
    logger = get_logger("test")
    assert isinstance(logger, logging.Logger)
    assert logger.name == "test"


def test_json_formatter_produces_json():
    logger, stream = _capture("test.json")
    logger.info("Test message")

    parsed = json.loads(stream.getvalue().strip())
    assert parsed["level"] == "INFO"
    assert parsed["logger"] == "test.json"
    assert parsed["msg"] == "Test message"
    assert "ts" in parsed


def test_json_formatter_merges_fields():
    logger, stream = _capture("test.fields")
    logger.warning("retrying", extra={"fields": {"attempt": 1, "kind": "upstream_rate_limited"}})

    parsed = json.loads(stream.getvalue().strip())
    assert parsed["attempt"] == 1
    assert parsed["kind"] == "upstream_rate_limited"


def test_json_formatter_includes_exception():
    logger, stream = _capture("test.exc")
    try:
        raise RuntimeError("boom")
    except RuntimeError:
        logger.exception("failed")

    parsed = json.loads(stream.getvalue().strip())
    assert "RuntimeError: boom" in parsed["exc_info"]


def test_setup_logging_quiets_http_client_loggers():
    """httpx and httpcore log request URLs at INFO; they are held at WARNING."""
    setup_logging("DEBUG")
    for name in ("httpx", "httpcore"):
        assert logging.getLogger(name).getEffectiveLevel() == logging.WARNING
    setup_logging()
