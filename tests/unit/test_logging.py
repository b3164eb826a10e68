"""Logging configuration tests."""

import logging

import pytest
import structlog

from ixp.core import LogContext, configure_logging, get_logger


@pytest.mark.unit
@pytest.mark.parametrize("json_logs", [False, True])
def test_configure_logging_sets_level(json_logs):
    """Test stdlib root level follows configuration."""
    configure_logging("DEBUG", json_logs=json_logs)
    assert logging.getLogger().level == logging.DEBUG

    configure_logging("WARNING", json_logs=json_logs)
    assert logging.getLogger().level == logging.WARNING


@pytest.mark.unit
def test_get_logger_accepts_keyword_context():
    """Test event-style logging with context."""
    configure_logging("INFO")
    logger = get_logger("ixp.tests")
    logger.info("test_event", intent="show_products", count=3)


@pytest.mark.unit
def test_log_context_binds_and_unbinds():
    """Test context variables are scoped to the block."""
    with LogContext(intent="show_products", mode="html"):
        bound = structlog.contextvars.get_contextvars()
        assert bound["intent"] == "show_products"
        assert bound["mode"] == "html"

    bound = structlog.contextvars.get_contextvars()
    assert "intent" not in bound
    assert "mode" not in bound


@pytest.mark.unit
def test_log_context_nesting_restores_outer_binding():
    """Test leaving an inner block keeps the outer block's values."""
    with LogContext(intent="outer", mode="html"):
        with LogContext(intent="inner"):
            assert structlog.contextvars.get_contextvars()["intent"] == "inner"

        bound = structlog.contextvars.get_contextvars()
        assert bound["intent"] == "outer"
        assert bound["mode"] == "html"

    assert "intent" not in structlog.contextvars.get_contextvars()


@pytest.mark.unit
def test_quiet_loggers_follow_debug():
    """Test third-party loggers are raised to WARNING outside DEBUG."""
    configure_logging("INFO")
    assert logging.getLogger("httpx").level == logging.WARNING

    configure_logging("DEBUG")
    assert logging.getLogger("httpx").level == logging.DEBUG
