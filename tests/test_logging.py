"""Tests for structlog setup."""

import logging

import pytest
import structlog

from rollgate.logging import get_logger, setup_logging
from rollgate.settings import Settings

pytestmark = pytest.mark.unit


@pytest.fixture(autouse=True)
def _restore_structlog():
    yield
    structlog.reset_defaults()


@pytest.mark.parametrize("log_format", ["json", "console"])
def test_setup_logging_formats(log_format):
    settings = Settings(observability={"log_format": log_format, "log_level": "DEBUG"})

    setup_logging(settings)

    renderer = structlog.get_config()["processors"][-1]
    if log_format == "json":
        assert isinstance(renderer, structlog.processors.JSONRenderer)
    else:
        assert isinstance(renderer, structlog.dev.ConsoleRenderer)
    assert logging.getLogger().level == logging.DEBUG


def test_explicit_level_overrides_settings():
    setup_logging(Settings(), level="warning")

    assert logging.getLogger().level == logging.WARNING


def test_get_logger_emits(caplog):
    setup_logging(Settings(), level="INFO")
    logger = get_logger("rollgate.test")

    with caplog.at_level(logging.INFO, logger="rollgate.test"):
        logger.info("Flag evaluated", feature="beta")

    assert any("Flag evaluated" in record.getMessage() for record in caplog.records)
