"""
Tests for the structlog setup: JSON lines, service context and library records.
"""

import json
import logging

import pytest
import structlog

from ticketing.core.config import get_settings
from ticketing.core.logging import HANDLER_NAME, NOISY_LOGGERS, get_logger, setup_logging


@pytest.fixture
def restore_logging():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers = handlers
    root.setLevel(level)
    structlog.reset_defaults()


def _last_json_line(capsys) -> dict:
    return json.loads(capsys.readouterr().out.strip().splitlines()[-1])


def test_events_are_json_with_service_context(capsys, restore_logging):
    setup_logging(json_output=True)

    get_logger("ticketing.services.reservation_service").info("reservation_confirmed", ticket_id=7, remaining=2)

    event = _last_json_line(capsys)
    assert event["event"] == "reservation_confirmed"
    assert event["ticket_id"] == 7
    assert event["level"] == "info"
    assert event["logger"] == "ticketing.services.reservation_service"
    assert event["service"] == get_settings().APP_NAME
    assert event["environment"] == get_settings().ENVIRONMENT
    assert "timestamp" in event


def test_library_records_use_the_same_format(capsys, restore_logging):
    setup_logging(json_output=True)

    logging.getLogger("some.driver").warning("pool %s exhausted", "main")

    event = _last_json_line(capsys)
    assert event["event"] == "pool main exhausted"
    assert event["level"] == "warning"
    assert event["logger"] == "some.driver"
    assert event["service"] == get_settings().APP_NAME


def test_setup_is_repeatable(restore_logging):
    setup_logging(level="debug", json_output=False)
    setup_logging(level="warning", json_output=True)

    root = logging.getLogger()
    assert [h.get_name() for h in root.handlers].count(HANDLER_NAME) == 1
    assert root.level == logging.WARNING
    for name in NOISY_LOGGERS:
        assert logging.getLogger(name).level == logging.WARNING
