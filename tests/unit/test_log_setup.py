"""Tests for root logger configuration."""

import json
import logging

import pytest

from ethos.log_setup import JsonFormatter, configure_logging


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    level = root.level
    yield root
    for handler in list(root.handlers):
        if type(handler) is logging.StreamHandler:
            root.removeHandler(handler)
    root.setLevel(level)


def test_json_format(restore_root_logger):
    configure_logging(level="debug", fmt="json")

    (handler,) = restore_root_logger.handlers
    assert isinstance(handler.formatter, JsonFormatter)
    assert restore_root_logger.level == logging.DEBUG

    record = logging.LogRecord("ethos.test", logging.INFO, __file__, 1, "match %s done", (7,), None)
    payload = json.loads(handler.formatter.format(record))
    assert payload["message"] == "match 7 done"
    assert payload["logger"] == "ethos.test"
    assert payload["level"] == "INFO"


def test_console_format(restore_root_logger):
    configure_logging(level="WARNING", fmt="console")

    (handler,) = restore_root_logger.handlers
    assert not isinstance(handler.formatter, JsonFormatter)
    assert restore_root_logger.level == logging.WARNING
