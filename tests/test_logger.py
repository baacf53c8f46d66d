import logging
import sys

import pytest
from pythonjsonlogger import jsonlogger

from flashquiz.utils.logger import setup_logger


@pytest.mark.unit
def test_handler_attached_once():
    first = setup_logger('flashquiz.tests.once')
    second = setup_logger('flashquiz.tests.once')
    assert first is second
    assert len(first.handlers) == 1
    assert not first.propagate


@pytest.mark.unit
def test_level_and_json_format_from_env(monkeypatch):
    monkeypatch.setenv('LOG_LEVEL', 'debug')
    monkeypatch.setenv('LOG_FORMAT', 'json')

    logger = setup_logger('flashquiz.tests.json')

    assert logger.level == logging.DEBUG
    assert isinstance(logger.handlers[0].formatter, jsonlogger.JsonFormatter)


@pytest.mark.unit
def test_text_format_by_default(monkeypatch):
    monkeypatch.delenv('LOG_FORMAT', raising=False)

    logger = setup_logger('flashquiz.tests.text')

    assert not isinstance(logger.handlers[0].formatter, jsonlogger.JsonFormatter)


@pytest.mark.unit
def test_logs_to_stdout():
    logger = setup_logger('flashquiz.tests.stdout')

    assert logger.handlers[0].stream is sys.stdout
