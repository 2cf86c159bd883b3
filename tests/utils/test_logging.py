"""Tests for logging setup."""

import logging
from logging.handlers import RotatingFileHandler

import pytest

from triggerbot.utils.logging import setup_logging


@pytest.fixture
def clean_logger():
    logger = logging.getLogger("triggerbot")
    handlers = list(logger.handlers)
    level = logger.level
    yield logger
    for handler in logger.handlers:
        if handler not in handlers:
            handler.close()
    logger.handlers = handlers
    logger.setLevel(level)


def test_setup_logging_writes_to_workspace(test_config, clean_logger):
    setup_logging(test_config)

    file_handlers = [h for h in clean_logger.handlers if isinstance(h, RotatingFileHandler)]
    assert len(file_handlers) == 1
    assert test_config.logging_path.is_dir()

    logging.getLogger("triggerbot.core.dispatcher").info("dispatched")
    file_handlers[0].flush()
    assert "dispatched" in (test_config.logging_path / "triggerbot.log").read_text()


def test_setup_logging_console_output(test_config, clean_logger):
    setup_logging(test_config, console_output=True)

    stream_handlers = [
        h
        for h in clean_logger.handlers
        if type(h) is logging.StreamHandler
    ]
    assert len(stream_handlers) == 1
    assert stream_handlers[0].level == logging.INFO


def test_setup_logging_console_uses_configured_level(tmp_path, clean_logger):
    from triggerbot.utils.config import Config

    config = Config(workspace=tmp_path, log_level="debug")
    setup_logging(config, console_output=True)

    console = [h for h in clean_logger.handlers if type(h) is logging.StreamHandler]
    assert console[0].level == logging.DEBUG


def test_setup_logging_twice_replaces_handlers(test_config, clean_logger):
    before = len(clean_logger.handlers)
    setup_logging(test_config, console_output=True)
    setup_logging(test_config, console_output=True)

    assert len(clean_logger.handlers) == before + 2


def test_setup_logging_returns_package_logger(test_config, clean_logger):
    assert setup_logging(test_config) is clean_logger
