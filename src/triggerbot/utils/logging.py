"""Logging setup for the triggerbot logger tree."""

import logging
import sys
from logging.handlers import RotatingFileHandler

from triggerbot.utils.config import Config

LOGGER_NAME = "triggerbot"
LOG_FILE = "triggerbot.log"
FILE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
CONSOLE_FORMAT = "%(levelname)s - %(name)s - %(message)s"


def _own(handler: logging.Handler) -> logging.Handler:
    handler._triggerbot = True  # type: ignore[attr-defined]
    return handler


def setup_logging(config: Config, console_output: bool = False) -> logging.Logger:
    """
    Attach a rotating file handler (and optionally stdout) to the triggerbot logger.

    The file under `config.logging_path` receives everything down to DEBUG;
    the console only shows `config.log_level` and above. Calling this again
    replaces the handlers from the previous call.
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(logging.DEBUG)

    for handler in [h for h in logger.handlers if getattr(h, "_triggerbot", False)]:
        logger.removeHandler(handler)
        handler.close()

    config.logging_path.mkdir(parents=True, exist_ok=True)
    file_handler = RotatingFileHandler(
        config.logging_path / LOG_FILE, maxBytes=1_000_000, backupCount=3
    )
    file_handler.setFormatter(logging.Formatter(FILE_FORMAT))
    logger.addHandler(_own(file_handler))

    if console_output:
        console = logging.StreamHandler(sys.stdout)
        console.setFormatter(logging.Formatter(CONSOLE_FORMAT))
        console.setLevel(config.log_level)
        logger.addHandler(_own(console))

    return logger
