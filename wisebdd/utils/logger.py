"""Colored logging setup shared by every wisebdd module"""
import logging
import os
import sys
from typing import Optional, Union

from colorama import Fore, Style
from colorama import init as colorama_init

ROOT_LOGGER_NAME = 'wisebdd'
LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

LEVEL_COLORS = {
    logging.DEBUG: Fore.CYAN,
    logging.INFO: Fore.GREEN,
    logging.WARNING: Fore.YELLOW,
    logging.ERROR: Fore.RED,
    logging.CRITICAL: Fore.RED + Style.BRIGHT,
}

_configured = False


class ColorFormatter(logging.Formatter):
    """Formatter that colors the level name"""

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        color = LEVEL_COLORS.get(record.levelno)
        if not color:
            return message
        return message.replace(record.levelname, f"{color}{record.levelname}{Style.RESET_ALL}", 1)


def _configure_root(level: Union[int, str]) -> None:
    global _configured
    colorama_init()
    root = logging.getLogger(ROOT_LOGGER_NAME)
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(ColorFormatter(LOG_FORMAT))
    root.addHandler(handler)
    _configured = True
    try:
        root.setLevel(level)
    except (TypeError, ValueError):
        root.setLevel(logging.INFO)
        root.warning(f"Unknown log level {level!r} in WISEBDD_LOG_LEVEL, using INFO")


def set_level(level: Union[int, str]) -> None:
    """Change the level of the whole wisebdd logger tree"""
    if isinstance(level, str):
        level = level.upper()
    logging.getLogger(ROOT_LOGGER_NAME).setLevel(level)


def setup_logger(name: str, level: Optional[Union[int, str]] = None) -> logging.Logger:
    """Return a logger placed under the wisebdd hierarchy"""
    if not _configured:
        _configure_root(os.environ.get('WISEBDD_LOG_LEVEL', 'INFO').upper())

    if name != ROOT_LOGGER_NAME and not name.startswith(ROOT_LOGGER_NAME + '.'):
        name = f"{ROOT_LOGGER_NAME}.{name}"

    logger = logging.getLogger(name)
    if level is not None:
        logger.setLevel(level.upper() if isinstance(level, str) else level)
    return logger
