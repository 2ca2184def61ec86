"""
Diagnostics output for regex-permissions.

Warnings (dropped rules, unsafe regexes, malformed settings) go to stderr
through a Rich handler; stdout is reserved for the hook's JSON answer.
Library modules only call ``logging.getLogger(__name__)``; the CLI calls
``configure_logging`` once at startup.
"""

import logging

from rich.console import Console
from rich.logging import RichHandler

from regex_permissions.config import debug_enabled

LOGGER_NAME = "regex_permissions"
PREFIX = "[regex-permissions]"

_handler: RichHandler | None = None


def configure_logging(verbose: bool = False) -> logging.Logger:
    """
    Route package diagnostics to stderr.

    Args:
        verbose: Also show debug messages (rule counts, missing files).
            REGEX_PERMISSIONS_DEBUG=1 has the same effect.

    Returns:
        The package logger
    """
    global _handler

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(logging.DEBUG if verbose or debug_enabled() else logging.WARNING)

    if _handler is None:
        _handler = RichHandler(
            console=Console(stderr=True, soft_wrap=True),
            show_time=False,
            show_level=False,
            show_path=False,
            markup=False,
        )
        _handler.setFormatter(logging.Formatter(f"{PREFIX} %(message)s"))
        logger.addHandler(_handler)

    return logger
