"""Logging setup and suppression.

stdout carries the result object, so every handler configured here writes
to stderr.
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

# Third-party loggers that are noisy at INFO
NOISY_LOGGERS = ("asyncio", "urllib3", "httpcore", "httpx", "markdown_it")


def verbosity_to_level(verbosity: int) -> int:
    if verbosity <= 0:
        return logging.WARNING
    if verbosity == 1:
        return logging.INFO
    return logging.DEBUG


def configure_logging(verbosity: int = 0) -> None:
    """Configure root logging on stderr for one CLI process."""
    logging.basicConfig(
        level=verbosity_to_level(verbosity),
        format=LOG_FORMAT,
        stream=sys.stderr,
        force=True,
    )
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.ERROR)


@contextmanager
def suppress_logs() -> Iterator[None]:
    """Silence every logger for the duration of the block.

    Used by the MCP server so tool output never interleaves with log lines.
    """
    root_logger = logging.getLogger()
    all_loggers = [root_logger] + [logging.getLogger(name) for name in logging.root.manager.loggerDict]
    saved_levels = {logger: logger.level for logger in all_loggers}

    try:
        for logger in all_loggers:
            logger.setLevel(logging.CRITICAL + 1)
        yield
    finally:
        for logger, level in saved_levels.items():
            logger.setLevel(level)
