"""
Logging utilities for apt-downgrade.

Diagnostics (resolution steps, tool invocations, remote fallbacks) go
through the ``apt_downgrade`` logger hierarchy configured here. User-facing
progress and results are printed by :mod:`apt_downgrade.utils.console`.
"""

from __future__ import annotations

import os
import sys
import logging
import threading
from typing import IO, Optional

from apt_downgrade.constants import (
    LOG_DATE_FORMAT,
    LOG_DEFAULT_FORMAT,
    LOG_VERBOSE_FORMAT,
)

ROOT_LOGGER_NAME = "apt_downgrade"

_lock = threading.Lock()


class ColoredFormatter(logging.Formatter):
    """Logging formatter that colors the level name on terminals."""

    COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"

    def __init__(
        self,
        fmt: str,
        *,
        datefmt: Optional[str] = None,
        use_color: bool = True,
    ) -> None:
        super().__init__(fmt=fmt, datefmt=datefmt)
        self.use_color = use_color

    def format(self, record: logging.LogRecord) -> str:
        levelname = record.levelname
        if self.use_color and self._should_use_color():
            color = self.COLORS.get(levelname)
            if color:
                record.levelname = f"{color}{levelname}{self.RESET}"
        try:
            return super().format(record)
        finally:
            # Records are shared between handlers
            record.levelname = levelname

    @staticmethod
    def _should_use_color() -> bool:
        if os.environ.get("NO_COLOR"):
            return False
        if os.environ.get("CI"):
            return False
        try:
            return sys.stderr.isatty()
        except (AttributeError, OSError):
            return False


def level_for_verbosity(verbose: int) -> int:
    """Map the CLI ``-v`` count to a logging level.

    ``0`` shows warnings (remote fallbacks), ``1`` adds per-package
    resolution steps, ``2`` and above add every tool and HTTP call.
    """
    if verbose <= 0:
        return logging.WARNING
    if verbose == 1:
        return logging.INFO
    return logging.DEBUG


def setup_logging(
    *,
    level: int = logging.WARNING,
    verbose: bool = False,
    stream: Optional[IO[str]] = None,
) -> None:
    """Configure the ``apt_downgrade`` logger.

    Safe to call repeatedly; existing handlers are replaced.

    Args:
        level: Logging level.
        verbose: Use the timestamped format including logger names.
        stream: Output stream; defaults to ``sys.stderr``.
    """
    with _lock:
        root_logger = logging.getLogger(ROOT_LOGGER_NAME)
        root_logger.handlers.clear()
        root_logger.setLevel(level)

        handler = logging.StreamHandler(stream or sys.stderr)
        handler.setLevel(level)
        handler.setFormatter(
            ColoredFormatter(
                LOG_VERBOSE_FORMAT if verbose else LOG_DEFAULT_FORMAT,
                datefmt=LOG_DATE_FORMAT,
                use_color=not os.environ.get("NO_COLOR"),
            )
        )

        root_logger.addHandler(handler)
        root_logger.propagate = False


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Return a logger below the ``apt_downgrade`` namespace.

    Args:
        name: Short name (``"resolver"``) or dotted module name.

    Returns:
        Logger instance.
    """
    if not name or name == ROOT_LOGGER_NAME:
        logger = logging.getLogger(ROOT_LOGGER_NAME)
    elif name.startswith(ROOT_LOGGER_NAME + "."):
        logger = logging.getLogger(name)
    else:
        logger = logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")

    if not logger.handlers and (not logger.parent or not logger.parent.handlers):
        logger.addHandler(logging.NullHandler())

    return logger
