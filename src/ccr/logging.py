"""Logging setup for ccr.

User-facing output goes through rich consoles in each module; this module only
configures the stdlib loggers used for diagnostics. They stay at WARNING
unless CCR_DEBUG=1 (or true/yes) is set or `ccr --debug` is passed.
"""

from __future__ import annotations

import logging
import os
import sys

ROOT_LOGGER = "ccr"
DEBUG_ENV = "CCR_DEBUG"

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
LOG_FORMAT_DEBUG = "%(asctime)s [%(levelname)s] %(name)s:%(lineno)d: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_handler: logging.Handler | None = None


def _get_log_level() -> int:
    """Determine log level from environment."""
    if os.environ.get(DEBUG_ENV, "").lower() in ("1", "true", "yes"):
        return logging.DEBUG
    return logging.WARNING


def _apply_level(level: int) -> None:
    """Set the ccr root logger and its handlers to one level and matching format."""
    fmt = LOG_FORMAT_DEBUG if level == logging.DEBUG else LOG_FORMAT
    root = logging.getLogger(ROOT_LOGGER)
    root.setLevel(level)
    for handler in root.handlers:
        handler.setLevel(level)
        handler.setFormatter(logging.Formatter(fmt, datefmt=DATE_FORMAT))


def _ensure_handler() -> None:
    # One stderr handler on the ccr root; level comes from CCR_DEBUG on first use
    global _handler
    if _handler is not None:
        return
    root = logging.getLogger(ROOT_LOGGER)
    if not root.handlers:
        root.addHandler(logging.StreamHandler(sys.stderr))
    _handler = root.handlers[0]
    _apply_level(_get_log_level())


def get_logger(name: str) -> logging.Logger:
    """Get a logger under the ``ccr`` namespace.

    ``get_logger(__name__)`` inside the package returns the module logger as is;
    any other name is nested below ``ccr``.
    """
    _ensure_handler()
    if name != ROOT_LOGGER and not name.startswith(ROOT_LOGGER + "."):
        name = f"{ROOT_LOGGER}.{name}"
    return logging.getLogger(name)


def set_debug(enabled: bool = True) -> None:
    """Switch debug logging on or off (the CLI's --debug flag)."""
    _ensure_handler()
    _apply_level(logging.DEBUG if enabled else logging.WARNING)
