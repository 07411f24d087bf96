"""Logging for termchat.

A terminal renderer owns the screen while a chat runs, so records go to a
log file (`logging.file` in config, or TERMCHAT_LOG). Stderr is used only
when there is no file and stderr is a real console.

Verbosity (`logging.verbose`) wins over `logging.level`:
    0 error, 1 warning, 2 info, 3 verbose, 4 trace

`TerminalChat.start()` calls `setup_logging(config.logging)`; the first
call configures, later calls keep the existing setup.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from termchat.config.schema import LoggingConfig

TRACE = 5
VERBOSE = 15

logging.addLevelName(TRACE, "TRACE")
logging.addLevelName(VERBOSE, "VERBOSE")

LOG_ENV_VAR = "TERMCHAT_LOG"
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

logger = logging.getLogger("termchat")

_initialized = False
_handlers: list[logging.Handler] = []

_VERBOSITY_LEVELS = (logging.ERROR, logging.WARNING, logging.INFO, VERBOSE, TRACE)


class _LowercaseLevelFormatter(logging.Formatter):
    """Lowercase level names, without touching the shared record."""

    def format(self, record: logging.LogRecord) -> str:
        original = record.levelname
        record.levelname = original.lower()
        try:
            return super().format(record)
        finally:
            record.levelname = original


def resolve_level(config: LoggingConfig | None) -> int:
    """Level for a LoggingConfig; INFO when nothing is set or the name is unknown."""
    if config is None:
        return logging.INFO
    if config.verbose is not None:
        index = min(max(config.verbose, 0), len(_VERBOSITY_LEVELS) - 1)
        return _VERBOSITY_LEVELS[index]
    if config.level:
        name = config.level.upper()
        if name == "WARN":
            name = "WARNING"
        level = logging.getLevelName(name)
        if isinstance(level, int):
            return level
    return logging.INFO


def resolve_log_path(config: LoggingConfig | None) -> str | None:
    """Config file path first, then TERMCHAT_LOG; `~` is expanded."""
    path = config.file if config and config.file else os.environ.get(LOG_ENV_VAR)
    return os.path.expanduser(path) if path else None


def setup_logging(config: LoggingConfig | None = None) -> bool:
    """Attach termchat's handlers once.

    Returns:
        True if this call configured logging, False if it was already set up.
    """
    global _initialized
    if _initialized:
        return False
    _initialized = True

    level = resolve_level(config)
    logger.setLevel(level)
    formatter = _LowercaseLevelFormatter(LOG_FORMAT, datefmt="%H:%M:%S")

    path = resolve_log_path(config)
    if path:
        try:
            _attach(logging.FileHandler(path, mode="a", encoding="utf-8"), formatter, level)
            return True
        except OSError as e:
            if not sys.stderr.isatty():
                return True
            print(f"[termchat] cannot open log file {path}: {e}", file=sys.stderr)

    if sys.stderr.isatty():
        _attach(logging.StreamHandler(sys.stderr), formatter, level)
    return True


def reset_logging() -> None:
    """Remove the handlers setup_logging attached and allow it to run again."""
    global _initialized
    for handler in _handlers:
        logger.removeHandler(handler)
        handler.close()
    _handlers.clear()
    _initialized = False


def _attach(handler: logging.Handler, formatter: logging.Formatter, level: int) -> None:
    handler.setLevel(level)
    handler.setFormatter(formatter)
    logger.addHandler(handler)
    _handlers.append(handler)


def get_logger(name: str | None = None) -> logging.Logger:
    """The termchat logger, or a named child of it (e.g. "session.controller")."""
    if name:
        return logger.getChild(name)
    return logger
