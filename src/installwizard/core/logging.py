"""Centralized logging for installwizard.

Four verbosity levels:
- QUIET (0): Warnings + errors
- NORMAL (1): Info + warnings + errors
- VERBOSE (2): Detailed info
- DEBUG (3): Everything including internal state

Usage:
    from installwizard.core.logging import get_logger, set_verbosity

    logger = get_logger(__name__)
    set_verbosity(2)  # VERBOSE

    logger.verbose("Loaded 4 contribution(s)")
    logger.warning("Field 'hostname' has no output path")

Every emitted line is also published as a LogRecord to registered sinks, so
the HTTP layer and tests can observe warnings without scraping stdout.
"""

from __future__ import annotations

import contextlib
import sys
import traceback
from collections.abc import Callable
from dataclasses import dataclass
from enum import IntEnum


class VerbosityLevel(IntEnum):
    """Verbosity levels for installwizard."""

    QUIET = 0  # Warnings + errors
    NORMAL = 1  # Info + warnings + errors
    VERBOSE = 2  # Detailed info
    DEBUG = 3  # Everything


LEVEL_NAMES: dict[str, VerbosityLevel] = {
    "quiet": VerbosityLevel.QUIET,
    "normal": VerbosityLevel.NORMAL,
    "verbose": VerbosityLevel.VERBOSE,
    "debug": VerbosityLevel.DEBUG,
}


@dataclass(frozen=True)
class LogRecord:
    level_name: str
    plain: str
    logger_name: str


_VERBOSITY: VerbosityLevel = VerbosityLevel.NORMAL
_USE_COLORS: bool = True
_SINKS: list[Callable[[LogRecord], None]] = []


def set_verbosity(level: int | str | VerbosityLevel) -> None:
    """Set global verbosity level.

    Args:
        level: Verbosity level (0-3, level name, or VerbosityLevel enum)
    """
    global _VERBOSITY

    if isinstance(level, str):
        level = LEVEL_NAMES[level.strip().lower()]
    _VERBOSITY = VerbosityLevel(level)


def get_verbosity() -> VerbosityLevel:
    return _VERBOSITY


def set_colors(enabled: bool) -> None:
    global _USE_COLORS
    _USE_COLORS = enabled


def add_log_sink(sink: Callable[[LogRecord], None]) -> None:
    """Register a callback receiving every emitted LogRecord."""
    _SINKS.append(sink)


def remove_log_sink(sink: Callable[[LogRecord], None]) -> None:
    with contextlib.suppress(ValueError):
        _SINKS.remove(sink)


def _publish(record: LogRecord) -> None:
    for sink in list(_SINKS):
        try:
            sink(record)
        except Exception:
            # Never route through the logger here (recursion).
            with contextlib.suppress(Exception):
                sys.stderr.write("log sink raised; suppressed.\n" + traceback.format_exc())


class WizardLogger:
    """Logger with verbosity support."""

    # ANSI color codes
    COLORS = {
        "DEBUG": "\033[36m",  # Cyan
        "VERBOSE": "\033[34m",  # Blue
        "INFO": "\033[32m",  # Green
        "WARNING": "\033[33m",  # Yellow
        "ERROR": "\033[31m",  # Red
        "RESET": "\033[0m",
    }

    def __init__(self, name: str):
        self.name = name

    def _format_message(self, level: str, message: str) -> str:
        if _USE_COLORS and sys.stdout.isatty():
            color = self.COLORS.get(level, "")
            reset = self.COLORS["RESET"]
            return f"{color}[{level.lower()}]{reset} {message}"
        return f"[{level.lower()}] {message}"

    def _log(self, level: VerbosityLevel, level_name: str, message: str) -> None:
        if level > _VERBOSITY:
            return

        _publish(
            LogRecord(
                level_name=level_name,
                plain=f"[{level_name.lower()}] {message}",
                logger_name=self.name,
            )
        )
        stream = sys.stderr if level_name in ("WARNING", "ERROR") else sys.stdout
        print(self._format_message(level_name, message), file=stream)

    def debug(self, message: str) -> None:
        self._log(VerbosityLevel.DEBUG, "DEBUG", message)

    def verbose(self, message: str) -> None:
        self._log(VerbosityLevel.VERBOSE, "VERBOSE", message)

    def info(self, message: str) -> None:
        self._log(VerbosityLevel.NORMAL, "INFO", message)

    def warning(self, message: str) -> None:
        self._log(VerbosityLevel.QUIET, "WARNING", message)

    def error(self, message: str) -> None:
        """Log error message (always shown)."""
        self._log(VerbosityLevel.QUIET, "ERROR", message)


_LOGGERS: dict[str, WizardLogger] = {}


def get_logger(name: str = __name__) -> WizardLogger:
    """Get logger instance for module.

    Args:
        name: Logger name (usually __name__)

    Returns:
        Logger instance
    """
    if name not in _LOGGERS:
        _LOGGERS[name] = WizardLogger(name)

    return _LOGGERS[name]
