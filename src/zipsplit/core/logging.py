"""Centralized logging for zipsplit.

Four verbosity levels:
- QUIET (0): warnings + errors
- NORMAL (1): info + warnings + errors
- VERBOSE (2): per-archive detail
- DEBUG (3): everything, including chunk-level state

Every emitted line is also published on the process LogBus so embedders
(GUIs, job runners, tests) can capture output without parsing stdout.

Usage:
    from zipsplit.core.logging import get_logger, set_verbosity

    log = get_logger(__name__)
    set_verbosity(2)

    log.verbose("Opened archive001.zip")
    log.warning("Skipped oversized file big.iso")
"""

from __future__ import annotations

import contextlib
import sys
import traceback
from collections.abc import Callable
from dataclasses import dataclass
from enum import IntEnum


class VerbosityLevel(IntEnum):
    """Verbosity levels for zipsplit."""

    QUIET = 0
    NORMAL = 1
    VERBOSE = 2
    DEBUG = 3


_LEVEL_BY_NAME = {
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


class LogBus:
    """Fail-safe fan-out of log records.

    Subscribers may filter by level name; a subscriber raising never breaks
    the publishing logger.
    """

    def __init__(self) -> None:
        self._subs: list[tuple[str | None, Callable[[LogRecord], None]]] = []

    def subscribe(self, cb: Callable[[LogRecord], None], *, level_name: str | None = None) -> None:
        self._subs.append((level_name, cb))

    def unsubscribe(self, cb: Callable[[LogRecord], None]) -> None:
        self._subs = [(lvl, s) for lvl, s in self._subs if s != cb]

    def publish(self, record: LogRecord) -> None:
        for level_name, cb in list(self._subs):
            if level_name is not None and level_name != record.level_name:
                continue
            try:
                cb(record)
            except Exception:
                # Never route through the logger here (recursion).
                with contextlib.suppress(Exception):
                    sys.stderr.write("LogBus subscriber raised; suppressed.\n")
                    sys.stderr.write(traceback.format_exc())

    def clear(self) -> None:
        self._subs.clear()


_LOG_BUS: LogBus | None = None


def get_log_bus() -> LogBus:
    global _LOG_BUS
    if _LOG_BUS is None:
        _LOG_BUS = LogBus()
    return _LOG_BUS


_VERBOSITY: VerbosityLevel = VerbosityLevel.NORMAL
_USE_COLORS: bool = True


def set_verbosity(level: int | str | VerbosityLevel) -> None:
    """Set global verbosity level.

    Args:
        level: 0-3, a VerbosityLevel, or a level name (quiet|normal|verbose|debug)
    """
    global _VERBOSITY

    if isinstance(level, str):
        try:
            level = _LEVEL_BY_NAME[level.strip().lower()]
        except KeyError:
            raise ValueError(f"Unknown verbosity level: {level!r}") from None
    _VERBOSITY = VerbosityLevel(level)


def get_verbosity() -> VerbosityLevel:
    return _VERBOSITY


def set_colors(enabled: bool) -> None:
    """Enable or disable ANSI colors on console output."""
    global _USE_COLORS
    _USE_COLORS = enabled


class ZipSplitLogger:
    """Logger with verbosity support."""

    COLORS = {
        "DEBUG": "\033[36m",
        "VERBOSE": "\033[34m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "RESET": "\033[0m",
    }

    def __init__(self, name: str):
        self.name = name

    def _format_message(self, level_name: str, message: str) -> str:
        stream = sys.stderr if level_name == "ERROR" else sys.stdout
        if _USE_COLORS and stream.isatty():
            color = self.COLORS.get(level_name, "")
            reset = self.COLORS["RESET"]
            return f"{color}[{level_name.lower()}]{reset} {message}"
        return f"[{level_name.lower()}] {message}"

    def _log(self, level: VerbosityLevel, level_name: str, message: str) -> None:
        if level > _VERBOSITY:
            return

        plain = f"[{level_name.lower()}] {message}"
        get_log_bus().publish(LogRecord(level_name=level_name, plain=plain, logger_name=self.name))

        formatted = self._format_message(level_name, message)
        print(formatted, file=sys.stderr if level_name == "ERROR" else sys.stdout)

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


_LOGGERS: dict[str, ZipSplitLogger] = {}


def get_logger(name: str = "zipsplit") -> ZipSplitLogger:
    """Get logger instance for a module.

    Args:
        name: Logger name (usually __name__)
    """
    if name not in _LOGGERS:
        _LOGGERS[name] = ZipSplitLogger(name)
    return _LOGGERS[name]
