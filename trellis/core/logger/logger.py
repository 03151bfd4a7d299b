"""
Logging Management Module.

Centralized configuration of the ``Trellis`` logger. Library code only ever
calls ``logging.getLogger(LOGGER_NAME)``; the CLI (or an application) calls
``Logger.setup`` once to attach a console handler and, when a log directory
is configured, a rotating file handler.
"""

from __future__ import annotations

import logging
import os
import sys
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Final

from ..paths import LOGGER_NAME
from .styles import LogStyle

_SEPARATOR_CHARS = {"━", "─"}


def _is_separator(text: str) -> bool:
    return bool(text) and all(c in _SEPARATOR_CHARS for c in text)


def _is_title(text: str) -> bool:
    return len(text) > 5 and text == text.upper() and any(c.isalpha() for c in text)


def _paint(line: str, message: str, color: str) -> str:
    """Wrap the message part of *line* in *color*; the prefix stays plain."""
    idx = line.find(message)
    if idx == -1:
        return line
    return f"{line[:idx]}{color}{line[idx:]}{LogStyle.RESET}"


class ColorFormatter(logging.Formatter):
    """
    ANSI-colored console formatter.

    Warnings and errors get a colored level name (warnings also a yellow
    message). INFO lines are colored by content: dim separators, green
    ``✓`` lines and bold magenta upper-case headers.
    """

    _LEVEL_COLORS = {
        logging.WARNING: LogStyle.YELLOW,
        logging.ERROR: LogStyle.RED,
        logging.CRITICAL: LogStyle.RED + LogStyle.BOLD,
    }

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        message = record.getMessage()

        level_color = self._LEVEL_COLORS.get(record.levelno)
        if level_color is not None:
            line = line.replace(
                record.levelname, f"{level_color}{record.levelname}{LogStyle.RESET}", 1
            )
            if record.levelno == logging.WARNING:
                line = _paint(line, message, LogStyle.YELLOW)
            return line

        text = message.strip()
        if _is_separator(text):
            return _paint(line, message, LogStyle.DIM)
        if LogStyle.SUCCESS in message:
            return _paint(line, message, LogStyle.GREEN)
        if _is_title(text):
            return _paint(line, message, LogStyle.BOLD + LogStyle.MAGENTA)
        return line


_LINE_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"
_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def _console_handler() -> logging.Handler:
    handler = logging.StreamHandler(sys.stdout)
    formatter_cls = ColorFormatter if sys.stdout.isatty() else logging.Formatter
    handler.setFormatter(formatter_cls(_LINE_FORMAT, _DATE_FORMAT))
    return handler


def _file_handler(path: Path, max_bytes: int, backup_count: int) -> logging.Handler:
    path.parent.mkdir(parents=True, exist_ok=True)
    handler = RotatingFileHandler(
        path, maxBytes=max_bytes, backupCount=backup_count, encoding="utf-8"
    )
    handler.setFormatter(logging.Formatter(_LINE_FORMAT, _DATE_FORMAT))
    return handler


# LOGGER CLASS
class Logger:
    """
    Configures the named logger with singleton-like behavior.

    A logger name is configured once; constructing another ``Logger`` for the
    same name is a no-op unless a ``log_dir`` is given, which reconfigures it
    with an additional rotating file handler named ``<name>_<UTC timestamp>.log``.

    Attributes:
        name: Logger identifier (``LOGGER_NAME`` by default).
        log_dir: Directory for log files (None = console only).
        log_to_file: Whether a file handler is attached.
        level: Numeric logging level.
    """

    _configured_names: Final[set[str]] = set()
    _active_log_file: Path | None = None

    def __init__(
        self,
        name: str = LOGGER_NAME,
        log_dir: Path | None = None,
        log_to_file: bool = True,
        level: int = logging.INFO,
        max_bytes: int = 5 * 1024 * 1024,
        backup_count: int = 3,
    ) -> None:
        self.name = name
        self.log_dir = Path(log_dir) if log_dir is not None else None
        self.log_to_file = log_to_file and self.log_dir is not None
        self.level = level
        self._log = logging.getLogger(name)

        if log_dir is None and name in Logger._configured_names:
            self._log.setLevel(level)
            return
        self._reset_handlers()
        self._log.addHandler(_console_handler())
        if self.log_to_file:
            stamp = datetime.now(timezone.utc).strftime("%Y%m%d_%H%M%S")
            log_file = self.log_dir / f"{name.lower()}_{stamp}.log"
            self._log.addHandler(_file_handler(log_file, max_bytes, backup_count))
            Logger._active_log_file = log_file
        Logger._configured_names.add(name)

    def _reset_handlers(self) -> None:
        self._log.setLevel(self.level)
        self._log.propagate = False
        for handler in list(self._log.handlers):
            self._log.removeHandler(handler)
            handler.close()

    def get_logger(self) -> logging.Logger:
        return self._log

    @classmethod
    def get_log_file(cls) -> Path | None:
        """Path of the most recently opened log file, if any."""
        return cls._active_log_file

    @classmethod
    def setup(
        cls, name: str = LOGGER_NAME, log_dir: Path | None = None, level: str = "INFO", **kwargs
    ) -> logging.Logger:
        """
        Configure the logger from a level name.

        ``DEBUG=1`` in the environment forces DEBUG regardless of ``level``.

        Args:
            name: Logger identifier.
            log_dir: Directory for log files (None = console only).
            level: Level name (DEBUG, INFO, WARNING, ERROR, CRITICAL).
            **kwargs: Passed through to the ``Logger`` constructor.

        Returns:
            The configured ``logging.Logger``.
        """
        if os.getenv("DEBUG") == "1":
            numeric_level = logging.DEBUG
        else:
            numeric_level = getattr(logging, level.upper(), logging.INFO)
        return cls(name=name, log_dir=log_dir, level=numeric_level, **kwargs).get_logger()
