"""
Logging style constants for a consistent visual hierarchy.

Shared separators, symbols and ANSI colors used by every log summary.
"""

from __future__ import annotations

import logging


class LogStyle:
    """Unified logging style constants."""

    HEADER_WIDTH = 72

    # Session headers
    HEAVY = "━" * HEADER_WIDTH
    # Subsections
    LIGHT = "─" * HEADER_WIDTH

    ARROW = "»"
    BULLET = "•"
    WARNING = "⚠"
    SUCCESS = "✓"

    INDENT = "  "
    DOUBLE_INDENT = "    "

    # ANSI colors (console only, applied by ColorFormatter)
    RESET = "\033[0m"
    DIM = "\033[2m"
    BOLD = "\033[1m"
    GREEN = "\033[32m"
    YELLOW = "\033[33m"
    RED = "\033[31m"
    MAGENTA = "\033[35m"

    @staticmethod
    def log_header(log: logging.Logger, title: str, style: str | None = None) -> None:
        """
        Log a centered header between two separator lines.

        Args:
            log: Logger instance to write to.
            title: Header text (centered).
            style: Separator string (defaults to ``LogStyle.HEAVY``).
        """
        sep = style if style is not None else LogStyle.HEAVY
        log.info(sep)
        log.info(f"{title:^{LogStyle.HEADER_WIDTH}}")
        log.info(sep)

    @staticmethod
    def kv(label: str, value: object, symbol: str | None = None) -> str:
        """Format an ``  » label             : value`` line."""
        mark = symbol if symbol is not None else LogStyle.ARROW
        return f"{LogStyle.INDENT}{mark} {label:<18}: {value}"
