"""
Logging Package.

Logger configuration, the shared visual style, and dataset summaries.
"""

from .logger import ColorFormatter, Logger
from .reporting import log_dataset_summary, log_verification_summary
from .styles import LogStyle

__all__ = [
    "ColorFormatter",
    "Logger",
    "LogStyle",
    "log_dataset_summary",
    "log_verification_summary",
]
