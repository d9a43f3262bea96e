"""
onshape_drafter — places notes and diameter dimensions into Onshape drawings.

The command-line entry point is main.py.
"""

from onshape_drafter.logging_config import (
    setup_logging,
    get_logger,
    configure_default_logging,
    log_timing,
    timed,
    LogContext,
)

__version__ = "0.1.0"

__all__ = [
    "setup_logging",
    "get_logger",
    "configure_default_logging",
    "log_timing",
    "timed",
    "LogContext",
]
