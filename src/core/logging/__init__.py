"""
Whitelist logging infrastructure: structured queue-backed logging and the
LogContext scope used by ticks and chat queries.
"""

from src.core.logging.logger import (
    LogContext,
    get_logger,
    setup_logging,
    shutdown_logging,
)

__all__ = [
    "setup_logging",
    "shutdown_logging",
    "get_logger",
    "LogContext",
]
