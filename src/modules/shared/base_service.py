"""
Common base for the whitelist engines (accrual, decay, materializer, query).
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from src.core.exceptions import get_error_severity, should_alert

if TYPE_CHECKING:
    from logging import Logger

    from src.modules.whitelist.settings import WhitelistSettings


class BaseService:
    def __init__(self, settings: WhitelistSettings, logger: Logger) -> None:
        self.settings = settings
        self.log = logger

    def log_error(self, operation: str, error: Exception, **context: Any) -> None:
        """
        Log a failure at the level its severity calls for: transient store
        errors at WARNING, unknown errors at ERROR with a traceback.
        """
        severity = get_error_severity(error)
        self.log.log(
            logging.getLevelName(severity.name),
            f"{operation} failed: {error}",
            extra={
                "operation": operation,
                "error_type": type(error).__name__,
                "severity": severity.value,
                **context,
            },
            exc_info=should_alert(error),
        )
