"""
Domain exceptions: invalid input handed to the engine by its host.

Engines catch these at the boundary, drop the offending roster entry or
query and log at debug/info level. They never reach the host.
"""

from __future__ import annotations

from typing import Any

from src.core.exceptions import ErrorSeverity, WhitelistError


class WhitelistDomainException(WhitelistError):
    DEFAULT_SEVERITY = ErrorSeverity.INFO


class ValidationError(WhitelistDomainException):
    def __init__(self, field: str, message: str) -> None:
        self.field = field
        self.validation_message = message
        super().__init__(
            f"Validation error for {field}: {message}",
            details={"field": field, "validation_message": message},
            error_code=f"VALIDATION_{field.upper()}",
        )


class MalformedRosterEntryError(WhitelistDomainException):
    """
    A roster descriptor without a usable id or squad shape. Common while
    players are still connecting, so it is logged at debug level.
    """

    DEFAULT_SEVERITY = ErrorSeverity.DEBUG

    def __init__(self, reason: str, raw: Any = None) -> None:
        self.reason = reason
        self.raw = raw
        super().__init__(
            f"Malformed roster entry: {reason}",
            details={"reason": reason, "raw": repr(raw)[:200]},
            error_code="MALFORMED_ROSTER_ENTRY",
        )
