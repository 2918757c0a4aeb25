"""
Exception hierarchy shared by the whitelist engines.

Every error carries a stable `error_code`, structured `details`, a
`severity` that picks its log level and an `is_retryable` flag telling
whether the next tick may succeed where this one failed. Engines never raise
these into the host: they log them through `BaseService.log_error` and skip
the affected player or tick.

Infrastructure errors (store, configuration, schema, whitelist file) live
here; domain errors (bad host input) in `src.modules.shared.exceptions`.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Optional

from sqlalchemy.exc import DisconnectionError, OperationalError

_TRANSIENT_STORE_ERRORS = (OperationalError, DisconnectionError)


class ErrorSeverity(Enum):
    DEBUG = "debug"  # expected during play, e.g. malformed roster rows
    INFO = "info"
    WARNING = "warning"  # handled; the next tick retries
    ERROR = "error"
    CRITICAL = "critical"  # the whitelist subsystem cannot run


class WhitelistError(Exception):
    """
    Base of both hierarchies.

    Subclasses set DEFAULT_SEVERITY / DEFAULT_RETRYABLE; callers may override
    either per instance.
    """

    DEFAULT_SEVERITY: ErrorSeverity = ErrorSeverity.ERROR
    DEFAULT_RETRYABLE: bool = False

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        severity: Optional[ErrorSeverity] = None,
        is_retryable: Optional[bool] = None,
        error_code: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.details: Dict[str, Any] = details or {}
        self.severity = severity or self.DEFAULT_SEVERITY
        self.is_retryable = self.DEFAULT_RETRYABLE if is_retryable is None else is_retryable
        self.error_code = error_code or type(self).__name__

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error_type": type(self).__name__,
            "error_code": self.error_code,
            "message": self.message,
            "details": self.details,
            "severity": self.severity.value,
            "is_retryable": self.is_retryable,
        }

    def __str__(self) -> str:
        if self.details:
            return f"[{self.error_code}] {self.message} | Details: {self.details}"
        return f"[{self.error_code}] {self.message}"


def _cause(original_error: BaseException) -> Dict[str, str]:
    return {"error": str(original_error), "error_type": type(original_error).__name__}


class WhitelistInfrastructureException(WhitelistError):
    pass


class ConfigurationError(WhitelistInfrastructureException):
    """A whitelist setting is out of range or missing."""

    DEFAULT_SEVERITY = ErrorSeverity.CRITICAL

    def __init__(self, config_key: str, message: str) -> None:
        self.config_key = config_key
        super().__init__(
            f"Configuration error for {config_key}: {message}",
            details={"config_key": config_key, "message": message},
            error_code="CONFIG_ERROR",
        )


class DatabaseError(WhitelistInfrastructureException):
    """
    A store operation failed. Lock contention and dropped connections are
    logged as warnings; anything else as an error.
    """

    DEFAULT_RETRYABLE = True

    def __init__(self, operation: str, original_error: Exception) -> None:
        self.operation = operation
        self.original_error = original_error
        super().__init__(
            f"Database error during {operation}: {original_error}",
            details={"operation": operation, **_cause(original_error)},
            error_code="DATABASE_ERROR",
            severity=(
                ErrorSeverity.WARNING
                if isinstance(original_error, _TRANSIENT_STORE_ERRORS)
                else None
            ),
        )


class SchemaInitializationError(WhitelistInfrastructureException):
    """
    The progress table could not be created at mount. The plugin stays
    disabled; the host keeps running.
    """

    DEFAULT_SEVERITY = ErrorSeverity.CRITICAL

    def __init__(self, original_error: Exception) -> None:
        self.original_error = original_error
        super().__init__(
            f"Schema initialization failed: {original_error}",
            details=_cause(original_error),
            error_code="SCHEMA_INIT_FAILED",
        )


class WhitelistWriteError(WhitelistInfrastructureException):
    """The whitelist file could not be replaced; the old contents remain."""

    DEFAULT_RETRYABLE = True

    def __init__(self, path: str, original_error: Exception) -> None:
        self.path = path
        self.original_error = original_error
        super().__init__(
            f"Failed to write whitelist file {path}: {original_error}",
            details={"path": path, **_cause(original_error)},
            error_code="WHITELIST_WRITE_FAILED",
        )


def is_transient_error(exc: Exception) -> bool:
    if isinstance(exc, WhitelistError):
        return exc.is_retryable
    return isinstance(exc, _TRANSIENT_STORE_ERRORS)


def get_error_severity(exc: Exception) -> ErrorSeverity:
    if isinstance(exc, WhitelistError):
        return exc.severity
    return ErrorSeverity.WARNING if is_transient_error(exc) else ErrorSeverity.ERROR


def should_alert(exc: Exception) -> bool:
    """True when the error deserves a traceback in the log."""
    return get_error_severity(exc) in (ErrorSeverity.ERROR, ErrorSeverity.CRITICAL)
