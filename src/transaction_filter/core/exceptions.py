"""
Custom exceptions for the transaction filter.

Provides structured error handling with error codes and details
for log events and audit output.
"""

from typing import TYPE_CHECKING, Any, Dict, Iterable, Optional

if TYPE_CHECKING:
    from ..models.transaction import Violation


class TransactionFilterException(Exception):
    """Base exception for the transaction filter."""

    def __init__(
        self,
        message: str,
        error_code: str = "internal_error",
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.error_code = error_code
        self.details = details or {}


class InvalidRecordError(TransactionFilterException):
    """Raised when a record breaks one or more field constraints."""

    def __init__(self, violations: Iterable["Violation"]) -> None:
        self.violations = frozenset(violations)
        rendered = sorted(str(v) for v in self.violations)
        super().__init__(
            message="Invalid transaction record: " + ", ".join(rendered),
            error_code="invalid_record",
            details={"violations": rendered},
        )


class AuditWriteError(TransactionFilterException):
    """Raised when an audit path cannot be resolved or written."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(
            message=message,
            error_code="audit_write_error",
            details=details,
        )


class StoreUnavailableError(TransactionFilterException):
    """Raised when the identifier store cannot be loaded or queried."""

    def __init__(self, message: str = "Identifier store unavailable", details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(
            message=message,
            error_code="store_unavailable",
            details=details,
        )


class ConfigurationError(TransactionFilterException):
    """Raised when the configuration file is missing or malformed."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(
            message=message,
            error_code="configuration_error",
            details=details,
        )
