"""
Lookback Error Model

This module provides the error handling framework for the Lookback client.
Every failure surfaced by ``LookbackQuery.execute`` is a ``LookbackError``
subclass carrying an ``ErrorCode``.
"""

from __future__ import annotations
from typing import Optional, Dict, Any, List
from enum import IntEnum


class ErrorCode(IntEnum):
    """Lookback client error codes."""

    # General errors (1-99)
    UNKNOWN = 1
    INVALID_ARGUMENT = 2

    # Query validation errors (100-199)
    CONFLICTING_PROJECTION = 100
    MISSING_FILTER = 101

    # Configuration errors (200-299)
    MISSING_CREDENTIALS = 200
    MISSING_WORKSPACE = 201

    # Service errors (300-399)
    AUTHENTICATION_FAILED = 300
    EMPTY_RESPONSE = 301
    SERVICE_REPORTED_ERROR = 302

    # Network errors (400-499)
    TRANSPORT_FAILURE = 400


class LookbackError(Exception):
    """
    Base class for all Lookback errors.

    Provides structured error information: a message, an error code,
    optional details and the underlying exception, if any.
    """

    def __init__(self, message: str, code: ErrorCode = ErrorCode.UNKNOWN,
                 details: Optional[Dict[str, Any]] = None, cause: Optional[Exception] = None):
        """
        Initialize a Lookback error.

        Args:
            message: Error message
            code: Error code
            details: Additional error details
            cause: Underlying exception that caused this error
        """
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details or {}
        self.cause = cause

    def __str__(self) -> str:
        """String representation of the error."""
        parts = [f"[{self.code.name}] {self.message}"]
        if self.details:
            parts.append(f"Details: {self.details}")
        if self.cause:
            parts.append(f"Caused by: {self.cause}")
        return " | ".join(parts)

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary representation."""
        result = {
            "code": self.code.value,
            "message": self.message,
        }
        if self.details:
            result["details"] = self.details
        if self.cause:
            result["cause"] = str(self.cause)
        return result


class InvalidArgumentError(LookbackError):
    """An argument outside the accepted domain was passed to a builder call."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, ErrorCode.INVALID_ARGUMENT, details)


class QueryValidationError(LookbackError):
    """A query failed its pre-execution checks."""


class ConflictingProjectionError(QueryValidationError):
    """Both fields=true and an explicit field list were requested."""

    def __init__(self, message: str = "Cannot set fields=true and pass required fields",
                 details: Optional[Dict[str, Any]] = None):
        super().__init__(message, ErrorCode.CONFLICTING_PROJECTION, details)


class MissingFilterError(QueryValidationError):
    """The query has no find clause."""

    def __init__(self, message: str = "Cannot execute query without find",
                 details: Optional[Dict[str, Any]] = None):
        super().__init__(message, ErrorCode.MISSING_FILTER, details)


class ConfigurationError(LookbackError):
    """The client is not configured well enough to execute a query."""


class MissingCredentialsError(ConfigurationError):
    """Username or password not set."""

    def __init__(self, message: str = "Username and password are required to execute query"):
        super().__init__(message, ErrorCode.MISSING_CREDENTIALS)


class MissingWorkspaceError(ConfigurationError):
    """Workspace not set."""

    def __init__(self, message: str = "Workspace is required to execute query"):
        super().__init__(message, ErrorCode.MISSING_WORKSPACE)


class AuthenticationFailedError(LookbackError):
    """The service rejected the credentials."""

    def __init__(self, message: str = "Authorization failed, check username and password",
                 details: Optional[Dict[str, Any]] = None):
        super().__init__(message, ErrorCode.AUTHENTICATION_FAILED, details)


class EmptyResponseError(LookbackError):
    """The service answered without a body."""

    def __init__(self, message: str = "No data received from server",
                 details: Optional[Dict[str, Any]] = None):
        super().__init__(message, ErrorCode.EMPTY_RESPONSE, details)


class ServiceReportedError(LookbackError):
    """
    The service parsed the query but reported errors.

    All error strings are kept, in the order the service returned them,
    on ``errors``.
    """

    def __init__(self, errors: List[str], details: Optional[Dict[str, Any]] = None):
        self.errors = list(errors)
        super().__init__(", ".join(self.errors), ErrorCode.SERVICE_REPORTED_ERROR, details)


class TransportFailureError(LookbackError):
    """The transport failed or returned something that could not be read."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None,
                 cause: Optional[Exception] = None):
        super().__init__(message, ErrorCode.TRANSPORT_FAILURE, details, cause)


class ErrorHandler:
    """
    Utility class for categorizing errors.

    The client never retries on its own; callers that wrap ``execute`` in a
    retry loop can use this to decide which failures are worth repeating.
    """

    @staticmethod
    def is_retryable(error: Exception) -> bool:
        """
        Check if an error is retryable.

        Args:
            error: Exception to check

        Returns:
            True if the error should be retried
        """
        if isinstance(error, TransportFailureError):
            return True
        if isinstance(error, EmptyResponseError):
            # An empty body usually means an interrupted exchange
            return True
        return False


__all__ = [
    "ErrorCode",
    "LookbackError",
    "InvalidArgumentError",
    "QueryValidationError",
    "ConflictingProjectionError",
    "MissingFilterError",
    "ConfigurationError",
    "MissingCredentialsError",
    "MissingWorkspaceError",
    "AuthenticationFailedError",
    "EmptyResponseError",
    "ServiceReportedError",
    "TransportFailureError",
    "ErrorHandler",
]
