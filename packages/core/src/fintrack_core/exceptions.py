"""Custom exceptions for the FinTrack analytics engine.

This module provides a hierarchy of exception classes for consistent error
handling across the engine. All exceptions inherit from FintrackError,
making it easy to catch all application-specific errors.

Only InvalidParameterError is meant to reach callers of the engine. Missing
data is reported through typed results rather than exceptions, and
ExternalServiceError is always recovered inside the reasoning client.

Example:
    try:
        report = engine.predictions(transactions, months_ahead=months)
    except InvalidParameterError as e:
        return {"success": False, "message": e.message, "errors": e.details}
"""

from typing import Any, Optional, Sequence


class FintrackError(Exception):
    """Base exception for all FinTrack errors.

    Attributes:
        message: Human-readable error description.
        details: Optional dictionary with additional context.
        recoverable: Whether the error is potentially recoverable.
    """

    def __init__(
        self,
        message: str,
        *,
        details: Optional[dict[str, Any]] = None,
        recoverable: bool = False,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.recoverable = recoverable

    def __str__(self) -> str:
        return self.message

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"details={self.details!r}, "
            f"recoverable={self.recoverable!r})"
        )


class InvalidParameterError(FintrackError):
    """Error raised when a caller-supplied parameter is outside its domain.

    This is the caller-visible rejection class: a timeframe, sensitivity,
    months_ahead value or period key that is not accepted by the engine.

    Attributes:
        field: The parameter that failed validation.
        value: The rejected value.
        allowed: The accepted values or range, if it can be enumerated.

    Example:
        >>> raise InvalidParameterError(
        ...     "The timeframe must be one of: week, month, quarter, year.",
        ...     field="timeframe",
        ...     value="decade",
        ...     allowed=["week", "month", "quarter", "year"],
        ... )
        InvalidParameterError: The timeframe must be one of: week, month, quarter, year.
    """

    def __init__(
        self,
        message: str,
        *,
        field: Optional[str] = None,
        value: Optional[Any] = None,
        allowed: Optional[Sequence[Any]] = None,
        details: Optional[dict[str, Any]] = None,
        recoverable: bool = True,
    ) -> None:
        """Initialize InvalidParameterError.

        Args:
            message: Human-readable error description.
            field: The name of the parameter that failed validation.
            value: The invalid value.
            allowed: The accepted values or bounds.
            details: Optional dictionary with additional context.
            recoverable: Whether the caller can fix the request. Defaults to
                True since the caller only needs to resend valid input.
        """
        super().__init__(message, details=details, recoverable=recoverable)
        self.field = field
        self.value = value
        self.allowed = list(allowed) if allowed is not None else None

        if field:
            self.details["field"] = field
        if value is not None:
            self.details["value"] = value
        if self.allowed is not None:
            self.details["allowed"] = self.allowed


class ExternalServiceError(FintrackError):
    """Error raised when the external reasoning service cannot be used.

    Raised inside the reasoning client when a call times out, fails at the
    transport level or returns an unusable response. The client converts it
    into a failed outcome so the narrator can fall back to local insights.

    Attributes:
        service: Name of the external service.
        operation: The operation being attempted.
        api_error: The underlying error message, if any.
    """

    def __init__(
        self,
        message: str,
        *,
        service: Optional[str] = None,
        operation: Optional[str] = None,
        api_error: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
        recoverable: bool = True,
    ) -> None:
        super().__init__(message, details=details, recoverable=recoverable)
        self.service = service
        self.operation = operation
        self.api_error = api_error

        if service:
            self.details["service"] = service
        if operation:
            self.details["operation"] = operation
        if api_error:
            self.details["api_error"] = api_error


class ConfigurationError(FintrackError):
    """Error raised when engine wiring is invalid.

    Attributes:
        config_key: The configuration key that is problematic.
        expected: Description of the expected value or format.
        actual: The actual value found (if any).

    Example:
        >>> raise ConfigurationError(
        ...     "Cache TTL must be positive",
        ...     config_key="cache_ttl",
        ...     expected="timedelta > 0",
        ... )
        ConfigurationError: Cache TTL must be positive
    """

    def __init__(
        self,
        message: str,
        *,
        config_key: Optional[str] = None,
        expected: Optional[str] = None,
        actual: Optional[Any] = None,
        details: Optional[dict[str, Any]] = None,
        recoverable: bool = False,
    ) -> None:
        super().__init__(message, details=details, recoverable=recoverable)
        self.config_key = config_key
        self.expected = expected
        self.actual = actual

        if config_key:
            self.details["config_key"] = config_key
        if expected:
            self.details["expected"] = expected
        if actual is not None:
            self.details["actual"] = actual


__all__ = [
    "FintrackError",
    "InvalidParameterError",
    "ExternalServiceError",
    "ConfigurationError",
]
