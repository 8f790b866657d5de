"""Shared exceptions for the quest generation and analytics core.

This module defines the error taxonomy used across all modules. Every
exception carries an ``ErrorType`` so that callers can map failures to a
retry affordance (``generation``) or a generic failure notice (everything
else) without inspecting messages.
"""

from typing import Any

from climb_you.shared.models import ErrorResponse, ErrorType


class ClimbYouException(Exception):
    """Base exception for all application errors.

    All domain-specific exceptions should inherit from this class
    to keep the error taxonomy intact end to end.
    """

    error_type: ErrorType = ErrorType.UNKNOWN

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to the structured ``{type, message, details}`` form."""
        return {
            "type": self.error_type.value,
            "message": self.message,
            "details": self.details,
        }


# ===================
# Generation Errors
# ===================

class GenerationError(ClimbYouException):
    """Raised when LLM output fails validation after the retry budget is spent."""

    error_type = ErrorType.GENERATION

    def __init__(
        self,
        message: str,
        attempts: int = 0,
        failures: list[str] | None = None,
    ) -> None:
        super().__init__(
            message,
            {"attempts": attempts, "failures": failures or []},
        )
        self.attempts = attempts
        self.failures = failures or []


class ResponseValidationError(ClimbYouException):
    """Raised for a single completion that breaks the quest contract.

    Consumed by the generation gateway's retry loop; it only reaches
    callers wrapped in a GenerationError.
    """

    error_type = ErrorType.GENERATION

    def __init__(self, reason: str, raw: str | None = None) -> None:
        details: dict[str, Any] = {}
        if raw is not None:
            # Truncate raw completions to keep logs and payloads small
            details["raw"] = raw[:500]
        super().__init__(reason, details)


# ===================
# Validation Errors
# ===================

class ValidationError(ClimbYouException):
    """Raised when an input profile, record or request is malformed."""

    error_type = ErrorType.VALIDATION

    def __init__(self, field: str, message: str) -> None:
        super().__init__(
            f"Validation error for '{field}': {message}",
            {"field": field}
        )
        self.field = field


class InvalidRateError(ValidationError):
    """Raised when a rate or difficulty is outside [0, 1]."""

    def __init__(self, field: str, value: float) -> None:
        super().__init__(field, f"Value must be between 0.0 and 1.0, got {value}")


class InvalidRatingError(ValidationError):
    """Raised when a user rating is outside 1-5."""

    def __init__(self, rating: int) -> None:
        super().__init__("user_rating", f"Rating must be between 1 and 5, got {rating}")


class ProfileNotFoundError(ValidationError):
    """Raised when a generation cycle is requested for a user without a profile."""

    def __init__(self, user_id: str) -> None:
        super().__init__("user_id", f"No profile found for user {user_id}")
        self.details["user_id"] = user_id


# ===================
# Storage Errors
# ===================

class StorageError(ClimbYouException):
    """Raised when the history store fails to read or write."""

    error_type = ErrorType.STORAGE

    def __init__(self, operation: str, message: str) -> None:
        super().__init__(
            f"Storage error during {operation}: {message}",
            {"operation": operation}
        )


# ===================
# Integration Errors
# ===================

class NetworkError(ClimbYouException):
    """Raised on a transient failure calling the completion capability."""

    error_type = ErrorType.NETWORK

    def __init__(self, service: str, message: str) -> None:
        super().__init__(
            f"Network error ({service}): {message}",
            {"service": service}
        )


class UnknownError(ClimbYouException):
    """Catch-all error that always keeps the original message."""

    error_type = ErrorType.UNKNOWN

    def __init__(self, message: str, original: str | None = None) -> None:
        super().__init__(message, {"original_message": original or message})


class ConfigurationError(ClimbYouException):
    """Raised when there's a configuration problem."""

    error_type = ErrorType.UNKNOWN


# ===================
# Conversion
# ===================

def to_error_response(exc: BaseException) -> ErrorResponse:
    """Convert any exception into a structured ErrorResponse.

    Foreign exceptions are reported as ``unknown`` with their original
    message so that nothing escapes the taxonomy.
    """
    if isinstance(exc, ClimbYouException):
        return ErrorResponse(
            type=exc.error_type,
            message=exc.message,
            details=exc.details or None,
        )
    return ErrorResponse(
        type=ErrorType.UNKNOWN,
        message=f"{type(exc).__name__}: {exc}",
        details={"original_message": str(exc)},
    )
