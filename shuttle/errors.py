"""Error taxonomy for completion calls."""

from __future__ import annotations

from typing import Any

from pydantic import ValidationError


class ShuttleError(Exception):
    """Base exception for all completion errors."""

    retryable: bool = False


class CacheUnavailableError(ShuttleError):
    """Cache lookup or write failed."""


class EmptyStructuredResponseError(ShuttleError):
    """The provider answered but returned no text for a structured request."""

    retryable = True

    def __init__(self, message: str = "No content in response"):
        super().__init__(message)


class MalformedJSONError(ShuttleError):
    """Response text could not be parsed as JSON.

    Not retried: a provider that ignores the JSON instruction once usually
    ignores it again.
    """

    def __init__(self, message: str, content: str):
        super().__init__(message)
        self.content = content


class SchemaValidationFailedError(ShuttleError):
    """Parsed JSON does not match the requested response model."""

    retryable = True

    def __init__(
        self,
        message: str,
        *,
        schema_name: str,
        validation_error: ValidationError | None = None,
    ):
        super().__init__(message)
        self.schema_name = schema_name
        self.validation_error = validation_error


class TransportError(ShuttleError):
    """Failure reported by the remote completion API or the network."""

    retryable = True

    def __init__(
        self,
        message: str,
        *,
        status: int | None = None,
        code: str | None = None,
        error: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.status = status
        self.code = code
        self.error = error or {}

    def __str__(self) -> str:
        if self.status is None:
            return self.message
        return f"{self.message} (status={self.status}, code={self.code})"


class InsufficientBalanceError(ShuttleError):
    """The provider rejected the call for payment or quota reasons."""

    def __init__(self, message: str, *, cause: TransportError | None = None):
        super().__init__(message)
        self.cause = cause
