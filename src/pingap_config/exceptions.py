"""Exception hierarchy for pingap-config."""

from __future__ import annotations

from typing import Any


class PingapConfigError(Exception):
    """Base exception for all pingap-config errors.

    Attributes:
        message: Human-readable error description.
        status_code: HTTP status code (if from HTTP response).
        response_body: Raw server response dict (if available).
        request_id: Server request ID for support debugging.
        suggestion: Actionable suggestion for the developer.
    """

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        response_body: dict[str, Any] | None = None,
        request_id: str | None = None,
        suggestion: str | None = None,
    ) -> None:
        full_message = message
        if suggestion:
            full_message += f"\n  Suggestion: {suggestion}"
        if request_id:
            full_message += f"\n  Request ID: {request_id}"
        super().__init__(full_message)
        self.message = message
        self.status_code = status_code
        self.response_body = response_body
        self.request_id = request_id
        self.suggestion = suggestion

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}(message={self.message!r}, status_code={self.status_code})"
        )


class SchemaError(PingapConfigError):
    """Raised when a form schema is malformed (unknown category, bad field id, ...)."""

    pass


class ValidationError(PingapConfigError):
    """Raised when a submitted value is rejected by its category codec."""

    def __init__(self, message: str, *, field: str | None = None, value: Any = None) -> None:
        super().__init__(message)
        self.field = field
        self.value = value


class NetworkError(PingapConfigError):
    """Raised when the configuration backend cannot be reached or does not answer."""

    pass


class ConnectionError(NetworkError):
    """Raised when unable to connect to the admin API.

    Note: This is the pingap-config exception, not Python's builtin ConnectionError.
    """

    pass


class TimeoutError(NetworkError):
    """Raised when a request to the admin API times out.

    Note: This is the pingap-config exception, not Python's builtin TimeoutError.
    """

    pass


class ServerError(NetworkError):
    """Raised when the admin API returns a 5xx error."""

    pass


class RateLimitError(NetworkError):
    """Raised when the admin API rate limit is exceeded (429)."""

    def __init__(
        self,
        message: str,
        *,
        retry_after: float | None = None,
        status_code: int | None = None,
        response_body: dict[str, Any] | None = None,
        request_id: str | None = None,
        suggestion: str | None = None,
    ) -> None:
        super().__init__(
            message,
            status_code=status_code,
            response_body=response_body,
            request_id=request_id,
            suggestion=suggestion,
        )
        self.retry_after = retry_after


class BackendError(PingapConfigError):
    """Raised when the backend answered but refused the request."""

    pass


class AuthenticationError(BackendError):
    """Raised when authentication fails (401)."""

    pass


class AuthorizationError(BackendError):
    """Raised when authorization fails (403)."""

    pass


class NotFoundError(BackendError):
    """Raised when a config section or endpoint is not found (404)."""

    pass


class RejectedError(BackendError):
    """Raised when the backend rejects a patch (400/422). No field of the patch was applied."""

    pass


class BusyError(PingapConfigError):
    """Raised when an update for the same section is already in flight."""

    def __init__(self, namespace: str, category: str) -> None:
        super().__init__(
            f"An update for {namespace}/{category} is already in progress",
            suggestion="Retry after the pending update resolves",
        )
        self.namespace = namespace
        self.category = category


class StoreNotInitializedError(PingapConfigError):
    """Raised when the store is used before a successful load()."""

    pass


class StoreClosedError(PingapConfigError):
    """Raised when the store was closed while (or before) an operation ran."""

    pass


__all__ = [
    "AuthenticationError",
    "AuthorizationError",
    "BackendError",
    "BusyError",
    "ConnectionError",
    "NetworkError",
    "NotFoundError",
    "PingapConfigError",
    "RateLimitError",
    "RejectedError",
    "SchemaError",
    "ServerError",
    "StoreClosedError",
    "StoreNotInitializedError",
    "TimeoutError",
    "ValidationError",
]
