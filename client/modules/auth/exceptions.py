"""
Authentication module exceptions.

These exceptions are raised by the auth module and caught by the session
manager, which turns them into the user-facing ``error`` text before
re-raising them to the calling form.
"""

from typing import Any, Optional

from shared.exceptions import (
    StorefrontError,
    AuthenticationError,
    AuthorizationError,
    ExternalServiceError,
)

STOREFRONT_API = "storefront-api"

UNREACHABLE_MESSAGE = "Unable to reach the server. Please check your connection and try again."


class ServerUnreachableError(ExternalServiceError):
    """Raised when the request never got a response from the backend."""

    def __init__(self, reason: str = ""):
        super().__init__(
            UNREACHABLE_MESSAGE,
            service=STOREFRONT_API,
            code="SERVER_UNREACHABLE",
            details={"reason": reason} if reason else {},
        )


class RequestRejectedError(StorefrontError):
    """
    Raised when the backend answered with a non-2xx status.

    ``server_message`` holds the ``message`` field of the response body
    when there was one; it is what the user gets to see.
    """

    def __init__(
        self,
        status_code: int,
        server_message: Optional[str] = None,
        errors: Optional[list[Any]] = None,
    ):
        super().__init__(
            server_message or f"Request failed with status {status_code}",
            code="REQUEST_REJECTED",
            details={"status_code": status_code},
        )
        self.status_code = status_code
        self.server_message = server_message
        self.errors = errors or []
        if self.errors:
            self.details["errors"] = self.errors


class MalformedResponseError(ExternalServiceError):
    """Raised when a 2xx response lacks the fields the client relies on."""

    def __init__(self, endpoint: str, missing: Optional[list[str]] = None):
        missing = missing or []
        super().__init__(
            f"Malformed response from {endpoint}",
            service=STOREFRONT_API,
            code="MALFORMED_RESPONSE",
            details={"endpoint": endpoint, "missing": missing},
        )
        self.endpoint = endpoint
        self.missing = missing


class InvalidTokenError(AuthenticationError):
    """Raised when the backend refuses a stored token (expired or revoked)."""

    def __init__(self, message: str = "Authentication token is no longer valid"):
        super().__init__(message, code="INVALID_TOKEN")


class NotAuthenticatedError(AuthenticationError):
    """Raised when an operation needs a logged-in session and there is none."""

    def __init__(self, message: str = "Authentication required"):
        super().__init__(message, code="NOT_AUTHENTICATED")


class InsufficientPermissionsError(AuthorizationError):
    """Raised when the session's role is not among the allowed roles."""

    def __init__(self, required_roles: list[str], user_role: Optional[str]):
        super().__init__(
            f"Insufficient permissions. Required: {', '.join(required_roles)}, has: {user_role or 'none'}",
            code="INSUFFICIENT_PERMISSIONS",
            details={"required_roles": required_roles, "user_role": user_role},
        )


class SessionSupersededError(StorefrontError):
    """
    Raised when a logout happened while an operation was in flight.

    The late result is discarded so the cleared session stays cleared.
    """

    def __init__(self, operation: str):
        super().__init__(
            f"Session changed while {operation} was in progress",
            code="SESSION_SUPERSEDED",
            details={"operation": operation},
        )
        self.operation = operation


class SessionStorageError(StorefrontError):
    """Raised when the durable session store cannot be written."""

    def __init__(self, key: str, reason: str):
        super().__init__(
            f"Could not persist session key '{key}': {reason}",
            code="SESSION_STORAGE_ERROR",
            details={"key": key, "reason": reason},
        )
