"""
Error types shared by the storefront client.

Modules raise subclasses of these so callers can catch a whole category
(bad input, refused credentials, missing permission, backend trouble)
without importing module internals. Every error carries a user-facing
``message``, a stable ``code`` and structured ``details``.
"""

from typing import Optional, Any


class StorefrontError(Exception):
    """
    Root of every error the client raises on purpose.

    ``code`` defaults to the class name; ``details`` is free-form context
    for logs and the CLI.
    """

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Flatten the error for structured logging or JSON output."""
        return {
            "error": self.code,
            "message": self.message,
            "details": self.details,
        }


class ValidationError(StorefrontError):
    """Form input was rejected before anything was sent."""


class AuthenticationError(StorefrontError):
    """No usable credential: missing, refused or expired."""


class AuthorizationError(StorefrontError):
    """Signed in, but the account's role does not allow the action."""


class ExternalServiceError(StorefrontError):
    """The storefront API misbehaved or could not be reached."""

    def __init__(
        self,
        message: str,
        service: str,
        code: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(message, code, details)
        self.service = service
        self.details["service"] = service
