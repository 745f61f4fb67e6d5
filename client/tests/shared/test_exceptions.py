"""Tests for shared/exceptions.py and the auth exceptions built on it."""

import pytest

from shared.exceptions import (
    StorefrontError,
    ValidationError,
    AuthenticationError,
    AuthorizationError,
    ExternalServiceError,
)
from modules.auth.exceptions import (
    InsufficientPermissionsError,
    InvalidTokenError,
    MalformedResponseError,
    RequestRejectedError,
    ServerUnreachableError,
    SessionSupersededError,
    UNREACHABLE_MESSAGE,
)


class TestStorefrontError:
    def test_message(self):
        """StorefrontError should store message."""
        error = StorefrontError("Test error")
        assert error.message == "Test error"
        assert str(error) == "Test error"

    def test_default_code(self):
        """StorefrontError should default code to class name."""
        assert StorefrontError("Test error").code == "StorefrontError"

    def test_custom_code_and_details(self):
        error = StorefrontError("Test error", code="CUSTOM_ERROR", details={"key": "value"})
        assert error.code == "CUSTOM_ERROR"
        assert error.details == {"key": "value"}

    def test_to_dict(self):
        error = StorefrontError("Test error", code="TEST_ERROR", details={"key": "value"})
        assert error.to_dict() == {
            "error": "TEST_ERROR",
            "message": "Test error",
            "details": {"key": "value"},
        }


class TestBaseHierarchy:
    @pytest.mark.parametrize(
        "cls",
        [ValidationError, AuthenticationError, AuthorizationError],
    )
    def test_inherits_storefront_error(self, cls):
        assert isinstance(cls("boom"), StorefrontError)

    def test_external_service_error_includes_service(self):
        error = ExternalServiceError("Connection failed", service="storefront-api", details={"status_code": 500})
        assert error.service == "storefront-api"
        assert error.to_dict()["details"] == {"status_code": 500, "service": "storefront-api"}


class TestAuthExceptions:
    def test_unreachable(self):
        error = ServerUnreachableError("refused")
        assert isinstance(error, ExternalServiceError)
        assert error.message == UNREACHABLE_MESSAGE
        assert error.code == "SERVER_UNREACHABLE"
        assert error.details["reason"] == "refused"

    def test_rejected_with_server_message(self):
        error = RequestRejectedError(401, "Invalid credentials")
        assert error.message == "Invalid credentials"
        assert error.details == {"status_code": 401}

    def test_rejected_without_server_message(self):
        error = RequestRejectedError(500)
        assert error.server_message is None
        assert "500" in error.message

    def test_malformed(self):
        error = MalformedResponseError("/auth/register", ["token", "user"])
        assert error.code == "MALFORMED_RESPONSE"
        assert error.details["missing"] == ["token", "user"]

    def test_invalid_token_is_authentication_error(self):
        assert isinstance(InvalidTokenError(), AuthenticationError)

    def test_insufficient_permissions(self):
        error = InsufficientPermissionsError(["admin"], None)
        assert isinstance(error, AuthorizationError)
        assert "none" in error.message

    def test_superseded(self):
        error = SessionSupersededError("login")
        assert error.operation == "login"
        assert error.code == "SESSION_SUPERSEDED"
