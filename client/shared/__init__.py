"""
Shared infrastructure for the storefront session client.

This package contains cross-cutting concerns that are used by multiple modules:
- config: Centralized settings management
- http: Shared httpx client factory
- exceptions: Base exception classes
- models: Account role and user record

Note: Business logic should NOT go here. This is for infrastructure only.
"""

from .config import Settings, get_settings
from .http import (
    create_http_client,
    get_http_client,
    close_http_client,
    reset_client_cache,
    set_auth_header,
    clear_auth_header,
)
from .exceptions import (
    StorefrontError,
    ValidationError,
    AuthenticationError,
    AuthorizationError,
    ExternalServiceError,
)
from .models import Role, UserRecord

__all__ = [
    "Settings",
    "get_settings",
    "create_http_client",
    "get_http_client",
    "close_http_client",
    "reset_client_cache",
    "set_auth_header",
    "clear_auth_header",
    "StorefrontError",
    "ValidationError",
    "AuthenticationError",
    "AuthorizationError",
    "ExternalServiceError",
    "Role",
    "UserRecord",
]
