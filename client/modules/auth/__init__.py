"""
Authentication module.

Holds the client-side session: who is logged in, with what role, and
whether the credential is still accepted by the storefront API.

Public API:
- SessionManager: The session store (login, register, logout, restore, ...)
- ISessionStore / IAuthApi / ISessionStorage: Interfaces for injection
- AuthApiClient: httpx implementation of the REST contract
- MemoryStorage / JsonFileStorage: Durable session storage
- check_access / require_role / dashboard_path: Route guard helpers
- Auth exceptions: ServerUnreachableError, RequestRejectedError, etc.
"""

from .interfaces import IAuthApi, ISessionStorage, ISessionStore
from .models import (
    AuthResponse,
    LoginRequest,
    PasswordChange,
    ProfileUpdate,
    RegistrationData,
    SessionSnapshot,
    SessionStatus,
)
from .api_client import AuthApiClient
from .storage import JsonFileStorage, MemoryStorage, TOKEN_KEY, USER_KEY, LEGACY_USER_ID_KEY
from .service import (
    SessionManager,
    check_password_policy,
    get_session_manager,
    reset_session_manager,
)
from .guards import AccessDecision, check_access, dashboard_path, redirect_for, require_role
from .exceptions import (
    ServerUnreachableError,
    RequestRejectedError,
    MalformedResponseError,
    InvalidTokenError,
    NotAuthenticatedError,
    InsufficientPermissionsError,
    SessionSupersededError,
    SessionStorageError,
)

__all__ = [
    # Interfaces
    "IAuthApi",
    "ISessionStorage",
    "ISessionStore",
    # Models
    "AuthResponse",
    "LoginRequest",
    "PasswordChange",
    "ProfileUpdate",
    "RegistrationData",
    "SessionSnapshot",
    "SessionStatus",
    # Implementations
    "AuthApiClient",
    "JsonFileStorage",
    "MemoryStorage",
    "TOKEN_KEY",
    "USER_KEY",
    "LEGACY_USER_ID_KEY",
    "SessionManager",
    "check_password_policy",
    "get_session_manager",
    "reset_session_manager",
    # Guards
    "AccessDecision",
    "check_access",
    "dashboard_path",
    "redirect_for",
    "require_role",
    # Exceptions
    "ServerUnreachableError",
    "RequestRejectedError",
    "MalformedResponseError",
    "InvalidTokenError",
    "NotAuthenticatedError",
    "InsufficientPermissionsError",
    "SessionSupersededError",
    "SessionStorageError",
]
