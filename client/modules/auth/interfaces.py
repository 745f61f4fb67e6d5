"""
Authentication module interfaces.

UI code and route guards should depend on ISessionStore, not the concrete
SessionManager. The manager itself depends on IAuthApi and ISessionStorage
so tests can substitute either collaborator.
"""

from typing import Iterable, Optional, Protocol, Union, runtime_checkable

from shared.models import Role, UserRecord

from .models import AuthResponse, PasswordChange, ProfileUpdate, RegistrationData, SessionStatus


@runtime_checkable
class ISessionStorage(Protocol):
    """Durable string key-value store holding the persisted session."""

    def get(self, key: str) -> Optional[str]:
        ...

    def set(self, key: str, value: str) -> None:
        """
        Store ``value`` under ``key``.

        Raises:
            SessionStorageError: If the value could not be persisted
        """
        ...

    def remove(self, key: str) -> None:
        ...

    def keys(self) -> list[str]:
        ...


@runtime_checkable
class IAuthApi(Protocol):
    """
    Contract of the storefront REST endpoints the session relies on.

    Every method raises ServerUnreachableError when no response arrives,
    RequestRejectedError on a non-2xx status, and MalformedResponseError
    when a 2xx body lacks the expected fields.
    """

    async def login(self, email: str, password: str) -> AuthResponse:
        ...

    async def register(self, data: RegistrationData) -> AuthResponse:
        ...

    async def me(self) -> UserRecord:
        """
        Resolve the account behind the client's current credential.

        Raises:
            InvalidTokenError: If the backend refuses the credential
        """
        ...

    async def update_profile(self, update: ProfileUpdate) -> UserRecord:
        ...

    async def update_password(self, change: PasswordChange) -> None:
        ...


@runtime_checkable
class ISessionStore(Protocol):
    """Read side of the session, as seen by views and route guards."""

    @property
    def token(self) -> Optional[str]:
        ...

    @property
    def current_user(self) -> Optional[UserRecord]:
        ...

    @property
    def loading(self) -> bool:
        ...

    @property
    def error(self) -> Optional[str]:
        ...

    @property
    def status(self) -> SessionStatus:
        ...

    @property
    def is_authenticated(self) -> bool:
        ...

    def has_role(self, roles: Union[Role, str, Iterable[Union[Role, str]]]) -> bool:
        ...
