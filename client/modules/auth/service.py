"""
Session manager implementation.

Single source of truth for who is logged in, with what role, and whether
that is still valid. Owns the bearer token and resolved account, persists
both to durable storage, and keeps the shared HTTP client's Authorization
header in step with the token.
"""

import logging
from enum import Enum
from typing import Any, Awaitable, Callable, Iterable, NoReturn, Optional, TypeVar, Union
import httpx
from pydantic import ValidationError as PydanticValidationError

from shared.config import get_settings
from shared.exceptions import StorefrontError, ValidationError
from shared.http import clear_auth_header, get_http_client, set_auth_header
from shared.models import Role, UserRecord

from .api_client import AuthApiClient
from .exceptions import (
    MalformedResponseError,
    RequestRejectedError,
    ServerUnreachableError,
    SessionStorageError,
    SessionSupersededError,
)
from .interfaces import IAuthApi, ISessionStorage
from .models import (
    AuthResponse,
    LoginRequest,
    PasswordChange,
    ProfileUpdate,
    RegistrationData,
    SessionSnapshot,
    SessionStatus,
)
from .storage import JsonFileStorage, SESSION_KEYS, TOKEN_KEY, USER_KEY

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")

SessionListener = Callable[[SessionSnapshot], None]


class _Operation(str, Enum):
    RESTORE = "restore"
    LOGIN = "login"
    REGISTER = "register"
    UPDATE_PROFILE = "update_profile"
    UPDATE_PASSWORD = "update_password"


class _Call:
    """One in-flight operation. Compared by identity, so overlapping calls of the same kind stay apart."""

    __slots__ = ("op",)

    def __init__(self, op: _Operation):
        self.op = op


# Fallback texts when the backend gives no message of its own
LOGIN_FAILED = "Login failed"
REGISTRATION_FAILED = "Registration failed: Server error"
REGISTRATION_MALFORMED = "Registration failed: Invalid server response"
PROFILE_FAILED = "Failed to update profile"
PASSWORD_FAILED = "Failed to update password"
MISSING_CREDENTIALS = "Please provide email and password"


def check_password_policy(
    new_password: str,
    confirm_password: Optional[str] = None,
    min_length: Optional[int] = None,
) -> None:
    """
    Validate a new password before calling update_password.

    Raises:
        ValidationError: If the password is too short or the confirmation differs
    """
    if min_length is None:
        min_length = get_settings().min_password_length
    if len(new_password or "") < min_length:
        raise ValidationError(
            f"Password must be at least {min_length} characters",
            code="PASSWORD_TOO_SHORT",
            details={"min_length": min_length},
        )
    if confirm_password is not None and confirm_password != new_password:
        raise ValidationError("New passwords do not match", code="PASSWORD_MISMATCH")


def _validation_error(e: PydanticValidationError, prefix: str) -> ValidationError:
    errors = [
        {"field": ".".join(str(part) for part in err["loc"]), "message": err["msg"]}
        for err in e.errors()
    ]
    first = errors[0] if errors else {"field": "", "message": "invalid input"}
    label = f"{first['field']}: " if first["field"] else ""
    return ValidationError(
        f"{prefix}: {label}{first['message']}",
        code="INVALID_INPUT",
        details={"errors": errors},
    )


class SessionManager:
    """
    Process-wide authentication session.

    Construct one at the composition root and hand it to whatever needs
    it. UI code reads ``current_user``, ``token``, ``loading``, ``error``,
    ``status`` and ``is_authenticated``, or subscribes to snapshots.

    Each login, register and restore captures a generation number when it
    starts. ``logout`` and every newly established account bump the
    generation, so a response arriving afterwards is dropped instead of
    resurrecting the session or mixing two accounts.
    """

    def __init__(
        self,
        api: IAuthApi,
        storage: ISessionStorage,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self._api = api
        self._storage = storage
        self._http = http_client if http_client is not None else getattr(api, "http_client", None)

        self._token: Optional[str] = None
        self._user: Optional[UserRecord] = None
        self._error: Optional[str] = None
        # Nothing has been read from storage yet
        self._pending: Optional[_Call] = _Call(_Operation.RESTORE)
        self._generation = 0
        self._listeners: list[SessionListener] = []

    # ------------------------------------------------------------------
    # Read side
    # ------------------------------------------------------------------

    @property
    def token(self) -> Optional[str]:
        return self._token

    @property
    def current_user(self) -> Optional[UserRecord]:
        """The resolved account. Always None while there is no token."""
        if self._token is None:
            return None
        return self._user

    @property
    def loading(self) -> bool:
        return self._pending is not None

    @property
    def error(self) -> Optional[str]:
        return self._error

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def status(self) -> SessionStatus:
        op = self._pending.op if self._pending is not None else None
        if op is _Operation.RESTORE:
            return SessionStatus.VERIFYING if self._token else SessionStatus.RESTORING
        if op in (_Operation.LOGIN, _Operation.REGISTER):
            return SessionStatus.AUTHENTICATING
        if self._token and self._user:
            return SessionStatus.AUTHENTICATED
        return SessionStatus.ANONYMOUS

    @property
    def is_authenticated(self) -> bool:
        """
        True when a token is held and an account is known for it.

        The persisted snapshot counts as known so the window between the
        optimistic restore and its verification reads as logged in.
        """
        if not self._token:
            return False
        return self._user is not None or bool(self._storage.get(USER_KEY))

    def snapshot(self) -> SessionSnapshot:
        return SessionSnapshot(
            status=self.status,
            token=self._token,
            user=self.current_user,
            loading=self.loading,
            error=self._error,
            is_authenticated=self.is_authenticated,
        )

    def has_role(self, roles: Union[Role, str, Iterable[Union[Role, str]]]) -> bool:
        """
        Check the current account's role.

        Args:
            roles: A single role or a collection of acceptable roles

        Returns:
            False without an account or a recognised role, otherwise whether
            the account's role matches
        """
        user = self.current_user
        if user is None or user.role is None:
            return False
        if isinstance(roles, str):
            return user.role is Role.parse(roles)
        return any(user.role is Role.parse(role) for role in roles)

    def is_admin(self) -> bool:
        return self.has_role(Role.ADMIN)

    def is_seller(self) -> bool:
        return self.has_role(Role.SELLER)

    def is_customer(self) -> bool:
        return self.has_role(Role.CUSTOMER)

    # ------------------------------------------------------------------
    # Subscriptions
    # ------------------------------------------------------------------

    def subscribe(self, listener: SessionListener) -> Callable[[], None]:
        """
        Register a callback invoked with a snapshot after every change.

        Returns:
            A function that removes the listener
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _publish(self) -> None:
        if not self._listeners:
            return
        snapshot = self.snapshot()
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception:
                logger.exception("Session listener failed")

    def clear_error(self) -> None:
        """Reset the shared error message, e.g. when a form is resubmitted."""
        if self._error is not None:
            self._error = None
            self._publish()

    # ------------------------------------------------------------------
    # Internal state helpers
    # ------------------------------------------------------------------

    def _set_token(self, token: Optional[str]) -> None:
        self._token = token
        if self._http is None:
            return
        if token:
            set_auth_header(self._http, token)
        else:
            clear_auth_header(self._http)

    def _begin(self, op: _Operation) -> _Call:
        call = _Call(op)
        self._pending = call
        self._error = None
        self._publish()
        return call

    def _end(self, call: _Call) -> None:
        # A newer call owns the flag when this one was overtaken
        if self._pending is call:
            self._pending = None
        self._publish()

    def _fail(self, exc: StorefrontError) -> NoReturn:
        self._error = exc.message
        self._publish()
        raise exc

    def _load_user_snapshot(self) -> Optional[UserRecord]:
        raw = self._storage.get(USER_KEY)
        if not raw:
            return None
        try:
            return UserRecord.model_validate_json(raw)
        except PydanticValidationError:
            logger.warning("Ignoring unreadable persisted user snapshot")
            return None

    def _clear(self) -> None:
        self._set_token(None)
        self._user = None
        for key in SESSION_KEYS:
            try:
                self._storage.remove(key)
            except SessionStorageError as e:
                logger.warning(f"Could not remove persisted session key '{key}': {e.message}")

    def _rollback_storage(self, previous: dict[str, Optional[str]]) -> None:
        for key, value in previous.items():
            try:
                if value is None:
                    self._storage.remove(key)
                else:
                    self._storage.set(key, value)
            except SessionStorageError as e:
                logger.error(f"Could not roll back persisted session key '{key}': {e.message}")

    def _establish(self, response: AuthResponse) -> UserRecord:
        """Persist and adopt a fresh token/account pair as one unit."""
        previous = {key: self._storage.get(key) for key in (TOKEN_KEY, USER_KEY)}
        try:
            self._storage.set(TOKEN_KEY, response.token)
            self._storage.set(USER_KEY, response.user.model_dump_json(by_alias=True))
        except SessionStorageError:
            self._rollback_storage(previous)
            raise

        # Results still in flight for the previous account are now stale
        self._generation += 1
        self._set_token(response.token)
        self._user = response.user
        self._error = None
        logger.info(f"Signed in as {response.user.id} ({response.user.role.value if response.user.role else 'no role'})")
        return response.user

    def _replace_user(self, user: UserRecord) -> UserRecord:
        self._storage.set(USER_KEY, user.model_dump_json(by_alias=True))
        self._user = user
        return user

    def _message_for(self, exc: StorefrontError, fallback: str, malformed: Optional[str] = None) -> str:
        if isinstance(exc, ServerUnreachableError):
            return exc.message
        if isinstance(exc, RequestRejectedError):
            return exc.server_message or fallback
        if isinstance(exc, MalformedResponseError):
            return malformed or fallback
        if isinstance(exc, ValidationError):
            return exc.message
        return fallback

    def _log_failure(self, op: _Operation, exc: StorefrontError) -> None:
        if isinstance(exc, MalformedResponseError):
            logger.error(f"{op.value}: malformed server response, missing {exc.missing}")
        elif isinstance(exc, RequestRejectedError):
            logger.warning(f"{op.value}: rejected by server ({exc.status_code}): {exc.message}")
        elif isinstance(exc, ServerUnreachableError):
            logger.warning(f"{op.value}: server unreachable")
        else:
            logger.error(f"{op.value}: {exc.code}: {exc.message}")

    async def _run(
        self,
        op: _Operation,
        request: Callable[[], Awaitable[T]],
        apply: Callable[[T], R],
        fallback: str,
        malformed: Optional[str] = None,
    ) -> R:
        """
        Run one backend call and apply its result.

        On failure the shared error is set and the exception re-raised; the
        session itself is left as it was before the call.
        """
        generation = self._generation
        call = self._begin(op)
        try:
            try:
                result = await request()
            except StorefrontError as e:
                self._log_failure(op, e)
                if generation == self._generation:
                    self._error = self._message_for(e, fallback, malformed)
                raise

            if generation != self._generation:
                logger.info(f"{op.value}: discarding result, session changed while in flight")
                raise SessionSupersededError(op.value)

            try:
                return apply(result)
            except SessionStorageError as e:
                self._log_failure(op, e)
                self._error = fallback
                raise
        finally:
            self._end(call)

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    async def restore(self) -> None:
        """
        Re-establish the persisted session at startup.

        Adopts the stored account optimistically, then confirms the token
        with auth/me. A rejected token downgrades silently to anonymous.
        Never raises.
        """
        generation = self._generation
        call = _Call(_Operation.RESTORE)
        self._pending = call
        self._publish()
        try:
            token = self._storage.get(TOKEN_KEY)
            if not token:
                logger.debug("No persisted token, starting anonymous")
                return

            self._set_token(token)
            self._user = self._load_user_snapshot()
            self._publish()

            try:
                user = await self._api.me()
            except StorefrontError as e:
                if generation == self._generation:
                    logger.info(f"Persisted session not accepted ({e.code}), continuing anonymously")
                    self._clear()
                return

            if generation != self._generation:
                logger.debug("Discarding verification result, session changed meanwhile")
                return

            self._user = user
            try:
                self._storage.set(USER_KEY, user.model_dump_json(by_alias=True))
            except SessionStorageError as e:
                logger.warning(f"Could not refresh persisted user snapshot: {e.message}")
            logger.info(f"Restored session for {user.id}")
        except Exception:
            logger.exception("Unexpected failure while restoring session")
            if generation == self._generation:
                self._clear()
        finally:
            self._end(call)

    async def login(self, email: str, password: str) -> UserRecord:
        """
        Sign in with email and password.

        Returns:
            The authenticated account

        Raises:
            ValidationError: If either credential is empty
            StorefrontError: Any backend failure, after ``error`` is set
        """
        try:
            credentials = LoginRequest(email=email, password=password)
        except PydanticValidationError:
            self._fail(ValidationError(MISSING_CREDENTIALS, code="MISSING_CREDENTIALS"))

        return await self._run(
            _Operation.LOGIN,
            lambda: self._api.login(credentials.email, credentials.password),
            self._establish,
            fallback=LOGIN_FAILED,
        )

    async def register(self, user_data: Union[RegistrationData, dict[str, Any]]) -> UserRecord:
        """
        Create an account and sign in as it.

        Args:
            user_data: RegistrationData or a dict in the API's field naming

        Returns:
            The newly created account
        """
        if isinstance(user_data, RegistrationData):
            data = user_data
        else:
            try:
                data = RegistrationData.model_validate(user_data)
            except PydanticValidationError as e:
                self._fail(_validation_error(e, "Registration failed"))

        return await self._run(
            _Operation.REGISTER,
            lambda: self._api.register(data),
            self._establish,
            fallback=REGISTRATION_FAILED,
            malformed=REGISTRATION_MALFORMED,
        )

    def logout(self) -> None:
        """Drop the session and every persisted key. Never fails."""
        self._generation += 1
        self._pending = None
        self._error = None
        self._clear()
        logger.info("Signed out")
        self._publish()

    async def update_profile(self, profile_data: Union[ProfileUpdate, dict[str, Any]]) -> UserRecord:
        """
        Update the account's profile fields.

        The server's returned record replaces the current one; nothing is
        merged locally.
        """
        if isinstance(profile_data, ProfileUpdate):
            update = profile_data
        else:
            try:
                update = ProfileUpdate.model_validate(profile_data)
            except PydanticValidationError as e:
                self._fail(_validation_error(e, PROFILE_FAILED))

        return await self._run(
            _Operation.UPDATE_PROFILE,
            lambda: self._api.update_profile(update),
            self._replace_user,
            fallback=PROFILE_FAILED,
        )

    async def update_password(self, current_password: str, new_password: str) -> bool:
        """
        Change the account password. The session itself is untouched.

        Returns:
            True once the backend accepted the change
        """
        change = PasswordChange(current_password=current_password, new_password=new_password)
        return await self._run(
            _Operation.UPDATE_PASSWORD,
            lambda: self._api.update_password(change),
            lambda _: True,
            fallback=PASSWORD_FAILED,
        )


# Module-level instance getter
_session_instance: Optional[SessionManager] = None


def get_session_manager() -> SessionManager:
    """Get the process-wide session, wired to the configured storage and API."""
    global _session_instance
    if _session_instance is None:
        settings = get_settings()
        http_client = get_http_client()
        _session_instance = SessionManager(
            api=AuthApiClient(http_client),
            storage=JsonFileStorage(settings.session_file),
            http_client=http_client,
        )
    return _session_instance


def reset_session_manager() -> None:
    """Reset the session singleton (for testing)."""
    global _session_instance
    _session_instance = None
