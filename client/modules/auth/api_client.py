"""
HTTP client for the storefront authentication and profile endpoints.

Translates transport failures, error statuses and unexpected bodies into
the auth module's exception taxonomy so the session manager never has to
look at raw httpx objects.
"""

import logging
from typing import Any, Optional
import httpx
from pydantic import ValidationError as PydanticValidationError

from shared.models import UserRecord

from .exceptions import (
    InvalidTokenError,
    MalformedResponseError,
    RequestRejectedError,
    ServerUnreachableError,
)
from .models import AuthResponse, LoginRequest, PasswordChange, ProfileUpdate, RegistrationData

logger = logging.getLogger(__name__)

LOGIN_PATH = "/auth/login"
REGISTER_PATH = "/auth/register"
ME_PATH = "/auth/me"
PROFILE_PATH = "/profile"
PASSWORD_PATH = "/profile/password"


def _json_body(response: httpx.Response) -> Optional[Any]:
    try:
        return response.json()
    except ValueError:
        return None


class AuthApiClient:
    """
    Implementation of IAuthApi over a shared httpx.AsyncClient.

    The client is expected to carry the bearer credential as a default
    header; this class never sets it itself.
    """

    def __init__(self, http_client: httpx.AsyncClient):
        self._http = http_client

    @property
    def http_client(self) -> httpx.AsyncClient:
        return self._http

    async def _request(self, method: str, path: str, json: Optional[dict] = None) -> dict:
        """
        Perform a request and return the decoded JSON object.

        Raises:
            ServerUnreachableError: No response was received
            RequestRejectedError: The backend answered with a 4xx/5xx
            MalformedResponseError: A 2xx body was not a JSON object
        """
        try:
            response = await self._http.request(method, path, json=json)
        except httpx.TransportError as e:
            logger.warning(f"{method} {path} got no response: {e!r}")
            raise ServerUnreachableError(str(e)) from e

        body = _json_body(response)

        if response.is_error:
            message = None
            errors = None
            if isinstance(body, dict):
                if isinstance(body.get("message"), str):
                    message = body["message"]
                if isinstance(body.get("errors"), list):
                    errors = body["errors"]
            logger.info(f"{method} {path} rejected with {response.status_code}: {message}")
            raise RequestRejectedError(response.status_code, message, errors)

        if not isinstance(body, dict):
            logger.error(f"{method} {path} returned {response.status_code} without a JSON object")
            raise MalformedResponseError(path, ["<json object>"])

        return body

    def _parse_auth_response(self, path: str, body: dict) -> AuthResponse:
        missing = [field for field in ("token", "user") if not body.get(field)]
        if missing:
            raise MalformedResponseError(path, missing)
        try:
            return AuthResponse.model_validate(body)
        except PydanticValidationError as e:
            raise MalformedResponseError(path, [str(err["loc"]) for err in e.errors()]) from e

    def _parse_user(self, path: str, data: Any) -> UserRecord:
        if not isinstance(data, dict):
            raise MalformedResponseError(path, ["data"])
        try:
            return UserRecord.model_validate(data)
        except PydanticValidationError as e:
            raise MalformedResponseError(path, [str(err["loc"]) for err in e.errors()]) from e

    async def login(self, email: str, password: str) -> AuthResponse:
        credentials = LoginRequest(email=email, password=password)
        body = await self._request("POST", LOGIN_PATH, json=credentials.to_payload())
        return self._parse_auth_response(LOGIN_PATH, body)

    async def register(self, data: RegistrationData) -> AuthResponse:
        body = await self._request("POST", REGISTER_PATH, json=data.to_payload())
        return self._parse_auth_response(REGISTER_PATH, body)

    async def me(self) -> UserRecord:
        """Resolve the current credential. Any non-2xx means the token is unusable."""
        try:
            body = await self._request("GET", ME_PATH)
        except RequestRejectedError as e:
            raise InvalidTokenError(e.server_message or "Authentication token is no longer valid") from e
        return self._parse_user(ME_PATH, body.get("data"))

    async def update_profile(self, update: ProfileUpdate) -> UserRecord:
        body = await self._request("PUT", PROFILE_PATH, json=update.to_payload())
        if not body.get("success"):
            raise MalformedResponseError(PROFILE_PATH, ["success"])
        return self._parse_user(PROFILE_PATH, body.get("data"))

    async def update_password(self, change: PasswordChange) -> None:
        body = await self._request("PUT", PASSWORD_PATH, json=change.to_payload())
        if not body.get("success"):
            raise MalformedResponseError(PASSWORD_PATH, ["success"])
