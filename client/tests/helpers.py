"""Test doubles shared across test modules."""

import asyncio
from typing import Callable, Optional, Union

import httpx

from shared.models import UserRecord
from modules.auth.models import AuthResponse, PasswordChange, ProfileUpdate, RegistrationData
from modules.auth.storage import MemoryStorage
from modules.auth.exceptions import SessionStorageError


def mock_client(handler: Callable[[httpx.Request], httpx.Response]) -> httpx.AsyncClient:
    """HTTP client whose responses come from ``handler(request)``."""
    return httpx.AsyncClient(
        transport=httpx.MockTransport(handler),
        base_url="http://testserver/api",
    )


def unreachable(request: httpx.Request) -> httpx.Response:
    """MockTransport handler simulating a server that is down."""
    raise httpx.ConnectError("Connection refused", request=request)


class GatedAuthApi:
    """
    IAuthApi double whose calls block until ``release`` is set.

    Lets tests interleave a logout with an in-flight operation.
    """

    def __init__(self, response: Optional[AuthResponse] = None, user: Optional[UserRecord] = None):
        self.response = response
        self.user = user
        self.started = asyncio.Event()
        self.release = asyncio.Event()

    async def _wait(self) -> None:
        self.started.set()
        await self.release.wait()

    async def login(self, email: str, password: str) -> AuthResponse:
        await self._wait()
        return self.response

    async def register(self, data: RegistrationData) -> AuthResponse:
        await self._wait()
        return self.response

    async def me(self) -> UserRecord:
        await self._wait()
        return self.user

    async def update_profile(self, update: ProfileUpdate) -> UserRecord:
        await self._wait()
        return self.user

    async def update_password(self, change: PasswordChange) -> None:
        await self._wait()


class FailingStorage(MemoryStorage):
    """MemoryStorage that refuses writes to selected keys."""

    def __init__(self, failing_keys: tuple[str, ...], initial: Optional[dict[str, str]] = None):
        super().__init__(initial)
        self.failing_keys = failing_keys

    def set(self, key: str, value: str) -> None:
        if key in self.failing_keys:
            raise SessionStorageError(key, "disk full")
        super().set(key, value)


class SteppedAuthApi:
    """
    IAuthApi double where every call waits on its own gate.

    ``gates[i]`` belongs to the i-th call made, so a test can resolve
    overlapping calls in any order. ``me`` may be an exception to raise.
    """

    def __init__(self, logins: tuple[AuthResponse, ...] = (), me: Union[UserRecord, Exception, None] = None):
        self.logins = list(logins)
        self.me_result = me
        self.gates: list[asyncio.Event] = []

    async def _gate(self) -> None:
        gate = asyncio.Event()
        self.gates.append(gate)
        await gate.wait()

    async def wait_for_calls(self, count: int) -> None:
        while len(self.gates) < count:
            await asyncio.sleep(0)

    async def login(self, email: str, password: str) -> AuthResponse:
        response = self.logins.pop(0)
        await self._gate()
        return response

    async def me(self) -> UserRecord:
        await self._gate()
        if isinstance(self.me_result, Exception):
            raise self.me_result
        return self.me_result
