"""
Shared test fixtures and utilities.

This module provides common test infrastructure used across all test modules.
"""

import pytest
import httpx

from shared.config import get_settings
from shared.http import reset_client_cache
from modules.auth.api_client import AuthApiClient
from modules.auth.service import SessionManager, reset_session_manager
from modules.auth.storage import MemoryStorage

from fake_backend import FakeStorefrontBackend


@pytest.fixture(autouse=True)
def reset_singletons():
    """Reset cached settings, HTTP client and session before and after each test."""
    get_settings.cache_clear()
    reset_client_cache()
    reset_session_manager()
    yield
    get_settings.cache_clear()
    reset_client_cache()
    reset_session_manager()


@pytest.fixture
def backend() -> FakeStorefrontBackend:
    """A fake storefront API with one account per role."""
    backend = FakeStorefrontBackend()
    backend.add_user("Admin", "admin@example.com", "adminpass", role="admin")
    backend.add_user("Seller", "seller@example.com", "sellerpass", role="seller")
    backend.add_user(
        "Customer",
        "customer@example.com",
        "customerpass",
        role="customer",
        phone="0771234567",
        address="12 Temple Road",
        city="Kandy",
    )
    return backend


@pytest.fixture
def http_client(backend: FakeStorefrontBackend) -> httpx.AsyncClient:
    """HTTP client routed to the fake backend."""
    return backend.client()


@pytest.fixture
def storage() -> MemoryStorage:
    return MemoryStorage()


@pytest.fixture
def session(http_client: httpx.AsyncClient, storage: MemoryStorage) -> SessionManager:
    """A session manager wired to the fake backend and in-memory storage."""
    return SessionManager(AuthApiClient(http_client), storage, http_client)
