"""
HTTP client factory for the storefront REST API.

Every component shares one httpx.AsyncClient so that the default
Authorization header set by the session manager is carried by all
subsequent calls without each call site re-reading the session.
"""

from typing import Optional
import httpx

from .config import get_settings

AUTHORIZATION_HEADER = "Authorization"

# Module-level client cache
_http_client: Optional[httpx.AsyncClient] = None


def create_http_client(
    base_url: Optional[str] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> httpx.AsyncClient:
    """
    Build a new AsyncClient pointed at the storefront API.

    Args:
        base_url: Overrides the configured API URL
        transport: Custom transport (tests use ASGITransport / MockTransport)

    Returns:
        Configured AsyncClient
    """
    settings = get_settings()
    kwargs: dict = {
        "base_url": base_url or settings.api_url,
        "headers": {"Accept": "application/json"},
    }
    if settings.http_timeout is not None:
        kwargs["timeout"] = settings.http_timeout
    if transport is not None:
        kwargs["transport"] = transport
    return httpx.AsyncClient(**kwargs)


def get_http_client() -> httpx.AsyncClient:
    """
    Get the process-wide HTTP client.

    Returns:
        Shared AsyncClient, created on first use
    """
    global _http_client

    if _http_client is None or _http_client.is_closed:
        _http_client = create_http_client()

    return _http_client


def set_auth_header(client: httpx.AsyncClient, token: str) -> None:
    """Attach a bearer credential to every request made by ``client``."""
    client.headers[AUTHORIZATION_HEADER] = f"Bearer {token}"


def clear_auth_header(client: httpx.AsyncClient) -> None:
    """Remove the default credential from ``client`` entirely."""
    client.headers.pop(AUTHORIZATION_HEADER, None)


async def close_http_client() -> None:
    """Close the shared client if one was opened."""
    global _http_client

    if _http_client is not None:
        await _http_client.aclose()
        _http_client = None


def reset_client_cache() -> None:
    """
    Reset the cached HTTP client.

    Useful for testing or when configuration changes.
    """
    global _http_client
    _http_client = None
