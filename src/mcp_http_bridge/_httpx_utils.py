"""Utilities for creating the httpx AsyncClient used for upstream calls."""

from typing import Any, Protocol

import httpx

from mcp_http_bridge.config import DEFAULT_TIMEOUT

__all__ = ["BridgeHttpClientFactory", "create_bridge_http_client"]


class BridgeHttpClientFactory(Protocol):
    def __call__(self, **kwargs: Any) -> httpx.AsyncClient: ...


def create_bridge_http_client(**kwargs: Any) -> httpx.AsyncClient:
    """Create an httpx AsyncClient with the bridge defaults.

    Defaults:
    - follow_redirects=True
    - a 30 second timeout for every phase of a request

    Any keyword argument accepted by httpx.AsyncClient overrides the defaults
    (e.g. `transport=httpx.MockTransport(handler)` in tests).

    The returned client must be closed, normally by using it as an async
    context manager.
    """
    default_kwargs: dict[str, Any] = {
        "follow_redirects": True,
        "timeout": httpx.Timeout(DEFAULT_TIMEOUT),
    }
    default_kwargs.update(kwargs)
    return httpx.AsyncClient(**default_kwargs)
