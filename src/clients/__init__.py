"""HTTP clients with retry on 5xx responses.

This module provides factory functions for creating configured client instances
from centralized configuration.
"""

from config import HTTPClientConfig, get_settings

from .async_http import AsyncHTTPClient
from .http import HTTPClient, ReqConfig, new_custom_client, new_default_client


def create_http_client(config: "HTTPClientConfig | None" = None) -> "HTTPClient":
    """Create a configured synchronous HTTP client.

    Args:
        config: Optional HTTPClientConfig. If None, uses settings from
        get_settings().

    Returns:
        Configured HTTPClient instance.

    Example:
        ```python
        from clients import create_http_client

        client = create_http_client()
        response = client.get("https://api.example.com/health")
        ```
    """
    if config is None:
        config = get_settings().http_client
    return HTTPClient.from_config(config)


def create_async_http_client(config: "HTTPClientConfig | None" = None) -> "AsyncHTTPClient":
    """Create a configured async HTTP client.

    Args:
        config: Optional HTTPClientConfig. If None, uses settings from
        get_settings().

    Returns:
        Configured AsyncHTTPClient instance.
    """
    if config is None:
        config = get_settings().http_client
    return AsyncHTTPClient.from_config(config)


__all__ = [
    "AsyncHTTPClient",
    "HTTPClient",
    "ReqConfig",
    "create_async_http_client",
    "create_http_client",
    "new_custom_client",
    "new_default_client",
]
