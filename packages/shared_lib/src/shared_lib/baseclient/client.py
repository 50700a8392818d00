"""
Base HTTP client for building API clients.

This module provides an abstract base class for creating async HTTP clients
using httpx. Clients can own their transport or share one injected by a
parent object, and each instance carries its own copy of the request headers.
"""

from abc import ABC
from typing import Any
import logging

import httpx

from .exceptions import HTTPError, ProxyError, ConfigurationError, TimeoutError


logger = logging.getLogger(__name__)

DEFAULT_HEADERS = {
    "Accept": "application/json",
    "User-Agent": "baasclient/0.1.0",
}


def build_http_client(
    proxy: str | None = None,
    timeout: float = 30.0,
    **kwargs: Any,
) -> httpx.AsyncClient:
    """
    Create an httpx.AsyncClient with the default headers, timeout and proxy.

    Args:
        proxy: Proxy URL in format "host:port" or "http://host:port".
        timeout: Request timeout in seconds. Defaults to 30.0.
        **kwargs: Additional arguments passed to httpx.AsyncClient.

    Returns:
        A new httpx.AsyncClient. The caller owns it and must close it.

    Raises:
        ConfigurationError: If proxy format is invalid.
    """
    if proxy is not None:
        try:
            proxy_url = proxy if proxy.startswith("http") else f"http://{proxy}"
            kwargs["proxy"] = proxy_url
            logger.debug(f"Proxy configured: {proxy_url}")
        except Exception as e:
            raise ConfigurationError(f"Invalid proxy configuration: {e}") from e

    if "timeout" not in kwargs:
        kwargs["timeout"] = timeout

    client = httpx.AsyncClient(**kwargs)
    client.headers.update(DEFAULT_HEADERS)
    return client


def _response_body(response: httpx.Response) -> dict | str | None:
    try:
        return response.json()
    except ValueError:
        return response.text or None


class BaseClient(ABC):
    """
    Abstract base class for building HTTP API clients.

    This class provides a foundation for creating async HTTP clients with
    built-in support for:
    - Proxy configuration
    - Per-instance headers captured by value at construction
    - A shared or owned httpx transport
    - Automatic JSON response parsing
    - Proper resource cleanup

    Attributes:
        BASE_URL (str): Default base URL for API requests. Should be overridden
                       by subclasses or via constructor.
        headers (dict): Headers sent with every request made by this instance.
        client (httpx.AsyncClient): The underlying httpx async client.

    Example:
        >>> class MyAPIClient(BaseClient):
        ...     BASE_URL = "https://api.example.com"
        ...
        ...     async def get_user(self, user_id: int):
        ...         return await self._fetch("GET", f"/users/{user_id}")
        ...
        >>> async with MyAPIClient(proxy="proxy.example.com:8080") as client:
        ...     user = await client.get_user(123)
    """

    BASE_URL: str = "https://api.example.com"

    def __init__(
        self,
        base_url: str | None = None,
        headers: dict[str, str] | None = None,
        http_client: httpx.AsyncClient | None = None,
        proxy: str | None = None,
        timeout: float = 30.0,
        **kwargs: Any,
    ):
        """
        Initialize the base client.

        Args:
            base_url: Custom base URL to override the class BASE_URL attribute.
            headers: Headers for every request. Copied, never aliased.
            http_client: Shared transport. When given, this instance does not
                         own it and close() leaves it open.
            proxy: Proxy URL in format "host:port" or "http://host:port".
                   Ignored when http_client is given.
            timeout: Request timeout in seconds. Defaults to 30.0.
            **kwargs: Additional arguments passed to httpx.AsyncClient.

        Raises:
            ConfigurationError: If proxy format is invalid.
        """
        self.proxy = proxy
        self.base_url = (base_url or self.BASE_URL).rstrip("/")
        self.headers: dict[str, str] = dict(headers or {})

        if http_client is not None:
            self.client = http_client
            self._owns_client = False
        else:
            self.client = build_http_client(proxy=proxy, timeout=timeout, **kwargs)
            self._owns_client = True

        logger.debug(f"{type(self).__name__} initialized with base URL: {self.base_url}")

    async def _request(
        self,
        method: str,
        endpoint: str = "",
        params: dict[str, Any] | None = None,
        payload: Any = None,
        headers: dict[str, str] | None = None,
        **kwargs: Any,
    ) -> httpx.Response:
        """
        Perform an HTTP request and return the raw response.

        Args:
            method: HTTP method (GET, POST, PUT, DELETE, PATCH, etc.).
            endpoint: API endpoint path (will be appended to base_url).
            params: Query parameters for the request.
            payload: JSON payload for POST/PUT/PATCH requests.
            headers: Additional headers for this specific request.
            **kwargs: Additional arguments passed to httpx request method.

        Returns:
            The httpx.Response with a successful status code.

        Raises:
            HTTPError: If the request fails or returns an error status code.
            ProxyError: If there's a proxy-related connection issue.
            TimeoutError: If the request times out.
        """
        url = f"{self.base_url}{endpoint}"
        request_headers = {**self.headers, **(headers or {})}

        try:
            logger.debug(f"{method} {url}")
            response = await self.client.request(
                method,
                url,
                params=params,
                json=payload,
                headers=request_headers,
                **kwargs,
            )
            response.raise_for_status()

            logger.debug(f"Response status: {response.status_code}")
            return response

        except httpx.ProxyError as e:
            logger.error(f"Proxy error: {e}")
            raise ProxyError(f"Proxy connection failed: {e}") from e
        except httpx.HTTPStatusError as e:
            logger.error(f"HTTP error {e.response.status_code}: {method} {url}")
            raise HTTPError(
                f"Request failed with status {e.response.status_code}",
                status_code=e.response.status_code,
                response_body=_response_body(e.response),
            ) from e
        except httpx.TimeoutException as e:
            logger.error(f"Request timeout: {e}")
            raise TimeoutError(f"Request timed out: {e}") from e
        except httpx.HTTPError as e:
            logger.error(f"Unexpected error: {e}")
            raise HTTPError(f"Request failed: {e}") from e

    async def _fetch(
        self,
        method: str,
        endpoint: str = "",
        params: dict[str, Any] | None = None,
        payload: Any = None,
        headers: dict[str, str] | None = None,
        **kwargs: Any,
    ) -> Any:
        """
        Perform an HTTP request and return the parsed JSON response.

        Empty bodies (e.g. 204 No Content) are returned as None.

        Example:
            >>> await self._fetch("GET", "/users", params={"page": 1})
            >>> await self._fetch("POST", "/users", payload={"name": "John"})
        """
        response = await self._request(
            method, endpoint, params=params, payload=payload, headers=headers, **kwargs
        )
        if not response.content:
            return None
        return response.json()

    async def _get(
        self,
        endpoint: str,
        params: dict[str, Any] | None = None,
        **kwargs: Any,
    ) -> Any:
        """Convenience method for GET requests."""
        return await self._fetch("GET", endpoint, params=params, **kwargs)

    async def _post(
        self,
        endpoint: str,
        payload: Any = None,
        **kwargs: Any,
    ) -> Any:
        """Convenience method for POST requests."""
        return await self._fetch("POST", endpoint, payload=payload, **kwargs)

    async def _patch(
        self,
        endpoint: str,
        payload: Any = None,
        **kwargs: Any,
    ) -> Any:
        """Convenience method for PATCH requests."""
        return await self._fetch("PATCH", endpoint, payload=payload, **kwargs)

    async def _delete(
        self,
        endpoint: str,
        **kwargs: Any,
    ) -> Any:
        """Convenience method for DELETE requests."""
        return await self._fetch("DELETE", endpoint, **kwargs)

    @property
    def owns_client(self) -> bool:
        """Whether close() will close the underlying transport."""
        return self._owns_client

    async def close(self) -> None:
        """
        Close the HTTP client and release resources.

        A shared transport injected via http_client is left open; its owner
        is responsible for closing it.
        """
        if self._owns_client:
            await self.client.aclose()
            logger.debug(f"{type(self).__name__} closed")

    async def __aenter__(self):
        """Enable use as async context manager."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Ensure client is closed when exiting context."""
        await self.close()
