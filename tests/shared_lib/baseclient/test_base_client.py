"""
Unit tests for BaseClient.

Tests cover:
- Client initialization with various configurations
- Shared vs owned transports
- HTTP methods (_get, _post, _patch, _delete)
- Header merging per request
- Error handling and custom exceptions
- Context manager usage
"""

import pytest
from unittest.mock import AsyncMock, Mock, patch
import httpx

from shared_lib.baseclient import Client as BaseClient
from shared_lib.baseclient import build_http_client
from shared_lib.baseclient.exceptions import (
    ConfigurationError,
    HTTPError,
    ProxyError,
    TimeoutError,
)


class _APIClient(BaseClient):
    """Test implementation of BaseClient (not collected by pytest)."""

    BASE_URL = "https://api.test.com"


def _json_response(status_code: int = 200, body=None) -> Mock:
    response = Mock()
    response.status_code = status_code
    response.content = b"{}"
    response.json.return_value = body if body is not None else {}
    return response


class TestBaseClientInitialization:
    """Tests for BaseClient initialization."""

    def test_init_with_defaults(self):
        """Test client initialization with default values."""
        client = _APIClient()

        assert client.base_url == "https://api.test.com"
        assert client.proxy is None
        assert client.headers == {}
        assert client.owns_client is True
        assert isinstance(client.client, httpx.AsyncClient)
        assert client.client.headers["Accept"] == "application/json"
        assert "baasclient" in client.client.headers["User-Agent"]

    def test_init_with_custom_base_url(self):
        """Test client initialization with custom base URL."""
        client = _APIClient(base_url="https://custom.api.com/")

        assert client.base_url == "https://custom.api.com"

    def test_init_with_proxy(self):
        """Test client initialization with proxy."""
        client = _APIClient(proxy="proxy.example.com:8080")

        assert client.proxy == "proxy.example.com:8080"

    def test_init_with_proxy_invalid(self):
        """Test client initialization with invalid proxy."""
        with pytest.raises(ConfigurationError):
            _APIClient(proxy=1)  # type: ignore

    def test_init_with_custom_timeout(self):
        """Test client initialization with custom timeout."""
        client = _APIClient(timeout=60.0)

        assert client.client.timeout.read == 60.0

    def test_headers_are_copied(self):
        """Test headers passed in are captured by value."""
        headers = {"Authorization": "Bearer token123"}
        client = _APIClient(headers=headers)

        headers["Authorization"] = "Bearer changed"

        assert client.headers["Authorization"] == "Bearer token123"

    def test_init_with_shared_transport(self):
        """Test an injected transport is used and not owned."""
        shared = build_http_client()
        client = _APIClient(http_client=shared)

        assert client.client is shared
        assert client.owns_client is False


class TestBaseClientFetchMethod:
    """Tests for the _fetch method."""

    @pytest.mark.asyncio
    async def test_fetch_get_success(self):
        """Test successful GET request."""
        client = _APIClient(headers={"apikey": "k"})

        with patch.object(
            client.client, "request", new_callable=AsyncMock
        ) as mock_request:
            mock_request.return_value = _json_response(body={"id": 1, "name": "test"})

            result = await client._fetch("GET", "/users/1")

            assert result == {"id": 1, "name": "test"}
            mock_request.assert_called_once_with(
                "GET",
                "https://api.test.com/users/1",
                params=None,
                json=None,
                headers={"apikey": "k"},
            )

        await client.close()

    @pytest.mark.asyncio
    async def test_fetch_post_with_payload(self):
        """Test POST request with payload."""
        client = _APIClient()

        payload = {"name": "test user", "email": "test@example.com"}

        with patch.object(
            client.client, "request", new_callable=AsyncMock
        ) as mock_request:
            mock_request.return_value = _json_response(201, {"id": 2, "name": "created"})

            result = await client._fetch("POST", "/users", payload=payload)

            assert result == {"id": 2, "name": "created"}
            mock_request.assert_called_once_with(
                "POST",
                "https://api.test.com/users",
                params=None,
                json=payload,
                headers={},
            )

        await client.close()

    @pytest.mark.asyncio
    async def test_fetch_request_headers_override_instance_headers(self):
        """Test per-request headers are merged over instance headers."""
        client = _APIClient(headers={"Authorization": "Bearer a", "apikey": "k"})

        with patch.object(
            client.client, "request", new_callable=AsyncMock
        ) as mock_request:
            mock_request.return_value = _json_response()

            await client._fetch("GET", "/data", headers={"Authorization": "Bearer b"})

            _, kwargs = mock_request.call_args
            assert kwargs["headers"] == {"Authorization": "Bearer b", "apikey": "k"}

        await client.close()

    @pytest.mark.asyncio
    async def test_fetch_empty_body_returns_none(self):
        """Test a response without content is returned as None."""
        client = _APIClient()

        response = _json_response(204)
        response.content = b""

        with patch.object(
            client.client, "request", new_callable=AsyncMock
        ) as mock_request:
            mock_request.return_value = response

            assert await client._fetch("DELETE", "/users/1") is None
            response.json.assert_not_called()

        await client.close()

    @pytest.mark.asyncio
    async def test_empty_endpoint(self):
        """Test request with empty endpoint."""
        client = _APIClient()

        with patch.object(
            client.client, "request", new_callable=AsyncMock
        ) as mock_request:
            mock_request.return_value = _json_response()

            await client._fetch("GET", "")

            call_args = mock_request.call_args
            assert call_args[0][1] == "https://api.test.com"

        await client.close()


class TestBaseClientConvenienceMethods:
    """Tests for convenience methods (_get, _post, _patch, _delete)."""

    @pytest.mark.asyncio
    async def test_get_method(self):
        """Test _get convenience method."""
        client = _APIClient()

        with patch.object(client, "_fetch", new_callable=AsyncMock) as mock_fetch:
            mock_fetch.return_value = {"id": 1}

            result = await client._get("/users/1", params={"fields": "all"})

            assert result == {"id": 1}
            mock_fetch.assert_called_once_with(
                "GET", "/users/1", params={"fields": "all"}
            )

        await client.close()

    @pytest.mark.asyncio
    async def test_post_method(self):
        """Test _post convenience method."""
        client = _APIClient()

        payload = {"name": "test"}

        with patch.object(client, "_fetch", new_callable=AsyncMock) as mock_fetch:
            mock_fetch.return_value = {"id": 2, "name": "test"}

            result = await client._post("/users", payload=payload)

            assert result == {"id": 2, "name": "test"}
            mock_fetch.assert_called_once_with("POST", "/users", payload=payload)

        await client.close()

    @pytest.mark.asyncio
    async def test_patch_method(self):
        """Test _patch convenience method."""
        client = _APIClient()

        payload = {"name": "updated"}

        with patch.object(client, "_fetch", new_callable=AsyncMock) as mock_fetch:
            mock_fetch.return_value = {"id": 1, "name": "updated"}

            result = await client._patch("/users/1", payload=payload)

            assert result == {"id": 1, "name": "updated"}
            mock_fetch.assert_called_once_with("PATCH", "/users/1", payload=payload)

        await client.close()

    @pytest.mark.asyncio
    async def test_delete_method(self):
        """Test _delete convenience method."""
        client = _APIClient()

        with patch.object(client, "_fetch", new_callable=AsyncMock) as mock_fetch:
            mock_fetch.return_value = {"message": "deleted"}

            result = await client._delete("/users/1")

            assert result == {"message": "deleted"}
            mock_fetch.assert_called_once_with("DELETE", "/users/1")

        await client.close()


class TestBaseClientExceptions:
    """Tests for exception handling."""

    @pytest.mark.asyncio
    async def test_http_error_on_404(self):
        """Test HTTPError raised on 404 response."""
        client = _APIClient()

        mock_response = Mock()
        mock_response.status_code = 404
        mock_response.json.return_value = {"error": "Not found"}

        error = httpx.HTTPStatusError(
            "404 Not Found", request=Mock(), response=mock_response
        )

        with patch.object(
            client.client, "request", new_callable=AsyncMock
        ) as mock_request:
            mock_request.side_effect = error

            with pytest.raises(HTTPError) as exc_info:
                await client._fetch("GET", "/users/999")

            assert exc_info.value.status_code == 404
            assert exc_info.value.response_body == {"error": "Not found"}
            assert "404" in str(exc_info.value.message)

        await client.close()

    @pytest.mark.asyncio
    async def test_http_error_with_non_json_body(self):
        """Test HTTPError keeps the text body when it is not JSON."""
        client = _APIClient()

        mock_response = Mock()
        mock_response.status_code = 502
        mock_response.json.side_effect = ValueError("not json")
        mock_response.text = "Bad Gateway"

        error = httpx.HTTPStatusError(
            "502 Bad Gateway", request=Mock(), response=mock_response
        )

        with patch.object(
            client.client, "request", new_callable=AsyncMock
        ) as mock_request:
            mock_request.side_effect = error

            with pytest.raises(HTTPError) as exc_info:
                await client._fetch("GET", "/users")

            assert exc_info.value.status_code == 502
            assert exc_info.value.response_body == "Bad Gateway"

        await client.close()

    @pytest.mark.asyncio
    async def test_proxy_error(self):
        """Test ProxyError raised on proxy connection failure."""
        client = _APIClient(proxy="bad-proxy.com:8080")

        error = httpx.ProxyError("Proxy connection failed")

        with patch.object(
            client.client, "request", new_callable=AsyncMock
        ) as mock_request:
            mock_request.side_effect = error

            with pytest.raises(ProxyError) as exc_info:
                await client._fetch("GET", "/users")

            assert "Proxy connection failed" in str(exc_info.value.message)

        await client.close()

    @pytest.mark.asyncio
    async def test_timeout_error(self):
        """Test TimeoutError raised on timeout."""
        client = _APIClient()

        error = httpx.TimeoutException("Request timed out")

        with patch.object(
            client.client, "request", new_callable=AsyncMock
        ) as mock_request:
            mock_request.side_effect = error

            with pytest.raises(TimeoutError) as exc_info:
                await client._fetch("GET", "/users")

            assert "timed out" in str(exc_info.value.message).lower()

        await client.close()

    @pytest.mark.asyncio
    async def test_transport_error(self):
        """Test HTTPError raised on other transport failures."""
        client = _APIClient()

        error = httpx.ConnectError("Connection refused")

        with patch.object(
            client.client, "request", new_callable=AsyncMock
        ) as mock_request:
            mock_request.side_effect = error

            with pytest.raises(HTTPError) as exc_info:
                await client._fetch("GET", "/users")

            assert "Request failed" in str(exc_info.value.message)
            assert exc_info.value.status_code is None

        await client.close()


class TestBaseClientContextManager:
    """Tests for async context manager functionality."""

    @pytest.mark.asyncio
    async def test_context_manager_usage(self):
        """Test client can be used as async context manager."""
        async with _APIClient() as client:
            assert isinstance(client, _APIClient)
            assert client.client is not None

    @pytest.mark.asyncio
    async def test_context_manager_with_exception(self):
        """Test client is closed even when exception occurs."""
        client = _APIClient()

        with patch.object(client, "close", new_callable=AsyncMock) as mock_close:
            try:
                async with client:
                    raise ValueError("Test exception")
            except ValueError:
                pass

            mock_close.assert_called_once()

    @pytest.mark.asyncio
    async def test_close_owned_transport(self):
        """Test close() closes a transport the client created."""
        client = _APIClient()

        with patch.object(
            client.client, "aclose", new_callable=AsyncMock
        ) as mock_aclose:
            await client.close()

            mock_aclose.assert_called_once()

    @pytest.mark.asyncio
    async def test_close_leaves_shared_transport_open(self):
        """Test close() does not close an injected transport."""
        shared = build_http_client()
        client = _APIClient(http_client=shared)

        with patch.object(shared, "aclose", new_callable=AsyncMock) as mock_aclose:
            await client.close()

            mock_aclose.assert_not_called()

        await shared.aclose()
