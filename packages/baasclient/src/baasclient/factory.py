"""
Construction functions for the domain sub-clients.

Each function is pure: it builds a new handle from the configuration, a
header mapping (copied, never aliased) and a token, and performs no I/O.
All handles share the transport passed in `http_client`.
"""

from collections.abc import Mapping

import httpx

from baasclient.auth.client import AuthClient
from baasclient.functions.client import FunctionsClient
from baasclient.options import ClientConfig
from baasclient.rest.client import DataClient
from baasclient.storage.client import StorageClient


def create_data_client(
    config: ClientConfig,
    headers: Mapping[str, str],
    http_client: httpx.AsyncClient,
    token: str | None = None,
) -> DataClient:
    rest = DataClient(
        config.rest_url,
        config.schema_name,
        headers=dict(headers),
        http_client=http_client,
    )
    if token is not None:
        rest.set_auth_token(token)
    return rest


def create_storage_client(
    config: ClientConfig,
    token: str,
    headers: Mapping[str, str],
    http_client: httpx.AsyncClient,
) -> StorageClient:
    return StorageClient(
        config.storage_url, token, headers=dict(headers), http_client=http_client
    )


def create_functions_client(
    config: ClientConfig,
    token: str,
    headers: Mapping[str, str],
    http_client: httpx.AsyncClient,
) -> FunctionsClient:
    return FunctionsClient(
        config.functions_url, token, headers=dict(headers), http_client=http_client
    )


def create_auth_client(
    config: ClientConfig,
    api_key: str,
    headers: Mapping[str, str],
    http_client: httpx.AsyncClient,
) -> AuthClient:
    """Build the auth client for the project root, then point it at the auth service."""
    auth = AuthClient(
        config.base_url, api_key, headers=dict(headers), http_client=http_client
    )
    return auth.with_custom_auth_url(config.auth_url)
