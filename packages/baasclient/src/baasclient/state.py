"""
Immutable credential snapshots.

A `Client` never edits its headers or sub-clients in place. Every credential
change builds a complete new `ClientState` and publishes it with one
reference assignment, so a reader holding a snapshot always sees headers and
handles that agree on the same token.
"""

from collections.abc import Mapping
from dataclasses import dataclass
from types import MappingProxyType

import httpx

from baasclient import factory
from baasclient.auth.client import AuthClient
from baasclient.auth.models import Session
from baasclient.functions.client import FunctionsClient
from baasclient.options import ClientConfig
from baasclient.rest.client import DataClient
from baasclient.storage.client import StorageClient

AUTHORIZATION = "Authorization"
API_KEY_HEADER = "apikey"


def bearer(token: str) -> str:
    return f"Bearer {token}"


@dataclass(frozen=True)
class ClientState:
    """One consistent view of the credential and every handle built from it."""

    headers: Mapping[str, str]
    rest: DataClient
    auth: AuthClient
    storage: StorageClient
    functions: FunctionsClient
    session: Session | None = None

    @property
    def access_token(self) -> str:
        return self.headers[AUTHORIZATION].removeprefix("Bearer ")


def build_headers(api_key: str, extra: Mapping[str, str] | None = None) -> dict[str, str]:
    """Default headers for a new client; `extra` wins on key collision."""
    headers = {
        AUTHORIZATION: bearer(api_key),
        API_KEY_HEADER: api_key,
    }
    if extra:
        headers.update(extra)
    return headers


def initial_state(
    config: ClientConfig,
    api_key: str,
    headers: dict[str, str],
    http_client: httpx.AsyncClient,
) -> ClientState:
    """State of a freshly constructed client, authorised with `api_key` only."""
    token = headers[AUTHORIZATION].removeprefix("Bearer ")
    return ClientState(
        headers=MappingProxyType(dict(headers)),
        rest=factory.create_data_client(config, headers, http_client),
        auth=factory.create_auth_client(config, api_key, headers, http_client),
        storage=factory.create_storage_client(config, token, headers, http_client),
        functions=factory.create_functions_client(config, token, headers, http_client),
    )


def propagate_token(
    state: ClientState,
    config: ClientConfig,
    token: str,
    session: Session | None,
    http_client: httpx.AsyncClient,
) -> ClientState:
    """
    Derive the state that carries `token` everywhere.

    ## Order:
    1. `Authorization` header, so the rebuilt handles below read the new token
    2. data client (clone with token)
    3. auth client (`with_token`)
    4. storage and functions, rebuilt from config + new headers
    """
    headers = dict(state.headers)
    headers[AUTHORIZATION] = bearer(token)

    return ClientState(
        headers=MappingProxyType(headers),
        rest=state.rest.with_auth_token(token),
        auth=state.auth.with_token(token),
        storage=factory.create_storage_client(config, token, headers, http_client),
        functions=factory.create_functions_client(config, token, headers, http_client),
        session=session,
    )


def override_token(
    state: ClientState,
    config: ClientConfig,
    token: str,
    http_client: httpx.AsyncClient,
) -> ClientState:
    """State for an independent client copy: every handle freshly built for `token`."""
    headers = dict(state.headers)
    headers[AUTHORIZATION] = bearer(token)

    return ClientState(
        headers=MappingProxyType(headers),
        rest=factory.create_data_client(config, headers, http_client, token=token),
        auth=state.auth.with_token(token),
        storage=factory.create_storage_client(config, token, headers, http_client),
        functions=factory.create_functions_client(config, token, headers, http_client),
    )
