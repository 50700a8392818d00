"""
# Client

Single entry point for the platform: one configured object that owns the
request headers, the auth client and the data, storage and functions
sub-clients, and keeps all of them on the same bearer token.

## Usage:
```python
import asyncio
from baasclient import create_client


async def main():
    async with create_client("https://xyz.example.co", "anon-key") as client:
        session = await client.sign_in_with_email_password("me@example.com", "secret")
        client.start_auto_refresh(session)

        rows = await client.from_("todos").select("*").execute()
        await client.storage.upload("avatars", "me.png", b"...", "image/png")
        await client.functions.invoke("hello", {"name": "me"})


asyncio.run(main())
```

## Credential updates:
Sign-in, explicit refresh, the background refresh loop and sign-out all
build a complete new `ClientState` and swap it in with one assignment.
Foreground updates (`update_auth_session()`) also restart a running refresh
loop on the new session. Readers see either the old token everywhere or
the new token everywhere. Use `snapshot()` when several handles must be
read together.
"""

import asyncio
import copy
import logging
import threading
from collections.abc import Callable, Mapping
from typing import Any

from shared_lib.baseclient import build_http_client
from shared_lib.baseclient.exceptions import AuthenticationError
from shared_lib.logging import token_preview

from baasclient.auth.auth_storage import SecureSessionStorage
from baasclient.auth.client import AuthClient
from baasclient.auth.models import Session
from baasclient.exceptions import InvalidArgumentError, UninitializedClientError
from baasclient.functions.client import FunctionsClient
from baasclient.options import ClientConfig, ClientOptions, load_env_settings
from baasclient.refresh import RefreshFunc, TokenRefresher
from baasclient.rest.client import DataClient
from baasclient.rest.query import CountMethod, QueryBuilder, QueryResponse
from baasclient.state import (
    ClientState,
    build_headers,
    initial_state,
    override_token,
    propagate_token,
)
from baasclient.storage.client import StorageClient

logger = logging.getLogger(__name__)

RefresherFactory = Callable[[RefreshFunc], TokenRefresher]


class Client:
    """
    ## Client Facade

    ### Parameters
    - `url` (str): Project base URL, e.g. `"https://xyz.example.co"`
    - `key` (str): Project API key
    - `options` (ClientOptions | None): Extra headers, schema, timeout, proxy,
      a pre-built `httpx.AsyncClient`, and session persistence settings
    - `refresher_factory` (RefresherFactory): Builds the background refresher
      from a refresh callable. Defaults to `TokenRefresher`; pass e.g.
      `functools.partial(TokenRefresher, sleep=my_sleep)` to change its timing

    ### Raises
    - `InvalidArgumentError`: If `url` or `key` is empty

    ### Attributes
    - `config` (ClientConfig): Immutable base URL, schema and service URLs
    - `rest`, `auth`, `storage`, `functions`: Sub-clients of the current snapshot
    - `headers`: Read-only view of the current request headers
    - `session`: Session the current token came from, or None

    No network I/O happens during construction.
    """

    def __init__(
        self,
        url: str,
        key: str,
        options: ClientOptions | None = None,
        refresher_factory: RefresherFactory = TokenRefresher,
    ) -> None:
        if not url or not key:
            raise InvalidArgumentError("url and key are required")

        options = options or ClientOptions()

        self.config = ClientConfig(base_url=url, schema_name=options.schema_name)
        self._api_key = key
        self._extra_headers = dict(options.headers)

        if options.http_client is not None:
            self._http = options.http_client
            self._owns_http = False
        else:
            self._http = build_http_client(proxy=options.proxy, timeout=options.timeout)
            self._owns_http = True

        self._session_storage = (
            SecureSessionStorage(options.storage_dir) if options.persist_session else None
        )

        self._write_lock = threading.Lock()
        self._refresher_factory = refresher_factory
        self._refresher = refresher_factory(self._refresh_in_background)
        self._state: ClientState | None = initial_state(
            self.config, key, build_headers(key, options.headers), self._http
        )

        logger.info(f"Client initialized for {self.config.base_url}")

    @classmethod
    def from_env(cls, options: ClientOptions | None = None) -> "Client":
        """Build a client from `BAAS_URL`, `BAAS_KEY` and `BAAS_SCHEMA`."""
        url, key, env_options = load_env_settings()
        return cls(url, key, options or env_options)

    # ------------------------------------------------------------------ state

    def _require_state(self) -> ClientState:
        state = getattr(self, "_state", None)
        if state is None:
            raise UninitializedClientError("client was never initialized")
        return state

    def snapshot(self) -> ClientState:
        """Return the current headers, sub-clients and session as one consistent value."""
        return self._require_state()

    @property
    def headers(self) -> Mapping[str, str]:
        return self._require_state().headers

    @property
    def rest(self) -> DataClient:
        return self._require_state().rest

    @property
    def auth(self) -> AuthClient:
        return self._require_state().auth

    @property
    def storage(self) -> StorageClient:
        return self._require_state().storage

    @property
    def functions(self) -> FunctionsClient:
        return self._require_state().functions

    @property
    def session(self) -> Session | None:
        return self._require_state().session

    @property
    def access_token(self) -> str:
        """Bearer token currently sent by every sub-client."""
        return self._require_state().access_token

    # --------------------------------------------------------------- data API

    def from_(self, table: str) -> QueryBuilder:
        """Start a data API query against `table`."""
        return self.rest.from_(table)

    table = from_

    async def rpc(
        self,
        name: str,
        params: dict[str, Any] | None = None,
        count: CountMethod | None = None,
    ) -> QueryResponse:
        """Call a stored procedure through the data API."""
        return await self.rest.rpc(name, params, count=count)

    # ---------------------------------------------------------------- sign-in

    async def sign_in_with_email_password(self, email: str, password: str) -> Session:
        """
        Sign in and switch every sub-client to the new session's token.

        ### Raises
        - `AuthenticationError`: Sign-in was rejected. Nothing is changed.
        """
        session = await self.auth.sign_in_with_email_password(email, password)
        self.update_auth_session(session)
        return session

    async def sign_in_with_phone_password(self, phone: str, password: str) -> Session:
        """Phone-number variant of `sign_in_with_email_password`."""
        session = await self.auth.sign_in_with_phone_password(phone, password)
        self.update_auth_session(session)
        return session

    async def refresh_session(self, refresh_token: str | None = None) -> Session:
        """
        Exchange a refresh token for a new session and propagate it.

        ### Parameters
        - `refresh_token` (str | None): Defaults to the current session's one

        ### Raises
        - `InvalidArgumentError`: No refresh token given and none is held
        - `AuthenticationError`: The refresh was rejected. Nothing is changed.
        """
        if refresh_token is None:
            session = self.session
            if session is None:
                raise InvalidArgumentError("No session to refresh")
            refresh_token = session.refresh_token

        session = await self.auth.refresh_token(refresh_token)
        self.update_auth_session(session)
        return session

    def update_auth_session(self, session: Session) -> None:
        """
        Propagate `session` to the headers and every sub-client.

        The data client is cloned with the new token, the auth client is
        rebound with `with_token()`, and storage and functions are rebuilt
        from the updated headers. The result is published in one assignment.

        A running refresh loop is restarted on `session`, so the facade is
        only ever fed by one refresh-token chain. Call from the event loop
        thread while auto-refresh is running.
        """
        self._require_state()
        self._apply_session(session)
        self._reschedule(session)

    def _apply_session(self, session: Session) -> None:
        self._swap_token(session.access_token, session)

        if self._session_storage is not None:
            self._session_storage.save_session(session)

    def _swap_token(self, token: str, session: Session | None) -> None:
        with self._write_lock:
            self._state = propagate_token(
                self._require_state(), self.config, token, session, self._http
            )
        logger.debug(f"Propagated token {token_preview(token)} to all sub-clients")

    def _reschedule(self, session: Session) -> None:
        if not self._refresher.running:
            return
        if session.expires_in <= 0:
            logger.warning(
                f"New session has expires_in={session.expires_in}, stopping auto-refresh"
            )
            self._refresher.cancel()
            return
        self._refresher.start(session)

    async def _refresh_in_background(self, refresh_token: str) -> Session:
        # the loop reschedules itself, so skip _reschedule here
        session = await self.auth.refresh_token(refresh_token)
        self._apply_session(session)
        return session

    # ----------------------------------------------------------- auto refresh

    def start_auto_refresh(self, session: Session | None = None) -> asyncio.Task:
        """
        Keep the session alive in the background.

        Refreshes at 3/4 of the remaining lifetime, backing off 2s, 4s, 8s
        and then every 30s on failure. Starting again replaces the running
        loop. Must be called from a running event loop.

        ### Parameters
        - `session` (Session | None): Defaults to the current session

        ### Returns
        - `asyncio.Task`: The background task

        ### Raises
        - `InvalidArgumentError`: No session, or `session.expires_in <= 0`
        """
        self._require_state()
        session = session or self.session
        if session is None:
            raise InvalidArgumentError("No session to refresh; sign in first")
        return self._refresher.start(session)

    async def stop_auto_refresh(self) -> None:
        """Cancel the background refresh loop, if any, and wait for it to end."""
        self._require_state()
        await self._refresher.stop()

    @property
    def auto_refresh_running(self) -> bool:
        return self._refresher.running

    @property
    def refresher(self) -> TokenRefresher:
        return self._refresher

    # ------------------------------------------------------- token override

    def with_token(self, token: str) -> "Client":
        """
        Return an independent client that uses `token` everywhere.

        This client, its headers, its sub-clients and its refresh loop are
        left untouched. The copy shares the HTTP transport but never closes it.

        ### Raises
        - `UninitializedClientError`: If this client was never constructed
        - `InvalidArgumentError`: If `token` is empty
        """
        state = self._require_state()
        if not token:
            raise InvalidArgumentError("token is required")

        clone = copy.copy(self)
        clone._owns_http = False
        clone._session_storage = None
        clone._write_lock = threading.Lock()
        clone._refresher = self._refresher_factory(clone._refresh_in_background)
        clone._state = override_token(state, self.config, token, self._http)
        return clone

    # ---------------------------------------------------------------- session

    def restore_session(self) -> Session | None:
        """
        Load the saved session (when persistence is enabled) and propagate it.

        Returns the session, or None if nothing usable was saved. A running
        refresh loop is restarted on the restored session.
        """
        self._require_state()
        if self._session_storage is None:
            return None

        session = self._session_storage.load_session()
        if session is None:
            return None
        if session.is_expired:
            logger.info("Saved session is expired, call refresh_session() to renew it")

        self._swap_token(session.access_token, session)
        self._reschedule(session)
        logger.info("Restored saved session")
        return session

    async def sign_out(self) -> None:
        """
        End the current session.

        Stops the refresh loop, revokes the token on the server, and resets
        every sub-client to the API key. Local state is reset even if the
        server call fails; that failure is logged.
        """
        await self.stop_auto_refresh()

        state = self._require_state()
        if state.session is not None:
            try:
                await state.auth.sign_out()
            except AuthenticationError as e:
                logger.warning(f"Server-side sign-out failed: {e}")

        with self._write_lock:
            self._state = initial_state(
                self.config,
                self._api_key,
                build_headers(self._api_key, self._extra_headers),
                self._http,
            )

        if self._session_storage is not None:
            self._session_storage.delete_session()

        logger.info("Signed out, credentials reset to the API key")

    # -------------------------------------------------------------- lifecycle

    async def close(self) -> None:
        """Stop the refresh loop and close the transport if this client owns it."""
        self._require_state()
        await self.stop_auto_refresh()
        if self._owns_http:
            await self._http.aclose()
        logger.debug("Client closed")

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()


def create_client(url: str, key: str, options: ClientOptions | None = None) -> Client:
    """Create a `Client`. See `Client` for parameters and errors."""
    return Client(url, key, options)


def create_client_from_env(options: ClientOptions | None = None) -> Client:
    """Create a `Client` from `BAAS_URL`, `BAAS_KEY` and `BAAS_SCHEMA`."""
    return Client.from_env(options)

