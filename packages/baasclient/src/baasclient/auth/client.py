"""
# Auth Client

Thin async client for the platform's auth service (GoTrue wire format).
It signs users in, exchanges refresh tokens for new sessions, and vends
copies of itself bound to a different bearer token.

## Endpoints:
- `POST /token?grant_type=password` with `{"email"|"phone", "password"}`
- `POST /token?grant_type=refresh_token` with `{"refresh_token"}`
- `GET /user`
- `POST /logout`

## Usage:
```python
auth = AuthClient("https://xyz.example.co", api_key).with_custom_auth_url(
    "https://xyz.example.co/auth/v1"
)
session = await auth.sign_in_with_email_password("me@example.com", "secret")
user_auth = auth.with_token(session.access_token)
print(await user_auth.get_user())
```
"""

import logging
from typing import Any

import httpx
from pydantic import ValidationError

from shared_lib.baseclient import Client
from shared_lib.baseclient.exceptions import AuthenticationError, HTTPError
from shared_lib.logging import token_preview

from baasclient.auth.models import Session, User
from baasclient.urls import AuthApiUrls

logger = logging.getLogger(__name__)


def _error_message(error: HTTPError) -> str:
    body = error.response_body
    if isinstance(body, dict):
        for key in ("error_description", "msg", "message", "error"):
            if body.get(key):
                return str(body[key])
    return error.message


class AuthClient(Client):
    """
    Auth capability bound to one API key and, optionally, one user token.

    Instances are never re-pointed at another token: `with_token()` and
    `with_custom_auth_url()` return new instances sharing the same transport.

    ## Attributes:
    - `api_key` (str): Project API key, sent as the `apikey` header
    - `token` (str | None): Bearer token for user-scoped calls (`get_user`, `sign_out`)
    """

    def __init__(
        self,
        base_url: str,
        api_key: str,
        token: str | None = None,
        headers: dict[str, str] | None = None,
        http_client: httpx.AsyncClient | None = None,
        **kwargs: Any,
    ) -> None:
        request_headers = dict(headers or {})
        request_headers["apikey"] = api_key
        request_headers["Authorization"] = f"Bearer {token or api_key}"
        super().__init__(
            base_url=base_url,
            headers=request_headers,
            http_client=http_client,
            **kwargs,
        )
        self.api_key = api_key
        self.token = token

    def _clone(self, base_url: str, token: str | None) -> "AuthClient":
        return type(self)(
            base_url=base_url,
            api_key=self.api_key,
            token=token,
            headers=self.headers,
            http_client=self.client,
        )

    def with_custom_auth_url(self, url: str) -> "AuthClient":
        """Return a copy of this client that talks to `url` instead."""
        return self._clone(url, self.token)

    def with_token(self, token: str) -> "AuthClient":
        """Return a copy of this client bound to `token`. This instance is unchanged."""
        return self._clone(self.base_url, token)

    async def sign_in_with_email_password(self, email: str, password: str) -> Session:
        """
        Sign in with an email address and password.

        ## Returns:
        - `Session`: The new session

        ## Raises:
        - `AuthenticationError`: The server rejected the credentials or answered
          with an error status, or the connection failed
        - `TimeoutError`, `ProxyError`: Raised unchanged by the transport
        """
        return await self._token_grant("password", {"email": email, "password": password})

    async def sign_in_with_phone_password(self, phone: str, password: str) -> Session:
        """Sign in with a phone number and password. See `sign_in_with_email_password`."""
        return await self._token_grant("password", {"phone": phone, "password": password})

    async def refresh_token(self, refresh_token: str) -> Session:
        """
        Exchange a refresh token for a new session.

        ## Raises:
        - `AuthenticationError`: The refresh token was rejected or the server
          answered with an error status, or the connection failed
        - `TimeoutError`, `ProxyError`: Raised unchanged by the transport
        """
        return await self._token_grant("refresh_token", {"refresh_token": refresh_token})

    async def get_user(self) -> User:
        """Fetch the user the bound token belongs to."""
        if not self.token:
            raise AuthenticationError("No user token bound to this auth client")
        try:
            data = await self._get(AuthApiUrls.USER)
        except HTTPError as e:
            raise AuthenticationError(_error_message(e), status_code=e.status_code) from e
        return User.model_validate(data)

    async def sign_out(self) -> None:
        """Revoke the bound token on the server."""
        if not self.token:
            raise AuthenticationError("No user token bound to this auth client")
        try:
            await self._post(AuthApiUrls.LOGOUT)
        except HTTPError as e:
            raise AuthenticationError(_error_message(e), status_code=e.status_code) from e
        logger.info(f"Signed out token {token_preview(self.token)}")

    async def _token_grant(self, grant_type: str, payload: dict[str, str]) -> Session:
        try:
            data = await self._post(
                AuthApiUrls.TOKEN, payload=payload, params={"grant_type": grant_type}
            )
        except HTTPError as e:
            logger.warning(f"Token grant '{grant_type}' failed: {e.message}")
            raise AuthenticationError(_error_message(e), status_code=e.status_code) from e

        try:
            session = Session.model_validate(data)
        except ValidationError as e:
            raise AuthenticationError(f"Malformed session in '{grant_type}' response") from e

        logger.debug(
            f"Token grant '{grant_type}' issued {token_preview(session.access_token)} "
            f"(expires_in={session.expires_in})"
        )
        return session
