import copy
import logging
from typing import Any

import httpx

from shared_lib.baseclient import Client

from baasclient.rest.query import CountMethod, QueryBuilder, QueryResponse

logger = logging.getLogger(__name__)


class DataClient(Client):
    """
    Client for the relational data API.

    Unlike storage and functions, this client's token can be changed after
    construction: `set_auth_token()` mutates it in place and
    `with_auth_token()` returns a copy carrying the new token.

    Example:
        >>> rest = DataClient("https://xyz.example.co/rest/v1", "public", headers)
        >>> res = await rest.from_("countries").select("name").execute()
    """

    def __init__(
        self,
        base_url: str,
        schema_name: str = "public",
        headers: dict[str, str] | None = None,
        http_client: httpx.AsyncClient | None = None,
        **kwargs: Any,
    ) -> None:
        request_headers = dict(headers or {})
        request_headers["Accept-Profile"] = schema_name
        request_headers["Content-Profile"] = schema_name
        super().__init__(
            base_url=base_url,
            headers=request_headers,
            http_client=http_client,
            **kwargs,
        )
        self.schema_name = schema_name

    @property
    def auth_token(self) -> str | None:
        """Bearer token currently sent by this client."""
        value = self.headers.get("Authorization", "")
        return value.removeprefix("Bearer ") or None

    def set_auth_token(self, token: str) -> None:
        """Replace the bearer token on this instance."""
        self.headers["Authorization"] = f"Bearer {token}"

    def with_auth_token(self, token: str) -> "DataClient":
        """Return a copy of this client carrying `token`; this instance is unchanged."""
        clone = copy.copy(self)
        clone.headers = dict(self.headers)
        clone._owns_client = False
        clone.set_auth_token(token)
        return clone

    def from_(self, table: str) -> QueryBuilder:
        """Start a query against `table`."""
        return QueryBuilder(self, table)

    table = from_

    async def rpc(
        self,
        name: str,
        params: dict[str, Any] | None = None,
        count: CountMethod | None = None,
    ) -> QueryResponse:
        """Call the stored procedure `name` with `params` as its JSON arguments."""
        headers = {"Prefer": f"count={count}"} if count else None
        logger.debug(f"Calling rpc {name}")
        response = await self._request(
            "POST", f"/rpc/{name}", payload=params or {}, headers=headers
        )
        return QueryResponse.from_response(response)
