import logging
from typing import Any, Literal

import httpx

from shared_lib.baseclient import Client

logger = logging.getLogger(__name__)

HTTPMethod = Literal["GET", "POST", "PUT", "PATCH", "DELETE"]


class FunctionsClient(Client):
    """
    Client for invoking edge functions.

    Like `StorageClient`, the token is fixed at construction.
    """

    def __init__(
        self,
        base_url: str,
        token: str,
        headers: dict[str, str] | None = None,
        http_client: httpx.AsyncClient | None = None,
        **kwargs: Any,
    ) -> None:
        request_headers = dict(headers or {})
        request_headers["Authorization"] = f"Bearer {token}"
        super().__init__(
            base_url=base_url,
            headers=request_headers,
            http_client=http_client,
            **kwargs,
        )
        self.token = token

    async def invoke(
        self,
        function_name: str,
        body: Any = None,
        headers: dict[str, str] | None = None,
        method: HTTPMethod = "POST",
    ) -> Any:
        """
        Invoke `function_name` and return its response.

        JSON responses are decoded; anything else comes back as text.

        Raises:
            HTTPError: If the function returns an error status.
        """
        logger.debug(f"Invoking function {function_name}")
        response = await self._request(
            method, f"/{function_name}", payload=body, headers=headers
        )
        content_type = response.headers.get("Content-Type", "")
        if "application/json" in content_type:
            return response.json()
        return response.text
