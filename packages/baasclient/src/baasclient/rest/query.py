"""Minimal query builder for the data API (PostgREST conventions)."""

from typing import TYPE_CHECKING, Any, Literal

import httpx

from shared_lib.pydantic import APIBaseModel

if TYPE_CHECKING:
    from baasclient.rest.client import DataClient

CountMethod = Literal["exact", "planned", "estimated"]


class QueryResponse(APIBaseModel):
    """Rows returned by a query plus the total count when one was requested."""

    data: Any = None
    count: int | None = None

    @classmethod
    def from_response(cls, response: httpx.Response) -> "QueryResponse":
        data = response.json() if response.content else None
        count = None
        content_range = response.headers.get("Content-Range", "")
        if "/" in content_range:
            total = content_range.rsplit("/", 1)[1]
            if total.isdigit():
                count = int(total)
        return cls(data=data, count=count)


class QueryBuilder:
    """
    Chainable request builder for one table.

    Example:
        >>> rows = await (
        ...     client.from_("todos")
        ...     .select("id,title")
        ...     .eq("done", False)
        ...     .order("id", desc=True)
        ...     .limit(10)
        ...     .execute()
        ... )
    """

    def __init__(self, client: "DataClient", table: str) -> None:
        self._client = client
        self.table = table
        self.method = "GET"
        self.params: list[tuple[str, str]] = []
        self.payload: Any = None
        self.headers: dict[str, str] = {}

    def select(self, columns: str = "*", count: CountMethod | None = None) -> "QueryBuilder":
        self.method = "GET"
        self.params.append(("select", columns))
        if count:
            self.headers["Prefer"] = f"count={count}"
        return self

    def insert(self, rows: dict | list[dict], returning: bool = True) -> "QueryBuilder":
        self.method = "POST"
        self.payload = rows
        self.headers["Prefer"] = "return=representation" if returning else "return=minimal"
        return self

    def update(self, values: dict, returning: bool = True) -> "QueryBuilder":
        self.method = "PATCH"
        self.payload = values
        self.headers["Prefer"] = "return=representation" if returning else "return=minimal"
        return self

    def delete(self) -> "QueryBuilder":
        self.method = "DELETE"
        return self

    def filter(self, column: str, operator: str, value: Any) -> "QueryBuilder":
        self.params.append((column, f"{operator}.{value}"))
        return self

    def eq(self, column: str, value: Any) -> "QueryBuilder":
        return self.filter(column, "eq", value)

    def neq(self, column: str, value: Any) -> "QueryBuilder":
        return self.filter(column, "neq", value)

    def order(self, column: str, desc: bool = False) -> "QueryBuilder":
        self.params.append(("order", f"{column}.{'desc' if desc else 'asc'}"))
        return self

    def limit(self, size: int) -> "QueryBuilder":
        self.params.append(("limit", str(size)))
        return self

    async def execute(self) -> QueryResponse:
        response = await self._client._request(
            self.method,
            f"/{self.table}",
            params=self.params,
            payload=self.payload,
            headers=self.headers,
        )
        return QueryResponse.from_response(response)
