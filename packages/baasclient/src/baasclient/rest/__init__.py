from baasclient.rest.client import DataClient
from baasclient.rest.query import QueryBuilder, QueryResponse

__all__ = ["DataClient", "QueryBuilder", "QueryResponse"]
