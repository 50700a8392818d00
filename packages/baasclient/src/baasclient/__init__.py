"""
baasclient - one client for the data API, storage, auth and edge functions.

The `Client` facade keeps every sub-client on the same bearer token and can
refresh that token in the background for as long as the session lives.
"""

from shared_lib.baseclient.exceptions import (
    AuthenticationError,
    ClientError,
    ConfigurationError,
    HTTPError,
    ProxyError,
    TimeoutError,
)

from baasclient.auth import AuthClient, SecureSessionStorage, Session, User
from baasclient.client import Client, create_client, create_client_from_env
from baasclient.exceptions import InvalidArgumentError, UninitializedClientError
from baasclient.functions import FunctionsClient
from baasclient.options import ClientConfig, ClientOptions
from baasclient.refresh import RefreshState, TokenRefresher
from baasclient.rest import DataClient, QueryBuilder, QueryResponse
from baasclient.state import ClientState
from baasclient.storage import StorageClient

__version__ = "0.1.0"

__all__ = [
    # Facade
    "Client",
    "create_client",
    "create_client_from_env",
    "ClientOptions",
    "ClientConfig",
    "ClientState",
    # Sub-clients
    "AuthClient",
    "DataClient",
    "QueryBuilder",
    "QueryResponse",
    "StorageClient",
    "FunctionsClient",
    # Sessions
    "Session",
    "User",
    "SecureSessionStorage",
    "TokenRefresher",
    "RefreshState",
    # Exceptions
    "ClientError",
    "HTTPError",
    "ProxyError",
    "TimeoutError",
    "AuthenticationError",
    "ConfigurationError",
    "InvalidArgumentError",
    "UninitializedClientError",
]
