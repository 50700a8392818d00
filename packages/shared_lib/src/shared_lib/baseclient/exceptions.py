"""
Error hierarchy for clients built on BaseClient.

`BaseClient._request` translates httpx failures into these types, so
sub-clients and callers never handle httpx exceptions directly:

```
ClientError
├── HTTPError            error status or failed connection
├── ProxyError           proxy refused or unreachable
├── TimeoutError         request exceeded the transport timeout
├── AuthenticationError  credentials rejected by the auth service
└── ConfigurationError   invalid client settings
```
"""


class ClientError(Exception):
    """Root of the hierarchy. `details` keeps any extra keyword context."""

    def __init__(self, message: str, *args, **kwargs):
        super().__init__(message, *args)
        self.message = message
        self.details = kwargs


class HTTPError(ClientError):
    """
    The server answered with an error status, or no answer arrived.

    `status_code` and `response_body` are None when the connection itself
    failed. The body is the decoded JSON when possible, else the raw text.
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        response_body: dict | str | None = None,
    ):
        super().__init__(message, status_code=status_code, response_body=response_body)
        self.status_code = status_code
        self.response_body = response_body


class ProxyError(ClientError):
    pass


class AuthenticationError(ClientError):
    """Sign-in, refresh or a user-scoped auth call was rejected."""

    def __init__(self, message: str, status_code: int | None = None, **kwargs):
        super().__init__(message, status_code=status_code, **kwargs)
        self.status_code = status_code


class ConfigurationError(ClientError):
    """Settings such as the proxy URL or required arguments are invalid."""

    pass


class TimeoutError(ClientError):
    pass
