"""Errors raised by the client facade itself.

Transport and authentication failures come from
`shared_lib.baseclient.exceptions` and are re-exported from `baasclient`.
"""

from shared_lib.baseclient.exceptions import ClientError, ConfigurationError


class InvalidArgumentError(ConfigurationError, ValueError):
    """Raised when a required argument is empty or out of range.

    Example:
        >>> try:
        ...     Client("", "anon-key")
        ... except InvalidArgumentError as e:
        ...     print(e.message)
    """

    pass


class UninitializedClientError(ClientError):
    """Raised when an operation is invoked on a client that was never constructed."""

    def __init__(self, message: str = "cannot copy non-initialized client"):
        super().__init__(message)
