import time
from typing import Any

from pydantic import ConfigDict, Field

from shared_lib.pydantic import APIBaseModel

# Consider a session expired this many seconds before its real expiry
SESSION_EXPIRED_BUFFER = 10


class User(APIBaseModel):
    """Authenticated user as returned by the auth service."""

    model_config = ConfigDict(frozen=True)

    id: str
    aud: str = "authenticated"
    role: str | None = None
    email: str | None = None
    phone: str | None = None
    app_metadata: dict[str, Any] = Field(default_factory=dict)
    user_metadata: dict[str, Any] = Field(default_factory=dict)


class Session(APIBaseModel):
    """
    # Session

    Immutable snapshot of a bearer credential. Every sign-in and every
    refresh yields a brand-new `Session`; nothing mutates one in place.

    ## Attributes:
    - `access_token` (str): Bearer token sent in the `Authorization` header
    - `refresh_token` (str): Token exchanged for the next session
    - `expires_in` (int): Lifetime of `access_token` in seconds, as issued
    - `expires_at` (int | None): Unix timestamp of expiry, when the server sends it
    - `token_type` (str): Always `"bearer"` in practice
    - `user` (User | None): The signed-in user, when included in the response

    ## Note:
    `expires_in <= 0` is accepted here so any server response can be
    represented; the refresh loop refuses to schedule such a session.
    """

    model_config = ConfigDict(frozen=True)

    access_token: str
    refresh_token: str
    expires_in: int
    token_type: str = "bearer"
    expires_at: int | None = None
    user: User | None = None

    def __repr__(self) -> str:
        return (
            f"Session(access_token='{self.access_token[:8]}...', "
            f"expires_in={self.expires_in}, expires_at={self.expires_at})"
        )

    def __str__(self) -> str:
        return repr(self)

    @property
    def is_expired(self) -> bool:
        """
        Check if the access token is expired or about to expire.

        Only meaningful when the server sent `expires_at`; otherwise the
        issue time is unknown and the session is treated as live.
        """
        if self.expires_at is None:
            return False
        return time.time() >= (self.expires_at - SESSION_EXPIRED_BUFFER)
