"""
# Token Refresh Loop

Keeps a session alive in the background by exchanging its refresh token
for a new session before the access token expires.

## Schedule:
- Wait 3/4 of the time left until the session expires, recomputed after
  every successful refresh so a slow refresh call does not accumulate drift.
  The starting session's time left comes from its `expires_at` when the
  server sent one, so a session restored from disk is not mistaken for new.
  If the session is already past that point, refresh immediately.
- On failure, back off 2s, 4s, 8s for the first three consecutive failures,
  then retry every 30s until a refresh succeeds. The loop never gives up.
- A success resets the failure counter.

## States:
```
SCHEDULED --wait elapsed--> REFRESHING --ok--> SCHEDULED
                                 |
                               error
                                 v
                             BACKOFF --sleep elapsed--> REFRESHING
any state --stop() or cancel()--> IDLE
```

Errors never reach the caller; they are logged. `stop()` and `cancel()` are the only
ways out of the loop.
"""

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from enum import Enum

from shared_lib.logging import token_preview

from baasclient.auth.models import Session
from baasclient.exceptions import InvalidArgumentError

logger = logging.getLogger(__name__)

# Fraction of the remaining lifetime to wait before refreshing
REFRESH_THRESHOLD = 0.75
# Consecutive failures retried with exponential backoff (2s, 4s, 8s)
MAX_BACKOFF_ATTEMPTS = 3
# Delay between retries once exponential backoff is exhausted
FIXED_RETRY_DELAY = 30.0

RefreshFunc = Callable[[str], Awaitable[Session]]
SleepFunc = Callable[[float], Awaitable[None]]


class RefreshState(str, Enum):
    SCHEDULED = "scheduled"
    REFRESHING = "refreshing"
    BACKOFF = "backoff"
    IDLE = "idle"


def backoff_delay(attempt: int) -> float:
    """Seconds to wait after the `attempt`-th consecutive failure (1-based)."""
    if attempt <= MAX_BACKOFF_ATTEMPTS:
        return float(2**attempt)
    return FIXED_RETRY_DELAY


def remaining_lifetime(session: Session, wall_now: float) -> float:
    """
    Seconds until `session` expires.

    Uses the server's absolute `expires_at` when present, so a session
    restored from disk is not treated as freshly issued.
    """
    if session.expires_at is not None:
        return session.expires_at - wall_now
    return float(session.expires_in)


def refresh_wait(expires_at: float, now: float) -> float:
    """Seconds to wait before refreshing a session expiring at `expires_at`."""
    remaining = expires_at - now
    if remaining <= 0:
        return 0.0
    return remaining * REFRESH_THRESHOLD


class TokenRefresher:
    """
    Owns at most one background refresh task.

    ## Args:
    - `refresh` (RefreshFunc): Exchanges a refresh token for a new `Session`.
      Any credential propagation must happen inside this callable.
    - `clock` (Callable[[], float]): Monotonic clock in seconds.
    - `sleep` (SleepFunc): Awaitable sleep, `asyncio.sleep` by default.
    - `wall_clock` (Callable[[], float]): Unix time, read against `Session.expires_at`.

    ## Example:
    ```python
    refresher = TokenRefresher(client.refresh_session)
    refresher.start(session)
    ...
    await refresher.stop()
    ```
    """

    def __init__(
        self,
        refresh: RefreshFunc,
        clock: Callable[[], float] = time.monotonic,
        sleep: SleepFunc = asyncio.sleep,
        wall_clock: Callable[[], float] = time.time,
    ) -> None:
        self._refresh = refresh
        self._clock = clock
        self._sleep = sleep
        self._wall_clock = wall_clock
        self._task: asyncio.Task | None = None
        self.state = RefreshState.IDLE
        self.attempt = 0
        self.session: Session | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self, session: Session) -> asyncio.Task:
        """
        Start refreshing `session` in the background.

        A loop that is already running is cancelled first; two loops never
        run at once for the same refresher.

        ## Raises:
        - `InvalidArgumentError`: If `session.expires_in <= 0`
        - `RuntimeError`: If called outside a running event loop
        """
        if session.expires_in <= 0:
            raise InvalidArgumentError(
                f"Cannot schedule refresh for a session with expires_in={session.expires_in}"
            )

        if self.running:
            logger.info("Superseding the running token refresh loop")
            self._task.cancel()

        self.attempt = 0
        self.session = session
        self.state = RefreshState.SCHEDULED
        self._task = asyncio.get_running_loop().create_task(
            self._run(session), name="token-refresh"
        )
        return self._task

    def cancel(self) -> None:
        """Cancel the background task without waiting for it."""
        task, self._task = self._task, None
        if task is not None and not task.done():
            task.cancel()
        self.state = RefreshState.IDLE

    async def stop(self) -> None:
        """Cancel the background task and wait for it to finish."""
        task, self._task = self._task, None
        if task is not None and not task.done():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
        self.state = RefreshState.IDLE
        logger.debug("Token refresh loop stopped")

    def _expires_at(self, session: Session) -> float:
        """Deadline for the starting session on the monotonic clock."""
        return self._clock() + remaining_lifetime(session, self._wall_clock())

    async def _run(self, session: Session) -> None:
        expires_at = self._expires_at(session)

        try:
            while True:
                self.state = RefreshState.SCHEDULED
                wait = refresh_wait(expires_at, self._clock())
                if wait > 0:
                    logger.debug(f"Next token refresh in {wait:.1f}s")
                    await self._sleep(wait)

                while True:
                    self.state = RefreshState.REFRESHING
                    try:
                        new_session = await self._refresh(session.refresh_token)
                    except Exception as e:
                        self.attempt += 1
                        delay = backoff_delay(self.attempt)
                        if self.attempt <= MAX_BACKOFF_ATTEMPTS:
                            logger.warning(
                                f"Error refreshing token, retrying with exponential backoff "
                                f"in {delay:.0f}s (attempt {self.attempt}): {e}"
                            )
                        else:
                            logger.error(
                                f"Error refreshing token, retrying every "
                                f"{FIXED_RETRY_DELAY:.0f}s (attempt {self.attempt}): {e}"
                            )
                        self.state = RefreshState.BACKOFF
                        await self._sleep(delay)
                        continue
                    break

                session = new_session
                self.session = new_session
                self.attempt = 0
                expires_at = self._clock() + session.expires_in
                logger.info(
                    f"✅ Token refreshed: {token_preview(session.access_token)} "
                    f"(expires_in={session.expires_in})"
                )
                if session.expires_in <= 0:
                    # avoid a zero-wait loop against the auth service
                    logger.warning(
                        f"Refreshed session has expires_in={session.expires_in}, "
                        f"waiting {FIXED_RETRY_DELAY:.0f}s before the next refresh"
                    )
                    await self._sleep(FIXED_RETRY_DELAY)
        finally:
            if asyncio.current_task() is self._task:
                self.state = RefreshState.IDLE
