"""
Shared fixtures for baasclient tests.

`FakeBackend` answers the auth, data, storage and functions endpoints through
`httpx.MockTransport`, so the whole client stack runs without a network.
"""

import asyncio
import functools
import json

import httpx
import pytest

from baasclient import Client, ClientOptions, Session, TokenRefresher

BASE_URL = "https://project.example.co"
API_KEY = "anon-key"
PASSWORD = "secret"


def session_payload(
    access_token: str = "access-1",
    refresh_token: str = "refresh-1",
    expires_in: int = 3600,
) -> dict:
    return {
        "access_token": access_token,
        "refresh_token": refresh_token,
        "expires_in": expires_in,
        "token_type": "bearer",
        "user": {"id": "user-1", "email": "me@example.com", "role": "authenticated"},
    }


def bearer_of(request: httpx.Request) -> str:
    return request.headers.get("Authorization", "").removeprefix("Bearer ")


class FakeBackend:
    """Records every request and answers like the platform would."""

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.issued = 0
        self.refresh_failures = 0
        self.refresh_expires_in = 600

    def _issue(self, prefix: str, expires_in: int) -> dict:
        self.issued += 1
        return session_payload(
            access_token=f"{prefix}-{self.issued}",
            refresh_token=f"refresh-{self.issued}",
            expires_in=expires_in,
        )

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path

        if path == "/auth/v1/token":
            body = json.loads(request.content)
            grant_type = request.url.params["grant_type"]
            if grant_type == "password":
                if body.get("password") != PASSWORD:
                    return httpx.Response(
                        400,
                        json={
                            "error": "invalid_grant",
                            "error_description": "Invalid login credentials",
                        },
                    )
                return httpx.Response(200, json=self._issue("access", 3600))
            if grant_type == "refresh_token":
                if self.refresh_failures > 0:
                    self.refresh_failures -= 1
                    return httpx.Response(
                        400, json={"error_description": "Invalid Refresh Token"}
                    )
                return httpx.Response(
                    200, json=self._issue("refreshed", self.refresh_expires_in)
                )

        if path == "/auth/v1/logout":
            return httpx.Response(204)

        if path == "/auth/v1/user":
            return httpx.Response(200, json={"id": "user-1", "email": "me@example.com"})

        if path.startswith("/rest/v1/"):
            return httpx.Response(
                200,
                json=[{"id": 1}],
                headers={"Content-Range": "0-0/1"},
            )

        if path == "/storage/v1/bucket":
            return httpx.Response(200, json=[{"id": "avatars", "name": "avatars"}])

        if path.startswith("/storage/v1/object/sign/"):
            signed = path.removeprefix("/storage/v1")
            return httpx.Response(200, json={"signedURL": f"{signed}?token=signed"})

        if path.startswith("/storage/v1/object/"):
            if request.method == "GET":
                return httpx.Response(200, content=b"file-bytes")
            return httpx.Response(200, json={"Key": path.removeprefix("/storage/v1/object/")})

        if path.startswith("/functions/v1/"):
            return httpx.Response(200, json={"ok": True})

        return httpx.Response(404, json={"message": "not found"})

    def last(self, path_prefix: str) -> httpx.Request:
        for request in reversed(self.requests):
            if request.url.path.startswith(path_prefix):
                return request
        raise AssertionError(f"no request to {path_prefix}")


class RecordingSleep:
    """
    Stand-in for asyncio.sleep that records delays without waiting.

    From the `park_after`-th call on, every sleep blocks until `release()`
    or cancellation, which freezes the refresh loop so the test can inspect
    it. `parked` is set while a sleep is blocked.
    """

    def __init__(self, park_after: int) -> None:
        self.delays: list[float] = []
        self.park_after = park_after
        self.parked = asyncio.Event()
        self._release = asyncio.Event()

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)
        if len(self.delays) >= self.park_after:
            self._release = asyncio.Event()
            self.parked.set()
            await self._release.wait()
        await asyncio.sleep(0)

    def release(self) -> None:
        """Let the currently blocked sleep return."""
        self.parked.clear()
        self._release.set()


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def http_client(backend: FakeBackend) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(backend.handler))


@pytest.fixture
def client(http_client: httpx.AsyncClient) -> Client:
    return Client(BASE_URL, API_KEY, ClientOptions(http_client=http_client))


@pytest.fixture
def make_client(http_client: httpx.AsyncClient):
    """Build a Client whose refresh loop runs on the given sleep and a frozen clock."""

    def _make(sleep, clock=lambda: 0.0, **options) -> Client:
        return Client(
            BASE_URL,
            API_KEY,
            ClientOptions(http_client=http_client, **options),
            refresher_factory=functools.partial(TokenRefresher, clock=clock, sleep=sleep),
        )

    return _make


@pytest.fixture
def make_session():
    def _make(
        access_token="access-x", refresh_token="refresh-x", expires_in=3600, expires_at=None
    ):
        payload = session_payload(access_token, refresh_token, expires_in)
        payload["expires_at"] = expires_at
        return Session.model_validate(payload)

    return _make


@pytest.fixture
def recording_sleep():
    return RecordingSleep
