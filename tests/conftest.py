"""Test fixtures and utilities."""

import asyncio
import json
from typing import Any, Callable, Union

import httpx
import pytest

from gobiz_bridge.config import AccountConfig, Config, GoBizConfig
from gobiz_bridge.services import GoBizGateway

BASE_URL = "https://gobiz.test"

CannedResponse = Union[tuple, Exception, Callable[[httpx.Request], httpx.Response]]


class FakeClock:
    """Monotonic clock that only moves when someone sleeps on it."""

    def __init__(self, start: float = 1000.0):
        self.now = start
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds
        await asyncio.sleep(0)


class MockGoBiz:
    """Scripted GoBiz API served through httpx.MockTransport.

    Per path, queued responses are used first (in order), then the default.
    A canned response is ``(status, json_body)``, an exception to raise, or a
    callable taking the request.
    """

    def __init__(self, clock: Callable[[], float] | None = None):
        self.clock = clock
        self.calls: list[tuple[float | None, httpx.Request]] = []
        self._queued: dict[str, list[CannedResponse]] = {}
        self._defaults: dict[str, CannedResponse] = {
            "/goid/login/request": (200, {"success": True}),
            "/goid/token": self._issue_tokens,
            "/journals/search": (200, {"total": 0, "results": []}),
        }
        self.tokens_issued = 0

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def queue(self, path: str, *responses: CannedResponse) -> None:
        self._queued.setdefault(path, []).extend(responses)

    def set_default(self, path: str, canned: CannedResponse) -> None:
        self._defaults[path] = canned

    def _issue_tokens(self, request: httpx.Request) -> httpx.Response:
        self.tokens_issued += 1
        n = self.tokens_issued
        return httpx.Response(
            200,
            json={
                "access_token": f"access-{n}",
                "refresh_token": f"refresh-{n}",
                "expires_in": 3600,
                "token_type": "Bearer",
            },
        )

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.calls.append((self.clock() if self.clock else None, request))
        path = request.url.path
        queued = self._queued.get(path)
        if queued:
            canned = queued.pop(0)
        elif path in self._defaults:
            canned = self._defaults[path]
        else:
            return httpx.Response(404, json={"message": "not found"})

        if isinstance(canned, Exception):
            raise canned
        if callable(canned):
            return canned(request)
        status, body = canned
        return httpx.Response(status, json=body)

    def requests_to(self, path: str) -> list[httpx.Request]:
        return [r for _, r in self.calls if r.url.path == path]

    def times_of(self, path: str) -> list[float | None]:
        return [t for t, r in self.calls if r.url.path == path]

    @staticmethod
    def body(request: httpx.Request) -> Any:
        return json.loads(request.content)


def make_journal(
    index: int,
    gross_amount: Any = 10000,
    payment_type: str = "qris",
    status: str = "settlement",
) -> dict:
    """Journal record shaped like a /journals/search result."""
    return {
        "id": f"journal-{index}",
        "time": "2024-11-18T08:00:00Z",
        "metadata": {
            "source": "GOFOOD",
            "transaction": {
                "order_id": f"order-{index}",
                "merchant_id": "M-001",
                "transaction_time": "2024-11-18T08:00:00Z",
                "gross_amount": gross_amount,
                "payment_type": payment_type,
                "status": status,
            },
        },
    }


@pytest.fixture
def journal_factory() -> Callable[..., dict]:
    return make_journal


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def mock_gobiz(fake_clock) -> MockGoBiz:
    return MockGoBiz(clock=fake_clock)


@pytest.fixture
def bridge_config() -> Config:
    """Config with production pacing values (time is faked in tests)."""
    return Config(
        gobiz=GoBizConfig(base_url=BASE_URL),
        account=AccountConfig(
            user_id="user-1",
            email="merchant@example.com",
            password="s3cret",
            merchant_id="M-001",
        ),
    )


@pytest.fixture
def gateway(bridge_config, mock_gobiz, fake_clock) -> GoBizGateway:
    return GoBizGateway.from_config(
        bridge_config,
        transport=mock_gobiz.transport,
        clock=fake_clock,
        sleep=fake_clock.sleep,
    )
