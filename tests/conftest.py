from __future__ import annotations

from collections.abc import Callable

import httpx
import pytest
from django.core.cache import cache
from django.test import Client

from tow_planner.services.http import ProviderHttpClient


class FakeClock:
    """Monotonic clock whose ``sleep`` advances time instead of waiting."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


class RecordingTransport(httpx.MockTransport):
    """MockTransport that keeps every request it served."""

    def __init__(self, handler: Callable[[httpx.Request], httpx.Response]) -> None:
        self.requests: list[httpx.Request] = []

        def record(request: httpx.Request) -> httpx.Response:
            self.requests.append(request)
            return handler(request)

        super().__init__(record)


@pytest.fixture(autouse=True)
def _clear_cache() -> None:
    cache.clear()


@pytest.fixture
def api_client() -> Client:
    return Client()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def make_http() -> Callable[[Callable[[httpx.Request], httpx.Response]], ProviderHttpClient]:
    def factory(
        handler: Callable[[httpx.Request], httpx.Response],
    ) -> ProviderHttpClient:
        return ProviderHttpClient(
            timeout=10.0,
            relay_url="",
            relay_key="",
            transport=RecordingTransport(handler),
        )

    return factory
