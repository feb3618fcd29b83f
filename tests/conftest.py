"""Shared test fixtures."""

from __future__ import annotations

from collections.abc import Callable

import httpx
import pytest

from keepalive.history.backends import MemoryKeyValueBackend
from keepalive.history.store import HistoryStore
from keepalive.targets.registry import Target

Handler = Callable[[httpx.Request], httpx.Response]


def make_target(name: str, ordinal: int = 1) -> Target:
    return Target(
        ordinal=ordinal,
        name=name,
        endpoint=f"https://{name}.supabase.co",
        credential=f"key-{name}",
    )


def routing_handler(routes: dict[str, object]) -> Handler:
    """MockTransport handler keyed by host label.

    A value is either a status code or an exception instance to raise.
    """

    def handler(request: httpx.Request) -> httpx.Response:
        outcome = routes[request.url.host.split(".")[0]]
        if isinstance(outcome, Exception):
            raise outcome
        return httpx.Response(outcome, json=[{"id": 1}])

    return handler


def mock_client(handler: Handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


class FailingBackend:
    """Backend whose every operation fails."""

    def get(self, key: str) -> str | None:
        raise ConnectionError("kv unavailable")

    def put(self, key: str, value: str) -> None:
        raise ConnectionError("kv unavailable")


@pytest.fixture
def backend() -> MemoryKeyValueBackend:
    return MemoryKeyValueBackend()


@pytest.fixture
def store(backend: MemoryKeyValueBackend) -> HistoryStore:
    """HistoryStore over an in-memory backend."""
    return HistoryStore(backend)
