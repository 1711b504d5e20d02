"""
Pytest will auto-discover / import this file called 'conftest.py'.
This file defines fixtures/variables required for testing multiple layers.
"""

import asyncio
import os
from typing import Awaitable, Callable, Iterator

# Keep the application away from the on-disk database while the test modules import it
os.environ.setdefault("SQLITE_URL", "sqlite+aiosqlite:///:memory:")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import StaticPool
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from starlette.websockets import WebSocketState

from src.main import create_app


class FakeWebSocket:
    """Stands in for a starlette WebSocket: records what is sent, replays queued frames.

    fail_after: number of successful sends before every send raises.
    hold_open: once the queued frames are consumed, wait for disconnect() or close()
    instead of disconnecting right away.
    """

    def __init__(
        self, incoming: list | None = None, fail_after: int | None = None, hold_open: bool = False
    ) -> None:
        self.application_state = WebSocketState.CONNECTING
        self.client_state = WebSocketState.CONNECTING
        self.incoming = list(incoming or [])
        self.fail_after = fail_after
        self.hold_open = hold_open
        self.sent: list[dict] = []
        self.closed = False
        self._gate = asyncio.Event()
        self._gate.set()
        self._gone = asyncio.Event()

    async def accept(self) -> None:
        self.application_state = WebSocketState.CONNECTED
        self.client_state = WebSocketState.CONNECTED

    async def send_json(self, message: dict) -> None:
        await self._gate.wait()
        if self.fail_after is not None and len(self.sent) >= self.fail_after:
            raise RuntimeError("socket is gone")
        self.sent.append(message)

    async def receive(self) -> dict:
        if not self.incoming:
            if self.hold_open:
                await self._gone.wait()
            self.client_state = WebSocketState.DISCONNECTED
            return {"type": "websocket.disconnect", "code": 1000}
        frame = self.incoming.pop(0)
        if isinstance(frame, bytes):
            return {"type": "websocket.receive", "bytes": frame}
        return {"type": "websocket.receive", "text": frame}

    async def close(self, code: int = 1000) -> None:
        self.closed = True
        self.application_state = WebSocketState.DISCONNECTED
        self._gone.set()

    def disconnect(self) -> None:
        self._gone.set()

    def block_sends(self) -> None:
        self._gate.clear()

    def release_sends(self) -> None:
        self._gate.set()


async def wait_until(predicate: Callable[[], bool], ticks: int = 500) -> bool:
    """Let other tasks run until predicate holds or the ticks run out."""
    for _ in range(ticks):
        if predicate():
            return True
        await asyncio.sleep(0)
    return predicate()


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
def fake_websocket() -> type[FakeWebSocket]:
    return FakeWebSocket


@pytest.fixture
def test_engine() -> Iterator[AsyncEngine]:
    """In-memory SQLite database. StaticPool keeps the single connection (and its tables) alive for the whole test."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
    )
    yield engine


@pytest.fixture
def client(test_engine: AsyncEngine) -> Iterator[TestClient]:
    """Running application with a fresh, empty canvas."""
    with TestClient(create_app(test_engine)) as test_client:
        yield test_client


@pytest.fixture
def settle() -> Callable[..., Awaitable[bool]]:
    return wait_until
