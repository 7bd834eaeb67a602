from __future__ import annotations

import asyncio
import socket
import time
from collections.abc import AsyncIterator, Callable

import pytest
import pytest_asyncio
from aiohttp import web


class FeedServer:
    """Local websocket server standing in for the sensor microcontroller."""

    def __init__(self) -> None:
        self.clients: list[web.WebSocketResponse] = []
        self.connections = 0
        self._runner: web.AppRunner | None = None
        self.port = 0

    @property
    def url(self) -> str:
        return f"ws://127.0.0.1:{self.port}"

    async def _handler(self, request: web.Request) -> web.WebSocketResponse:
        ws = web.WebSocketResponse()
        await ws.prepare(request)
        self.connections += 1
        self.clients.append(ws)
        async for _msg in ws:
            pass
        if ws in self.clients:
            self.clients.remove(ws)
        return ws

    async def start(self) -> None:
        app = web.Application()
        app.router.add_get("/", self._handler)
        self._runner = web.AppRunner(app)
        await self._runner.setup()
        site = web.TCPSite(self._runner, "127.0.0.1", 0)
        await site.start()
        self.port = self._runner.addresses[0][1]

    async def stop(self) -> None:
        await self.drop_clients()
        if self._runner is not None:
            await self._runner.cleanup()
            self._runner = None

    async def wait_for_client(self, timeout: float = 2.0) -> web.WebSocketResponse:
        await eventually(lambda: bool(self.clients), timeout=timeout)
        return self.clients[-1]

    async def send(self, *messages: str) -> None:
        ws = await self.wait_for_client()
        for message in messages:
            await ws.send_str(message)

    async def send_bytes(self, data: bytes) -> None:
        ws = await self.wait_for_client()
        await ws.send_bytes(data)

    async def drop_clients(self) -> None:
        for ws in list(self.clients):
            await ws.close()
        self.clients.clear()


async def eventually(predicate: Callable[[], bool], timeout: float = 2.0, step: float = 0.01) -> None:
    deadline = time.monotonic() + timeout
    while not predicate():
        if time.monotonic() > deadline:
            raise AssertionError("condition not met before timeout")
        await asyncio.sleep(step)


@pytest_asyncio.fixture
async def feed_server() -> AsyncIterator[FeedServer]:
    server = FeedServer()
    await server.start()
    try:
        yield server
    finally:
        await server.stop()


@pytest.fixture
def closed_port() -> int:
    """A local port with nothing listening on it."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("127.0.0.1", 0))
        return int(sock.getsockname()[1])
