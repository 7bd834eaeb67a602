from __future__ import annotations

import pytest
from conftest import FeedServer, eventually

from pywaterflow._websocket import AdapterState, TelemetrySourceAdapter
from pywaterflow.config import TelemetryAddress


class _Recorder:
    def __init__(self) -> None:
        self.messages: list[str] = []
        self.connected = 0
        self.disconnected = 0

    def adapter(self, **kwargs: object) -> TelemetrySourceAdapter:
        return TelemetrySourceAdapter(
            on_message=self.messages.append,
            on_connected=self._on_connected,
            on_disconnected=self._on_disconnected,
            **kwargs,  # type: ignore[arg-type]
        )

    def _on_connected(self) -> None:
        self.connected += 1

    def _on_disconnected(self) -> None:
        self.disconnected += 1


@pytest.mark.asyncio
async def test_initial_state_is_disconnected() -> None:
    adapter = _Recorder().adapter()

    assert adapter.state is AdapterState.DISCONNECTED
    assert adapter.is_connected is False
    await adapter.close()


@pytest.mark.asyncio
async def test_connect_delivers_messages_in_order(feed_server: FeedServer) -> None:
    recorder = _Recorder()
    adapter = recorder.adapter()

    assert await adapter.connect(feed_server.url) is True
    assert adapter.state is AdapterState.CONNECTED
    assert recorder.connected == 1

    await feed_server.send("S001:1.0", '{"sensorId": "S002", "flowRate": 2.0}', "garbage")
    await eventually(lambda: len(recorder.messages) == 3)

    assert recorder.messages == ["S001:1.0", '{"sensorId": "S002", "flowRate": 2.0}', "garbage"]
    await adapter.close()


@pytest.mark.asyncio
async def test_binary_frames_are_decoded(feed_server: FeedServer) -> None:
    recorder = _Recorder()
    adapter = recorder.adapter()
    await adapter.connect(TelemetryAddress(host="127.0.0.1", port=feed_server.port))

    await feed_server.send_bytes(b"S003:4.5")
    await eventually(lambda: recorder.messages == ["S003:4.5"])
    await adapter.close()


@pytest.mark.asyncio
async def test_connect_failure_is_not_raised(closed_port: int) -> None:
    recorder = _Recorder()
    adapter = recorder.adapter(connect_timeout=2.0)

    connected = await adapter.connect(f"ws://127.0.0.1:{closed_port}")

    assert connected is False
    assert adapter.state is AdapterState.DISCONNECTED
    assert recorder.disconnected == 1
    assert recorder.connected == 0
    await adapter.close()


@pytest.mark.asyncio
async def test_remote_close_notifies_exactly_once(feed_server: FeedServer) -> None:
    recorder = _Recorder()
    adapter = recorder.adapter()
    await adapter.connect(feed_server.url)
    await feed_server.wait_for_client()

    await feed_server.drop_clients()
    await eventually(lambda: adapter.state is AdapterState.DISCONNECTED)
    await eventually(lambda: recorder.disconnected == 1)

    await adapter.close()
    await adapter.close()
    assert recorder.disconnected == 1


@pytest.mark.asyncio
async def test_local_close_does_not_notify_and_is_idempotent(feed_server: FeedServer) -> None:
    recorder = _Recorder()
    adapter = recorder.adapter()
    await adapter.connect(feed_server.url)

    await adapter.close()
    await adapter.close()

    assert adapter.state is AdapterState.DISCONNECTED
    assert recorder.disconnected == 0


@pytest.mark.asyncio
async def test_handler_errors_do_not_stop_reader(feed_server: FeedServer) -> None:
    delivered: list[str] = []

    def _on_message(text: str) -> None:
        if text == "boom":
            raise RuntimeError("handler bug")
        delivered.append(text)

    adapter = TelemetrySourceAdapter(on_message=_on_message)
    await adapter.connect(feed_server.url)

    await feed_server.send("boom", "S001:1.0")
    await eventually(lambda: delivered == ["S001:1.0"])
    assert adapter.is_connected
    await adapter.close()


@pytest.mark.asyncio
async def test_reconnect_after_remote_close(feed_server: FeedServer) -> None:
    recorder = _Recorder()
    adapter = recorder.adapter()
    await adapter.connect(feed_server.url)
    await feed_server.wait_for_client()
    await feed_server.drop_clients()
    await eventually(lambda: recorder.disconnected == 1)

    assert await adapter.connect(feed_server.url) is True
    await feed_server.send("S002:2.0")
    await eventually(lambda: recorder.messages == ["S002:2.0"])

    assert recorder.connected == 2
    assert feed_server.connections == 2
    await adapter.close()
