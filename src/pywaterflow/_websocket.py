"""Internal websocket runtime for the live telemetry feed."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Callable
from enum import StrEnum

import aiohttp

from pywaterflow._constants import CONNECT_TIMEOUT_SECONDS
from pywaterflow.config import TelemetryAddress
from pywaterflow.exceptions import TelemetryTransportError
from pywaterflow.ingestion.normalize import preview


class AdapterState(StrEnum):
    DISCONNECTED = "disconnected"
    CONNECTED = "connected"


def _resolve_address(address: TelemetryAddress | str) -> TelemetryAddress:
    if isinstance(address, TelemetryAddress):
        return address
    return TelemetryAddress.parse(address)


class TelemetrySourceAdapter:
    """Single websocket connection that hands every inbound message to a callback.

    Connection failures are routine (the microcontroller is optional
    hardware), so :meth:`connect` reports them through ``on_disconnected``
    and its return value instead of raising. There is no automatic
    reconnection.
    """

    def __init__(
        self,
        *,
        on_message: Callable[[str], None],
        on_connected: Callable[[], None] | None = None,
        on_disconnected: Callable[[], None] | None = None,
        session: aiohttp.ClientSession | None = None,
        connect_timeout: float = CONNECT_TIMEOUT_SECONDS,
        logger: logging.Logger | None = None,
    ) -> None:
        self._on_message = on_message
        self._on_connected = on_connected
        self._on_disconnected = on_disconnected
        self._external_session = session is not None
        self._http_session = session
        self._connect_timeout = connect_timeout
        self._logger = logger or logging.getLogger(__name__)
        self._state = AdapterState.DISCONNECTED
        self._ws: aiohttp.ClientWebSocketResponse | None = None
        self._reader: asyncio.Task[None] | None = None
        self._address: TelemetryAddress | None = None

    @property
    def state(self) -> AdapterState:
        return self._state

    @property
    def is_connected(self) -> bool:
        return self._state is AdapterState.CONNECTED

    @property
    def address(self) -> TelemetryAddress | None:
        """Address of the most recent connection attempt."""
        return self._address

    async def connect(self, address: TelemetryAddress | str) -> bool:
        """Open the websocket at *address*.

        Returns ``True`` once connected. On any transport failure the
        adapter stays ``DISCONNECTED``, ``on_disconnected`` fires once and
        ``False`` is returned.
        """
        if self._ws is not None:
            await self._drop_connection()

        target = _resolve_address(address)
        self._address = target
        self._logger.debug("Websocket connect requested url=%s", target.url)

        try:
            ws = await self._open(target)
        except TelemetryTransportError as exc:
            self._logger.info("Live telemetry unavailable: %s", exc)
            self._state = AdapterState.DISCONNECTED
            self._fire(self._on_disconnected, "on_disconnected")
            return False

        self._ws = ws
        self._state = AdapterState.CONNECTED
        self._reader = asyncio.get_running_loop().create_task(
            self._read_loop(ws),
            name=f"pywaterflow-ws-reader-{target.host}:{target.port}",
        )
        self._logger.info("Live telemetry connected url=%s", target.url)
        self._fire(self._on_connected, "on_connected")
        return True

    async def close(self) -> None:
        """Close the connection (if any) and release owned resources.

        Safe to call repeatedly. A locally requested close does not fire
        ``on_disconnected``.
        """
        await self._drop_connection()
        if not self._external_session and self._http_session is not None:
            await self._http_session.close()
            self._http_session = None

    async def _open(self, target: TelemetryAddress) -> aiohttp.ClientWebSocketResponse:
        if self._http_session is None or self._http_session.closed:
            self._http_session = aiohttp.ClientSession()
            self._external_session = False

        try:
            return await asyncio.wait_for(
                self._http_session.ws_connect(target.url, autoping=True),
                self._connect_timeout,
            )
        except TimeoutError as exc:
            raise TelemetryTransportError(
                f"Timed out after {self._connect_timeout}s connecting to {target.url}",
                address=target.url,
            ) from exc
        except (aiohttp.ClientError, OSError) as exc:
            raise TelemetryTransportError(
                f"Connection to {target.url} failed: {exc}",
                address=target.url,
            ) from exc

    async def _drop_connection(self) -> None:
        reader = self._reader
        ws = self._ws
        self._reader = None
        self._ws = None
        was_connected = self._state is AdapterState.CONNECTED
        self._state = AdapterState.DISCONNECTED

        if reader is not None and not reader.done():
            reader.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await reader
        if ws is not None and not ws.closed:
            await ws.close()
        if was_connected:
            self._logger.info("Live telemetry closed")

    async def _read_loop(self, ws: aiohttp.ClientWebSocketResponse) -> None:
        try:
            async for msg in ws:
                if msg.type == aiohttp.WSMsgType.TEXT:
                    self._deliver(msg.data)
                elif msg.type == aiohttp.WSMsgType.BINARY:
                    self._deliver(msg.data.decode("utf-8", errors="replace"))
                elif msg.type == aiohttp.WSMsgType.ERROR:
                    self._logger.warning("Websocket error: %s", ws.exception())
                    break
        except (aiohttp.ClientError, OSError):
            self._logger.warning("Websocket receive failed", exc_info=True)

        # Reached only on a remote close or transport error; local closes
        # cancel this task first.
        if self._ws is ws:
            self._ws = None
            self._reader = None
            self._state = AdapterState.DISCONNECTED
            self._logger.info("Live telemetry disconnected close_code=%s", ws.close_code)
            self._fire(self._on_disconnected, "on_disconnected")
            if not ws.closed:
                await ws.close()

    def _deliver(self, text: str) -> None:
        self._logger.debug("Websocket message %r", preview(text))
        try:
            self._on_message(text)
        except Exception:
            self._logger.exception("Telemetry message handler failed")

    def _fire(self, callback: Callable[[], None] | None, name: str) -> None:
        if callback is None:
            return
        try:
            callback()
        except Exception:
            self._logger.exception("Adapter %s callback failed", name)
