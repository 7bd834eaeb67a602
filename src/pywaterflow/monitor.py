"""High-level async session tying the live feed, fallback and store together."""

from __future__ import annotations

import logging
import random
from collections.abc import Callable, Mapping
from datetime import datetime
from enum import StrEnum
from typing import Any

import aiohttp

from pywaterflow._websocket import AdapterState, TelemetrySourceAdapter
from pywaterflow.config import FlowMonitorConfig
from pywaterflow.fallback import FallbackGenerator
from pywaterflow.models.reading import SensorReading
from pywaterflow.state.events import ReadingSource
from pywaterflow.state.store import FlowSummary, RecordListener, SensorRecord, SensorStateStore

_logger = logging.getLogger(__name__)


class FeedMode(StrEnum):
    """Which source is currently driving the store."""

    LIVE = "live"
    SIMULATED = "simulated"


class FlowMonitor:
    """Owns one sensor table and keeps it fed.

    The live websocket feed and the synthetic fallback never drive the
    store at the same time: the fallback runs whenever the adapter is
    disconnected and is cancelled as soon as it connects.

    Usage::

        async with FlowMonitor(FlowMonitorConfig.from_env()) as monitor:
            for record in monitor.snapshot().values():
                print(record.id, record.flow_rate, record.active)
    """

    def __init__(
        self,
        config: FlowMonitorConfig | None = None,
        *,
        session: aiohttp.ClientSession | None = None,
        rng: random.Random | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._config = config or FlowMonitorConfig()
        store_kwargs: dict[str, Any] = {}
        if clock is not None:
            store_kwargs["clock"] = clock
        self._store = SensorStateStore(self._config.sensor_ids, **store_kwargs)
        self._adapter = TelemetrySourceAdapter(
            on_message=self._on_live_message,
            on_connected=self._on_connected,
            on_disconnected=self._on_disconnected,
            session=session,
            connect_timeout=self._config.connect_timeout,
        )
        self._fallback = FallbackGenerator(
            self._config.sensor_ids,
            self._on_fallback_reading,
            interval=self._config.fallback_interval,
            flow_probability=self._config.flow_probability,
            max_flow_rate=self._config.max_flow_rate,
            rng=rng,
        )
        self._started = False
        self._closed = False

    # ------------------------------------------------------------------
    # Context manager lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> FlowMonitor:
        await self.start()
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.close()

    async def start(self) -> None:
        """Start the fallback, then try the live feed once."""
        if self._started:
            return
        self._started = True
        self._closed = False
        self._fallback.start()
        if self._config.live_enabled:
            await self._adapter.connect(self._config.address)
        else:
            _logger.info("Live telemetry disabled; running on simulated data")

    async def reconnect(self) -> bool:
        """Retry the live feed. Returns ``True`` if the adapter connected."""
        if self._closed:
            return False
        return await self._adapter.connect(self._config.address)

    async def close(self) -> None:
        """Close the live feed and cancel the fallback. Safe to call repeatedly.

        The store keeps its last snapshot.
        """
        self._closed = True
        self._started = False
        await self._adapter.close()
        await self._fallback.aclose()

    # ------------------------------------------------------------------
    # Read model
    # ------------------------------------------------------------------

    @property
    def config(self) -> FlowMonitorConfig:
        return self._config

    @property
    def store(self) -> SensorStateStore:
        return self._store

    @property
    def adapter_state(self) -> AdapterState:
        return self._adapter.state

    @property
    def mode(self) -> FeedMode:
        return FeedMode.LIVE if self._adapter.is_connected else FeedMode.SIMULATED

    @property
    def fallback_running(self) -> bool:
        return self._fallback.is_running

    def snapshot(self) -> Mapping[str, SensorRecord]:
        return self._store.snapshot()

    def summary(self) -> FlowSummary:
        return self._store.summary()

    def subscribe(self, listener: RecordListener) -> Callable[[], None]:
        return self._store.subscribe(listener)

    # ------------------------------------------------------------------
    # Source callbacks
    # ------------------------------------------------------------------

    def _on_connected(self) -> None:
        self._fallback.stop()
        _logger.info("Switched to live telemetry")

    def _on_disconnected(self) -> None:
        if self._closed:
            return
        if not self._fallback.is_running:
            _logger.info("Switched to simulated telemetry")
        self._fallback.start()

    def _on_live_message(self, text: str) -> None:
        self._store.apply_raw_message(text, source=ReadingSource.LIVE)

    def _on_fallback_reading(self, reading: SensorReading) -> None:
        if self._adapter.is_connected:
            return
        self._store.apply_reading(reading, source=ReadingSource.FALLBACK)
