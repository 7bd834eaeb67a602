"""Synthetic readings for when no live feed is connected."""

from __future__ import annotations

import asyncio
import contextlib
import logging
import random
from collections.abc import Callable, Iterable

from pywaterflow._constants import (
    FALLBACK_FLOW_PROBABILITY,
    FALLBACK_INTERVAL_SECONDS,
    FALLBACK_MAX_FLOW_RATE,
)
from pywaterflow.models.reading import SensorReading

_logger = logging.getLogger(__name__)


class FallbackGenerator:
    """Periodically emits one reading per known sensor through *sink*.

    Each round, every sensor independently reports a flow drawn uniformly
    from ``[0, max_flow_rate)`` with probability ``flow_probability`` and
    exactly ``0.0`` otherwise. The generator knows nothing about the store;
    the owner decides what the sink does with a reading.
    """

    def __init__(
        self,
        sensor_ids: Iterable[str],
        sink: Callable[[SensorReading], None],
        *,
        interval: float = FALLBACK_INTERVAL_SECONDS,
        flow_probability: float = FALLBACK_FLOW_PROBABILITY,
        max_flow_rate: float = FALLBACK_MAX_FLOW_RATE,
        rng: random.Random | None = None,
    ) -> None:
        if interval <= 0:
            raise ValueError("interval must be positive")
        self._sensor_ids = tuple(sensor_ids)
        self._sink = sink
        self._interval = interval
        self._flow_probability = flow_probability
        self._max_flow_rate = max_flow_rate
        self._rng = rng or random.Random()
        self._task: asyncio.Task[None] | None = None
        self._cancelled: set[asyncio.Task[None]] = set()
        self._ticks = 0

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def interval(self) -> float:
        return self._interval

    @property
    def ticks(self) -> int:
        """Number of completed rounds since construction."""
        return self._ticks

    def generate(self) -> list[SensorReading]:
        """Draw one round of readings without emitting them."""
        readings: list[SensorReading] = []
        for sensor_id in self._sensor_ids:
            if self._rng.random() < self._flow_probability:
                flow_rate = self._rng.random() * self._max_flow_rate
            else:
                flow_rate = 0.0
            readings.append(SensorReading(sensor_id=sensor_id, flow_rate=flow_rate))
        return readings

    def tick(self) -> list[SensorReading]:
        """Draw one round and push every reading to the sink."""
        readings = self.generate()
        for reading in readings:
            try:
                self._sink(reading)
            except Exception:
                _logger.exception("Fallback sink failed for %s", reading.sensor_id)
        self._ticks += 1
        return readings

    def start(self) -> None:
        """Schedule periodic rounds on the running event loop. No-op if already running."""
        if self.is_running:
            return
        self._task = asyncio.get_running_loop().create_task(self._run(), name="pywaterflow-fallback")
        _logger.info("Fallback generator started interval=%ss sensors=%d", self._interval, len(self._sensor_ids))

    def stop(self) -> None:
        """Cancel the periodic task. No further rounds are emitted after this returns."""
        task = self._task
        self._task = None
        if task is None or task.done():
            return
        task.cancel()
        self._cancelled.add(task)
        task.add_done_callback(self._cancelled.discard)
        _logger.info("Fallback generator stopped after %d rounds", self._ticks)

    async def aclose(self) -> None:
        """Stop and wait for cancelled tasks to unwind."""
        self.stop()
        pending = list(self._cancelled)
        for task in pending:
            with contextlib.suppress(asyncio.CancelledError):
                await task

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self._interval)
            self.tick()
