"""Deterministic in-memory sensor state store.

This is the only component allowed to mutate sensor records. Every reading,
live or synthetic, passes through :meth:`SensorStateStore.apply`.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Iterable, Mapping
from datetime import UTC, datetime
from types import MappingProxyType

from pydantic import BaseModel, ConfigDict, computed_field

from pywaterflow.exceptions import UnknownSensorError
from pywaterflow.ingestion.normalize import preview
from pywaterflow.ingestion.parsers import DEFAULT_PARSERS, MessageParser, ParseOk, parse_message
from pywaterflow.models.reading import SensorReading
from pywaterflow.state.events import IngestionEvent, ReadingSource
from pywaterflow.state.policy import is_active, next_update_time

_logger = logging.getLogger(__name__)

RecordListener = Callable[["SensorRecord"], None]


def _utcnow() -> datetime:
    return datetime.now(UTC)


class SensorRecord(BaseModel):
    """Latest known state of one known sensor.

    ``active`` is derived from ``flow_rate`` and cannot be set directly.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    id: str
    flow_rate: float = 0.0
    last_update: datetime
    source: ReadingSource | None = None

    @computed_field  # type: ignore[prop-decorator]
    @property
    def active(self) -> bool:
        return is_active(self.flow_rate)


class FlowSummary(BaseModel):
    """Active/inactive counts over one snapshot."""

    model_config = ConfigDict(frozen=True)

    total: int
    active: int

    @computed_field  # type: ignore[prop-decorator]
    @property
    def inactive(self) -> int:
        return self.total - self.active


class SensorStateStore:
    """In-memory table holding exactly one record per known sensor.

    Records are created at construction (``flow_rate=0``, inactive) and are
    never added or removed afterwards. Readings for ids outside the known
    set are rejected and logged.

    Every mutation holds a single lock, so the store may be fed from worker
    threads as well as from the event loop. Listeners run after the table
    lock is released but under a dispatch lock, so they see updates in the
    order they were applied, across threads. A listener must not block on
    another thread that is itself writing to the store.
    """

    def __init__(
        self,
        sensor_ids: Iterable[str],
        *,
        clock: Callable[[], datetime] = _utcnow,
        parsers: tuple[MessageParser, ...] = DEFAULT_PARSERS,
    ) -> None:
        self._clock = clock
        self._parsers = parsers
        self._lock = threading.Lock()
        # Reentrant: a listener may write back into the store.
        self._dispatch_lock = threading.RLock()
        self._listeners: list[RecordListener] = []

        created_at = clock()
        records: dict[str, SensorRecord] = {}
        for sensor_id in sensor_ids:
            if sensor_id in records:
                raise ValueError(f"duplicate sensor id: {sensor_id!r}")
            records[sensor_id] = SensorRecord(id=sensor_id, flow_rate=0.0, last_update=created_at)
        if not records:
            raise ValueError("SensorStateStore needs at least one known sensor")
        self._records = records

    @property
    def known_sensor_ids(self) -> tuple[str, ...]:
        return tuple(self._records)

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, sensor_id: object) -> bool:
        return sensor_id in self._records

    # ------------------------------------------------------------------
    # Ingestion
    # ------------------------------------------------------------------

    def apply_raw_message(self, text: str, *, source: ReadingSource = ReadingSource.LIVE) -> SensorRecord | None:
        """Parse one telemetry message and apply it.

        Malformed text and unknown sensor ids are logged and discarded;
        this method never raises for bad input. Returns the updated record,
        or ``None`` when the message was discarded.
        """
        result = parse_message(text, self._parsers)
        if not isinstance(result, ParseOk):
            _logger.warning("Discarding malformed telemetry %r: %s", preview(text), result.reason)
            return None
        _logger.debug("Parsed telemetry via %s parser: %s", result.parser, result.reading)
        return self.apply(IngestionEvent(reading=result.reading, source=source, raw=text))

    def apply_reading(self, reading: SensorReading, *, source: ReadingSource) -> SensorRecord | None:
        """Apply an already-structured reading (used by the fallback generator)."""
        return self.apply(IngestionEvent(reading=reading, source=source))

    def apply(self, event: IngestionEvent) -> SensorRecord | None:
        """Apply a normalized ingestion event."""
        sensor_id = event.sensor_id
        with self._dispatch_lock:
            with self._lock:
                current = self._records.get(sensor_id)
                if current is None:
                    updated = None
                else:
                    updated = SensorRecord(
                        id=sensor_id,
                        flow_rate=event.reading.flow_rate,
                        last_update=next_update_time(current.last_update, self._clock()),
                        source=event.source,
                    )
                    self._records[sensor_id] = updated

            if updated is None:
                if event.raw is None:
                    _logger.warning("Rejecting %s reading for unknown sensor %r", event.source, sensor_id)
                else:
                    _logger.warning(
                        "Rejecting %s reading for unknown sensor %r: %r",
                        event.source,
                        sensor_id,
                        preview(event.raw),
                    )
                return None

            self._notify(updated)
        return updated

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def snapshot(self) -> Mapping[str, SensorRecord]:
        """Read-only view of every record, in configured sensor order.

        Records are immutable, so the view is a consistent copy of the table
        at the time of the call.
        """
        with self._lock:
            copied = dict(self._records)
        return MappingProxyType(copied)

    def get(self, sensor_id: str) -> SensorRecord:
        with self._lock:
            record = self._records.get(sensor_id)
        if record is None:
            raise UnknownSensorError(sensor_id)
        return record

    def summary(self) -> FlowSummary:
        records = self.snapshot().values()
        return FlowSummary(total=len(records), active=sum(1 for record in records if record.active))

    # ------------------------------------------------------------------
    # Change notifications
    # ------------------------------------------------------------------

    def subscribe(self, listener: RecordListener) -> Callable[[], None]:
        """Call *listener* with every updated record. Returns an unsubscribe callable."""
        with self._lock:
            self._listeners.append(listener)

        def _unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return _unsubscribe

    def _notify(self, record: SensorRecord) -> None:
        with self._lock:
            listeners = list(self._listeners)
        for listener in listeners:
            try:
                listener(record)
            except Exception:
                _logger.exception("Sensor state listener failed for %s", record.id)
