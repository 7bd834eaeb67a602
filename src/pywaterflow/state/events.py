"""Normalized ingestion events.

Both ingestion paths (live websocket, synthetic fallback) convert their
inputs into these events. Only the state/store layer is allowed to apply them.
"""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field

from pywaterflow.models.reading import SensorReading


class ReadingSource(StrEnum):
    LIVE = "live"
    FALLBACK = "fallback"


class IngestionEvent(BaseModel):
    """A normalized reading to apply to the state store.

    The store stamps ``last_update`` from its own clock at application time.
    """

    model_config = ConfigDict(frozen=True)

    reading: SensorReading
    source: ReadingSource
    raw: str | None = Field(default=None, description="Original message text, quoted when the reading is rejected")

    @property
    def sensor_id(self) -> str:
        return self.reading.sensor_id
