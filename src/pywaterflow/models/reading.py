"""Sensor reading model."""

from __future__ import annotations

import math

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


class SensorReading(BaseModel):
    """A single (sensor id, flow rate) pair.

    Produced by parsing one telemetry message or by one fallback tick.
    Accepts the wire keys ``sensorId`` / ``flowRate`` as well as the
    snake_case field names.

    Parameters
    ----------
    sensor_id : str
        Identifier of the reporting sensor. Surrounding whitespace is
        stripped; must be non-empty.
    flow_rate : float
        Flow in litres per minute. Finite and non-negative.
    """

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
    )

    sensor_id: str = Field(..., validation_alias=AliasChoices("sensorId", "sensor_id"))
    flow_rate: float = Field(..., validation_alias=AliasChoices("flowRate", "flow_rate"))

    @field_validator("sensor_id")
    @classmethod
    def _normalize_sensor_id(cls, value: str) -> str:
        sensor_id = value.strip()
        if not sensor_id:
            raise ValueError("sensor_id must be non-empty")
        return sensor_id

    @field_validator("flow_rate")
    @classmethod
    def _check_flow_rate(cls, value: float) -> float:
        if not math.isfinite(value):
            raise ValueError("flow_rate must be finite")
        if value < 0:
            raise ValueError("flow_rate must be non-negative")
        return value
