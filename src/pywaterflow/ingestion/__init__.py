"""Ingestion layer.

This package contains the telemetry wire parsers and helpers that turn raw
websocket text into validated :class:`pywaterflow.models.reading.SensorReading`
objects.
"""

__all__: list[str] = []
