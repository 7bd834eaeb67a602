"""Custom exception hierarchy for pywaterflow."""

from __future__ import annotations


class FlowMonitorError(Exception):
    """Base exception for all pywaterflow errors."""


class FlowMonitorConfigError(FlowMonitorError):
    """Invalid or missing configuration."""


class TelemetryTransportError(FlowMonitorError):
    """Websocket-level failure (refused, timeout, DNS, handshake)."""

    def __init__(
        self,
        message: str,
        *,
        address: str = "",
    ) -> None:
        self.address = address
        super().__init__(message)


class UnknownSensorError(FlowMonitorError, KeyError):
    """A sensor id that is not part of the configured sensor table.

    Ingestion never raises this; it rejects and logs instead. It is raised
    by explicit lookups such as :meth:`SensorStateStore.get`.
    """

    def __init__(self, sensor_id: str) -> None:
        self.sensor_id = sensor_id
        super().__init__(f"Unknown sensor id: {sensor_id!r}")

    def __str__(self) -> str:
        # KeyError would otherwise repr() the message.
        return str(self.args[0])
