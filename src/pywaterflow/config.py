"""Monitor configuration for pywaterflow."""

from __future__ import annotations

import dataclasses
import math
import os
from typing import Any

from pywaterflow._constants import (
    CONNECT_TIMEOUT_SECONDS,
    DEFAULT_HOST,
    DEFAULT_PORT,
    FALLBACK_FLOW_PROBABILITY,
    FALLBACK_INTERVAL_SECONDS,
    FALLBACK_MAX_FLOW_RATE,
)
from pywaterflow.exceptions import FlowMonitorConfigError


def _env_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False
    return default


@dataclasses.dataclass(frozen=True)
class SensorSite:
    """A known flow sensor and where it is installed.

    Only ``id`` is used by the ingestion core. The remaining fields are
    carried for map and list collaborators.
    """

    id: str
    name: str = ""
    location: str = ""
    latitude: float = 0.0
    longitude: float = 0.0


# Sensors placed around Valencia City, Bukidnon.
DEFAULT_SENSORS: tuple[SensorSite, ...] = (
    SensorSite("S001", "Sensor 1 - Poblacion", "Poblacion, Valencia City", 7.9042, 125.0928),
    SensorSite("S002", "Sensor 2 - Bagontaas", "Bagontaas, Valencia City", 7.9150, 125.1050),
    SensorSite("S003", "Sensor 3 - Lumbo", "Lumbo, Valencia City", 7.8950, 125.0800),
    SensorSite("S004", "Sensor 4 - Mailag", "Mailag, Valencia City", 7.9200, 125.0750),
    SensorSite("S005", "Sensor 5 - Lumbayao", "Lumbayao, Valencia City", 7.8880, 125.1100),
    SensorSite("S006", "Sensor 6 - Guinoyuran", "Guinoyuran, Valencia City", 7.9300, 125.0900),
    SensorSite("S007", "Sensor 7 - Pinatilan", "Pinatilan, Valencia City", 7.8800, 125.0950),
    SensorSite("S008", "Sensor 8 - Concepcion", "Concepcion, Valencia City", 7.9100, 125.1150),
)


@dataclasses.dataclass(frozen=True)
class TelemetryAddress:
    """Host and port of the websocket telemetry feed."""

    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT

    @property
    def url(self) -> str:
        return f"ws://{self.host}:{self.port}"

    @classmethod
    def parse(cls, value: str) -> TelemetryAddress:
        """Parse ``ws://host:port``, ``host:port`` or a bare ``host``."""
        text = value.strip()
        if not text:
            raise FlowMonitorConfigError("Telemetry address is empty")
        if "://" in text:
            text = text.split("://", 1)[1]
        if "/" in text:
            text = text.split("/", 1)[0]

        host, _, maybe_port = text.rpartition(":")
        if host and maybe_port.isdigit():
            return cls(host=host, port=int(maybe_port))
        return cls(host=text)

    def __str__(self) -> str:
        return self.url


@dataclasses.dataclass(frozen=True)
class FlowMonitorConfig:
    """Monitor configuration.

    Parameters
    ----------
    host : str
        Address of the microcontroller's websocket server.
    port : int
        Websocket port. The firmware listens on ``81``.
    live_enabled : bool
        Attempt the live websocket feed at startup. When ``False`` the
        monitor runs on synthetic data only.
    connect_timeout : float
        Seconds allowed for the websocket handshake.
    fallback_interval : float
        Seconds between synthetic fallback rounds.
    flow_probability : float
        Chance (0-1) that a synthetic reading reports flow.
    max_flow_rate : float
        Exclusive upper bound of synthetic flow rates, in L/min.
    sensors : tuple of SensorSite
        The known sensor table. Membership is fixed for the monitor's
        lifetime.
    """

    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    live_enabled: bool = True
    connect_timeout: float = CONNECT_TIMEOUT_SECONDS
    fallback_interval: float = FALLBACK_INTERVAL_SECONDS
    flow_probability: float = FALLBACK_FLOW_PROBABILITY
    max_flow_rate: float = FALLBACK_MAX_FLOW_RATE
    sensors: tuple[SensorSite, ...] = DEFAULT_SENSORS

    def __post_init__(self) -> None:
        if not self.host.strip():
            raise FlowMonitorConfigError("host must be non-empty")
        if not 0 < self.port < 65536:
            raise FlowMonitorConfigError(f"port out of range: {self.port}")
        if not self.connect_timeout > 0:
            raise FlowMonitorConfigError("connect_timeout must be positive")
        if not self.fallback_interval > 0:
            raise FlowMonitorConfigError("fallback_interval must be positive")
        if not 0.0 <= self.flow_probability <= 1.0:
            raise FlowMonitorConfigError("flow_probability must be between 0 and 1")
        if not (math.isfinite(self.max_flow_rate) and self.max_flow_rate > 0):
            raise FlowMonitorConfigError("max_flow_rate must be a positive number")
        if not self.sensors:
            raise FlowMonitorConfigError("at least one sensor must be configured")
        ids = [site.id for site in self.sensors]
        if any(not sensor_id.strip() for sensor_id in ids):
            raise FlowMonitorConfigError("sensor ids must be non-empty")
        if len(set(ids)) != len(ids):
            raise FlowMonitorConfigError("sensor ids must be unique")

    @property
    def address(self) -> TelemetryAddress:
        return TelemetryAddress(host=self.host, port=self.port)

    @property
    def url(self) -> str:
        return self.address.url

    @property
    def sensor_ids(self) -> tuple[str, ...]:
        return tuple(site.id for site in self.sensors)

    @classmethod
    def from_env(cls, **overrides: Any) -> FlowMonitorConfig:
        """Create configuration from environment variables.

        Reads optional ``WATERFLOW_*`` variables. Explicit keyword
        arguments override environment values.

        Parameters
        ----------
        **overrides
            Explicit field values that take precedence over env vars.

        Returns
        -------
        FlowMonitorConfig
            Populated configuration.
        """
        env = os.environ
        config_kwargs: dict[str, Any] = {}

        host_env = env.get("WATERFLOW_HOST")
        if host_env is not None:
            config_kwargs["host"] = host_env

        _ENV_NUMERIC_MAP = {
            "WATERFLOW_PORT": ("port", int),
            "WATERFLOW_CONNECT_TIMEOUT": ("connect_timeout", float),
            "WATERFLOW_FALLBACK_INTERVAL": ("fallback_interval", float),
            "WATERFLOW_FLOW_PROBABILITY": ("flow_probability", float),
            "WATERFLOW_MAX_FLOW_RATE": ("max_flow_rate", float),
        }
        for env_key, (field_name, convert) in _ENV_NUMERIC_MAP.items():
            val = env.get(env_key)
            if val is None or field_name in overrides:
                continue
            try:
                config_kwargs[field_name] = convert(val)
            except ValueError as exc:
                raise FlowMonitorConfigError(f"{env_key} is not a valid number: {val!r}") from exc

        if "live_enabled" not in overrides:
            config_kwargs["live_enabled"] = _env_bool(env.get("WATERFLOW_LIVE_ENABLED"), True)

        config_kwargs.update(overrides)

        return cls(**config_kwargs)
