from __future__ import annotations

import pytest

from pywaterflow.config import DEFAULT_SENSORS, FlowMonitorConfig, SensorSite, TelemetryAddress
from pywaterflow.exceptions import FlowMonitorConfigError


def test_defaults_match_firmware() -> None:
    config = FlowMonitorConfig()

    assert config.port == 81
    assert config.url == "ws://192.168.1.10:81"
    assert config.fallback_interval == 2.0
    assert config.sensor_ids == tuple(f"S00{i}" for i in range(1, 9))
    assert DEFAULT_SENSORS[0].name == "Sensor 1 - Poblacion"


def test_from_env_reads_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("WATERFLOW_HOST", "10.0.0.7")
    monkeypatch.setenv("WATERFLOW_PORT", "8081")
    monkeypatch.setenv("WATERFLOW_FALLBACK_INTERVAL", "0.5")
    monkeypatch.setenv("WATERFLOW_LIVE_ENABLED", "off")

    config = FlowMonitorConfig.from_env(port=9000)

    assert config.host == "10.0.0.7"
    assert config.port == 9000
    assert config.fallback_interval == 0.5
    assert config.live_enabled is False


def test_from_env_rejects_bad_numbers(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("WATERFLOW_PORT", "eighty-one")

    with pytest.raises(FlowMonitorConfigError):
        FlowMonitorConfig.from_env()


@pytest.mark.parametrize(
    "kwargs",
    [
        {"port": 0},
        {"host": " "},
        {"fallback_interval": 0},
        {"flow_probability": 1.5},
        {"max_flow_rate": float("inf")},
        {"sensors": ()},
        {"sensors": (SensorSite("S001"), SensorSite("S001"))},
        {"sensors": (SensorSite(""),)},
    ],
)
def test_invalid_config_rejected(kwargs: dict[str, object]) -> None:
    with pytest.raises(FlowMonitorConfigError):
        FlowMonitorConfig(**kwargs)  # type: ignore[arg-type]


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("ws://192.168.4.1:81", TelemetryAddress("192.168.4.1", 81)),
        ("esp32.local:8080", TelemetryAddress("esp32.local", 8080)),
        ("ws://esp32.local/", TelemetryAddress("esp32.local", 81)),
    ],
)
def test_address_parse(text: str, expected: TelemetryAddress) -> None:
    assert TelemetryAddress.parse(text) == expected


def test_address_parse_rejects_empty() -> None:
    with pytest.raises(FlowMonitorConfigError):
        TelemetryAddress.parse("  ")
