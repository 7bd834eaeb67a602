"""pywaterflow - Async water-flow sensor telemetry ingestion and state."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("pywaterflow")
except PackageNotFoundError:
    __version__ = "0+local"
from pywaterflow._constants import ACTIVE_THRESHOLD
from pywaterflow._websocket import AdapterState, TelemetrySourceAdapter
from pywaterflow.config import DEFAULT_SENSORS, FlowMonitorConfig, SensorSite, TelemetryAddress
from pywaterflow.exceptions import (
    FlowMonitorConfigError,
    FlowMonitorError,
    TelemetryTransportError,
    UnknownSensorError,
)
from pywaterflow.fallback import FallbackGenerator
from pywaterflow.ingestion.parsers import (
    DEFAULT_PARSERS,
    ParseFail,
    ParseOk,
    parse_colon_reading,
    parse_json_reading,
    parse_message,
)
from pywaterflow.models import SensorReading
from pywaterflow.monitor import FeedMode, FlowMonitor
from pywaterflow.state.events import IngestionEvent, ReadingSource
from pywaterflow.state.store import FlowSummary, SensorRecord, SensorStateStore

__all__ = [
    "__version__",
    "ACTIVE_THRESHOLD",
    "AdapterState",
    "DEFAULT_PARSERS",
    "DEFAULT_SENSORS",
    "FallbackGenerator",
    "FeedMode",
    "FlowMonitor",
    "FlowMonitorConfig",
    "FlowMonitorConfigError",
    "FlowMonitorError",
    "FlowSummary",
    "IngestionEvent",
    "ParseFail",
    "ParseOk",
    "ReadingSource",
    "SensorReading",
    "SensorRecord",
    "SensorSite",
    "SensorStateStore",
    "TelemetryAddress",
    "TelemetrySourceAdapter",
    "TelemetryTransportError",
    "UnknownSensorError",
    "parse_colon_reading",
    "parse_json_reading",
    "parse_message",
]
