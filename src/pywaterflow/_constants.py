"""Internal constants shared across the library."""

#: Flow (L/min) above which a sensor counts as active. Exactly 0.5 is inactive.
ACTIVE_THRESHOLD: float = 0.5

DEFAULT_HOST = "192.168.1.10"
DEFAULT_PORT = 81

#: Seconds between synthetic fallback rounds.
FALLBACK_INTERVAL_SECONDS: float = 2.0

#: Probability that a synthetic reading reports flow (the rest report 0.0).
FALLBACK_FLOW_PROBABILITY: float = 0.7

#: Upper bound (exclusive) of synthetic flow rates in L/min.
FALLBACK_MAX_FLOW_RATE: float = 20.0

CONNECT_TIMEOUT_SECONDS: float = 5.0

# Truncation length for telemetry text echoed into log lines.
LOG_MESSAGE_PREVIEW = 120
