"""Telemetry wire parsers.

The microcontroller firmware may send either of two text forms:

* JSON: ``{"sensorId": "S001", "flowRate": 12.5}``
* colon form: ``S001:12.5``

Each form is handled by a parser strategy that returns a tagged result
(:class:`ParseOk` or :class:`ParseFail`). :func:`parse_message` tries the
strategies in order and stops at the first success.
"""

from __future__ import annotations

import json
import math
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Any

from pydantic import ValidationError

from pywaterflow.ingestion.normalize import finite_float_or_zero, is_number
from pywaterflow.models.reading import SensorReading


@dataclass(frozen=True)
class ParseOk:
    reading: SensorReading
    parser: str = ""


@dataclass(frozen=True)
class ParseFail:
    reason: str
    parser: str = ""


ParseResult = ParseOk | ParseFail
MessageParser = Callable[[str], ParseResult]


def parse_json_reading(text: str) -> ParseResult:
    """Parse the structured ``{"sensorId": ..., "flowRate": ...}`` form."""
    try:
        payload: Any = json.loads(text)
    except (ValueError, RecursionError):
        # JSONDecodeError is a ValueError; so is an integer literal past the int/str digit limit.
        return ParseFail("not JSON", parser="json")
    if not isinstance(payload, dict):
        return ParseFail("JSON payload is not an object", parser="json")

    sensor_id = payload.get("sensorId")
    raw_flow = payload.get("flowRate")
    if not isinstance(sensor_id, str):
        return ParseFail("sensorId missing or not a string", parser="json")
    if not is_number(raw_flow):
        return ParseFail("flowRate missing or not a number", parser="json")
    try:
        flow_rate = float(raw_flow)
    except OverflowError:
        return ParseFail("flowRate too large for a float", parser="json")
    if not math.isfinite(flow_rate) or flow_rate < 0:
        return ParseFail(f"flowRate out of range: {flow_rate}", parser="json")

    try:
        reading = SensorReading(sensor_id=sensor_id, flow_rate=flow_rate)
    except ValidationError as exc:
        return ParseFail(f"invalid reading: {exc.errors()[0]['msg']}", parser="json")
    return ParseOk(reading, parser="json")


def parse_colon_reading(text: str) -> ParseResult:
    """Parse the ``ID:VALUE`` form.

    Both tokens are trimmed. A value that does not parse as a finite number
    is read as ``0.0``; a negative value is rejected.
    """
    parts = text.split(":")
    if len(parts) != 2:
        return ParseFail("expected exactly one ':' separator", parser="colon")

    sensor_id = parts[0].strip()
    if not sensor_id:
        return ParseFail("empty sensor id", parser="colon")

    flow_rate = finite_float_or_zero(parts[1].strip())
    if flow_rate < 0:
        return ParseFail(f"negative flow rate: {flow_rate}", parser="colon")

    return ParseOk(SensorReading(sensor_id=sensor_id, flow_rate=flow_rate), parser="colon")


DEFAULT_PARSERS: tuple[MessageParser, ...] = (parse_json_reading, parse_colon_reading)


def parse_message(text: str, parsers: Sequence[MessageParser] = DEFAULT_PARSERS) -> ParseResult:
    """Run *parsers* in order and return the first :class:`ParseOk`.

    When every strategy fails, the returned :class:`ParseFail` joins their
    reasons.
    """
    reasons: list[str] = []
    for parser in parsers:
        result = parser(text)
        if isinstance(result, ParseOk):
            return result
        reasons.append(f"{result.parser or parser.__name__}: {result.reason}")
    return ParseFail("; ".join(reasons) or "no parsers configured")
