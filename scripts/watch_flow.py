#!/usr/bin/env python3
"""Watch sensor state from the live feed (or the simulated fallback).

Connects to the microcontroller websocket configured via ``WATERFLOW_*``
environment variables (or the flags below) and prints a table of every
known sensor at a fixed interval.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

# Allow running from repo root without installing the package.
_repo = Path(__file__).resolve().parent.parent
_src = _repo / "src"
if _src.is_dir():
    sys.path.insert(0, str(_src))

from pywaterflow import FlowMonitor, FlowMonitorConfig  # noqa: E402
from pywaterflow.state.store import SensorRecord  # noqa: E402


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Print periodic water-flow sensor snapshots.",
    )
    parser.add_argument(
        "--host",
        default=None,
        help="Websocket host of the sensor feed (default: WATERFLOW_HOST or 192.168.1.10).",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=None,
        help="Websocket port (default: WATERFLOW_PORT or 81).",
    )
    parser.add_argument(
        "--simulate",
        action="store_true",
        help="Skip the live feed and use synthetic data only.",
    )
    parser.add_argument(
        "--every",
        type=float,
        default=2.0,
        help="Seconds between printed snapshots.",
    )
    parser.add_argument(
        "--duration",
        type=float,
        default=0,
        help="Maximum runtime in seconds (0 = run until Ctrl+C).",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable debug logs.",
    )
    return parser.parse_args()


def _format_record(record: SensorRecord) -> str:
    status = "FLOW" if record.active else "NO FLOW"
    source = record.source.value if record.source is not None else "-"
    return (
        f"  {record.id:<6} {record.flow_rate:>7.2f} L/min  {status:<7}  "
        f"{source:<8} {record.last_update.isoformat(timespec='seconds')}"
    )


async def _watch(config: FlowMonitorConfig, every: float, duration: float) -> None:
    loop = asyncio.get_running_loop()
    deadline = loop.time() + duration if duration > 0 else None
    async with FlowMonitor(config) as monitor:
        while deadline is None or loop.time() < deadline:
            await asyncio.sleep(every)
            summary = monitor.summary()
            print(
                f"[{monitor.mode}] active={summary.active} inactive={summary.inactive} total={summary.total}"
            )
            for record in monitor.snapshot().values():
                print(_format_record(record))


def _main() -> int:
    args = _parse_args()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    overrides: dict[str, object] = {}
    if args.host is not None:
        overrides["host"] = args.host
    if args.port is not None:
        overrides["port"] = args.port
    if args.simulate:
        overrides["live_enabled"] = False
    config = FlowMonitorConfig.from_env(**overrides)

    try:
        asyncio.run(_watch(config, args.every, args.duration))
    except KeyboardInterrupt:
        pass
    return 0


if __name__ == "__main__":
    raise SystemExit(_main())
