#!/usr/bin/env python3
"""Websocket server that behaves like the flow-sensor microcontroller.

Every connected client receives one message per sensor each interval, in
either the JSON form (``{"sensorId": "S001", "flowRate": 12.5}``) or the
colon form (``S001:12.5``). Useful for exercising ``watch_flow.py`` without
hardware::

    python scripts/fake_sensor_feed.py --port 8081 &
    python scripts/watch_flow.py --host 127.0.0.1 --port 8081
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import random
import sys
from pathlib import Path

from aiohttp import web

# Allow running from repo root without installing the package.
_repo = Path(__file__).resolve().parent.parent
_src = _repo / "src"
if _src.is_dir():
    sys.path.insert(0, str(_src))

from pywaterflow.config import DEFAULT_SENSORS  # noqa: E402

_LOG = logging.getLogger("fake_sensor_feed")


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Emulate the flow-sensor websocket feed.",
    )
    parser.add_argument("--host", default="127.0.0.1", help="Bind address.")
    parser.add_argument("--port", type=int, default=81, help="Bind port.")
    parser.add_argument(
        "--interval",
        type=float,
        default=1.0,
        help="Seconds between rounds of readings.",
    )
    parser.add_argument(
        "--format",
        choices=("json", "colon", "mixed"),
        default="json",
        help="Wire format of emitted messages.",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable debug logs.",
    )
    return parser.parse_args()


def _encode(sensor_id: str, flow_rate: float, wire_format: str) -> str:
    if wire_format == "mixed":
        wire_format = random.choice(("json", "colon"))
    if wire_format == "colon":
        return f"{sensor_id}:{flow_rate:.2f}"
    return json.dumps({"sensorId": sensor_id, "flowRate": round(flow_rate, 2)})


def _build_app(interval: float, wire_format: str) -> web.Application:
    async def feed(request: web.Request) -> web.WebSocketResponse:
        ws = web.WebSocketResponse()
        await ws.prepare(request)
        _LOG.info("client connected from %s", request.remote)
        try:
            while not ws.closed:
                for site in DEFAULT_SENSORS:
                    # Pulse counters read zero when nothing is flowing.
                    flow_rate = random.uniform(0.0, 20.0) if random.random() > 0.3 else 0.0
                    message = _encode(site.id, flow_rate, wire_format)
                    _LOG.debug("send %s", message)
                    await ws.send_str(message)
                await asyncio.sleep(interval)
        except ConnectionResetError:
            pass
        _LOG.info("client %s gone", request.remote)
        return ws

    app = web.Application()
    app.router.add_get("/", feed)
    return app


def _main() -> int:
    args = _parse_args()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )
    web.run_app(_build_app(args.interval, args.format), host=args.host, port=args.port)
    return 0


if __name__ == "__main__":
    raise SystemExit(_main())
