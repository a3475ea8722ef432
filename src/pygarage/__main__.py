"""Run a garage door controller against a relay device.

Options that are not given on the command line fall back to the
``GARAGE_*`` environment variables read by :meth:`GarageConfig.from_env`.

    python -m pygarage --ip 192.168.1.50 --port 8080 --wait-open 18
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys

from pygarage.accessory import LoggingAccessorySink
from pygarage.config import GarageConfig
from pygarage.controller import DoorController
from pygarage.device import DeviceClient
from pygarage.exceptions import GarageConfigError


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pygarage",
        description="Track and drive a garage door through a relay with a door sensor.",
    )
    parser.add_argument("--ip", dest="device_ip", help="IPv4 address of the relay device")
    parser.add_argument("--port", dest="webhook_port", type=int, help="Webhook listener port")
    parser.add_argument("--name", help="Accessory display name")
    parser.add_argument("--wait-open", type=float, help="Seconds to wait before confirming open")
    parser.add_argument("--wait-closed", type=float, help="Seconds to wait before confirming closed")
    parser.add_argument("--poll-interval", type=float, help="Seconds between sensor polls")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    return parser


async def run(config: GarageConfig) -> None:
    sink = LoggingAccessorySink(config.name)
    async with DeviceClient(config) as device, DoorController(config, device, sink):
        await asyncio.Event().wait()


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)-8s %(name)s: %(message)s",
    )

    try:
        config = GarageConfig.from_env(
            device_ip=args.device_ip,
            webhook_port=args.webhook_port,
            name=args.name,
            wait_open=args.wait_open,
            wait_closed=args.wait_closed,
            poll_interval=args.poll_interval,
        )
    except GarageConfigError as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        return 2

    try:
        asyncio.run(run(config))
    except KeyboardInterrupt:
        pass
    return 0


if __name__ == "__main__":
    sys.exit(main())
