#!/usr/bin/env python3
"""Command line entry point: one-shot queries, or the HTTP service."""
import argparse
import asyncio
import json
import os
import sys

from . import __version__
from .commands import get_battery_info, list_battery_devices
from .config_loader import Config
from .errors import BatteryError
from .logging_setup import get_logger, setup_logging

logger = get_logger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="blebatt",
        description="Battery levels of connected Bluetooth LE devices")

    parser.add_argument(
        "--config",
        action="store",
        default=None,
        help="path to config.json (default: /etc/blebatt/config.json)")

    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="debug logging")

    parser.add_argument(
        "--json",
        action="store_true",
        help="print results as JSON")

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}")

    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser(
        "devices",
        help="list connected devices exposing the Battery Service")

    battery = subparsers.add_parser(
        "battery",
        help="read the battery level of a device")
    battery.add_argument(
        "id",
        help="device id as printed by 'devices'")

    subparsers.add_parser(
        "serve",
        help="run the HTTP service")

    return parser


def format_reading(reading: dict) -> str:
    label = reading["user_descriptor"] or "Battery"
    level = reading["battery_level"]
    return f"{label}: {'unknown' if level is None else f'{level}%'}"


def print_devices(devices: list[dict], as_json: bool) -> None:
    if as_json:
        print(json.dumps(devices, indent=2, ensure_ascii=False))
    elif not devices:
        print("No connected battery devices found.")
    else:
        for device in devices:
            print(f"{device['name']} -> {device['id']}")


def print_readings(readings: list[dict], as_json: bool) -> None:
    if as_json:
        print(json.dumps(readings, indent=2, ensure_ascii=False))
    elif not readings:
        print("Device reports no battery level.")
    else:
        for reading in readings:
            print(format_reading(reading))


def serve(cfg: Config) -> None:
    import uvicorn

    from .api import create_app

    uvicorn.run(
        create_app(cfg),
        host=cfg.service.host,
        port=cfg.service.port,
        log_config=None,
    )


def run(argv: list[str] | None = None) -> int:
    """Entry point for the blebatt CLI."""
    args = build_parser().parse_args(argv)

    is_dev = os.getenv("BLEBATT_ENV") == "dev"
    setup_logging(verbose=args.verbose or is_dev)

    cfg = Config.load(args.config)
    if cfg.logging.verbose or cfg.logging.log_file:
        setup_logging(
            verbose=args.verbose or is_dev or cfg.logging.verbose,
            log_file=cfg.logging.log_file,
        )

    if args.command == "serve":
        logger.info("Serving on %s:%d", cfg.service.host, cfg.service.port)
        serve(cfg)
        return 0

    timeout = cfg.ble.request_timeout
    try:
        if args.command == "devices":
            print_devices(asyncio.run(list_battery_devices(timeout=timeout)), args.json)
        else:
            print_readings(asyncio.run(get_battery_info(args.id, timeout=timeout)), args.json)
    except BatteryError as e:
        print(str(e), file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        logger.info("Manually stopped with Ctrl+C")
        return 130
    return 0


if __name__ == "__main__":
    sys.exit(run())
