#!/usr/bin/env python3
"""
Simulated dump1090 SBS-1 TCP stream.

Starts a TCP server on port 30003 that emits a fixed three-aircraft patrol
around Ashtabula, OH (MSG type 1 callsign, 3 position and 4 velocity).
Useful for local demos and decoder tests without hardware.

Usage:
    python -m apps.simulate_stream [--port 30003] [--pattern flyover]

Environment Variables:
    ADSB_SIM_HOST: listen address (default: 0.0.0.0)
    ADSB_SIM_PORT: listen port (default: 30003)
    ADSB_SIM_TICK_SECONDS: simulation period (default: 0.1)
    ADSB_SIM_SEND_INTERVAL: seconds between bursts per client (default: 1.0)
    ADSB_SIM_PATTERN: roundtrip or flyover (default: roundtrip)
    ADSB_SIM_FLEET_FILE: JSON fleet definition replacing the built-in patrol
    ADSB_SIM_SEED: seed for the per-client message selection
    ADSB_SIM_LOG_LEVEL: logging level (default: INFO)
"""

from __future__ import annotations

import argparse
import logging
import sys
from typing import List, Optional

from pydantic import ValidationError

from fakeadsb.aircraft import PatrolKind
from fakeadsb.config import (
    LOG_FORMAT,
    TARGET_LAT,
    TARGET_LON,
    get_fleet_file,
    get_listen_host,
    get_listen_port,
    get_log_level,
    get_pattern,
    get_send_interval,
    get_seed,
    get_tick_seconds,
)
from fakeadsb.fleet import SimulationEngine
from fakeadsb.fleet_config import FleetConfig, build_fleet, default_fleet_config, load_fleet_config
from fakeadsb.server import FeedServer

logger = logging.getLogger("fakeadsb")


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Fake ADS-B (SBS-1) feed server")
    parser.add_argument("--host", default=get_listen_host(), help="Listen address (env ADSB_SIM_HOST)")
    parser.add_argument("--port", type=int, default=get_listen_port(), help="Listen port (env ADSB_SIM_PORT)")
    parser.add_argument("--tick", type=float, default=get_tick_seconds(), help="Simulation period in seconds")
    parser.add_argument("--interval", type=float, default=get_send_interval(), help="Seconds between bursts per client")
    parser.add_argument(
        "--pattern",
        default=get_pattern(),
        choices=[kind.value for kind in PatrolKind],
        help="Patrol pattern for the built-in fleet",
    )
    parser.add_argument("--fleet-file", default=get_fleet_file(), help="JSON fleet definition (env ADSB_SIM_FLEET_FILE)")
    parser.add_argument("--seed", type=int, default=get_seed(), help="Seed for message selection")
    parser.add_argument("--log-level", default=get_log_level(), help="Logging level (env ADSB_SIM_LOG_LEVEL)")
    args = parser.parse_args(argv)
    if args.tick <= 0 or args.interval <= 0:
        parser.error("--tick and --interval must be positive")
    if not isinstance(logging.getLevelName(args.log_level.upper()), int):
        parser.error(f"unknown log level {args.log_level!r}")
    return args


def load_config(args: argparse.Namespace) -> FleetConfig:
    if args.fleet_file:
        return load_fleet_config(args.fleet_file)
    return default_fleet_config(args.pattern)


def main(argv: Optional[List[str]] = None) -> None:
    try:
        args = parse_args(argv)
    except ValueError as exc:
        # Bad ADSB_SIM_* value read while building the argument defaults
        logging.basicConfig(format=LOG_FORMAT)
        logger.error("Invalid configuration: %s", exc)
        sys.exit(2)
    logging.basicConfig(level=args.log_level.upper(), format=LOG_FORMAT)

    try:
        config = load_config(args)
        fleet = build_fleet(config)
    except (OSError, ValueError, ValidationError) as exc:
        logger.error("Invalid fleet definition: %s", exc)
        sys.exit(2)

    logger.info("Starting fake ADS-B (SBS-1) server on port %d...", args.port)
    if args.fleet_file:
        logger.info("Simulating %d aircraft from %s", len(fleet), args.fleet_file)
    else:
        logger.info(
            "Simulating %d-aircraft %s patrol of Ashtabula, OH (%.4f, %.4f)",
            len(fleet), config.pattern.value, TARGET_LAT, TARGET_LON,
        )

    engine = SimulationEngine(fleet, tick_interval=args.tick)
    server = FeedServer(fleet, host=args.host, port=args.port, send_interval=args.interval, seed=args.seed)
    try:
        server.start()
    except OSError as exc:
        logger.error("Failed to start listener on %s:%d: %s", args.host, args.port, exc)
        sys.exit(1)

    engine.start()
    try:
        server.serve_forever()
    except KeyboardInterrupt:
        logger.info("Shutting down")
    finally:
        server.stop()
        engine.stop()


if __name__ == "__main__":
    main()
