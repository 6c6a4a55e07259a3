#!/usr/bin/env python3
"""
Watch an SBS-1 feed and log what it carries.

Connects to a feed (the simulator or a real dump1090), parses every line and
logs a per-aircraft summary every few seconds. Lines whose field count does
not match their transmission type are reported.

Usage:
    python -m apps.watch_feed [--host 127.0.0.1] [--port 30003]
"""

from __future__ import annotations

import argparse
import logging
import socket
import time
from typing import List, Optional

from fakeadsb.config import DEFAULT_PORT, LOG_FORMAT, RECONNECT_DELAY, get_log_level
from fakeadsb.sbs import FIELD_COUNTS, AircraftStateTracker, MessageKind, ParsedMessage, parse_sbs_line

logger = logging.getLogger("fakeadsb.watch")

SUMMARY_INTERVAL = 5.0


def connect_to_feed(host: str, port: int) -> socket.socket:
    """Create a TCP connection to the feed."""
    sock = socket.create_connection((host, port), timeout=10)
    sock.settimeout(None)
    logger.info("Connected to feed at %s:%d", host, port)
    return sock


def check_layout(msg: ParsedMessage) -> Optional[str]:
    """Return a problem description if the line doesn't match the expected layout."""
    try:
        kind = MessageKind(msg.transmission_type)
    except ValueError:
        return f"unexpected transmission type {msg.transmission_type}"
    expected = FIELD_COUNTS[kind]
    if msg.field_count != expected:
        return f"MSG,{kind.value} has {msg.field_count} fields, expected {expected}"
    return None


def log_summary(tracker: AircraftStateTracker) -> None:
    for icao, state in sorted(tracker.latest_snapshot().items()):
        logger.info(
            "%s %-8s alt=%s lat=%s lon=%s spd=%s trk=%s msgs=%d",
            icao,
            state["callsign"] or "?",
            state["altitude_ft"],
            state["lat"],
            state["lon"],
            state["speed_kts"],
            state["heading_deg"],
            state["messages"],
        )


def watch(host: str, port: int, max_lines: Optional[int] = None) -> AircraftStateTracker:
    """Read the feed until interrupted (or max_lines parsed lines, for scripting)."""
    tracker = AircraftStateTracker()
    seen = 0
    while True:
        try:
            sock = connect_to_feed(host, port)
            with sock, sock.makefile("r", encoding="ascii", errors="replace") as f:
                last_summary = time.monotonic()
                for line in f:
                    parsed = parse_sbs_line(line)
                    if not parsed:
                        continue
                    problem = check_layout(parsed)
                    if problem:
                        logger.warning("Bad line (%s): %s", problem, parsed.raw)
                    tracker.update(parsed)
                    seen += 1
                    if max_lines is not None and seen >= max_lines:
                        return tracker
                    if time.monotonic() - last_summary >= SUMMARY_INTERVAL:
                        log_summary(tracker)
                        last_summary = time.monotonic()
            logger.warning("Feed closed the connection")
        except OSError as exc:
            logger.warning("Connection error: %s", exc)
        logger.info("Reconnecting in %d seconds... (Ctrl+C to exit)", RECONNECT_DELAY)
        time.sleep(RECONNECT_DELAY)


def main(argv: Optional[List[str]] = None) -> None:
    parser = argparse.ArgumentParser(description="Log the contents of an SBS-1 feed")
    parser.add_argument("--host", default="127.0.0.1", help="Feed host")
    parser.add_argument("--port", type=int, default=DEFAULT_PORT, help="Feed port")
    parser.add_argument("--log-level", default=get_log_level(), help="Logging level")
    args = parser.parse_args(argv)
    logging.basicConfig(level=args.log_level, format=LOG_FORMAT)

    try:
        watch(args.host, args.port)
    except KeyboardInterrupt:
        logger.info("Stopped by user")


if __name__ == "__main__":
    main()
