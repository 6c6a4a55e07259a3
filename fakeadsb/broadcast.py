"""
Per-client broadcast sessions.

Every accepted connection gets its own BroadcastSession running on its own
thread. Once per send interval the session takes the fleet's read lock and
writes one line per aircraft, in fleet order. The first failed write ends the
session; nothing else is affected.

A write that blocks (client not reading) blocks with the read lock held,
which holds up the simulation tick and, behind it, every other session.
FeedServer puts a send timeout on accepted sockets so such a write fails
with socket.timeout (an OSError) and ends the session.
"""

from __future__ import annotations

import logging
import random
import socket
import threading
import time
from typing import Callable, Optional

from fakeadsb.aircraft import Aircraft
from fakeadsb.config import CALLSIGN_RESEND_PROBABILITY, DEFAULT_SEND_INTERVAL, POSITION_PROBABILITY
from fakeadsb.fleet import Fleet
from fakeadsb.sbs import MessageKind, encode_message

logger = logging.getLogger(__name__)


def choose_message_kind(ac: Aircraft, rng: random.Random) -> MessageKind:
    """
    Callsign first, then mostly position/velocity.

    The callsign is re-sent 20% of the time even after it has been announced.
    """
    if not ac.callsign_announced or rng.random() < CALLSIGN_RESEND_PROBABILITY:
        return MessageKind.IDENTITY
    if rng.random() < POSITION_PROBABILITY:
        return MessageKind.POSITION
    return MessageKind.VELOCITY


class BroadcastSession:
    """Streams the fleet to one connected client until a write fails."""

    def __init__(
        self,
        conn: socket.socket,
        fleet: Fleet,
        send_interval: float = DEFAULT_SEND_INTERVAL,
        rng: Optional[random.Random] = None,
        peer: Optional[str] = None,
        on_close: Optional[Callable[["BroadcastSession"], None]] = None,
    ) -> None:
        if send_interval <= 0:
            raise ValueError(f"send_interval must be positive, got {send_interval}")
        self.conn = conn
        self.fleet = fleet
        self.send_interval = send_interval
        self.rng = rng or random.Random()
        self.peer = peer or "unknown"
        self.messages_sent = 0
        self._on_close = on_close
        self._stop = threading.Event()

    def stop(self) -> None:
        self._stop.set()

    def tick(self) -> bool:
        """
        Send one burst (one message per aircraft).

        Returns False if the client can no longer be written to.
        """
        # callsign_announced is written here under the shared lock: sessions
        # may race on it, which at worst duplicates an identity message.
        with self.fleet.read():
            for ac in self.fleet:
                kind = choose_message_kind(ac, self.rng)
                line = encode_message(kind, ac) + "\n"
                try:
                    self.conn.sendall(line.encode("ascii"))
                except OSError as exc:
                    logger.warning("Write error for %s: %s", self.peer, exc)
                    return False
                self.messages_sent += 1
        return True

    def run(self) -> None:
        logger.info("Client connected: %s", self.peer)
        try:
            next_tick = time.monotonic()
            while True:
                next_tick += self.send_interval
                if self._stop.wait(max(0.0, next_tick - time.monotonic())):
                    break
                if not self.tick():
                    break
                # Drop missed bursts after a stall instead of replaying them
                now = time.monotonic()
                if now - next_tick >= self.send_interval:
                    next_tick = now
        finally:
            self._stop.set()
            try:
                self.conn.close()
            except OSError:
                pass
            logger.info("Client disconnected: %s (%d messages sent)", self.peer, self.messages_sent)
            if self._on_close is not None:
                self._on_close(self)
