"""
TCP listener for the fake SBS-1 feed (dump1090 port 30003 style).

No handshake: every accepted connection immediately starts receiving
messages from its own BroadcastSession. The connection is write-only.
"""

from __future__ import annotations

import logging
import random
import socket
import threading
from typing import Optional, Set, Tuple

from fakeadsb.broadcast import BroadcastSession
from fakeadsb.config import DEFAULT_HOST, DEFAULT_PORT, DEFAULT_SEND_INTERVAL, LISTEN_BACKLOG, SEND_TIMEOUT_SECONDS
from fakeadsb.fleet import Fleet

logger = logging.getLogger(__name__)

ACCEPT_POLL_SECONDS = 0.5


class FeedServer:
    """Accepts clients and runs one broadcast session per connection."""

    def __init__(
        self,
        fleet: Fleet,
        host: str = DEFAULT_HOST,
        port: int = DEFAULT_PORT,
        send_interval: float = DEFAULT_SEND_INTERVAL,
        backlog: int = LISTEN_BACKLOG,
        seed: Optional[int] = None,
        send_timeout: Optional[float] = SEND_TIMEOUT_SECONDS,
    ) -> None:
        self.fleet = fleet
        self.host = host
        self.port = port
        self.send_interval = send_interval
        self.backlog = backlog
        self.send_timeout = send_timeout
        # Seeds each session's RNG so a seeded run is reproducible per client
        self._seed_rng = random.Random(seed)
        self._sock: Optional[socket.socket] = None
        self._accept_thread: Optional[threading.Thread] = None
        self._sessions: Set[BroadcastSession] = set()
        self._sessions_lock = threading.Lock()
        self._stop = threading.Event()

    @property
    def address(self) -> Tuple[str, int]:
        if self._sock is None:
            raise RuntimeError("Server is not started")
        return self._sock.getsockname()[:2]

    @property
    def session_count(self) -> int:
        with self._sessions_lock:
            return len(self._sessions)

    def start(self) -> None:
        """Bind and start accepting. Raises OSError if the port can't be bound."""
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        try:
            sock.bind((self.host, self.port))
            sock.listen(self.backlog)
        except OSError:
            sock.close()
            raise
        sock.settimeout(ACCEPT_POLL_SECONDS)
        self._sock = sock
        self._stop.clear()
        self._accept_thread = threading.Thread(target=self._accept_loop, name="accept", daemon=True)
        self._accept_thread.start()
        logger.info("Listening for SBS-1 clients on %s:%d", *self.address)

    def serve_forever(self) -> None:
        if self._sock is None:
            self.start()
        while not self._stop.wait(ACCEPT_POLL_SECONDS):
            pass

    def stop(self) -> None:
        self._stop.set()
        if self._accept_thread is not None:
            self._accept_thread.join()
            self._accept_thread = None
        if self._sock is not None:
            self._sock.close()
            self._sock = None
        with self._sessions_lock:
            sessions = list(self._sessions)
        for session in sessions:
            session.stop()

    def _accept_loop(self) -> None:
        while not self._stop.is_set():
            try:
                conn, addr = self._sock.accept()
            except socket.timeout:
                continue
            except OSError as exc:
                if self._stop.is_set():
                    break
                logger.warning("Failed to accept connection: %s", exc)
                continue
            # sendall() runs under the fleet read lock; bound how long it may block
            conn.settimeout(self.send_timeout)
            self._spawn_session(conn, f"{addr[0]}:{addr[1]}")

    def _spawn_session(self, conn: socket.socket, peer: str) -> None:
        session = BroadcastSession(
            conn,
            self.fleet,
            send_interval=self.send_interval,
            rng=random.Random(self._seed_rng.getrandbits(64)),
            peer=peer,
            on_close=self._forget_session,
        )
        with self._sessions_lock:
            self._sessions.add(session)
        threading.Thread(target=session.run, name=f"session-{peer}", daemon=True).start()

    def _forget_session(self, session: BroadcastSession) -> None:
        with self._sessions_lock:
            self._sessions.discard(session)
