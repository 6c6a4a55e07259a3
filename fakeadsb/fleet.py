"""
Shared fleet state and the single simulation loop that mutates it.

The Fleet is the only state shared between the simulation engine (the sole
writer) and the client sessions (readers). Both sides are handed the same
Fleet instance explicitly; there is no module-level fleet.
"""

from __future__ import annotations

import logging
import threading
import time
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional, Sequence

from fakeadsb.aircraft import Aircraft
from fakeadsb.config import DEFAULT_TICK_SECONDS

logger = logging.getLogger(__name__)


class ReadWriteLock:
    """
    Many readers or one writer.

    Writer-preferring: once a writer is waiting, new readers queue behind it,
    so a steady stream of client bursts cannot starve the simulation tick.
    """

    def __init__(self) -> None:
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer = False
        self._writers_waiting = 0

    def acquire_read(self) -> None:
        with self._cond:
            while self._writer or self._writers_waiting:
                self._cond.wait()
            self._readers += 1

    def release_read(self) -> None:
        with self._cond:
            if self._readers <= 0:
                raise RuntimeError("release_read() called without a matching acquire_read()")
            self._readers -= 1
            if self._readers == 0:
                self._cond.notify_all()

    def acquire_write(self) -> None:
        with self._cond:
            self._writers_waiting += 1
            try:
                while self._writer or self._readers:
                    self._cond.wait()
            finally:
                self._writers_waiting -= 1
            self._writer = True

    def release_write(self) -> None:
        with self._cond:
            if not self._writer:
                raise RuntimeError("release_write() called without a matching acquire_write()")
            self._writer = False
            self._cond.notify_all()

    @property
    def readers(self) -> int:
        return self._readers

    @contextmanager
    def read(self) -> Iterator[None]:
        self.acquire_read()
        try:
            yield
        finally:
            self.release_read()

    @contextmanager
    def write(self) -> Iterator[None]:
        self.acquire_write()
        try:
            yield
        finally:
            self.release_write()


class Fleet:
    """Fixed, ordered collection of aircraft plus the lock guarding it."""

    def __init__(self, aircraft: Sequence[Aircraft]) -> None:
        if not aircraft:
            raise ValueError("Fleet needs at least one aircraft")
        self._aircraft = tuple(aircraft)
        self.lock = ReadWriteLock()

    def __len__(self) -> int:
        return len(self._aircraft)

    def __iter__(self) -> Iterator[Aircraft]:
        return iter(self._aircraft)

    def __getitem__(self, index: int) -> Aircraft:
        return self._aircraft[index]

    def read(self):
        return self.lock.read()

    def advance(self) -> None:
        """Advance every aircraft by one tick under the write lock."""
        with self.lock.write():
            for ac in self._aircraft:
                ac.advance()

    def snapshot(self) -> List[Dict[str, Any]]:
        """Consistent copy of the current state, in fleet order."""
        with self.lock.read():
            return [ac.as_dict() for ac in self._aircraft]


class SimulationEngine:
    """Advances the fleet on a fixed period from one background thread."""

    def __init__(self, fleet: Fleet, tick_interval: float = DEFAULT_TICK_SECONDS) -> None:
        if tick_interval <= 0:
            raise ValueError(f"tick_interval must be positive, got {tick_interval}")
        self.fleet = fleet
        self.tick_interval = tick_interval
        self.ticks = 0
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.is_running:
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, name="simulation", daemon=True)
        self._thread.start()
        logger.info("Simulation started: %d aircraft every %.3fs", len(self.fleet), self.tick_interval)

    def stop(self, timeout: Optional[float] = None) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None

    def _run(self) -> None:
        # Fixed-rate schedule; ticks missed while blocked are dropped, not replayed
        next_tick = time.monotonic()
        while True:
            next_tick += self.tick_interval
            if self._stop.wait(max(0.0, next_tick - time.monotonic())):
                return
            self.fleet.advance()
            self.ticks += 1
            now = time.monotonic()
            if now - next_tick >= self.tick_interval:
                next_tick = now
