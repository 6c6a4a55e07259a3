import threading
import time

import pytest

from fakeadsb.fleet import Fleet, ReadWriteLock, SimulationEngine


def _wait_for(predicate, timeout=5.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return False


def test_readers_share_the_lock():
    lock = ReadWriteLock()
    lock.acquire_read()
    lock.acquire_read()
    assert lock.readers == 2
    lock.release_read()
    lock.release_read()
    assert lock.readers == 0


def test_release_without_acquire_is_an_error():
    lock = ReadWriteLock()
    with pytest.raises(RuntimeError):
        lock.release_read()
    with pytest.raises(RuntimeError):
        lock.release_write()


def test_writer_waits_for_readers():
    lock = ReadWriteLock()
    written = threading.Event()

    def writer():
        with lock.write():
            written.set()

    with lock.read():
        thread = threading.Thread(target=writer, daemon=True)
        thread.start()
        assert not written.wait(0.2)
    assert written.wait(2.0)
    thread.join(2.0)


def test_waiting_writer_blocks_new_readers():
    lock = ReadWriteLock()
    order = []

    def writer():
        with lock.write():
            order.append("writer")

    def reader():
        with lock.read():
            order.append("reader")

    lock.acquire_read()
    w = threading.Thread(target=writer, daemon=True)
    w.start()
    assert _wait_for(lambda: lock._writers_waiting == 1)
    r = threading.Thread(target=reader, daemon=True)
    r.start()
    time.sleep(0.1)
    assert order == []
    lock.release_read()
    w.join(2.0)
    r.join(2.0)
    assert order == ["writer", "reader"]


def test_fleet_is_fixed_and_ordered(fleet):
    assert len(fleet) == 3
    assert [ac.icao for ac in fleet] == ["A1A1A1", "B2B2B2", "C3C3C3"]
    assert fleet[1].callsign == "AAL123"
    with pytest.raises(ValueError):
        Fleet([])


def test_fleet_advance_moves_every_aircraft(fleet):
    before = fleet.snapshot()
    fleet.advance()
    after = fleet.snapshot()
    for old, new in zip(before, after):
        assert (old["lat"], old["lon"]) != (new["lat"], new["lon"])
    assert [s["altitude_ft"] for s in after] == [30002, 34999, 28001]
    assert fleet.lock.readers == 0


def test_engine_ticks_until_stopped(fleet):
    engine = SimulationEngine(fleet, tick_interval=0.01)
    start_lat = fleet[0].lat
    engine.start()
    try:
        assert engine.is_running
        assert _wait_for(lambda: engine.ticks >= 5)
    finally:
        engine.stop(timeout=2.0)
    assert not engine.is_running
    ticks = engine.ticks
    assert fleet[0].lat > start_lat
    assert fleet[0].altitude_ft == 30000 + 2 * ticks
    time.sleep(0.05)
    assert engine.ticks == ticks


def test_engine_waits_for_readers(fleet):
    engine = SimulationEngine(fleet, tick_interval=0.01)
    with fleet.read():
        engine.start()
        time.sleep(0.1)
        assert engine.ticks == 0
    assert _wait_for(lambda: engine.ticks >= 1)
    engine.stop(timeout=2.0)


def test_engine_rejects_bad_period(fleet):
    with pytest.raises(ValueError):
        SimulationEngine(fleet, tick_interval=0)


def test_engine_drops_ticks_missed_while_blocked(fleet):
    engine = SimulationEngine(fleet, tick_interval=0.1)
    fleet.lock.acquire_read()
    engine.start()
    try:
        time.sleep(1.05)
        assert engine.ticks == 0
        fleet.lock.release_read()
        assert _wait_for(lambda: engine.ticks >= 1)
        time.sleep(0.03)
        # one tick for the stalled period, not one per missed period
        assert engine.ticks == 1
    finally:
        if fleet.lock.readers:
            fleet.lock.release_read()
        engine.stop(timeout=2.0)
