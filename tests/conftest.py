import sys
from pathlib import Path
from typing import List, Optional

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from fakeadsb.aircraft import build_aircraft  # noqa: E402
from fakeadsb.fleet import Fleet  # noqa: E402
from fakeadsb.fleet_config import build_fleet, default_fleet_config  # noqa: E402


class FakeConn:
    """Socket stand-in recording writes; optionally fails on the Nth sendall."""

    def __init__(self, fail_on: Optional[int] = None) -> None:
        self.fail_on = fail_on
        self.calls = 0
        self.sent: List[bytes] = []
        self.closed = False

    def sendall(self, data: bytes) -> None:
        self.calls += 1
        if self.fail_on is not None and self.calls >= self.fail_on:
            raise BrokenPipeError(32, "Broken pipe")
        self.sent.append(data)

    def close(self) -> None:
        self.closed = True

    @property
    def lines(self) -> List[str]:
        return [chunk.decode("ascii").rstrip("\n") for chunk in self.sent]


class ScriptedRandom:
    """Returns the given values from random(), in order."""

    def __init__(self, *values: float) -> None:
        self.values = list(values)

    def random(self) -> float:
        return self.values.pop(0)


class ConstantRandom:
    def __init__(self, value: float) -> None:
        self.value = value

    def random(self) -> float:
        return self.value


@pytest.fixture
def make_aircraft():
    def _make(pattern="roundtrip", **overrides):
        params = dict(
            icao="A1A1A1",
            callsign="DAL789",
            start_lat=41.38,
            start_lon=-81.29,
            target_lat=41.88,
            target_lon=-80.79,
            speed_factor=0.0003,
            start_alt=30000,
            alt_rate=2,
            ground_speed=450,
        )
        params.update(overrides)
        return build_aircraft(pattern=pattern, **params)

    return _make


@pytest.fixture
def fleet() -> Fleet:
    return build_fleet(default_fleet_config())
