"""
Simulated aircraft and their patrol patterns.

An Aircraft carries the observable state that ends up on the wire plus the
per-tick rate vector used to move it. How the aircraft behaves at the ends of
its patrol is delegated to a pattern object picked at construction time:

- RoundTripPatrol flies start -> target -> start forever, turning around
  (and flipping its track by 180 degrees) at each endpoint.
- FlyoverPatrol keeps flying the same vector and teleports back to the start
  once it has strayed too far from it.

Only the simulation engine may call Aircraft.advance().
"""

from __future__ import annotations

import logging
import math
import string
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Union

from fakeadsb.config import (
    ARRIVAL_THRESHOLD_DEG,
    MAX_ALTITUDE_FT,
    MAX_EXCURSION_DEG,
    MIN_ALTITUDE_FT,
)

logger = logging.getLogger(__name__)


class PatrolKind(str, Enum):
    ROUND_TRIP = "roundtrip"
    FLYOVER = "flyover"


@dataclass
class RoundTripPatrol:
    """Shuttle between two fixed points, reversing at each end."""

    start_lat: float
    start_lon: float
    target_lat: float
    target_lon: float
    base_lat_rate: float
    base_lon_rate: float
    base_track: int
    flying_to_target: bool = True

    kind = PatrolKind.ROUND_TRIP

    def after_move(self, ac: "Aircraft") -> None:
        if self.flying_to_target:
            dist = math.hypot(ac.lat - self.target_lat, ac.lon - self.target_lon)
            if dist < ARRIVAL_THRESHOLD_DEG:
                self.flying_to_target = False
                ac.lat_rate = -self.base_lat_rate
                ac.lon_rate = -self.base_lon_rate
                ac.track_deg = (self.base_track + 180) % 360
                logger.info("Aircraft %s (%s) reached target, turning back to start", ac.callsign, ac.icao)
        else:
            dist = math.hypot(ac.lat - self.start_lat, ac.lon - self.start_lon)
            if dist < ARRIVAL_THRESHOLD_DEG:
                self.flying_to_target = True
                ac.lat_rate = self.base_lat_rate
                ac.lon_rate = self.base_lon_rate
                ac.track_deg = self.base_track
                logger.info("Aircraft %s (%s) reached start, turning back to target", ac.callsign, ac.icao)


@dataclass
class FlyoverPatrol:
    """Fly a constant vector, jumping back to the start past the excursion bound."""

    start_lat: float
    start_lon: float
    max_excursion: float = MAX_EXCURSION_DEG

    kind = PatrolKind.FLYOVER

    def after_move(self, ac: "Aircraft") -> None:
        if abs(ac.lat - self.start_lat) > self.max_excursion or abs(ac.lon - self.start_lon) > self.max_excursion:
            ac.lat = self.start_lat
            ac.lon = self.start_lon
            logger.info("Aircraft %s (%s) left the patrol box, reset to start", ac.callsign, ac.icao)


PatrolPattern = Union[RoundTripPatrol, FlyoverPatrol]


@dataclass
class Aircraft:
    """Current observable state of one simulated aircraft."""

    icao: str
    callsign: str
    lat: float
    lon: float
    altitude_ft: int
    ground_speed_kts: int
    track_deg: int
    pattern: PatrolPattern = field(repr=False)
    lat_rate: float = field(default=0.0, repr=False)
    lon_rate: float = field(default=0.0, repr=False)
    alt_rate: int = field(default=0, repr=False)
    # Shared by every client session; see BroadcastSession.tick().
    callsign_announced: bool = False

    def advance(self) -> None:
        """Move the aircraft by one simulation tick."""
        self.lat += self.lat_rate
        self.lon += self.lon_rate
        self.altitude_ft += self.alt_rate

        # Reverse the climb/descent once outside the band
        if self.altitude_ft > MAX_ALTITUDE_FT or self.altitude_ft < MIN_ALTITUDE_FT:
            self.alt_rate = -self.alt_rate

        self.pattern.after_move(self)

    def as_dict(self) -> Dict[str, Any]:
        return {
            "icao": self.icao,
            "callsign": self.callsign,
            "lat": self.lat,
            "lon": self.lon,
            "altitude_ft": self.altitude_ft,
            "speed_kts": self.ground_speed_kts,
            "heading_deg": self.track_deg,
            "pattern": self.pattern.kind.value,
            "callsign_announced": self.callsign_announced,
        }


def heading_between(start_lat: float, start_lon: float, target_lat: float, target_lon: float) -> int:
    """Whole-degree track from start to target, in [0, 360)."""
    track = int(math.degrees(math.atan2(target_lon - start_lon, target_lat - start_lat)))
    if track < 0:
        track += 360
    return track


def build_aircraft(
    icao: str,
    callsign: str,
    start_lat: float,
    start_lon: float,
    target_lat: float,
    target_lon: float,
    speed_factor: float,
    start_alt: int,
    alt_rate: int,
    ground_speed: int,
    pattern: Union[PatrolKind, str] = PatrolKind.ROUND_TRIP,
) -> Aircraft:
    """
    Create an aircraft flying from start towards target.

    The per-tick lat/lon deltas are the unit vector start -> target scaled by
    speed_factor (degrees per tick). For the fly-over pattern the target only
    fixes the direction of flight.
    """
    if len(icao) != 6 or any(c not in string.hexdigits for c in icao):
        raise ValueError(f"ICAO identifier must be 6 hex characters, got {icao!r}")
    if not callsign or not callsign.isascii() or not callsign.isprintable() or "," in callsign:
        raise ValueError(f"Callsign must be non-empty printable ASCII without commas, got {callsign!r}")
    if speed_factor <= 0:
        raise ValueError(f"Speed factor must be positive, got {speed_factor}")

    delta_lat = target_lat - start_lat
    delta_lon = target_lon - start_lon
    distance = math.hypot(delta_lat, delta_lon)
    if distance == 0:
        raise ValueError(f"Aircraft {icao}: start and target positions are identical")

    lat_rate = (delta_lat / distance) * speed_factor
    lon_rate = (delta_lon / distance) * speed_factor
    track = heading_between(start_lat, start_lon, target_lat, target_lon)

    kind = PatrolKind(pattern)
    patrol: PatrolPattern
    if kind is PatrolKind.ROUND_TRIP:
        patrol = RoundTripPatrol(
            start_lat=start_lat,
            start_lon=start_lon,
            target_lat=target_lat,
            target_lon=target_lon,
            base_lat_rate=lat_rate,
            base_lon_rate=lon_rate,
            base_track=track,
        )
    else:
        patrol = FlyoverPatrol(start_lat=start_lat, start_lon=start_lon)

    return Aircraft(
        icao=icao,
        callsign=callsign,
        lat=start_lat,
        lon=start_lon,
        altitude_ft=start_alt,
        ground_speed_kts=ground_speed,
        track_deg=track,
        pattern=patrol,
        lat_rate=lat_rate,
        lon_rate=lon_rate,
        alt_rate=alt_rate,
    )
