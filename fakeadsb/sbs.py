"""
SBS-1/BaseStation encoding and decoding.

The encoders turn one Aircraft into one line of the feed (without the
trailing newline). Three transmission types are produced:

    MSG,1  identification (callsign)
    MSG,3  airborne position (altitude, lat, lon)
    MSG,4  airborne velocity (ground speed, track)

The decoder side (parse_sbs_line, AircraftStateTracker) reads the same lines
back and is used by the watch client and the tests.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import IntEnum
from typing import Any, Dict, Optional, Tuple

from fakeadsb.aircraft import Aircraft


class MessageKind(IntEnum):
    IDENTITY = 1
    POSITION = 3
    VELOCITY = 4


# Number of comma-separated fields per transmission type
FIELD_COUNTS = {
    MessageKind.IDENTITY: 22,
    MessageKind.POSITION: 22,
    MessageKind.VELOCITY: 24,
}


def format_timestamp(now: Optional[datetime] = None) -> Tuple[str, str]:
    """Return the (date, time) pair used for both timestamp slots of a message."""
    now = now or datetime.now(timezone.utc)
    date_str = now.strftime("%Y/%m/%d")
    time_str = now.strftime("%H:%M:%S.%f")[:-3]
    return date_str, time_str


def identity_message(ac: Aircraft, now: Optional[datetime] = None) -> str:
    """MSG,1 with the callsign. Marks the aircraft as announced."""
    date_str, time_str = format_timestamp(now)
    ac.callsign_announced = True
    return f"MSG,1,1,1,{ac.icao},1,{date_str},{time_str},{date_str},{time_str},{ac.callsign},,,,,,,,,,,0"


def position_message(ac: Aircraft, now: Optional[datetime] = None) -> str:
    date_str, time_str = format_timestamp(now)
    return (
        f"MSG,3,1,1,{ac.icao},1,{date_str},{time_str},{date_str},{time_str},"
        f",{ac.altitude_ft},,,{ac.lat:.5f},{ac.lon:.5f},,,0,,0,0"
    )


def velocity_message(ac: Aircraft, now: Optional[datetime] = None) -> str:
    date_str, time_str = format_timestamp(now)
    return (
        f"MSG,4,1,1,{ac.icao},1,{date_str},{time_str},{date_str},{time_str},"
        f",,{ac.ground_speed_kts},{ac.track_deg},,,,,-64,,,,,0"
    )


_ENCODERS = {
    MessageKind.IDENTITY: identity_message,
    MessageKind.POSITION: position_message,
    MessageKind.VELOCITY: velocity_message,
}


def encode_message(kind: MessageKind, ac: Aircraft, now: Optional[datetime] = None) -> str:
    return _ENCODERS[kind](ac, now)


@dataclass
class ParsedMessage:
    """Structured representation of a single SBS-1 line."""

    raw: str
    message_type: str
    transmission_type: Optional[int]
    icao: str
    field_count: int = 0
    callsign: Optional[str] = None
    lat: Optional[float] = None
    lon: Optional[float] = None
    altitude_ft: Optional[int] = None
    ground_speed_kts: Optional[float] = None
    track_deg: Optional[float] = None
    has_position: bool = False


def _optional_float(value: str) -> Optional[float]:
    value = value.strip()
    if not value:
        return None
    try:
        return float(value)
    except ValueError:
        return None


def parse_sbs_line(line: str) -> Optional[ParsedMessage]:
    """
    Parse a single SBS-1/BaseStation CSV line.

    Returns ParsedMessage or None if the line is not usable.
    """
    raw_line = line.strip()
    if not raw_line:
        return None

    fields = raw_line.split(",")

    # Must be a MSG line with an ICAO code
    if len(fields) < 5 or fields[0].strip() != "MSG":
        return None

    transmission_type: Optional[int] = None
    if fields[1].strip():
        try:
            transmission_type = int(fields[1])
        except ValueError:
            transmission_type = None

    icao = fields[4].strip().upper()
    if not icao:
        return None

    parsed = ParsedMessage(
        raw=raw_line,
        message_type="MSG",
        transmission_type=transmission_type,
        icao=icao,
        field_count=len(fields),
    )

    if len(fields) > 10 and fields[10].strip():
        parsed.callsign = fields[10].strip()

    if len(fields) > 11:
        altitude = _optional_float(fields[11])
        if altitude is not None:
            parsed.altitude_ft = int(altitude)

    if len(fields) > 12:
        parsed.ground_speed_kts = _optional_float(fields[12])
    if len(fields) > 13:
        parsed.track_deg = _optional_float(fields[13])

    if len(fields) > 15:
        lat = _optional_float(fields[14])
        lon = _optional_float(fields[15])
        if lat is not None and lon is not None and -90 <= lat <= 90 and -180 <= lon <= 180:
            parsed.lat = lat
            parsed.lon = lon
            parsed.has_position = True

    return parsed


@dataclass
class TrackedAircraft:
    """Latest data seen for a single aircraft on the consumer side."""

    icao: str
    callsign: str = ""
    lat: Optional[float] = None
    lon: Optional[float] = None
    altitude_ft: Optional[int] = None
    speed_kts: Optional[float] = None
    heading_deg: Optional[float] = None
    messages: int = 0
    last_update: Optional[str] = None

    def as_dict(self) -> Dict[str, Any]:
        return {
            "icao": self.icao,
            "callsign": self.callsign,
            "lat": self.lat,
            "lon": self.lon,
            "altitude_ft": self.altitude_ft,
            "speed_kts": self.speed_kts,
            "heading_deg": self.heading_deg,
            "messages": self.messages,
            "last_update": self.last_update,
        }


@dataclass
class AircraftStateTracker:
    """Merges partial messages into one record per ICAO."""

    _state: Dict[str, TrackedAircraft] = field(default_factory=dict)

    def update(self, msg: ParsedMessage) -> TrackedAircraft:
        state = self._state.get(msg.icao)
        if state is None:
            state = TrackedAircraft(icao=msg.icao)
            self._state[msg.icao] = state

        if msg.callsign:
            state.callsign = msg.callsign
        if msg.has_position:
            state.lat = msg.lat
            state.lon = msg.lon
        if msg.altitude_ft is not None:
            state.altitude_ft = msg.altitude_ft
        if msg.ground_speed_kts is not None:
            state.speed_kts = msg.ground_speed_kts
        if msg.track_deg is not None:
            state.heading_deg = msg.track_deg

        state.messages += 1
        state.last_update = datetime.now(timezone.utc).isoformat()
        return state

    def get_state(self, icao: str) -> Optional[TrackedAircraft]:
        """Return the tracked state for a given ICAO hex (if any)."""
        return self._state.get(icao)

    def __len__(self) -> int:
        return len(self._state)

    def latest_snapshot(self) -> Dict[str, Dict[str, Any]]:
        return {icao: state.as_dict() for icao, state in self._state.items()}
