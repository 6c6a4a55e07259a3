"""
Fleet definitions.

The built-in fleet is the three-aircraft patrol around Ashtabula, OH. A JSON
file with the same shape can replace it (ADSB_SIM_FLEET_FILE):

    {
      "pattern": "flyover",
      "aircraft": [
        {"icao": "A1A1A1", "callsign": "DAL789",
         "start_lat": 41.38, "start_lon": -81.29,
         "target_lat": 41.88, "target_lon": -80.79,
         "speed_factor": 0.0003, "start_alt": 30000,
         "alt_rate": 2, "ground_speed": 450},
        ...
      ]
    }

The fleet size is fixed, so the file must list exactly FLEET_SIZE aircraft.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from fakeadsb.aircraft import PatrolKind, build_aircraft
from fakeadsb.config import FLEET_SIZE, TARGET_LAT, TARGET_LON
from fakeadsb.fleet import Fleet


class AircraftConfig(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    icao: str = Field(..., pattern=r"^[0-9A-Fa-f]{6}$")
    # Printable ASCII, no commas (it lands in a CSV field)
    callsign: str = Field(..., min_length=1, max_length=8, pattern=r"^[\x20-\x2B\x2D-\x7E]+$")
    start_lat: float = Field(..., ge=-90, le=90)
    start_lon: float = Field(..., ge=-180, le=180)
    target_lat: float = Field(TARGET_LAT, ge=-90, le=90)
    target_lon: float = Field(TARGET_LON, ge=-180, le=180)
    speed_factor: float = Field(..., gt=0)
    start_alt: int
    alt_rate: int
    ground_speed: int = Field(..., ge=0)
    # Per-aircraft override of the fleet pattern
    pattern: Optional[PatrolKind] = None

    @field_validator("icao")
    @classmethod
    def _icao_upper(cls, v: str) -> str:
        return v.upper()

    @model_validator(mode="after")
    def _start_differs_from_target(self) -> "AircraftConfig":
        if (self.start_lat, self.start_lon) == (self.target_lat, self.target_lon):
            raise ValueError("start and target positions must differ")
        return self


class FleetConfig(BaseModel):
    pattern: PatrolKind = PatrolKind.ROUND_TRIP
    aircraft: List[AircraftConfig]

    @field_validator("aircraft")
    @classmethod
    def _fixed_size_unique(cls, v: List[AircraftConfig]) -> List[AircraftConfig]:
        if len(v) != FLEET_SIZE:
            raise ValueError(f"fleet must contain exactly {FLEET_SIZE} aircraft, got {len(v)}")
        icaos = [ac.icao for ac in v]
        if len(set(icaos)) != len(icaos):
            raise ValueError("aircraft ICAO identifiers must be unique")
        return v


def default_fleet_config(pattern: Union[PatrolKind, str] = PatrolKind.ROUND_TRIP) -> FleetConfig:
    """Three aircraft converging on the patrol centre from SW, NW and S."""
    return FleetConfig(
        pattern=PatrolKind(pattern),
        aircraft=[
            AircraftConfig(
                icao="A1A1A1", callsign="DAL789",
                start_lat=TARGET_LAT - 0.5, start_lon=TARGET_LON - 0.5,
                speed_factor=0.0003, start_alt=30000, alt_rate=2, ground_speed=450,
            ),
            AircraftConfig(
                icao="B2B2B2", callsign="AAL123",
                start_lat=TARGET_LAT + 0.5, start_lon=TARGET_LON - 0.5,
                speed_factor=0.00035, start_alt=35000, alt_rate=-1, ground_speed=500,
            ),
            AircraftConfig(
                icao="C3C3C3", callsign="SWA456",
                start_lat=TARGET_LAT - 0.5, start_lon=TARGET_LON + 0.1,
                speed_factor=0.00028, start_alt=28000, alt_rate=1, ground_speed=420,
            ),
        ],
    )


def load_fleet_config(path: Path) -> FleetConfig:
    """Read and validate a JSON fleet file."""
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    return FleetConfig.model_validate(data)


def build_fleet(config: FleetConfig) -> Fleet:
    return Fleet(
        [
            build_aircraft(
                ac.icao,
                ac.callsign,
                ac.start_lat,
                ac.start_lon,
                ac.target_lat,
                ac.target_lon,
                ac.speed_factor,
                ac.start_alt,
                ac.alt_rate,
                ac.ground_speed,
                pattern=ac.pattern or config.pattern,
            )
            for ac in config.aircraft
        ]
    )
