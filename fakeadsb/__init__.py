"""
Synthetic SBS-1 feed for exercising ADS-B consumers without a receiver.

This package contains:
- aircraft: simulated aircraft and their patrol patterns
- fleet: shared fleet state, reader/writer lock and the simulation loop
- sbs: SBS-1 message encoders (and a parser for the consumer side)
- broadcast: per-client sessions streaming the fleet
- server: TCP listener spawning one session per client
- fleet_config: built-in and file-based fleet definitions
- config: constants and environment overrides
"""

from .aircraft import Aircraft, FlyoverPatrol, PatrolKind, RoundTripPatrol, build_aircraft
from .broadcast import BroadcastSession, choose_message_kind
from .fleet import Fleet, ReadWriteLock, SimulationEngine
from .fleet_config import AircraftConfig, FleetConfig, build_fleet, default_fleet_config, load_fleet_config
from .sbs import MessageKind, encode_message, identity_message, parse_sbs_line, position_message, velocity_message
from .server import FeedServer

__version__ = "0.1.0"
