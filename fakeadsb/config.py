"""
Centralized configuration for the fake SBS-1 feed.

All tunables and environment overrides should be defined here for consistency.
"""

import os
from pathlib import Path
from typing import Optional


# Patrol centre: Ashtabula, OH
TARGET_LAT = 41.88
TARGET_LON = -80.79

# Simulation constants
FLEET_SIZE = 3
MIN_ALTITUDE_FT = 25000
MAX_ALTITUDE_FT = 38000
ARRIVAL_THRESHOLD_DEG = 0.01  # ~0.7 miles
MAX_EXCURSION_DEG = 1.0

# Message selection
CALLSIGN_RESEND_PROBABILITY = 0.2
POSITION_PROBABILITY = 0.5

# Network defaults
DEFAULT_HOST = "0.0.0.0"
DEFAULT_PORT = 30003
LISTEN_BACKLOG = 5
SEND_TIMEOUT_SECONDS = 10.0  # a client that stops reading is dropped after this

# Timing defaults
DEFAULT_TICK_SECONDS = 0.1
DEFAULT_SEND_INTERVAL = 1.0
RECONNECT_DELAY = 5  # seconds, used by the watch client

DEFAULT_PATTERN = "roundtrip"
DEFAULT_LOG_LEVEL = "INFO"
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(message)s"


def get_listen_host() -> str:
    """Get listen host from env or default."""
    return os.getenv("ADSB_SIM_HOST", DEFAULT_HOST)


def get_listen_port() -> int:
    """Get listen port from env or default."""
    return int(os.getenv("ADSB_SIM_PORT", str(DEFAULT_PORT)))


def get_tick_seconds() -> float:
    """Get simulation period from env or default."""
    return _positive_float("ADSB_SIM_TICK_SECONDS", DEFAULT_TICK_SECONDS)


def get_send_interval() -> float:
    """Get per-client burst period from env or default."""
    return _positive_float("ADSB_SIM_SEND_INTERVAL", DEFAULT_SEND_INTERVAL)


def get_pattern() -> str:
    return os.getenv("ADSB_SIM_PATTERN", DEFAULT_PATTERN).lower()


def get_fleet_file() -> Optional[Path]:
    """Optional JSON fleet definition; None means the built-in patrol."""
    value = os.getenv("ADSB_SIM_FLEET_FILE")
    return Path(value) if value else None


def get_seed() -> Optional[int]:
    value = os.getenv("ADSB_SIM_SEED")
    return int(value) if value else None


def get_log_level() -> str:
    return os.getenv("ADSB_SIM_LOG_LEVEL", DEFAULT_LOG_LEVEL).upper()


def _positive_float(env_var: str, default: float) -> float:
    value = float(os.getenv(env_var, str(default)))
    if value <= 0:
        raise ValueError(f"{env_var} must be positive, got {value}")
    return value
