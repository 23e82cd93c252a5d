"""Units, values and functions for space and time."""

from __future__ import annotations

from datetime import time
from math import floor

Timestamp = float
Duration = float
Meters = float
MetersPerSecond = float

SECOND = 1.0
MINUTE = 60.0 * SECOND
HOUR = 60.0 * MINUTE
DAY = 24.0 * HOUR


def time_string(timestamp: Timestamp) -> str:
    """Get string representation of timestamp, with milliseconds."""
    whole = floor(timestamp)
    millis = int(round((timestamp - whole) * 1000.0)) % 1000
    remaining = int(whole % DAY)
    seconds = remaining % 60
    remaining //= 60
    minutes = remaining % 60
    hours = remaining // 60
    return f'{time(hours, minutes, seconds)}.{millis:03d}'


def kph_to_mps(speed_kph: float) -> MetersPerSecond:
    """Convert kilometers per hour to meters per second."""
    return 1000.0 * speed_kph / HOUR


def mps_to_kph(speed_mps: MetersPerSecond) -> float:
    """Convert meters per second to kilometers per hour."""
    return HOUR * speed_mps / 1000.0
