"""
Telemetry data models.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass(frozen=True)
class Reading:
    """
    A single point reading from the level sensor.
    Immutable once created by a telemetry source.
    """
    level: float  # percent, 0-100
    tank_capacity: float  # liters
    timestamp: datetime
    connectivity_ok: bool = True
    battery: Optional[float] = None  # percent
    temperature: Optional[float] = None  # celsius
    distance: Optional[float] = None  # centimeters

    @property
    def volume_liters(self) -> int:
        """Current volume in the tank, rounded to the liter."""
        return round(self.tank_capacity * self.level / 100)


@dataclass(frozen=True)
class HistorySample:
    """
    A level sample with the instant it was recorded.
    """
    level: float
    recorded_at: datetime
    temperature: Optional[float] = None
