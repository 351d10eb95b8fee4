"""Pump state enumeration inferred from level trends."""
from enum import Enum


class ActuatorState(Enum):
    """Inferred pump state. The sensor never reports it directly."""
    ON = "ON"
    OFF = "OFF"
