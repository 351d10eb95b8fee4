"""Connection status enumeration for the telemetry channel."""
from enum import Enum


class ConnectionStatus(Enum):
    """Enumeration of telemetry connection states."""
    DISCONNECTED = "disconnected"  # Nothing fetched yet
    CONNECTED = "connected"
    ERROR = "error"  # Last fetch failed
