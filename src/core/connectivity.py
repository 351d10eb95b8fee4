import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from core.models.connection_status import ConnectionStatus

logger = logging.getLogger(__name__)


@dataclass
class ConnectivityMonitor:
    """Tracks the health of the telemetry channel across fetches.

    A failed fetch downgrades the status to ERROR; the next successful fetch
    restores CONNECTED. Transitions are logged once, not on every tick.
    """
    status: ConnectionStatus = ConnectionStatus.DISCONNECTED
    consecutive_failures: int = 0
    total_failures: int = 0
    last_success_at: Optional[datetime] = None
    last_failure_at: Optional[datetime] = None
    last_error: Optional[str] = None

    def record_success(self, at: Optional[datetime] = None):
        """Record a successful fetch."""
        at = at or datetime.now(timezone.utc)
        if self.status != ConnectionStatus.CONNECTED:
            if self.consecutive_failures:
                logger.info(f"✓ Telemetry connection restored after {self.consecutive_failures} failed fetch(es)")
            else:
                logger.info("✓ Telemetry connected")
        self.status = ConnectionStatus.CONNECTED
        self.consecutive_failures = 0
        self.last_success_at = at
        self.last_error = None

    def record_failure(self, error: str, at: Optional[datetime] = None):
        """Record a failed fetch."""
        at = at or datetime.now(timezone.utc)
        if self.status != ConnectionStatus.ERROR:
            logger.warning(f"⚠ Telemetry connection error: {error}")
        else:
            logger.debug(f"Telemetry still unreachable ({self.consecutive_failures + 1} consecutive failures): {error}")
        self.status = ConnectionStatus.ERROR
        self.consecutive_failures += 1
        self.total_failures += 1
        self.last_failure_at = at
        self.last_error = error

    def is_connected(self) -> bool:
        return self.status == ConnectionStatus.CONNECTED

    def reset(self):
        """Forget all history, back to DISCONNECTED."""
        self.status = ConnectionStatus.DISCONNECTED
        self.consecutive_failures = 0
        self.total_failures = 0
        self.last_success_at = None
        self.last_failure_at = None
        self.last_error = None
