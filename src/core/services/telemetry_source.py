import logging
import math
import random
from datetime import datetime, timedelta, timezone
from typing import List, Optional, Protocol, runtime_checkable

from core.models.config_data import telemetryConfigData
from core.models.reading import HistorySample, Reading

logger = logging.getLogger(__name__)


class ConnectivityError(Exception):
    """The telemetry channel could not be reached or reported an error."""


@runtime_checkable
class TelemetrySource(Protocol):
    """Boundary to the remote level sensor."""

    async def get_current(self) -> Reading:
        """Latest point reading. Raises ConnectivityError on failure."""
        ...

    async def get_history(self, hours: int) -> List[HistorySample]:
        """Samples of the last `hours` hours, oldest first. May be empty."""
        ...

    def clear_cache(self) -> None:
        """Drop any cached responses."""
        ...


class EmulatedTelemetrySource:
    """
    Emulated level sensor: the tank drains until the low mark, then a
    virtual pump fills it up to the high mark, with a bit of noise.
    """

    FILL_RATE = 1.5     # % per reading while filling
    DRAIN_RATE = 0.8    # % per reading while draining
    LOW_MARK = 25.0
    HIGH_MARK = 90.0
    HISTORY_STEP_MINUTES = 30

    def __init__(self, config: Optional[telemetryConfigData] = None,
                 seed: Optional[int] = None, start_level: float = 45.0):
        self._config = config or telemetryConfigData()
        self._rng = random.Random(seed)
        self.level = start_level
        self.filling = False
        self.battery = 87.0
        self.read_count = 0

    async def get_current(self) -> Reading:
        if self.filling:
            self.level += self.FILL_RATE
            if self.level >= self.HIGH_MARK:
                self.filling = False
        else:
            self.level -= self.DRAIN_RATE
            if self.level <= self.LOW_MARK:
                self.filling = True
        self.read_count += 1
        self.battery = max(0.0, self.battery - 0.01)

        level = min(100.0, max(0.0, self.level + self._rng.uniform(-0.1, 0.1)))
        temperature = 24.0 + 2.0 * math.sin(self.read_count / 50.0) + self._rng.uniform(-0.2, 0.2)
        distance = self._config.tank_height_cm * (1 - level / 100)
        return Reading(
            level=round(level, 1),
            tank_capacity=self._config.tank_capacity_liters,
            timestamp=datetime.now(timezone.utc),
            connectivity_ok=True,
            battery=round(self.battery, 1),
            temperature=round(temperature, 1),
            distance=round(distance, 1),
        )

    async def get_history(self, hours: int) -> List[HistorySample]:
        now = datetime.now(timezone.utc)
        steps = int(hours * 60 / self.HISTORY_STEP_MINUTES)
        samples: List[HistorySample] = []
        for i in range(steps, -1, -1):
            recorded_at = now - timedelta(minutes=i * self.HISTORY_STEP_MINUTES)
            phase = (steps - i) / 8.0
            level = 57.5 + 30.0 * math.sin(phase) + self._rng.uniform(-1.0, 1.0)
            samples.append(HistorySample(
                level=round(min(100.0, max(0.0, level)), 1),
                recorded_at=recorded_at,
                temperature=round(23.0 + 3.0 * math.sin(phase / 2), 1),
            ))
        return samples

    def clear_cache(self) -> None:
        logger.info("Emulated telemetry has no cache to clear")
