"""Pytest configuration and fixtures for test suite."""

import asyncio
from datetime import datetime, timedelta, timezone
from typing import List, Optional

import pytest

from core.event_hub import event_hub
from core.models.reading import HistorySample, Reading
from core.services.acquisition_scheduler import acquisition_scheduler
from core.services.alert_service import alert_service
from core.services.chart_service import chart_service
from core.services.telemetry_source import EmulatedTelemetrySource


class ScriptedSource:
    """Telemetry source replaying a script of levels, readings and errors.

    When the script runs out the last level is repeated. Setting `gate` to an
    asyncio.Event holds every get_current() call until the event is set.
    """

    def __init__(self, script=(), history=None, battery: Optional[float] = None,
                 default_level: float = 50.0):
        self.script = list(script)
        self.history = history if history is not None else []
        self.battery = battery
        self.default_level = default_level
        self.gate: Optional[asyncio.Event] = None
        self.current_calls = 0
        self.history_calls = 0
        self.cache_cleared = 0

    async def get_current(self) -> Reading:
        self.current_calls += 1
        if self.gate is not None:
            await self.gate.wait()
        item = self.script.pop(0) if self.script else self.default_level
        if isinstance(item, Exception):
            raise item
        if isinstance(item, Reading):
            return item
        self.default_level = item
        return Reading(
            level=item,
            tank_capacity=10000.0,
            timestamp=datetime.now(timezone.utc),
            battery=self.battery,
        )

    async def get_history(self, hours: int) -> List[HistorySample]:
        self.history_calls += 1
        if isinstance(self.history, Exception):
            raise self.history
        return list(self.history)

    def clear_cache(self) -> None:
        self.cache_cleared += 1


def make_series(levels, start=None, step_minutes=60, temperature=None) -> List[HistorySample]:
    """Build an hourly series of samples from a list of levels."""
    start = start or datetime(2024, 5, 1, 0, 0, tzinfo=timezone.utc)
    return [
        HistorySample(level=level, recorded_at=start + timedelta(minutes=i * step_minutes),
                      temperature=temperature)
        for i, level in enumerate(levels)
    ]


@pytest.fixture(autouse=True)
def reset_monitor_state():
    """Reset the global monitor singletons before and after each test.

    Router tests run without the application lifespan, so the global
    scheduler is never started; it is driven through the refresh endpoint.
    """
    event_hub.init(None)
    acquisition_scheduler.stop()
    acquisition_scheduler.set_source(EmulatedTelemetrySource(seed=7))
    acquisition_scheduler.reset()
    alert_service.clear()
    chart_service.clear()

    yield

    acquisition_scheduler.stop()
    acquisition_scheduler.set_source(EmulatedTelemetrySource(seed=7))
    acquisition_scheduler.reset()
    event_hub.init(None)


@pytest.fixture
def scripted_source():
    """Factory for ScriptedSource instances."""
    return ScriptedSource


@pytest.fixture
def series_factory():
    """Factory for hourly HistorySample series."""
    return make_series
