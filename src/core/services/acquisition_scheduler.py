import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import List, Optional, Tuple

from core.config_loader import config_loader
from core.connectivity import ConnectivityMonitor
from core.event_hub import HISTORY_SERIES, MONITOR_STATE, EventHub, event_hub
from core.models.actuator_state import ActuatorState
from core.models.circular_buffer import HistoryBuffer
from core.models.config_data import acquisitionConfigData, trendConfigData
from core.models.connection_status import ConnectionStatus
from core.models.reading import HistorySample, Reading
from core.processing import trend_engine
from core.services.telemetry_source import EmulatedTelemetrySource, TelemetrySource

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MonitorSnapshot:
    """Read-only view of the committed monitor state."""
    reading: Optional[Reading]
    actuator_state: ActuatorState
    connection_status: ConnectionStatus
    is_refreshing: bool
    last_fetch_time: Optional[datetime]
    last_success_at: Optional[datetime]
    history: Tuple[float, ...]
    history_series_length: int
    history_loaded_at: Optional[datetime]


class AcquisitionScheduler:
    """
    Polls the telemetry source at a fixed cadence and owns the monitor state.

    Each successful fetch pushes the level into the history buffer, infers the
    pump state and commits the reading. A failed fetch only downgrades the
    connection status: the buffer is left untouched and the last known good
    reading and pump state are kept. Every commit is published on the event
    hub under MONITOR_STATE.

    Only one current-reading fetch runs at a time; a tick arriving while one
    is outstanding is skipped, so buffer pushes follow fetch order.
    """

    def __init__(
        self,
        source: TelemetrySource,
        acquisition: Optional[acquisitionConfigData] = None,
        trend: Optional[trendConfigData] = None,
        hub: EventHub = event_hub,
    ):
        self._source = source
        self._acquisition = acquisition or acquisitionConfigData()
        self._trend = trend or trendConfigData()
        self._hub = hub

        self.history_buffer = HistoryBuffer(self._acquisition.history_capacity)
        self.connectivity = ConnectivityMonitor()
        self.reading: Optional[Reading] = None
        self.actuator_state = ActuatorState.OFF
        self.last_fetch_time: Optional[datetime] = None
        self.is_refreshing = False
        self.history_series: List[HistorySample] = []
        self.history_loaded_at: Optional[datetime] = None

        self.running = False
        self._task: Optional[asyncio.Task] = None
        self._fetch_in_flight = False
        self._history_in_flight = False
        # Bumped by stop(); fetches started in an older epoch are discarded
        self._epoch = 0

    @property
    def source(self) -> TelemetrySource:
        return self._source

    def set_source(self, source: TelemetrySource):
        """Swap the telemetry source (e.g. when leaving emulation mode)."""
        self._source = source

    @property
    def poll_interval(self) -> float:
        """Poll cadence in seconds."""
        return self._acquisition.poll_interval_ms / 1000.0

    def start(self) -> asyncio.Task:
        """Start automatic polling. Returns the task driving it."""
        if self._task is not None and not self._task.done():
            return self._task
        self.running = True
        loop = asyncio.get_running_loop()
        self._task = loop.create_task(self._run())
        logger.info(f"AcquisitionScheduler started (every {self._acquisition.poll_interval_ms} ms)")
        return self._task

    def stop(self):
        """Stop automatic polling. In-flight fetch results are dropped."""
        self.running = False
        self._epoch += 1
        if self._task is not None:
            self._task.cancel()
            self._task = None
        logger.info("AcquisitionScheduler stopped")

    async def _run(self):
        loop = asyncio.get_running_loop()
        try:
            await self.initial_load()
            interval = self.poll_interval
            next_tick = loop.time() + interval
            while self.running:
                await asyncio.sleep(max(0.0, next_tick - loop.time()))
                next_tick += interval
                await self.tick()
                # Slots that passed during a slow fetch are skipped, not replayed
                now = loop.time()
                missed = 0
                while next_tick <= now:
                    next_tick += interval
                    missed += 1
                if missed:
                    logger.debug(f"Fetch overran the poll interval, {missed} tick(s) skipped")
        except asyncio.CancelledError:
            logger.debug("Polling loop cancelled")
            raise

    async def initial_load(self):
        """Fetch the current reading and the long-range series together."""
        await asyncio.gather(self.tick(), self.load_history())
        logger.info(
            f"Initial data loaded ({len(self.history_series)} historical samples, "
            f"status {self.connectivity.status.value})"
        )

    async def tick(self) -> bool:
        """Run one fetch/commit cycle.

        Returns:
            False if the tick was skipped or its result discarded, True otherwise.
        """
        if self._fetch_in_flight:
            logger.debug("Fetch already in flight, tick skipped")
            return False

        self._fetch_in_flight = True
        epoch = self._epoch
        try:
            reading: Optional[Reading] = None
            error: Optional[str] = None
            try:
                reading = await self._source.get_current()
                if not reading.connectivity_ok:
                    error = "Sensor reported a connection error"
            except Exception as e:
                # Any failure of the source counts as a connectivity failure
                error = str(e) or type(e).__name__

            if epoch != self._epoch:
                logger.debug("Scheduler stopped during fetch, result discarded")
                return False

            if error is not None:
                self._commit_failure(error)
            else:
                self._commit_success(reading)
            return True
        finally:
            self._fetch_in_flight = False

    def _commit_success(self, reading: Reading):
        now = datetime.now(timezone.utc)
        self.history_buffer.push(reading.level, now)
        levels = self.history_buffer.snapshot()
        state = trend_engine.infer(reading.level, levels, self._trend)

        if state != self.actuator_state:
            logger.info(f"Pump state inferred {self.actuator_state.value} -> {state.value} at {reading.level}%")
        self.reading = reading
        self.actuator_state = state
        self.connectivity.record_success(now)
        self.last_fetch_time = now

        step = levels[-1] - levels[-2] if len(levels) > 1 else 0.0
        logger.debug(f"Level {reading.level}% (step {step:+.2f}), pump {state.value}, recent {levels[-5:]}")
        self._publish_state()

    def _commit_failure(self, error: str):
        self.connectivity.record_failure(error)
        self._publish_state()

    async def load_history(self) -> bool:
        """Fetch the long-range series used for charts.

        Failures are logged and keep the previous series.
        """
        if self._history_in_flight:
            logger.debug("History fetch already in flight, skipped")
            return False

        self._history_in_flight = True
        epoch = self._epoch
        try:
            try:
                series = await self._source.get_history(self._acquisition.history_hours)
            except Exception as e:
                logger.error(f"Error fetching historical data: {e}")
                return False

            if epoch != self._epoch:
                return False

            self.history_series = list(series)
            self.history_loaded_at = datetime.now(timezone.utc)
            logger.debug(f"Loaded {len(self.history_series)} historical samples")
            self._hub.publish(HISTORY_SERIES, list(self.history_series))
            return True
        finally:
            self._history_in_flight = False

    async def refresh(self):
        """Manual refresh: current reading and history, right now.

        The automatic cadence is not reset. `is_refreshing` is set for the
        duration of the refresh and always cleared afterwards.
        """
        logger.info("Manual refresh triggered")
        self.is_refreshing = True
        self._publish_state()
        try:
            await asyncio.gather(self.tick(), self.load_history())
        finally:
            self.is_refreshing = False
            self._publish_state()

    def clear_cache(self):
        """Ask the source to drop its cached responses."""
        self._source.clear_cache()

    def snapshot(self) -> MonitorSnapshot:
        return MonitorSnapshot(
            reading=self.reading,
            actuator_state=self.actuator_state,
            connection_status=self.connectivity.status,
            is_refreshing=self.is_refreshing,
            last_fetch_time=self.last_fetch_time,
            last_success_at=self.connectivity.last_success_at,
            history=tuple(self.history_buffer.snapshot()),
            history_series_length=len(self.history_series),
            history_loaded_at=self.history_loaded_at,
        )

    def _publish_state(self):
        self._hub.publish(MONITOR_STATE, self.snapshot())

    def reset(self):
        """Drop all acquired state (used when switching sources)."""
        self.history_buffer.clear()
        self.connectivity.reset()
        self.reading = None
        self.actuator_state = ActuatorState.OFF
        self.last_fetch_time = None
        self.is_refreshing = False
        self.history_series = []
        self.history_loaded_at = None
        self._publish_state()
        self._hub.publish(HISTORY_SERIES, [])


# Global instance, emulated until service startup selects the real source
acquisition_scheduler = AcquisitionScheduler(
    EmulatedTelemetrySource(config_loader.get_telemetry_config()),
    acquisition=config_loader.get_acquisition_config(),
    trend=config_loader.get_trend_config(),
)
