# External libs
import asyncio
import logging
from dataclasses import replace
from typing import Optional

# Internal libs
from core.config_loader import config_loader
from core.event_hub import init_event_hub
from core.services.acquisition_scheduler import acquisition_scheduler
from core.services.alert_service import alert_service  # noqa: F401 - subscribes to monitor state
from core.services.chart_service import chart_service  # noqa: F401 - subscribes to history series
from core.services.telemetry_source import EmulatedTelemetrySource, TelemetrySource
from core.services.thingspeak_client import ThingSpeakTelemetrySource

logger = logging.getLogger(__name__)


class ServiceManager:

    def __init__(self):
        self.running = False
        self.emulation = True
        self._owned_source: Optional[TelemetrySource] = None

    def build_source(self, emulation: bool, read_api_key: Optional[str] = None) -> TelemetrySource:
        """Create the telemetry source for the requested mode."""
        telemetry = config_loader.get_telemetry_config()
        if emulation:
            return EmulatedTelemetrySource(telemetry)
        if read_api_key:
            telemetry = replace(telemetry, read_api_key=read_api_key)
        return ThingSpeakTelemetrySource(telemetry)

    async def start_services(self, emulation: bool = True, read_api_key: Optional[str] = None):
        """Start background acquisition if not already started.
        Args:
            emulation: When True, poll the emulated sensor instead of ThingSpeak.
            read_api_key: ThingSpeak read key overriding the configured one.
        """
        if self.running:
            return

        logger.info("Starting background services...")
        loop = asyncio.get_running_loop()

        # Init Event Hub
        init_event_hub(loop)

        source = self.build_source(emulation, read_api_key)
        acquisition_scheduler.reset()
        acquisition_scheduler.set_source(source)
        self._owned_source = source
        self.emulation = emulation

        acquisition_scheduler.start()
        self.running = True
        logger.info(f"Background services started ({'emulated' if emulation else 'ThingSpeak'} telemetry).")

    async def stop_services(self):
        """Stop background services."""
        self.running = False
        acquisition_scheduler.stop()

        aclose = getattr(self._owned_source, "aclose", None)
        if aclose is not None:
            try:
                await aclose()
            except Exception as e:
                logger.warning(f"Error closing telemetry client: {e}")
        self._owned_source = None

        logger.info("Background services stopped.")


service_manager = ServiceManager()
