import logging
from typing import List, Optional

from core.config_loader import config_loader
from core.event_hub import MONITOR_STATE, EventHub, event_hub
from core.models.alert import Alert
from core.models.config_data import alertConfigData
from core.processing import alert_engine

logger = logging.getLogger(__name__)


class AlertService:
    """
    Keeps the current alert list. Recomputed from scratch on every committed
    monitor state change, never on its own timer.
    """

    def __init__(self, config: Optional[alertConfigData] = None, hub: EventHub = event_hub):
        self._config = config or alertConfigData()
        self.alerts: List[Alert] = []
        hub.subscribe(MONITOR_STATE, self._on_monitor_state)

    def _on_monitor_state(self, topic, snapshot):
        alerts = alert_engine.derive(
            snapshot.reading,
            snapshot.actuator_state,
            snapshot.history,
            snapshot.connection_status,
            config=self._config,
            last_success_at=snapshot.last_success_at,
        )
        if [a.rule for a in alerts] != [a.rule for a in self.alerts]:
            logger.info(f"Alerts changed: {[a.rule for a in alerts] or 'none'}")
        self.alerts = alerts

    def get_alerts(self) -> List[Alert]:
        return list(self.alerts)

    def active_count(self) -> int:
        return alert_engine.active_count(self.alerts)

    def clear(self):
        self.alerts = []


# Global instance
alert_service = AlertService(config_loader.get_alert_config())
