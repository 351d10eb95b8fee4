import logging
from typing import Dict, List

from core.event_hub import HISTORY_SERIES, EventHub, event_hub
from core.models.reading import HistorySample
from core.processing.chart_projector import ChartProjection, ViewportClass, project

logger = logging.getLogger(__name__)


class ChartService:
    """
    Projects the long-range series on demand. A projection is reused until
    the series changes, so asking again for the same viewport is free.
    """

    def __init__(self, hub: EventHub = event_hub):
        self.series: List[HistorySample] = []
        self._projections: Dict[ViewportClass, ChartProjection] = {}
        hub.subscribe(HISTORY_SERIES, self._on_history_series)

    def _on_history_series(self, topic, series: List[HistorySample]):
        self.series = list(series)
        self._projections.clear()

    def get_projection(self, viewport: ViewportClass) -> ChartProjection:
        projection = self._projections.get(viewport)
        if projection is None:
            projection = project(self.series, viewport)
            self._projections[viewport] = projection
            logger.debug(f"Projected {len(self.series)} samples for {viewport.value} viewport")
        return projection

    def clear(self):
        self.series = []
        self._projections.clear()


# Global instance
chart_service = ChartService()
