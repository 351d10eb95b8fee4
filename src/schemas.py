from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel

from core.models.actuator_state import ActuatorState
from core.models.alert import AlertSeverity
from core.models.connection_status import ConnectionStatus
from core.processing.chart_projector import ViewportClass


class AppHealthOK(BaseModel):
    status: str
    app: str


class ReadingResponse(BaseModel):
    level: float
    tank_capacity: float
    volume_liters: int
    timestamp: datetime
    connectivity_ok: bool
    battery: Optional[float] = None
    temperature: Optional[float] = None
    distance: Optional[float] = None


class MonitorStatusResponse(BaseModel):
    reading: Optional[ReadingResponse] = None
    pump_status: ActuatorState
    connection_status: ConnectionStatus
    is_refreshing: bool
    last_fetch_time: Optional[datetime] = None
    history_length: int
    history_series_length: int


class BufferResponse(BaseModel):
    capacity: int
    list: List[float]


class AlertItem(BaseModel):
    id: int
    rule: str
    type: AlertSeverity
    message: str
    timestamp: str
    resolved: bool


class AlertsResponse(BaseModel):
    list: List[AlertItem]
    active_count: int


class ChartPointModel(BaseModel):
    x: float
    y: float
    source_index: int
    level: float


class GridLineModel(BaseModel):
    level: int
    y: float
    label: str


class AxisLabelModel(BaseModel):
    x: float
    y: float
    text: str
    source_index: int


class MarkerModel(BaseModel):
    x: float
    y: float
    source_index: int
    level: float
    tooltip: str


class ChartResponse(BaseModel):
    viewport: ViewportClass
    width: int
    height: int
    empty: bool
    y_min: float
    y_max: float
    path: str
    area_path: str
    points: List[ChartPointModel]
    grid_lines: List[GridLineModel]
    labels: List[AxisLabelModel]
    markers: List[MarkerModel]
