from dataclasses import dataclass, field
from typing import Optional


@dataclass
class acquisitionConfigData:
    poll_interval_ms: int = 3000
    history_capacity: int = 10
    history_hours: int = 24


@dataclass
class trendConfigData:
    min_samples: int = 3
    window: int = 5
    rising_threshold: float = 0.5  # %/tick above which the pump is filling
    falling_threshold: float = -0.2  # %/tick below which the tank is draining
    fill_ceiling: float = 60.0  # flat trend infers ON only up to this level


@dataclass
class alertConfigData:
    critical_level: float = 20.0
    low_level: float = 40.0
    optimal_level: float = 60.0
    pump_trend_window: int = 3
    pump_trend_threshold: float = 0.5
    battery_low: float = 20.0


@dataclass
class telemetryConfigData:
    base_url: str = "https://api.thingspeak.com"
    channel_id: str = ""
    read_api_key: Optional[str] = None
    level_field: str = "field1"
    distance_field: str = "field2"
    temperature_field: str = "field3"
    battery_field: str = "field4"
    tank_capacity_liters: float = 10000.0
    tank_height_cm: float = 200.0
    timeout_seconds: float = 10.0
    cache_ttl_seconds: float = 300.0


@dataclass
class configData:
    acquisition: acquisitionConfigData = field(default_factory=acquisitionConfigData)
    trend: trendConfigData = field(default_factory=trendConfigData)
    alerts: alertConfigData = field(default_factory=alertConfigData)
    telemetry: telemetryConfigData = field(default_factory=telemetryConfigData)
    emulation: bool = True
