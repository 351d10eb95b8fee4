import json
import logging
from dataclasses import fields
from pathlib import Path
from typing import Any, Dict, Type, TypeVar

from core.models.config_data import (
    acquisitionConfigData,
    alertConfigData,
    configData,
    telemetryConfigData,
    trendConfigData,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _build_section(section_cls: Type[T], raw: Dict[str, Any]) -> T:
    """Build a config section from a JSON object, ignoring unknown keys."""
    known = {f.name for f in fields(section_cls)}
    for key in raw:
        if key not in known:
            logger.warning(f"Unknown configuration key '{key}' for {section_cls.__name__}, ignored.")
    return section_cls(**{k: v for k, v in raw.items() if k in known})


class ConfigLoader:
    """Loads and manages monitor configuration from JSON file."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super(ConfigLoader, cls).__new__(cls)
            cls._instance._config = configData()
            cls._instance._initialized = False
        return cls._instance

    def __init__(self):
        if not self._initialized:
            self._config = self._get_default_config()
            self.load_config()
            self._initialized = True

    @staticmethod
    def get_config_path() -> Path:
        """Get the path to the monitor_config.json file."""
        # Config file lives in the project root/config directory
        config_path = Path(__file__).parent.parent.parent / "config" / "monitor_config.json"
        return config_path

    def load_config(self, config_path: Path | None = None):
        """Load configuration from JSON file."""
        if config_path is None:
            config_path = self.get_config_path()

        # Start from defaults so a partial file still yields a full config
        self._config = self._get_default_config()

        if not config_path.exists():
            logger.error(f"Configuration file not found: {config_path}")
            return

        try:
            with open(config_path, 'r') as f:
                json_data = json.load(f)
            self._config = configData(
                acquisition=_build_section(acquisitionConfigData, json_data.get("acquisition", {})),
                trend=_build_section(trendConfigData, json_data.get("trend", {})),
                alerts=_build_section(alertConfigData, json_data.get("alerts", {})),
                telemetry=_build_section(telemetryConfigData, json_data.get("telemetry", {})),
                emulation=json_data.get("emulation", True),
            )
            logger.info(f"Configuration loaded from {config_path}")

        except json.JSONDecodeError as e:
            logger.error(f"Failed to parse configuration file: {e}")
            self._config = self._get_default_config()

        except (TypeError, AttributeError) as e:
            logger.error(f"Invalid configuration structure: {e}")
            self._config = self._get_default_config()

    @staticmethod
    def _get_default_config() -> configData:
        """Return default configuration."""
        return configData()

    def get_config(self) -> configData:
        return self._config

    def get_emulation_mode(self) -> bool:
        """Get the emulation mode setting."""
        return self._config.emulation

    def get_acquisition_config(self) -> acquisitionConfigData:
        return self._config.acquisition

    def get_trend_config(self) -> trendConfigData:
        return self._config.trend

    def get_alert_config(self) -> alertConfigData:
        return self._config.alerts

    def get_telemetry_config(self) -> telemetryConfigData:
        return self._config.telemetry

    def reload_config(self):
        """Reload configuration from file."""
        self.load_config()
        logger.info("Configuration reloaded")


# Global singleton instance
config_loader = ConfigLoader()
