import logging
import math
import time
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, List, Optional, Tuple

import httpx

from core.models.config_data import telemetryConfigData
from core.models.reading import HistorySample, Reading
from core.services.telemetry_source import ConnectivityError

logger = logging.getLogger(__name__)

# ThingSpeak answers -1 when the channel is private and the key is missing or wrong
ACCESS_DENIED_MARKER = -1


def _parse_float(value: Any) -> Optional[float]:
    if value is None or value == "":
        return None
    try:
        parsed = float(value)
    except (TypeError, ValueError):
        return None
    return None if math.isnan(parsed) else parsed


def _parse_timestamp(value: Any) -> Optional[datetime]:
    if not isinstance(value, str):
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _clamp_percent(value: float) -> float:
    return min(100.0, max(0.0, value))


class ThingSpeakTelemetrySource:
    """Telemetry source reading a ThingSpeak channel over HTTP."""

    def __init__(
        self,
        config: telemetryConfigData,
        client: Optional[httpx.AsyncClient] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if not config.channel_id:
            raise ValueError("A ThingSpeak channel_id is required")
        self._config = config
        self._client = client or httpx.AsyncClient(
            base_url=config.base_url, timeout=config.timeout_seconds
        )
        self._clock = clock
        self._history_cache: Dict[int, Tuple[float, List[HistorySample]]] = {}

    async def aclose(self) -> None:
        await self._client.aclose()

    def _params(self, **extra: Any) -> Dict[str, Any]:
        params: Dict[str, Any] = dict(extra)
        if self._config.read_api_key:
            params["api_key"] = self._config.read_api_key
        return params

    async def _get_json(self, path: str, params: Dict[str, Any]) -> Any:
        try:
            response = await self._client.get(path, params=params)
            response.raise_for_status()
            return response.json()
        except httpx.HTTPStatusError as exc:
            raise ConnectivityError(
                f"ThingSpeak returned status {exc.response.status_code} for {path}"
            ) from exc
        except httpx.HTTPError as exc:
            raise ConnectivityError(f"ThingSpeak request failed: {exc}") from exc
        except ValueError as exc:
            raise ConnectivityError(f"ThingSpeak returned invalid JSON for {path}") from exc

    def _level_from_feed(self, feed: Dict[str, Any]) -> Optional[float]:
        level = _parse_float(feed.get(self._config.level_field))
        if level is not None:
            return _clamp_percent(level)
        # Fall back to the ultrasonic distance from the sensor to the surface
        distance = _parse_float(feed.get(self._config.distance_field))
        height = self._config.tank_height_cm
        if distance is None or height <= 0:
            return None
        return _clamp_percent((height - distance) / height * 100)

    async def get_current(self) -> Reading:
        path = f"/channels/{self._config.channel_id}/feeds/last.json"
        feed = await self._get_json(path, self._params())
        if feed == ACCESS_DENIED_MARKER or not isinstance(feed, dict):
            raise ConnectivityError(f"ThingSpeak denied access to channel {self._config.channel_id}")

        level = self._level_from_feed(feed)
        if level is None:
            raise ConnectivityError("Latest ThingSpeak entry carries no level")

        timestamp = _parse_timestamp(feed.get("created_at")) or datetime.now(timezone.utc)
        return Reading(
            level=round(level, 1),
            tank_capacity=self._config.tank_capacity_liters,
            timestamp=timestamp,
            connectivity_ok=True,
            battery=_parse_float(feed.get(self._config.battery_field)),
            temperature=_parse_float(feed.get(self._config.temperature_field)),
            distance=_parse_float(feed.get(self._config.distance_field)),
        )

    async def get_history(self, hours: int) -> List[HistorySample]:
        cached = self._history_cache.get(hours)
        if cached is not None and self._clock() - cached[0] < self._config.cache_ttl_seconds:
            logger.debug(f"Serving {hours}h history from cache")
            return list(cached[1])

        start = (datetime.now(timezone.utc) - timedelta(hours=hours)).strftime("%Y-%m-%d %H:%M:%S")
        path = f"/channels/{self._config.channel_id}/feeds.json"
        payload = await self._get_json(path, self._params(start=start, timezone="Etc/UTC"))
        if payload == ACCESS_DENIED_MARKER or not isinstance(payload, dict):
            raise ConnectivityError(f"ThingSpeak denied access to channel {self._config.channel_id}")

        samples: List[HistorySample] = []
        skipped = 0
        for feed in payload.get("feeds") or []:
            level = self._level_from_feed(feed)
            recorded_at = _parse_timestamp(feed.get("created_at"))
            if level is None or recorded_at is None:
                skipped += 1
                continue
            samples.append(HistorySample(
                level=round(level, 1),
                recorded_at=recorded_at,
                temperature=_parse_float(feed.get(self._config.temperature_field)),
            ))
        if skipped:
            logger.debug(f"Skipped {skipped} ThingSpeak entries without level or timestamp")

        samples.sort(key=lambda sample: sample.recorded_at)
        self._history_cache[hours] = (self._clock(), samples)
        return list(samples)

    def clear_cache(self) -> None:
        self._history_cache.clear()
        logger.info("ThingSpeak history cache cleared")
