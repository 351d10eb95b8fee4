"""
Tests for the ThingSpeak telemetry source, against a mocked HTTP transport
"""
from datetime import datetime, timezone

import httpx
import pytest

from core.models.config_data import telemetryConfigData
from core.services.telemetry_source import ConnectivityError, TelemetrySource
from core.services.thingspeak_client import ThingSpeakTelemetrySource

CHANNEL = "3035826"


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


def make_source(handler, clock=None, **overrides):
    config = telemetryConfigData(channel_id=CHANNEL, **overrides)
    client = httpx.AsyncClient(base_url=config.base_url, transport=httpx.MockTransport(handler))
    return ThingSpeakTelemetrySource(config, client=client, clock=clock or FakeClock())


def last_feed(**fields):
    feed = {"created_at": "2024-05-01T12:00:00Z", "entry_id": 42}
    feed.update(fields)
    return feed


def test_requires_channel_id():
    with pytest.raises(ValueError):
        ThingSpeakTelemetrySource(telemetryConfigData(channel_id=""))


@pytest.mark.asyncio
async def test_current_reading_parsed():
    requests = []

    def handler(request):
        requests.append(request)
        return httpx.Response(200, json=last_feed(field1="63.44", field2="73.1", field3="22.5", field4="88"))

    source = make_source(handler)
    reading = await source.get_current()
    await source.aclose()

    assert isinstance(source, TelemetrySource)
    assert requests[0].url.path == f"/channels/{CHANNEL}/feeds/last.json"
    assert "api_key" not in requests[0].url.params
    assert reading.level == 63.4
    assert reading.distance == 73.1
    assert reading.temperature == 22.5
    assert reading.battery == 88.0
    assert reading.connectivity_ok
    assert reading.timestamp == datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)
    assert reading.volume_liters == 6340


@pytest.mark.asyncio
async def test_api_key_sent_when_configured():
    requests = []

    def handler(request):
        requests.append(request)
        return httpx.Response(200, json=last_feed(field1="50"))

    source = make_source(handler, read_api_key="SECRET")
    await source.get_current()
    await source.aclose()

    assert requests[0].url.params["api_key"] == "SECRET"


@pytest.mark.asyncio
async def test_level_falls_back_to_distance():
    """Without a level field the level comes from the surface distance"""
    source = make_source(lambda request: httpx.Response(200, json=last_feed(field2="50")))
    reading = await source.get_current()
    await source.aclose()

    assert reading.level == 75.0


@pytest.mark.asyncio
async def test_level_clamped():
    source = make_source(lambda request: httpx.Response(200, json=last_feed(field1="104.2")))
    reading = await source.get_current()
    await source.aclose()

    assert reading.level == 100.0


@pytest.mark.asyncio
@pytest.mark.parametrize("response", [
    httpx.Response(200, json=-1),
    httpx.Response(500, text="Internal Server Error"),
    httpx.Response(200, text="<html>not json</html>"),
    httpx.Response(200, json=last_feed(field3="21.0")),
])
async def test_current_failures_raise_connectivity_error(response):
    source = make_source(lambda request: response)
    with pytest.raises(ConnectivityError):
        await source.get_current()
    await source.aclose()


@pytest.mark.asyncio
async def test_transport_error_raises_connectivity_error():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    source = make_source(handler)
    with pytest.raises(ConnectivityError):
        await source.get_current()
    await source.aclose()


HISTORY_PAYLOAD = {
    "channel": {"id": int(CHANNEL)},
    "feeds": [
        {"created_at": "2024-05-01T02:00:00Z", "field1": "55.0", "field3": "21.0"},
        {"created_at": "2024-05-01T00:00:00Z", "field1": "50.0", "field3": "20.5"},
        {"created_at": "2024-05-01T01:00:00Z", "field1": None, "field2": None},
        {"created_at": "garbage", "field1": "40.0"},
        {"created_at": "2024-05-01T03:00:00Z", "field1": "nan"},
        {"created_at": "2024-05-01T04:00:00Z", "field2": "100"},
    ],
}


@pytest.mark.asyncio
async def test_history_skips_invalid_and_sorts():
    requests = []

    def handler(request):
        requests.append(request)
        return httpx.Response(200, json=HISTORY_PAYLOAD)

    source = make_source(handler)
    samples = await source.get_history(24)
    await source.aclose()

    assert requests[0].url.path == f"/channels/{CHANNEL}/feeds.json"
    assert "start" in requests[0].url.params
    assert requests[0].url.params["timezone"] == "Etc/UTC"
    assert [s.level for s in samples] == [50.0, 55.0, 50.0]
    assert [s.recorded_at.hour for s in samples] == [0, 2, 4]
    assert samples[0].temperature == 20.5
    assert samples[2].temperature is None


@pytest.mark.asyncio
async def test_history_empty_channel():
    source = make_source(lambda request: httpx.Response(200, json={"channel": {}, "feeds": []}))
    assert await source.get_history(24) == []
    await source.aclose()


@pytest.mark.asyncio
async def test_history_cached_until_expiry():
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(200, json=HISTORY_PAYLOAD)

    clock = FakeClock()
    source = make_source(handler, clock=clock, cache_ttl_seconds=300)

    first = await source.get_history(24)
    clock.now += 299
    second = await source.get_history(24)
    assert len(calls) == 1
    assert first == second

    await source.get_history(12)
    assert len(calls) == 2

    clock.now += 1
    await source.get_history(24)
    assert len(calls) == 3
    await source.aclose()


@pytest.mark.asyncio
async def test_clear_cache_forces_refetch():
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(200, json=HISTORY_PAYLOAD)

    source = make_source(handler)
    await source.get_history(24)
    source.clear_cache()
    await source.get_history(24)
    await source.aclose()

    assert len(calls) == 2


@pytest.mark.asyncio
async def test_history_error_not_cached():
    responses = [httpx.Response(503), httpx.Response(200, json=HISTORY_PAYLOAD)]
    source = make_source(lambda request: responses.pop(0))

    with pytest.raises(ConnectivityError):
        await source.get_history(24)
    assert len(await source.get_history(24)) == 3
    await source.aclose()
