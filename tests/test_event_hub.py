"""Tests for the topic based event hub."""
import asyncio

import pytest

from core.event_hub import HISTORY_SERIES, MONITOR_STATE, EventHub


class TestEventHub:

    def test_publish_without_loop_calls_handlers(self):
        hub = EventHub()
        received = []
        hub.subscribe(MONITOR_STATE, lambda topic, message: received.append((topic, message)))

        hub.publish(MONITOR_STATE, 1)
        hub.publish(HISTORY_SERIES, 2)

        assert received == [(MONITOR_STATE, 1)]

    def test_subscribe_is_idempotent(self):
        hub = EventHub()
        received = []

        def handler(topic, message):
            received.append(message)

        hub.subscribe(MONITOR_STATE, handler)
        hub.subscribe(MONITOR_STATE, handler)
        hub.publish(MONITOR_STATE, "x")

        assert received == ["x"]

    def test_unsubscribe(self):
        hub = EventHub()
        received = []

        def handler(topic, message):
            received.append(message)

        hub.subscribe(MONITOR_STATE, handler)
        hub.unsubscribe(MONITOR_STATE, handler)
        hub.publish(MONITOR_STATE, "x")

        assert received == []

    def test_failing_handler_does_not_block_others(self):
        hub = EventHub()
        received = []

        def broken(topic, message):
            raise RuntimeError("broken handler")

        hub.subscribe(MONITOR_STATE, broken)
        hub.subscribe(MONITOR_STATE, lambda topic, message: received.append(message))
        hub.publish(MONITOR_STATE, 3)

        assert received == [3]

    @pytest.mark.asyncio
    async def test_async_handler_scheduled_on_loop(self):
        hub = EventHub()
        hub.init(asyncio.get_running_loop())
        received = asyncio.Event()

        async def handler(topic, message):
            received.set()

        hub.subscribe(HISTORY_SERIES, handler)
        hub.publish(HISTORY_SERIES, [])

        await asyncio.wait_for(received.wait(), timeout=1)

    @pytest.mark.asyncio
    async def test_sync_handler_runs_inline_on_loop(self):
        hub = EventHub()
        hub.init(asyncio.get_running_loop())
        received = []
        hub.subscribe(MONITOR_STATE, lambda topic, message: received.append(message))

        hub.publish(MONITOR_STATE, "now")

        assert received == ["now"]
