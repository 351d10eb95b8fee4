import asyncio
import logging
from typing import Any, Callable, Dict, List, Optional

logger = logging.getLogger(__name__)

# Topics
MONITOR_STATE = "monitor_state"      # committed MonitorSnapshot after every state change
HISTORY_SERIES = "history_series"    # new long-range series loaded


class EventHub:
    """Topic based publish/subscribe channel bound to the service event loop."""

    def __init__(self):
        self._subscribers: Dict[str, List[Callable]] = {}
        self._loop: Optional[asyncio.AbstractEventLoop] = None

    def init(self, loop: Optional[asyncio.AbstractEventLoop]):
        self._loop = loop

    def subscribe(self, topic: str, handler: Callable):
        handlers = self._subscribers.setdefault(topic, [])
        if handler not in handlers:
            handlers.append(handler)
        logger.debug(f"Subscribed to {topic}")

    def unsubscribe(self, topic: str, handler: Callable):
        handlers = self._subscribers.get(topic, [])
        if handler in handlers:
            handlers.remove(handler)
            logger.debug(f"Unsubscribed from {topic}")

    def unsubscribe_all(self):
        self._subscribers.clear()

    def publish(self, topic: str, message: Any):
        """Deliver message to every handler of topic.

        Plain handlers run synchronously when called from the hub's loop (or
        when no loop is bound), so derived state is up to date when publish
        returns. Coroutine handlers are scheduled as tasks.
        """
        # Copy so handlers may unsubscribe while being notified
        for handler in list(self._subscribers.get(topic, [])):
            try:
                self._dispatch(handler, topic, message)
            except Exception as e:
                logger.error(f"Error handling message on topic {topic}: {e}")

    def _dispatch(self, handler: Callable, topic: str, message: Any):
        is_async = asyncio.iscoroutinefunction(handler)
        if self._loop is None:
            if is_async:
                logger.warning(f"EventHub loop not initialized. Cannot dispatch async handler for {topic}")
                return
            handler(topic, message)
            return

        try:
            current_loop = asyncio.get_running_loop()
        except RuntimeError:
            current_loop = None

        if current_loop is self._loop:
            if is_async:
                self._loop.create_task(handler(topic, message))
            else:
                handler(topic, message)
        elif is_async:
            asyncio.run_coroutine_threadsafe(handler(topic, message), self._loop)
        else:
            self._loop.call_soon_threadsafe(handler, topic, message)


# Global instance
event_hub = EventHub()


def init_event_hub(loop):
    """Initialize the global event hub with the given loop."""
    event_hub.init(loop)
