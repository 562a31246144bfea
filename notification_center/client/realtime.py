"""
Live subscription to the owner's change feed.

Events are treated as a signal to re-fetch, never as data: whatever arrives,
the subscriber only invalidates the caches it was given.
"""
import asyncio
import logging
from enum import Enum
from typing import Any, Callable, Iterable, List, Optional

from redis.exceptions import RedisError

from notification_center.core.config import settings
from notification_center.client.observable import Observable

logger = logging.getLogger(__name__)


class SubscriptionState(str, Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    SUBSCRIBED = "subscribed"


class RealtimeSubscriber(Observable[SubscriptionState]):
    """Keeps at most one subscription per owner alive, reconnecting on drops."""

    def __init__(
        self,
        feed,
        owner_id: str,
        invalidators: Iterable[Callable[[], None]],
        reconnect_delay: float = settings.realtime_reconnect_delay_seconds,
    ):
        super().__init__()
        self.feed = feed
        self.owner_id = owner_id
        self.invalidators: List[Callable[[], None]] = list(invalidators)
        self.reconnect_delay = reconnect_delay
        self.events_received = 0
        self._state = SubscriptionState.DISCONNECTED
        self._task: Optional[asyncio.Task] = None

    @property
    def state(self) -> SubscriptionState:
        return self._state

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Begin following the feed. Calling it again while running is a no-op."""
        if self.running:
            return
        self._task = asyncio.ensure_future(self._run())

    async def stop(self) -> None:
        """Release the subscription and stop reconnecting."""
        task, self._task = self._task, None
        if task is not None:
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
        self._set_state(SubscriptionState.DISCONNECTED)

    def _set_state(self, state: SubscriptionState) -> None:
        if state is self._state:
            return
        logger.debug("Change feed for %s: %s -> %s", self.owner_id, self._state.value, state.value)
        self._state = state
        self._emit(state)

    def _signal(self, event: Optional[Any]) -> None:
        if isinstance(event, dict):
            logger.debug("Change event %s for %s", event.get("operation"), self.owner_id)
        for invalidate in self.invalidators:
            invalidate()

    async def _run(self) -> None:
        resubscribed = False
        while True:
            self._set_state(SubscriptionState.CONNECTING)
            try:
                async with self.feed.subscribe(self.owner_id) as events:
                    self._set_state(SubscriptionState.SUBSCRIBED)
                    if resubscribed:
                        # anything published while we were away was missed
                        self._signal(None)
                    async for event in events:
                        self.events_received += 1
                        self._signal(event)
                logger.info("Change feed for %s closed by the server", self.owner_id)
            except (RedisError, OSError) as exc:
                logger.warning("Change feed for %s dropped: %s", self.owner_id, exc)
            self._set_state(SubscriptionState.DISCONNECTED)
            resubscribed = True
            await asyncio.sleep(self.reconnect_delay)
