"""
NotificationCenter
Client-facing surface for one signed-in owner: wires the cache, the unread
counter, the change feed, write-through read state and alerts together.
"""
import asyncio
import logging
from enum import Enum
from typing import Dict, List, Optional

from notification_center.core.errors import NotificationError
from notification_center.core.message_broker import ChangeFeed
from notification_center.client.alerts import AlertCapabilities, AlertDispatcher
from notification_center.client.gateway import NotificationGateway, ServiceGateway
from notification_center.client.grouping import group_by_date
from notification_center.client.observable import Disposer, Observable
from notification_center.client.read_state import ReadStateTracker
from notification_center.client.realtime import RealtimeSubscriber, SubscriptionState
from notification_center.client.store import NotificationStore, StoreEvent
from notification_center.client.unread_counter import CountReason, CountUpdate, UnreadCounter
from notification_center.core.config import settings
from notification_center.schemas.notifications import (
    Notification,
    NotificationFilter,
    NotificationPreferences,
    NotificationPreferencesUpdate,
)

logger = logging.getLogger(__name__)


class CenterEvent(str, Enum):
    NOTIFICATIONS = "notifications"
    UNREAD_COUNT = "unread_count"
    CONNECTION = "connection"


class NotificationCenter(Observable[CenterEvent]):
    """
    Usage::

        async with NotificationCenter(owner_id) as center:
            dispose = center.subscribe(on_change)
            await center.mark_as_read(notification_id)

    Tunables default to ``settings``. Background work (poll, change feed,
    list refresh) never raises into the caller; failures leave the last good
    data in place and are retried.
    """

    def __init__(
        self,
        owner_id: str,
        gateway: Optional[NotificationGateway] = None,
        feed=None,
        capabilities: Optional[AlertCapabilities] = None,
        notification_filter: NotificationFilter = NotificationFilter.ALL,
        poll_interval: float = settings.unread_poll_interval_seconds,
        reconnect_delay: float = settings.realtime_reconnect_delay_seconds,
        limit: int = settings.notification_list_limit,
    ):
        super().__init__()
        self.owner_id = owner_id
        self.gateway = gateway or ServiceGateway()
        self.store = NotificationStore(self.gateway, owner_id, limit=limit)
        self.counter = UnreadCounter(self.gateway, owner_id, poll_interval=poll_interval)
        self.tracker = ReadStateTracker(self.gateway, owner_id, self.store, self.counter)
        self.subscriber = RealtimeSubscriber(
            feed or ChangeFeed(),
            owner_id,
            [self.store.invalidate, self.counter.invalidate],
            reconnect_delay=reconnect_delay,
        )
        self.alerts = AlertDispatcher(capabilities, tag=f"notifications:{owner_id}")
        # host-level switch; the owner's stored preference can only narrow it
        self._host_sound = self.alerts.sound_enabled
        self._preferences = NotificationPreferences(owner_id=owner_id)
        self._filter = NotificationFilter(notification_filter)
        self._disposers: List[Disposer] = []
        self._list_wake = asyncio.Event()
        self._list_worker: Optional[asyncio.Task] = None

    # state read by the UI

    @property
    def notification_filter(self) -> NotificationFilter:
        return self._filter

    @property
    def notifications(self) -> List[Notification]:
        """Last known list for the active filter; empty before the first fetch."""
        snapshot = self.store.snapshot(self._filter)
        return list(snapshot.items) if snapshot else []

    @property
    def unread_count(self) -> int:
        return self.counter.value or 0

    @property
    def is_stale(self) -> bool:
        snapshot = self.store.snapshot(self._filter)
        return self.counter.stale or bool(snapshot and snapshot.stale)

    @property
    def preferences(self) -> NotificationPreferences:
        return self._preferences

    @property
    def connection_state(self) -> SubscriptionState:
        return self.subscriber.state

    def grouped(self, now=None) -> Dict[str, List[Notification]]:
        return group_by_date(self.notifications, now=now)

    # lifecycle

    async def start(self) -> None:
        if self._list_worker is not None:
            return
        self._disposers = [
            self.store.subscribe(self._on_store_event),
            self.counter.subscribe(self._on_count),
            self.subscriber.subscribe(lambda state: self._emit(CenterEvent.CONNECTION)),
        ]
        self._list_worker = asyncio.ensure_future(self._run_list_worker())
        await self.load_preferences()
        await self.refresh()
        self.counter.start()
        self.subscriber.start()

    async def close(self) -> None:
        """Unsubscribe from the change feed and clear the poll timer."""
        for dispose in self._disposers:
            dispose()
        self._disposers = []
        await self.subscriber.stop()
        await self.counter.stop()
        worker, self._list_worker = self._list_worker, None
        if worker is not None:
            worker.cancel()
            try:
                await worker
            except asyncio.CancelledError:
                pass

    async def __aenter__(self) -> "NotificationCenter":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def refresh(self) -> None:
        """Re-fetch the active list and the unread count, keeping old data on failure."""
        try:
            await self.store.list(self._filter)
        except NotificationError as exc:
            logger.warning("Notification list for %s unavailable: %s", self.owner_id, exc)
        try:
            await self.counter.refresh()
        except NotificationError as exc:
            logger.warning("Unread count for %s unavailable: %s", self.owner_id, exc)

    async def load_preferences(self) -> NotificationPreferences:
        """Fetch the owner's stored preferences, keeping the current ones on failure."""
        try:
            preferences = await self.gateway.get_preferences(self.owner_id)
        except NotificationError as exc:
            logger.warning("Preferences for %s unavailable: %s", self.owner_id, exc)
            return self._preferences
        self._apply_preferences(preferences)
        return preferences

    async def update_preferences(self, **changes) -> NotificationPreferences:
        """Write-through update of the owner's preferences, e.g. ``sound_enabled=False``."""
        preferences = await self.gateway.update_preferences(
            self.owner_id, NotificationPreferencesUpdate(**changes)
        )
        self._apply_preferences(preferences)
        return preferences

    async def set_filter(self, notification_filter: NotificationFilter) -> List[Notification]:
        self._filter = NotificationFilter(notification_filter)
        try:
            await self.store.list(self._filter)
        except NotificationError as exc:
            logger.warning("Notification list for %s unavailable: %s", self.owner_id, exc)
        self._emit(CenterEvent.NOTIFICATIONS)
        return self.notifications

    # user actions, write-through

    async def mark_as_read(self, notification_id: str) -> Notification:
        return await self.tracker.mark_read(notification_id)

    async def mark_all_as_read(self) -> int:
        return await self.tracker.mark_all_read()

    async def delete_notification(self, notification_id: str) -> None:
        await self.tracker.delete(notification_id)

    async def delete_all_read(self) -> int:
        return await self.tracker.delete_all_read()

    async def request_notification_permission(self) -> bool:
        return await self.alerts.request_permission()

    # wiring

    def _apply_preferences(self, preferences: NotificationPreferences) -> None:
        self._preferences = preferences
        self.alerts.sound_enabled = self._host_sound and preferences.sound_enabled

    def _on_store_event(self, event: StoreEvent) -> None:
        if event is StoreEvent.INVALIDATED:
            self._list_wake.set()
        else:
            self._emit(CenterEvent.NOTIFICATIONS)

    def _on_count(self, update: CountUpdate) -> None:
        self.alerts.handle(update)
        # a poll tick stands in for push events that may have been dropped
        if update.reason is CountReason.POLL:
            self.store.invalidate()
        self._emit(CenterEvent.UNREAD_COUNT)

    async def _run_list_worker(self) -> None:
        while True:
            await self._list_wake.wait()
            self._list_wake.clear()
            try:
                await self.store.list(self._filter)
            except NotificationError as exc:
                logger.warning("Notification list for %s not refreshed: %s", self.owner_id, exc)
