"""
Client-side cache of the current owner's notifications.

One snapshot per filter. A successful fetch replaces the whole snapshot; a
failed fetch keeps the previous one and flags it stale so consumers never see
an empty list because of a network blip.
"""
import asyncio
import logging
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, List, Optional, Tuple

from notification_center.core.config import settings
from notification_center.core.errors import FetchError
from notification_center.client.gateway import NotificationGateway
from notification_center.client.observable import Observable
from notification_center.schemas.notifications import Notification, NotificationFilter

logger = logging.getLogger(__name__)


class StoreEvent(str, Enum):
    INVALIDATED = "invalidated"
    REFRESHED = "refreshed"


@dataclass(frozen=True)
class Snapshot:
    notification_filter: NotificationFilter
    items: Tuple[Notification, ...]
    fetched_at: datetime
    stale: bool = False


class NotificationStore(Observable[StoreEvent]):
    """Single source of truth for notification lists shown to the user."""

    def __init__(
        self,
        gateway: NotificationGateway,
        owner_id: str,
        limit: int = settings.notification_list_limit,
    ):
        super().__init__()
        self.gateway = gateway
        self.owner_id = owner_id
        self.limit = limit
        self._generation = 0
        self._snapshots: Dict[NotificationFilter, Snapshot] = {}
        self._snapshot_generation: Dict[NotificationFilter, int] = {}
        self._valid: set = set()
        self._inflight: Dict[NotificationFilter, Tuple[int, asyncio.Task]] = {}

    def snapshot(self, notification_filter: NotificationFilter = NotificationFilter.ALL) -> Optional[Snapshot]:
        """Last fetched snapshot for the filter, possibly stale, or None."""
        return self._snapshots.get(NotificationFilter(notification_filter))

    def is_valid(self, notification_filter: NotificationFilter = NotificationFilter.ALL) -> bool:
        return NotificationFilter(notification_filter) in self._valid

    async def list(self, notification_filter: NotificationFilter = NotificationFilter.ALL) -> List[Notification]:
        """
        Current notifications for the filter, newest first.

        Serves the cached snapshot while it is valid, otherwise fetches. Callers
        asking for the same filter concurrently share one fetch.

        Raises:
            FetchError: the durable store is unreachable; the previous snapshot
                stays available through ``snapshot()`` flagged as stale.
        """
        notification_filter = NotificationFilter(notification_filter)
        if notification_filter in self._valid:
            return list(self._snapshots[notification_filter].items)

        inflight = self._inflight.get(notification_filter)
        if inflight is None or inflight[1].done() or inflight[0] != self._generation:
            task = asyncio.ensure_future(self._fetch(notification_filter, self._generation))
            self._inflight[notification_filter] = (self._generation, task)
            task.add_done_callback(lambda done, f=notification_filter: self._forget(f, done))
        else:
            task = inflight[1]

        return list(await asyncio.shield(task))

    def invalidate(self) -> None:
        """Mark every cached snapshot stale so the next ``list`` re-fetches."""
        self._generation += 1
        self._valid.clear()
        self._emit(StoreEvent.INVALIDATED)

    def _forget(self, notification_filter: NotificationFilter, task: asyncio.Task) -> None:
        current = self._inflight.get(notification_filter)
        if current is not None and current[1] is task:
            del self._inflight[notification_filter]
        if not task.cancelled():
            # consumed by awaiters; retrieve so an unawaited failure is not reported twice
            task.exception()

    async def _fetch(self, notification_filter: NotificationFilter, generation: int) -> Tuple[Notification, ...]:
        try:
            rows = await self.gateway.fetch(self.owner_id, notification_filter, self.limit)
        except FetchError:
            previous = self._snapshots.get(notification_filter)
            newer = self._snapshot_generation.get(notification_filter, -1) > generation
            if previous is not None and not previous.stale and not newer:
                self._snapshots[notification_filter] = replace(previous, stale=True)
            logger.warning(
                "Fetching %s notifications for %s failed; keeping last snapshot",
                notification_filter.value,
                self.owner_id,
            )
            raise

        items = tuple(rows)
        # an older fetch finishing late must not overwrite a newer snapshot
        if generation >= self._snapshot_generation.get(notification_filter, -1):
            self._snapshots[notification_filter] = Snapshot(
                notification_filter=notification_filter,
                items=items,
                fetched_at=datetime.now(timezone.utc),
            )
            self._snapshot_generation[notification_filter] = generation
        if generation == self._generation:
            self._valid.add(notification_filter)
        self._emit(StoreEvent.REFRESHED)
        return items
