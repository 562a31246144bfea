import logging

from notification_center.client.gateway import NotificationGateway
from notification_center.client.store import NotificationStore
from notification_center.client.unread_counter import UnreadCounter
from notification_center.schemas.notifications import Notification

logger = logging.getLogger(__name__)


class ReadStateTracker:
    """
    Write-through read/unread and delete transitions.

    Nothing local changes until the durable store confirms; afterwards the
    dependent caches are invalidated, never patched. Store errors propagate
    to the caller with the caches untouched.
    """

    def __init__(
        self,
        gateway: NotificationGateway,
        owner_id: str,
        store: NotificationStore,
        counter: UnreadCounter,
    ):
        self.gateway = gateway
        self.owner_id = owner_id
        self.store = store
        self.counter = counter

    def _invalidate(self) -> None:
        self.store.invalidate()
        self.counter.invalidate()

    async def mark_read(self, notification_id: str) -> Notification:
        notification = await self.gateway.mark_read(self.owner_id, notification_id)
        self._invalidate()
        return notification

    async def mark_all_read(self) -> int:
        count = await self.gateway.mark_all_read(self.owner_id)
        logger.info("Marked %d notifications read for %s", count, self.owner_id)
        self._invalidate()
        return count

    async def delete(self, notification_id: str) -> None:
        await self.gateway.delete(self.owner_id, notification_id)
        self._invalidate()

    async def delete_all_read(self) -> int:
        count = await self.gateway.delete_all_read(self.owner_id)
        logger.info("Deleted %d read notifications for %s", count, self.owner_id)
        self._invalidate()
        return count
