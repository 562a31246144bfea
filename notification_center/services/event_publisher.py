"""
Event Publisher
Publishes change events to the owner's channel after the store commits
"""
import logging
from typing import Iterable

import redis

from notification_center.core.message_broker import message_broker, owner_channel
from notification_center.schemas.notifications import ChangeEvent, ChangeOperation

logger = logging.getLogger(__name__)


class EventPublisher:
    """Publishes notification change events to the message broker."""

    @staticmethod
    def publish_change(owner_id: str, operation: ChangeOperation, ids: Iterable[str]) -> None:
        """
        Publish one change event for rows of a single owner.

        The write has already been committed when this runs, so a broker
        failure is logged and dropped; polling clients converge anyway.
        """
        event = ChangeEvent(operation=operation, owner_id=owner_id, ids=list(ids))
        try:
            message_broker.publish(owner_channel(owner_id), event.model_dump(mode="json"))
        except redis.RedisError as exc:
            logger.warning("Change event %s for owner %s not published: %s", operation.value, owner_id, exc)

    @staticmethod
    def publish_inserted(owner_id: str, ids: Iterable[str]) -> None:
        EventPublisher.publish_change(owner_id, ChangeOperation.INSERT, ids)

    @staticmethod
    def publish_updated(owner_id: str, ids: Iterable[str]) -> None:
        EventPublisher.publish_change(owner_id, ChangeOperation.UPDATE, ids)

    @staticmethod
    def publish_deleted(owner_id: str, ids: Iterable[str]) -> None:
        EventPublisher.publish_change(owner_id, ChangeOperation.DELETE, ids)
