"""
Notification Service
Durable store operations for notification rows. Ownership is enforced here,
on every statement, never by the caller.
"""
from typing import List, Optional

from sqlalchemy import select, update, delete, func, and_

from notification_center.core.errors import NotFoundError
from notification_center.models.notification import Notification, utcnow
from notification_center.schemas.notifications import (
    NotificationCategory,
    NotificationFilter,
    NotificationPriority,
    RelatedEntity,
)
from notification_center.services.base import StoreService
from notification_center.services.event_publisher import EventPublisher

DEFAULT_LIMIT = 50


class NotificationService(StoreService):
    """Service for reading and mutating notifications of one owner at a time."""

    def create_notification(
        self,
        owner_id: str,
        category: NotificationCategory,
        title: str,
        body: str,
        priority: NotificationPriority = NotificationPriority.NORMAL,
        related_entity: Optional[RelatedEntity] = None,
        action_url: Optional[str] = None,
    ) -> Notification:
        """
        Insert a new notification. Called by external collaborators only.

        Args:
            owner_id: User who will own the notification
            category: booking, payment, property, system or message
            title: Notification title
            body: Notification text
            priority: Informational priority
            related_entity: Optional weak pointer to the causing entity
            action_url: Optional deep link

        Returns:
            Created Notification row
        """
        notification = Notification(
            owner_id=owner_id,
            category=NotificationCategory(category).value,
            title=title,
            body=body,
            priority=NotificationPriority(priority).value,
            related_type=related_entity.type if related_entity else None,
            related_id=related_entity.id if related_entity else None,
            action_url=action_url,
            is_read=False,
            created_at=utcnow(),
        )

        with self._writing():
            self.db.add(notification)
            self.db.commit()
        self.db.refresh(notification)

        # Publish to message broker for real-time delivery
        EventPublisher.publish_inserted(owner_id, [notification.id])

        return notification

    def get_user_notifications(
        self,
        owner_id: str,
        notification_filter: NotificationFilter = NotificationFilter.ALL,
        limit: int = DEFAULT_LIMIT,
    ) -> List[Notification]:
        """
        Get the newest notifications for an owner.

        Args:
            owner_id: Owner ID
            notification_filter: all, unread, or a single category
            limit: Maximum number of records to return

        Returns:
            List of Notification rows, newest first
        """
        notification_filter = NotificationFilter(notification_filter)
        stmt = select(Notification).where(Notification.owner_id == owner_id)

        if notification_filter.unread_only:
            stmt = stmt.where(Notification.is_read == False)  # noqa: E712
        elif notification_filter.category is not None:
            stmt = stmt.where(Notification.category == notification_filter.category.value)

        stmt = stmt.order_by(Notification.created_at.desc(), Notification.id.desc()).limit(limit)

        with self._reading():
            return list(self.db.scalars(stmt).all())

    def get_unread_count(self, owner_id: str) -> int:
        """
        Count unread notifications with a store-side aggregate.

        Args:
            owner_id: Owner ID

        Returns:
            Count of unread notifications
        """
        stmt = select(func.count()).select_from(Notification).where(
            and_(
                Notification.owner_id == owner_id,
                Notification.is_read == False,  # noqa: E712
            )
        )
        with self._reading():
            return int(self.db.scalar(stmt) or 0)

    def _owned(self, notification_id: str, owner_id: str) -> Optional[Notification]:
        stmt = select(Notification).where(
            and_(
                Notification.id == notification_id,
                Notification.owner_id == owner_id,
            )
        )
        return self.db.scalar(stmt)

    def mark_as_read(self, notification_id: str, owner_id: str) -> Notification:
        """
        Mark a notification as read. Re-marking a read notification is a no-op
        and keeps its original read_at.

        Args:
            notification_id: Notification ID
            owner_id: Owner ID (for security check)

        Returns:
            The notification after the write

        Raises:
            NotFoundError: missing or owned by someone else
        """
        stmt = (
            update(Notification)
            .where(
                and_(
                    Notification.id == notification_id,
                    Notification.owner_id == owner_id,
                    Notification.is_read == False,  # noqa: E712
                )
            )
            .values(is_read=True, read_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        with self._writing():
            result = self.db.execute(stmt)
            self.db.commit()

        with self._reading():
            notification = self._owned(notification_id, owner_id)
        if notification is None:
            raise NotFoundError(notification_id)

        if result.rowcount:
            EventPublisher.publish_updated(owner_id, [notification_id])
        return notification

    def mark_all_as_read(self, owner_id: str) -> int:
        """
        Mark every notification that is unread right now as read.

        Rows inserted after the sweep starts are left unread.

        Args:
            owner_id: Owner ID

        Returns:
            Number of notifications updated
        """
        with self._reading():
            ids = list(
                self.db.scalars(
                    select(Notification.id).where(
                        and_(
                            Notification.owner_id == owner_id,
                            Notification.is_read == False,  # noqa: E712
                        )
                    )
                ).all()
            )
        if not ids:
            return 0

        stmt = (
            update(Notification)
            .where(
                and_(
                    Notification.id.in_(ids),
                    Notification.owner_id == owner_id,
                    Notification.is_read == False,  # noqa: E712
                )
            )
            .values(is_read=True, read_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        with self._writing():
            count = self.db.execute(stmt).rowcount
            self.db.commit()

        if count:
            EventPublisher.publish_updated(owner_id, ids)
        return count

    def delete_notification(self, notification_id: str, owner_id: str) -> None:
        """
        Delete a notification.

        Args:
            notification_id: Notification ID
            owner_id: Owner ID (for security check)

        Raises:
            NotFoundError: missing, already deleted, or owned by someone else
        """
        stmt = delete(Notification).where(
            and_(
                Notification.id == notification_id,
                Notification.owner_id == owner_id,
            )
        ).execution_options(synchronize_session=False)
        with self._writing():
            count = self.db.execute(stmt).rowcount
            self.db.commit()

        if not count:
            raise NotFoundError(notification_id)
        EventPublisher.publish_deleted(owner_id, [notification_id])

    def delete_all_read(self, owner_id: str) -> int:
        """
        Delete every read notification of an owner.

        Args:
            owner_id: Owner ID

        Returns:
            Number of notifications deleted
        """
        with self._reading():
            ids = list(
                self.db.scalars(
                    select(Notification.id).where(
                        and_(
                            Notification.owner_id == owner_id,
                            Notification.is_read == True,  # noqa: E712
                        )
                    )
                ).all()
            )
        if not ids:
            return 0

        stmt = delete(Notification).where(
            and_(
                Notification.id.in_(ids),
                Notification.owner_id == owner_id,
            )
        ).execution_options(synchronize_session=False)
        with self._writing():
            count = self.db.execute(stmt).rowcount
            self.db.commit()

        if count:
            EventPublisher.publish_deleted(owner_id, ids)
        return count
