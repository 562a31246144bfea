"""
Tests for Notification Service
"""
import pytest
from datetime import datetime
from unittest.mock import patch

from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm import Session

from notification_center.core.errors import FetchError, NotFoundError, WriteConflict
from notification_center.models.notification import Notification
from notification_center.schemas.notifications import NotificationFilter, RelatedEntity
from notification_center.services.notification_service import NotificationService


@pytest.fixture
def notification_service(db_session: Session, mock_broker) -> NotificationService:
    return NotificationService(db_session)


class TestCreateNotification:
    """Tests for create_notification method."""

    def test_create_notification_success(self, notification_service: NotificationService, mock_broker):
        """Test successfully creating a notification."""
        notification = notification_service.create_notification(
            owner_id="owner-1",
            category="payment",
            title="Payment Confirmed",
            body="Your payment of TZS 120,000 was successful",
            priority="high",
            related_entity=RelatedEntity(type="payment", id="pay-42"),
            action_url="/bookings/7",
        )

        assert notification.id is not None
        assert notification.owner_id == "owner-1"
        assert notification.category == "payment"
        assert notification.priority == "high"
        assert notification.is_read is False
        assert notification.read_at is None
        assert notification.created_at is not None
        assert notification.related_type == "payment"
        assert notification.related_id == "pay-42"

        mock_broker.publish.assert_called_once()
        channel, message = mock_broker.publish.call_args.args
        assert channel == "notifications:owner-1"
        assert message["operation"] == "insert"
        assert message["ids"] == [notification.id]

    def test_create_notification_persisted(self, notification_service: NotificationService):
        """Test that created notification is persisted to database."""
        notification = notification_service.create_notification(
            owner_id="owner-1",
            category="system",
            title="Welcome",
            body="Start exploring properties",
        )

        retrieved = notification_service.db.get(Notification, notification.id)

        assert retrieved is not None
        assert retrieved.title == "Welcome"
        assert retrieved.priority == "normal"

    def test_create_notification_rejects_unknown_category(self, notification_service: NotificationService):
        with pytest.raises(ValueError):
            notification_service.create_notification(
                owner_id="owner-1", category="marketing", title="x", body="y"
            )


class TestGetUserNotifications:
    """Tests for get_user_notifications method."""

    def test_get_notifications_empty(self, notification_service: NotificationService):
        assert notification_service.get_user_notifications("owner-1") == []

    def test_get_notifications_ordered_newest_first(self, notification_service, add_notification):
        """Given t1 < t2 < t3 the list comes back t3, t2, t1."""
        first = add_notification(created_at=datetime(2025, 1, 1, 9, 0))
        second = add_notification(created_at=datetime(2025, 1, 1, 10, 0))
        third = add_notification(created_at=datetime(2025, 1, 1, 11, 0))

        notifications = notification_service.get_user_notifications("owner-1")

        assert [n.id for n in notifications] == [third.id, second.id, first.id]

    def test_get_notifications_unread_only(self, notification_service, add_notification):
        for i in range(5):
            add_notification(is_read=(i < 2))

        notifications = notification_service.get_user_notifications(
            "owner-1", NotificationFilter.UNREAD
        )

        assert len(notifications) == 3
        assert all(n.is_read is False for n in notifications)

    def test_get_notifications_single_category(self, notification_service, add_notification):
        add_notification(category="booking")
        add_notification(category="payment")
        add_notification(category="payment", is_read=True)

        notifications = notification_service.get_user_notifications(
            "owner-1", NotificationFilter.PAYMENT
        )

        assert len(notifications) == 2
        assert {n.category for n in notifications} == {"payment"}

    def test_get_notifications_limit(self, notification_service, add_notification):
        for _ in range(5):
            add_notification()

        assert len(notification_service.get_user_notifications("owner-1", limit=2)) == 2

    def test_get_notifications_scoped_to_owner(self, notification_service, add_notification):
        add_notification(owner_id="owner-1")
        add_notification(owner_id="owner-2")

        notifications = notification_service.get_user_notifications("owner-2")

        assert len(notifications) == 1
        assert notifications[0].owner_id == "owner-2"

    def test_get_notifications_store_unavailable(self, notification_service):
        with patch.object(
            notification_service.db, "scalars", side_effect=OperationalError("SELECT", {}, Exception("down"))
        ):
            with pytest.raises(FetchError):
                notification_service.get_user_notifications("owner-1")


class TestMarkAsRead:
    """Tests for mark_as_read method."""

    def test_mark_notification_as_read(self, notification_service, add_notification, mock_broker):
        notification = add_notification()

        updated = notification_service.mark_as_read(notification.id, "owner-1")

        assert updated.is_read is True
        assert updated.read_at is not None
        mock_broker.publish.assert_called_once()
        assert mock_broker.publish.call_args.args[1]["operation"] == "update"

    def test_mark_as_read_twice_keeps_first_read_at(self, notification_service, add_notification, mock_broker):
        notification = add_notification()

        first = notification_service.mark_as_read(notification.id, "owner-1")
        read_at = first.read_at
        second = notification_service.mark_as_read(notification.id, "owner-1")

        assert second.is_read is True
        assert second.read_at == read_at
        # only the real transition produces a change event
        assert mock_broker.publish.call_count == 1

    def test_mark_as_read_wrong_owner(self, notification_service, add_notification):
        notification = add_notification()

        with pytest.raises(NotFoundError):
            notification_service.mark_as_read(notification.id, "owner-999")

        assert notification_service.db.get(Notification, notification.id).is_read is False

    def test_mark_as_read_nonexistent(self, notification_service):
        with pytest.raises(NotFoundError):
            notification_service.mark_as_read("missing-id", "owner-1")

    def test_mark_as_read_rejected_by_store(self, notification_service, add_notification):
        notification = add_notification()

        with patch.object(
            notification_service.db, "commit", side_effect=IntegrityError("UPDATE", {}, Exception("rejected"))
        ):
            with pytest.raises(WriteConflict):
                notification_service.mark_as_read(notification.id, "owner-1")


class TestMarkAllAsRead:
    """Tests for mark_all_as_read method."""

    def test_mark_all_as_read(self, notification_service, add_notification):
        for _ in range(3):
            add_notification()

        count = notification_service.mark_all_as_read("owner-1")

        assert count == 3
        for notification in notification_service.get_user_notifications("owner-1"):
            assert notification.is_read is True
            assert notification.read_at is not None

    def test_mark_all_as_read_is_idempotent(self, notification_service, add_notification):
        for _ in range(3):
            add_notification()

        assert notification_service.mark_all_as_read("owner-1") == 3
        assert notification_service.mark_all_as_read("owner-1") == 0
        assert notification_service.get_unread_count("owner-1") == 0

    def test_mark_all_as_read_only_unread(self, notification_service, add_notification, mock_broker):
        read = add_notification(is_read=True)
        for _ in range(3):
            add_notification()

        count = notification_service.mark_all_as_read("owner-1")

        assert count == 3
        assert notification_service.db.get(Notification, read.id).read_at == datetime(2025, 1, 20, 12, 0, 0)
        # one logical operation, one change event
        mock_broker.publish.assert_called_once()
        assert len(mock_broker.publish.call_args.args[1]["ids"]) == 3

    def test_mark_all_as_read_leaves_other_owners(self, notification_service, add_notification):
        add_notification(owner_id="owner-1")
        other = add_notification(owner_id="owner-2")

        notification_service.mark_all_as_read("owner-1")

        assert notification_service.db.get(Notification, other.id).is_read is False

    def test_mark_all_as_read_only_rows_visible_at_sweep_start(self, notification_service, add_notification):
        """A row inserted after the sweep snapshot stays unread."""
        add_notification()
        service = notification_service
        original_scalars = service.db.scalars

        def scalars_then_insert(*args, **kwargs):
            result = original_scalars(*args, **kwargs).all()
            add_notification(title="Arrived mid-sweep")
            return _Result(result)

        with patch.object(service.db, "scalars", side_effect=scalars_then_insert):
            count = service.mark_all_as_read("owner-1")

        assert count == 1
        assert service.get_unread_count("owner-1") == 1

    def test_mark_all_as_read_no_unread(self, notification_service):
        assert notification_service.mark_all_as_read("owner-1") == 0


class _Result:
    def __init__(self, rows):
        self.rows = rows

    def all(self):
        return self.rows


class TestDeleteNotification:
    """Tests for delete_notification and delete_all_read."""

    def test_delete_notification_success(self, notification_service, add_notification, mock_broker):
        notification = add_notification()

        notification_service.delete_notification(notification.id, "owner-1")

        assert notification_service.db.get(Notification, notification.id) is None
        assert mock_broker.publish.call_args.args[1]["operation"] == "delete"

    def test_delete_notification_twice(self, notification_service, add_notification):
        notification = add_notification()
        add_notification()
        notification_service.delete_notification(notification.id, "owner-1")

        with pytest.raises(NotFoundError):
            notification_service.delete_notification(notification.id, "owner-1")

        assert notification_service.get_unread_count("owner-1") == 1

    def test_delete_notification_wrong_owner(self, notification_service, add_notification):
        notification = add_notification()

        with pytest.raises(NotFoundError):
            notification_service.delete_notification(notification.id, "owner-999")

        assert notification_service.db.get(Notification, notification.id) is not None

    def test_delete_all_read(self, notification_service, add_notification):
        add_notification(is_read=True)
        add_notification(is_read=True)
        unread = add_notification()

        assert notification_service.delete_all_read("owner-1") == 2
        assert [n.id for n in notification_service.get_user_notifications("owner-1")] == [unread.id]

    def test_delete_all_read_nothing_to_delete(self, notification_service, add_notification, mock_broker):
        add_notification()

        assert notification_service.delete_all_read("owner-1") == 0
        mock_broker.publish.assert_not_called()


class TestGetUnreadCount:
    """Tests for get_unread_count method."""

    def test_get_unread_count_zero(self, notification_service):
        assert notification_service.get_unread_count("owner-1") == 0

    def test_get_unread_count_with_unread(self, notification_service, add_notification):
        for i in range(5):
            add_notification(is_read=(i < 2))
        add_notification(owner_id="owner-2")

        assert notification_service.get_unread_count("owner-1") == 3

    def test_get_unread_count_not_capped_by_list_limit(self, notification_service, add_notification):
        for _ in range(60):
            add_notification()

        assert len(notification_service.get_user_notifications("owner-1")) == 50
        assert notification_service.get_unread_count("owner-1") == 60
