import uuid
from datetime import datetime, timezone

from sqlalchemy import String, DateTime, Text, Boolean, Index, CheckConstraint
from sqlalchemy.orm import Mapped, mapped_column

from notification_center.db.base import Base


def utcnow() -> datetime:
    """Naive UTC timestamp, as stored in the notifications table."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def new_id() -> str:
    return str(uuid.uuid4())


class Notification(Base):
    """Notification row owned by exactly one user."""

    __tablename__ = "notifications"
    __table_args__ = (
        Index("ix_notifications_owner_unread", "owner_id", "is_read"),
        CheckConstraint(
            "category IN ('booking', 'payment', 'property', 'system', 'message')",
            name="ck_notifications_category",
        ),
        CheckConstraint(
            "priority IN ('low', 'normal', 'high', 'urgent')",
            name="ck_notifications_priority",
        ),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    owner_id: Mapped[str] = mapped_column(String(64), index=True, nullable=False)

    # Notification details
    category: Mapped[str] = mapped_column(String(16), nullable=False)  # booking, payment, property, system, message
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    body: Mapped[str] = mapped_column(Text, nullable=False)
    priority: Mapped[str] = mapped_column(String(16), nullable=False, default="normal")
    action_url: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Weak pointer to the domain object that caused the notice
    related_type: Mapped[str | None] = mapped_column(String(32), nullable=True)
    related_id: Mapped[str | None] = mapped_column(String(64), nullable=True)

    # Status
    is_read: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow, index=True)
    read_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
