from datetime import datetime

from sqlalchemy import String, DateTime, Boolean
from sqlalchemy.orm import Mapped, mapped_column

from notification_center.db.base import Base
from notification_center.models.notification import utcnow


class NotificationPreferences(Base):
    """Per-owner notification settings; one row per owner, created on first save."""

    __tablename__ = "notification_preferences"

    owner_id: Mapped[str] = mapped_column(String(64), primary_key=True)

    # In-app categories the owner wants to see
    inapp_booking: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    inapp_payment: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    inapp_property: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    inapp_message: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    inapp_system: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    sound_enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)
