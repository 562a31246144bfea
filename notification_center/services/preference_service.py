"""
Preference Service
Per-owner notification settings. An owner without a stored row gets the
defaults; the row is created on the first update.
"""
import logging

from notification_center.models.preferences import NotificationPreferences as PreferencesRow
from notification_center.schemas.notifications import (
    NotificationPreferences,
    NotificationPreferencesUpdate,
)
from notification_center.services.base import StoreService

logger = logging.getLogger(__name__)


class PreferenceService(StoreService):
    """Reads and upserts the preferences row of one owner."""

    def get_preferences(self, owner_id: str) -> NotificationPreferences:
        with self._reading():
            row = self.db.get(PreferencesRow, owner_id)
        if row is None:
            return NotificationPreferences(owner_id=owner_id)
        return NotificationPreferences.model_validate(row)

    def update_preferences(
        self, owner_id: str, changes: NotificationPreferencesUpdate
    ) -> NotificationPreferences:
        """
        Apply a partial update, creating the row with defaults if needed.

        Args:
            owner_id: Owner ID
            changes: Fields to change; unset fields are left alone

        Returns:
            The stored preferences after the write
        """
        values = changes.model_dump(exclude_none=True)

        with self._writing():
            row = self.db.get(PreferencesRow, owner_id)
            if row is None:
                defaults = NotificationPreferences(owner_id=owner_id).model_dump()
                row = PreferencesRow(**defaults)
                self.db.add(row)
            for field, value in values.items():
                setattr(row, field, value)
            self.db.commit()
        self.db.refresh(row)

        logger.info("Updated notification preferences for %s: %s", owner_id, sorted(values))
        return NotificationPreferences.model_validate(row)
