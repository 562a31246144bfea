from .notifications import (
    NotificationCategory,
    NotificationPriority,
    NotificationFilter,
    ChangeOperation,
    RelatedEntity,
    Notification,
    NotificationCreate,
    UnreadCountResponse,
    BulkResult,
    ChangeEvent,
    NotificationPreferences,
    NotificationPreferencesUpdate,
)

__all__ = [
    "NotificationCategory",
    "NotificationPriority",
    "NotificationFilter",
    "ChangeOperation",
    "RelatedEntity",
    "Notification",
    "NotificationCreate",
    "UnreadCountResponse",
    "BulkResult",
    "ChangeEvent",
    "NotificationPreferences",
    "NotificationPreferencesUpdate",
]
