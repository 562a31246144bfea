"""
Error taxonomy shared by the durable store and the client subsystem.
"""


class NotificationError(Exception):
    """Base class for notification subsystem errors."""


class FetchError(NotificationError):
    """The durable store could not be reached. Transient; retry by re-invalidation."""


class WriteConflict(NotificationError):
    """The durable store rejected a write. Local state is left untouched."""


class NotFoundError(NotificationError):
    """The targeted record does not exist or is not owned by the caller."""

    def __init__(self, notification_id: str):
        super().__init__(f"Notification {notification_id} not found")
        self.notification_id = notification_id


class PermissionDenied(NotificationError):
    """Native notification permission was refused."""
