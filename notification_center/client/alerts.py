"""
Audible and native alerts for newly arrived notifications.

The host environment (audio device, OS notification centre, permission
prompt) is reached only through an injected ``AlertCapabilities`` so the
dispatcher runs the same headless, in tests, or inside a desktop shell.
"""
import logging
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from notification_center.core.config import settings
from notification_center.core.errors import PermissionDenied
from notification_center.client.unread_counter import CountUpdate

logger = logging.getLogger(__name__)


class NotificationPermission(str, Enum):
    DEFAULT = "default"
    GRANTED = "granted"
    DENIED = "denied"
    UNSUPPORTED = "unsupported"


class AlertCapabilities(ABC):
    """What the host offers for alerting the user."""

    @abstractmethod
    def permission(self) -> NotificationPermission:
        """Current native notification permission, as the OS reports it now."""

    @abstractmethod
    async def request_permission(self) -> NotificationPermission:
        """Prompt the user. Only ever called from an explicit user action."""

    @abstractmethod
    def play_sound(self, volume: float) -> None:
        """Play the notification cue; may raise if audio is not allowed yet."""

    @abstractmethod
    def show_notification(self, title: str, body: str, tag: str) -> None:
        """Raise one native notification."""


class HeadlessCapabilities(AlertCapabilities):
    """No audio, no notification centre. The default outside a desktop shell."""

    def permission(self) -> NotificationPermission:
        return NotificationPermission.UNSUPPORTED

    async def request_permission(self) -> NotificationPermission:
        return NotificationPermission.UNSUPPORTED

    def play_sound(self, volume: float) -> None:
        pass

    def show_notification(self, title: str, body: str, tag: str) -> None:
        pass


class AlertDispatcher:
    """Fires at most one alert per unread-count refresh that went up."""

    def __init__(
        self,
        capabilities: Optional[AlertCapabilities] = None,
        tag: str = "notifications",
        sound_enabled: bool = settings.sound_enabled,
        volume: float = settings.sound_volume,
    ):
        self.capabilities = capabilities or HeadlessCapabilities()
        self.tag = tag
        self.sound_enabled = sound_enabled
        self.volume = volume
        self.alerts_fired = 0
        self.permission_denied_at: Optional[datetime] = None

    def handle(self, update: CountUpdate) -> bool:
        """
        React to a count refresh. Returns True when it was judged a
        "new notification" event.
        """
        if not update.increased:
            return False

        self._play_sound()
        if self.capabilities.permission() is NotificationPermission.GRANTED:
            self._show_native(update.current - update.previous, update.current)
        return True

    def _play_sound(self) -> None:
        if not self.sound_enabled:
            return
        try:
            self.capabilities.play_sound(self.volume)
        except Exception as exc:
            # typically no user gesture has unlocked audio yet
            logger.debug("Notification sound not played: %s", exc)

    def _show_native(self, new_items: int, unread: int) -> None:
        if new_items == 1:
            title = "New notification"
        else:
            title = f"{new_items} new notifications"
        body = f"You have {unread} unread notification{'s' if unread != 1 else ''}"
        try:
            self.capabilities.show_notification(title, body, self.tag)
        except Exception as exc:
            logger.warning("Native notification not shown: %s", exc)
            return
        self.alerts_fired += 1

    async def request_permission(self) -> bool:
        """
        Ask for native notification permission. Call only from a user action.

        Returns:
            True when granted, False when unsupported or the prompt was dismissed

        Raises:
            PermissionDenied: the user or the OS refused
        """
        current = self.capabilities.permission()
        if current is NotificationPermission.GRANTED:
            return True
        if current is NotificationPermission.UNSUPPORTED:
            logger.warning("Native notifications are not supported here")
            return False
        if current is NotificationPermission.DENIED:
            raise self._denied()

        result = await self.capabilities.request_permission()
        if result is NotificationPermission.GRANTED:
            return True
        if result is NotificationPermission.DENIED:
            raise self._denied()
        return False

    def _denied(self) -> PermissionDenied:
        self.permission_denied_at = datetime.now(timezone.utc)
        logger.info("Native notification permission denied")
        return PermissionDenied("Notification permission was denied")
