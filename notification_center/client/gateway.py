"""
Gateways from the client subsystem to the durable store.

The client never talks to SQL or HTTP directly; it goes through a
``NotificationGateway`` so the same cache, tracker and counter run in-process
(``ServiceGateway``) or against the HTTP surface (``HttpGateway``).
"""
import asyncio
from abc import ABC, abstractmethod
from typing import List, Optional

import httpx

from notification_center.core.config import settings
from notification_center.core.errors import FetchError, NotFoundError, WriteConflict
from notification_center.schemas.notifications import (
    Notification,
    NotificationFilter,
    NotificationPreferences,
    NotificationPreferencesUpdate,
)
from notification_center.services.notification_service import NotificationService
from notification_center.services.preference_service import PreferenceService


class NotificationGateway(ABC):
    """Async contract the client expects from the durable store."""

    @abstractmethod
    async def fetch(
        self, owner_id: str, notification_filter: NotificationFilter, limit: int
    ) -> List[Notification]:
        """Newest-first rows for the filter, at most ``limit``."""

    @abstractmethod
    async def count_unread(self, owner_id: str) -> int:
        """Store-side aggregate of unread rows."""

    @abstractmethod
    async def mark_read(self, owner_id: str, notification_id: str) -> Notification:
        ...

    @abstractmethod
    async def mark_all_read(self, owner_id: str) -> int:
        ...

    @abstractmethod
    async def delete(self, owner_id: str, notification_id: str) -> None:
        ...

    @abstractmethod
    async def delete_all_read(self, owner_id: str) -> int:
        ...

    @abstractmethod
    async def get_preferences(self, owner_id: str) -> NotificationPreferences:
        """Stored preferences, or the defaults when the owner has none."""

    @abstractmethod
    async def update_preferences(
        self, owner_id: str, changes: NotificationPreferencesUpdate
    ) -> NotificationPreferences:
        ...

    async def aclose(self) -> None:
        pass


class ServiceGateway(NotificationGateway):
    """
    Calls the store services in-process. Each call gets its own session
    and runs on a worker thread so blocking driver I/O never stalls the loop.
    """

    def __init__(self, session_factory=None):
        if session_factory is None:
            from notification_center.db.session import SessionLocal
            session_factory = SessionLocal
        self.session_factory = session_factory

    def _run(self, service_class, operation, *args):
        db = self.session_factory()
        try:
            return operation(service_class(db), *args)
        finally:
            db.close()

    async def _call(self, operation, *args, service_class=NotificationService):
        return await asyncio.to_thread(self._run, service_class, operation, *args)

    async def fetch(self, owner_id, notification_filter, limit):
        def operation(service, *args):
            return [Notification.from_row(row) for row in service.get_user_notifications(*args)]
        return await self._call(operation, owner_id, notification_filter, limit)

    async def count_unread(self, owner_id):
        return await self._call(NotificationService.get_unread_count, owner_id)

    async def mark_read(self, owner_id, notification_id):
        def operation(service, *args):
            return Notification.from_row(service.mark_as_read(*args))
        return await self._call(operation, notification_id, owner_id)

    async def mark_all_read(self, owner_id):
        return await self._call(NotificationService.mark_all_as_read, owner_id)

    async def delete(self, owner_id, notification_id):
        await self._call(NotificationService.delete_notification, notification_id, owner_id)

    async def delete_all_read(self, owner_id):
        return await self._call(NotificationService.delete_all_read, owner_id)

    async def get_preferences(self, owner_id):
        return await self._call(PreferenceService.get_preferences, owner_id, service_class=PreferenceService)

    async def update_preferences(self, owner_id, changes):
        return await self._call(
            PreferenceService.update_preferences, owner_id, changes, service_class=PreferenceService
        )


class HttpGateway(NotificationGateway):
    """Talks to the ``/v1/notifications`` HTTP surface with httpx."""

    def __init__(self, base_url: str = settings.api_base_url, client: Optional[httpx.AsyncClient] = None):
        self.client = client or httpx.AsyncClient(base_url=base_url)

    async def _request(
        self, method: str, path: str, notification_id: Optional[str] = None, **kwargs
    ) -> httpx.Response:
        try:
            response = await self.client.request(method, f"/v1/notifications{path}", **kwargs)
        except httpx.HTTPError as exc:
            raise FetchError(str(exc)) from exc

        if response.status_code == 404 and notification_id is not None:
            raise NotFoundError(notification_id)
        if response.status_code == 409:
            raise WriteConflict(response.text)
        if response.is_error:
            # any other failure status is retried like an outage
            raise FetchError(f"{method} {path} failed with {response.status_code}")
        return response

    async def fetch(self, owner_id, notification_filter, limit):
        response = await self._request(
            "GET",
            "/",
            params={"owner_id": owner_id, "filter": NotificationFilter(notification_filter).value, "limit": limit},
        )
        return [Notification.model_validate(item) for item in response.json()]

    async def count_unread(self, owner_id):
        response = await self._request("GET", "/unread-count", params={"owner_id": owner_id})
        return int(response.json()["unread_count"])

    async def mark_read(self, owner_id, notification_id):
        response = await self._request(
            "PATCH", f"/{notification_id}/read", notification_id=notification_id, params={"owner_id": owner_id}
        )
        return Notification.model_validate(response.json())

    async def mark_all_read(self, owner_id):
        response = await self._request("POST", "/mark-all-read", params={"owner_id": owner_id})
        return int(response.json()["affected"])

    async def delete(self, owner_id, notification_id):
        await self._request(
            "DELETE", f"/{notification_id}", notification_id=notification_id, params={"owner_id": owner_id}
        )

    async def delete_all_read(self, owner_id):
        response = await self._request("DELETE", "/read", params={"owner_id": owner_id})
        return int(response.json()["affected"])

    async def get_preferences(self, owner_id):
        response = await self._request("GET", "/preferences", params={"owner_id": owner_id})
        return NotificationPreferences.model_validate(response.json())

    async def update_preferences(self, owner_id, changes):
        response = await self._request(
            "PUT",
            "/preferences",
            params={"owner_id": owner_id},
            json=changes.model_dump(exclude_none=True),
        )
        return NotificationPreferences.model_validate(response.json())

    async def aclose(self) -> None:
        await self.client.aclose()
