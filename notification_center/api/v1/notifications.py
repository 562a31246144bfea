"""
Notification API Endpoints
"""
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from notification_center.core.errors import FetchError, NotFoundError, WriteConflict
from notification_center.db.session import get_db
from notification_center.services.notification_service import NotificationService
from notification_center.services.preference_service import PreferenceService
from notification_center.schemas.notifications import (
    BulkResult,
    Notification,
    NotificationCreate,
    NotificationFilter,
    NotificationPreferences,
    NotificationPreferencesUpdate,
    UnreadCountResponse,
)

router = APIRouter()

NOT_FOUND_DETAIL = "Notification not found or you don't have permission"


def _raise_http(exc: Exception):
    if isinstance(exc, NotFoundError):
        raise HTTPException(status_code=404, detail=NOT_FOUND_DETAIL) from exc
    if isinstance(exc, WriteConflict):
        raise HTTPException(status_code=409, detail="Write rejected by the store") from exc
    if isinstance(exc, FetchError):
        raise HTTPException(status_code=503, detail="Notification store unavailable") from exc
    raise exc


@router.get("/", response_model=list[Notification])
def get_notifications(
    owner_id: str = Query(..., description="Owner to list notifications for"),
    notification_filter: NotificationFilter = Query(
        NotificationFilter.ALL, alias="filter", description="all, unread or a category"
    ),
    limit: int = Query(50, ge=1, le=100, description="Maximum number of records"),
    db: Session = Depends(get_db),
):
    """
    Get the newest notifications for an owner.

    - **owner_id**: Owner ID
    - **filter**: all, unread, or one of booking/payment/property/system/message
    - **limit**: Maximum results
    """
    service = NotificationService(db)
    try:
        rows = service.get_user_notifications(owner_id, notification_filter, limit=limit)
    except FetchError as exc:
        _raise_http(exc)
    return [Notification.from_row(row) for row in rows]


@router.get("/unread-count", response_model=UnreadCountResponse)
def get_unread_count(
    owner_id: str = Query(..., description="Owner ID"),
    db: Session = Depends(get_db),
):
    """
    Get count of unread notifications for an owner.

    - **owner_id**: Owner ID
    """
    service = NotificationService(db)
    try:
        count = service.get_unread_count(owner_id)
    except FetchError as exc:
        _raise_http(exc)
    return UnreadCountResponse(owner_id=owner_id, unread_count=count)


@router.get("/preferences", response_model=NotificationPreferences)
def get_preferences(
    owner_id: str = Query(..., description="Owner ID"),
    db: Session = Depends(get_db),
):
    """
    Get an owner's notification preferences; defaults when none are stored.
    """
    try:
        return PreferenceService(db).get_preferences(owner_id)
    except FetchError as exc:
        _raise_http(exc)


@router.put("/preferences", response_model=NotificationPreferences)
def update_preferences(
    changes: NotificationPreferencesUpdate,
    owner_id: str = Query(..., description="Owner ID"),
    db: Session = Depends(get_db),
):
    """
    Update an owner's notification preferences. Omitted fields are kept.
    """
    try:
        return PreferenceService(db).update_preferences(owner_id, changes)
    except (FetchError, WriteConflict) as exc:
        _raise_http(exc)


@router.post("/", response_model=Notification, status_code=201)
def create_notification(
    notification: NotificationCreate,
    db: Session = Depends(get_db),
):
    """
    Insert a notification on behalf of an external collaborator
    (booking, payment or property workflows).
    """
    service = NotificationService(db)
    try:
        created = service.create_notification(
            owner_id=notification.owner_id,
            category=notification.category,
            title=notification.title,
            body=notification.body,
            priority=notification.priority,
            related_entity=notification.related_entity,
            action_url=notification.action_url,
        )
    except (FetchError, WriteConflict) as exc:
        _raise_http(exc)
    return Notification.from_row(created)


@router.patch("/{notification_id}/read", response_model=Notification)
def mark_as_read(
    notification_id: str,
    owner_id: str = Query(..., description="Owner ID for security verification"),
    db: Session = Depends(get_db),
):
    """
    Mark a notification as read.

    - **notification_id**: ID of the notification
    - **owner_id**: Owner ID (must match notification owner)
    """
    service = NotificationService(db)
    try:
        notification = service.mark_as_read(notification_id, owner_id)
    except (FetchError, NotFoundError, WriteConflict) as exc:
        _raise_http(exc)
    return Notification.from_row(notification)


@router.post("/mark-all-read", response_model=BulkResult)
def mark_all_as_read(
    owner_id: str = Query(..., description="Owner ID"),
    db: Session = Depends(get_db),
):
    """
    Mark all currently unread notifications as read for an owner.
    """
    service = NotificationService(db)
    try:
        count = service.mark_all_as_read(owner_id)
    except (FetchError, WriteConflict) as exc:
        _raise_http(exc)
    return BulkResult(owner_id=owner_id, affected=count)


@router.delete("/read", response_model=BulkResult)
def delete_all_read(
    owner_id: str = Query(..., description="Owner ID"),
    db: Session = Depends(get_db),
):
    """
    Delete every read notification of an owner.
    """
    service = NotificationService(db)
    try:
        count = service.delete_all_read(owner_id)
    except (FetchError, WriteConflict) as exc:
        _raise_http(exc)
    return BulkResult(owner_id=owner_id, affected=count)


@router.delete("/{notification_id}")
def delete_notification(
    notification_id: str,
    owner_id: str = Query(..., description="Owner ID for security verification"),
    db: Session = Depends(get_db),
):
    """
    Delete a notification.

    - **notification_id**: ID of the notification
    - **owner_id**: Owner ID (must match notification owner)
    """
    service = NotificationService(db)
    try:
        service.delete_notification(notification_id, owner_id)
    except (FetchError, NotFoundError, WriteConflict) as exc:
        _raise_http(exc)
    return {"message": "Notification deleted successfully"}
