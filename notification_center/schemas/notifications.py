"""
Notification Schemas shared by the HTTP surface and the client
"""
from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class NotificationCategory(str, Enum):
    BOOKING = "booking"
    PAYMENT = "payment"
    PROPERTY = "property"
    SYSTEM = "system"
    MESSAGE = "message"


class NotificationPriority(str, Enum):
    LOW = "low"
    NORMAL = "normal"
    HIGH = "high"
    URGENT = "urgent"


class NotificationFilter(str, Enum):
    """List filter: everything, unread only, or one category."""
    ALL = "all"
    UNREAD = "unread"
    BOOKING = "booking"
    PAYMENT = "payment"
    PROPERTY = "property"
    SYSTEM = "system"
    MESSAGE = "message"

    @property
    def category(self) -> Optional[NotificationCategory]:
        if self in (NotificationFilter.ALL, NotificationFilter.UNREAD):
            return None
        return NotificationCategory(self.value)

    @property
    def unread_only(self) -> bool:
        return self is NotificationFilter.UNREAD


class ChangeOperation(str, Enum):
    INSERT = "insert"
    UPDATE = "update"
    DELETE = "delete"


class RelatedEntity(BaseModel):
    """Lookup-only pointer to the booking, property or payment behind a notice."""
    model_config = ConfigDict(frozen=True)

    type: str
    id: str


class Notification(BaseModel):
    """Immutable snapshot of one notification as seen by the client."""
    model_config = ConfigDict(frozen=True)

    id: str
    owner_id: str
    category: NotificationCategory
    title: str
    body: str
    priority: NotificationPriority = NotificationPriority.NORMAL
    is_read: bool = False
    read_at: Optional[datetime] = None
    created_at: datetime
    related_entity: Optional[RelatedEntity] = None
    action_url: Optional[str] = None

    @classmethod
    def from_row(cls, row) -> "Notification":
        related = None
        if row.related_type and row.related_id:
            related = RelatedEntity(type=row.related_type, id=row.related_id)
        return cls(
            id=row.id,
            owner_id=row.owner_id,
            category=row.category,
            title=row.title,
            body=row.body,
            priority=row.priority,
            is_read=row.is_read,
            read_at=row.read_at,
            created_at=row.created_at,
            related_entity=related,
            action_url=row.action_url,
        )


class NotificationCreate(BaseModel):
    """Schema for inserting a notification (external collaborators only)."""
    owner_id: str = Field(..., min_length=1, max_length=64)
    category: NotificationCategory
    title: str = Field(..., max_length=255)
    body: str
    priority: NotificationPriority = NotificationPriority.NORMAL
    related_entity: Optional[RelatedEntity] = None
    action_url: Optional[str] = None


class UnreadCountResponse(BaseModel):
    owner_id: str
    unread_count: int


class BulkResult(BaseModel):
    """Number of rows affected by a bulk operation."""
    owner_id: str
    affected: int


class ChangeEvent(BaseModel):
    """
    Change feed message. Only its arrival matters to the client; the payload is
    informational.
    """
    operation: ChangeOperation
    table: str = "notifications"
    owner_id: str
    ids: list[str] = Field(default_factory=list)


class NotificationPreferences(BaseModel):
    """An owner's stored notification settings."""
    model_config = ConfigDict(frozen=True, from_attributes=True)

    owner_id: str
    inapp_booking: bool = True
    inapp_payment: bool = True
    inapp_property: bool = True
    inapp_message: bool = True
    inapp_system: bool = True
    sound_enabled: bool = True


class NotificationPreferencesUpdate(BaseModel):
    """Partial update; omitted fields keep their stored value."""
    model_config = ConfigDict(extra="forbid")

    inapp_booking: Optional[bool] = None
    inapp_payment: Optional[bool] = None
    inapp_property: Optional[bool] = None
    inapp_message: Optional[bool] = None
    inapp_system: Optional[bool] = None
    sound_enabled: Optional[bool] = None
