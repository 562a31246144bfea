from .alerts import AlertCapabilities, AlertDispatcher, HeadlessCapabilities, NotificationPermission
from .center import CenterEvent, NotificationCenter
from .gateway import HttpGateway, NotificationGateway, ServiceGateway
from .grouping import group_by_date
from .read_state import ReadStateTracker
from .realtime import RealtimeSubscriber, SubscriptionState
from .store import NotificationStore, Snapshot, StoreEvent
from .unread_counter import CountReason, CountUpdate, UnreadCounter

__all__ = [
    "AlertCapabilities",
    "AlertDispatcher",
    "HeadlessCapabilities",
    "NotificationPermission",
    "CenterEvent",
    "NotificationCenter",
    "HttpGateway",
    "NotificationGateway",
    "ServiceGateway",
    "group_by_date",
    "ReadStateTracker",
    "RealtimeSubscriber",
    "SubscriptionState",
    "NotificationStore",
    "Snapshot",
    "StoreEvent",
    "CountReason",
    "CountUpdate",
    "UnreadCounter",
]
