from datetime import datetime, timedelta, timezone
from typing import Dict, Iterable, List, Optional

from notification_center.schemas.notifications import Notification

GROUPS = ("today", "yesterday", "this_week", "older")


def group_by_date(
    notifications: Iterable[Notification], now: Optional[datetime] = None
) -> Dict[str, List[Notification]]:
    """
    Bucket notifications into today / yesterday / this_week / older.

    Weeks start on Monday. Timestamps are compared as naive UTC, which is how
    the store hands them out; order inside each bucket is preserved.
    """
    if now is None:
        now = datetime.now(timezone.utc)
    if now.tzinfo is not None:
        now = now.astimezone(timezone.utc).replace(tzinfo=None)

    today = now.date()
    yesterday = today - timedelta(days=1)
    week_start = today - timedelta(days=today.weekday())

    grouped: Dict[str, List[Notification]] = {name: [] for name in GROUPS}
    for notification in notifications:
        created = notification.created_at
        if created.tzinfo is not None:
            created = created.astimezone(timezone.utc).replace(tzinfo=None)
        day = created.date()
        if day == today:
            grouped["today"].append(notification)
        elif day == yesterday:
            grouped["yesterday"].append(notification)
        elif week_start <= day < today:
            grouped["this_week"].append(notification)
        else:
            grouped["older"].append(notification)
    return grouped
