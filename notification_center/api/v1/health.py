import logging

from fastapi import APIRouter, Depends, HTTPException
from redis.exceptions import RedisError
from sqlalchemy import text
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from notification_center.core.message_broker import message_broker
from notification_center.db.session import get_db

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/health")
def health(db: Session = Depends(get_db)):
    """
    Liveness of the durable store and the change feed.

    The store is required (503 without it). Without the change feed clients
    still converge by polling, so it only degrades the status.
    """
    try:
        db.execute(text("SELECT 1"))
    except OperationalError as exc:
        raise HTTPException(status_code=503, detail="Notification store unavailable") from exc

    try:
        message_broker.redis_client.ping()
        change_feed = "ok"
    except RedisError as exc:
        logger.warning("Change feed unavailable: %s", exc)
        change_feed = "unavailable"

    return {
        "status": "ok" if change_feed == "ok" else "degraded",
        "database": "ok",
        "change_feed": change_feed,
    }
