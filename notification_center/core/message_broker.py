"""
Message Broker for the notification change feed
Using Redis Pub/Sub, one channel per owner
"""
import json
import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator

import redis
import redis.asyncio as aioredis

from notification_center.core.config import settings

logger = logging.getLogger(__name__)

CHANNEL_PREFIX = "notifications"


def owner_channel(owner_id: str) -> str:
    """Channel carrying change events for a single owner."""
    return f"{CHANNEL_PREFIX}:{owner_id}"


class MessageBroker:
    """Redis-based publisher used by the durable store side."""

    def __init__(self, redis_url: str = settings.redis_url):
        self.redis_client = redis.Redis.from_url(redis_url, decode_responses=True)

    def publish(self, channel: str, message: dict[str, Any]) -> None:
        """
        Publish a message to a channel.

        Args:
            channel: Channel name (e.g., 'notifications:<owner_id>')
            message: Message data as dictionary
        """
        self.redis_client.publish(channel, json.dumps(message))

    def close(self):
        """Close the connection."""
        self.redis_client.close()


class ChangeFeed:
    """Async Redis subscriber used by the client to follow one owner's channel."""

    def __init__(self, redis_url: str = settings.redis_url):
        self.redis_url = redis_url

    @asynccontextmanager
    async def subscribe(self, owner_id: str) -> AsyncIterator[AsyncIterator[dict[str, Any]]]:
        """
        Subscribe to the owner's channel for the lifetime of the context.

        Yields an async iterator of decoded events. Connection failures surface
        as ``redis.exceptions.ConnectionError`` from either the subscribe call or
        the iterator; the subscription is released on exit either way.
        """
        client = aioredis.from_url(self.redis_url, decode_responses=True)
        pubsub = client.pubsub()
        try:
            await pubsub.subscribe(owner_channel(owner_id))
            yield self._listen(pubsub)
        finally:
            await pubsub.aclose()
            await client.aclose()

    @staticmethod
    async def _listen(pubsub) -> AsyncIterator[dict[str, Any]]:
        async for message in pubsub.listen():
            if message["type"] != "message":
                continue
            try:
                yield json.loads(message["data"])
            except ValueError:
                # arrival alone is the signal
                logger.debug("Undecodable change event on %s", message.get("channel"))
                yield {}


# Global instance
message_broker = MessageBroker()
