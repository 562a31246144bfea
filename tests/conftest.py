import asyncio
from contextlib import asynccontextmanager
from datetime import datetime, timedelta
from unittest.mock import Mock, patch

import pytest

from notification_center.client.alerts import AlertCapabilities, NotificationPermission
from notification_center.client.gateway import ServiceGateway
from notification_center.db.base import Base
from notification_center.db.session import make_engine, make_session_factory
from notification_center.models import Notification


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture()
def engine(tmp_path):
    """File-backed SQLite so worker threads and the test share one database."""
    engine = make_engine(f"sqlite:///{tmp_path / 'notifications.db'}")
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture()
def session_factory(engine):
    return make_session_factory(engine)


@pytest.fixture()
def db_session(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def mock_broker():
    """Replace the redis publisher so no Redis connection is needed."""
    with patch("notification_center.services.event_publisher.message_broker") as broker:
        broker.publish = Mock()
        yield broker


@pytest.fixture
def add_notification(db_session):
    """Insert a row directly, the way an external collaborator would."""
    base_time = datetime(2025, 1, 20, 12, 0, 0)
    counter = {"n": 0}

    def _add(owner_id="owner-1", category="booking", is_read=False, created_at=None, **kwargs):
        counter["n"] += 1
        notification = Notification(
            owner_id=owner_id,
            category=category,
            title=kwargs.pop("title", f"Notification {counter['n']}"),
            body=kwargs.pop("body", f"Message {counter['n']}"),
            priority=kwargs.pop("priority", "normal"),
            is_read=is_read,
            read_at=base_time if is_read else None,
            created_at=created_at or base_time + timedelta(minutes=counter["n"]),
            **kwargs,
        )
        db_session.add(notification)
        db_session.commit()
        db_session.refresh(notification)
        return notification

    return _add


@pytest.fixture
def gateway(session_factory):
    return ServiceGateway(session_factory)


async def _eventually(predicate, timeout=2.0, interval=0.01):
    """Poll ``predicate`` until it is truthy or ``timeout`` elapses."""
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while True:
        result = predicate()
        if result:
            return result
        if loop.time() > deadline:
            raise AssertionError("condition not met in time")
        await asyncio.sleep(interval)


@pytest.fixture
def eventually():
    return _eventually


class FakeChangeFeed:
    """
    In-memory stand-in for the redis change feed.

    ``publish`` is safe to call from worker threads, which is where
    ``ServiceGateway`` runs the store.
    """

    def __init__(self):
        self.subscribers = {}
        self.subscribe_calls = 0
        self.available = True

    @property
    def active(self) -> int:
        return sum(len(queues) for queues in self.subscribers.values())

    @asynccontextmanager
    async def subscribe(self, owner_id):
        self.subscribe_calls += 1
        if not self.available:
            raise ConnectionError("change feed unavailable")
        queue = asyncio.Queue()
        entry = (asyncio.get_running_loop(), queue)
        self.subscribers.setdefault(owner_id, []).append(entry)
        try:
            yield self._events(queue)
        finally:
            self.subscribers[owner_id].remove(entry)

    @staticmethod
    async def _events(queue):
        while True:
            item = await queue.get()
            if isinstance(item, Exception):
                raise item
            yield item

    def publish(self, channel, message):
        owner_id = channel.split(":", 1)[1]
        for loop, queue in list(self.subscribers.get(owner_id, [])):
            loop.call_soon_threadsafe(queue.put_nowait, message)

    def emit(self, owner_id, message):
        self.publish(f"notifications:{owner_id}", message)

    def drop(self):
        """Break every live subscription as if the server went away."""
        for entries in self.subscribers.values():
            for loop, queue in list(entries):
                loop.call_soon_threadsafe(queue.put_nowait, ConnectionError("connection lost"))


@pytest.fixture
def feed():
    return FakeChangeFeed()


@pytest.fixture
def wired_broker(feed):
    """Route store change events into the fake feed, like redis would."""
    with patch("notification_center.services.event_publisher.message_broker") as broker:
        broker.publish = Mock(side_effect=feed.publish)
        yield broker


class FakeCapabilities(AlertCapabilities):
    """Records sounds and native alerts instead of touching the host."""

    def __init__(self, permission=NotificationPermission.GRANTED, prompt_result=None, sound_error=None):
        self._permission = permission
        self.prompt_result = prompt_result
        self.sound_error = sound_error
        self.prompts = 0
        self.sounds = []
        self.shown = []

    def permission(self):
        return self._permission

    async def request_permission(self):
        self.prompts += 1
        self._permission = self.prompt_result
        return self.prompt_result

    def play_sound(self, volume):
        if self.sound_error is not None:
            raise self.sound_error
        self.sounds.append(volume)

    def show_notification(self, title, body, tag):
        self.shown.append((title, body, tag))


@pytest.fixture
def fake_capabilities():
    return FakeCapabilities
