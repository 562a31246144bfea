"""
Unread badge count, derived from a store-side aggregate rather than from the
cached list (which is capped and may be partial).
"""
import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple

from notification_center.core.config import settings
from notification_center.core.errors import FetchError, NotificationError
from notification_center.client.gateway import NotificationGateway
from notification_center.client.observable import Observable

logger = logging.getLogger(__name__)


class CountReason(str, Enum):
    INITIAL = "initial"
    INVALIDATED = "invalidated"
    POLL = "poll"


@dataclass(frozen=True)
class CountUpdate:
    previous: Optional[int]
    current: int
    reason: CountReason

    @property
    def increased(self) -> bool:
        return self.previous is not None and self.current > self.previous


class UnreadCounter(Observable[CountUpdate]):
    """
    Keeps the unread count for one owner.

    A single background worker refreshes on ``invalidate()`` and unconditionally
    every ``poll_interval`` seconds, so a dropped push event delays the badge by
    at most one interval. Bursts of invalidations collapse into one refresh.
    """

    def __init__(
        self,
        gateway: NotificationGateway,
        owner_id: str,
        poll_interval: float = settings.unread_poll_interval_seconds,
    ):
        super().__init__()
        self.gateway = gateway
        self.owner_id = owner_id
        self.poll_interval = poll_interval
        self.stale = False
        self._value: Optional[int] = None
        self._valid = False
        self._generation = 0
        self._value_generation = -1
        self._inflight: Optional[Tuple[int, asyncio.Task]] = None
        self._wake = asyncio.Event()
        self._worker: Optional[asyncio.Task] = None

    @property
    def value(self) -> Optional[int]:
        """Last observed count, or None before the first successful refresh."""
        return self._value

    @property
    def running(self) -> bool:
        return self._worker is not None and not self._worker.done()

    async def count(self) -> int:
        """The unread count, refreshed from the store first if invalidated."""
        if self._valid and self._value is not None:
            return self._value
        return await self.refresh(CountReason.INVALIDATED)

    def invalidate(self) -> None:
        self._valid = False
        self._generation += 1
        self._wake.set()

    async def refresh(self, reason: CountReason = CountReason.INVALIDATED) -> int:
        """
        Re-derive the count from the store and notify listeners.

        Raises:
            FetchError: the store is unreachable; the last value is kept and
                ``stale`` is set.
        """
        inflight = self._inflight
        if inflight is None or inflight[1].done() or inflight[0] != self._generation:
            inflight = (self._generation, asyncio.ensure_future(self._query(reason, self._generation)))
            self._inflight = inflight
        return await asyncio.shield(inflight[1])

    async def _query(self, reason: CountReason, generation: int) -> int:
        try:
            current = await self.gateway.count_unread(self.owner_id)
        except FetchError:
            if generation >= self._value_generation:
                self.stale = True
            raise

        if generation < self._value_generation:
            # a newer refresh already landed
            return self._value
        previous = self._value
        self._value = current
        self._value_generation = generation
        self.stale = False
        if generation == self._generation:
            self._valid = True
        if previous is None:
            reason = CountReason.INITIAL
        self._emit(CountUpdate(previous=previous, current=current, reason=reason))
        return current

    def start(self) -> None:
        """Start the poll worker; the first refresh runs immediately."""
        if self.running:
            return
        if self._value is None:
            self._wake.set()
        self._worker = asyncio.ensure_future(self._run())

    async def stop(self) -> None:
        """Clear the poll timer."""
        worker, self._worker = self._worker, None
        if worker is None:
            return
        worker.cancel()
        try:
            await worker
        except asyncio.CancelledError:
            pass

    async def _run(self) -> None:
        loop = asyncio.get_running_loop()
        # invalidations do not push the next poll back
        deadline = loop.time() + self.poll_interval
        while True:
            timed_out = False
            try:
                await asyncio.wait_for(self._wake.wait(), timeout=max(0.0, deadline - loop.time()))
            except asyncio.TimeoutError:
                timed_out = True
            self._wake.clear()
            if timed_out or loop.time() >= deadline:
                reason = CountReason.POLL
                deadline = loop.time() + self.poll_interval
            else:
                reason = CountReason.INVALIDATED
            try:
                await self.refresh(reason)
            except NotificationError as exc:
                logger.warning("Unread count for %s not refreshed: %s", self.owner_id, exc)
