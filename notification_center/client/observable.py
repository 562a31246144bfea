import logging
from typing import Callable, Dict, Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

Listener = Callable[[T], None]
Disposer = Callable[[], None]


class Observable(Generic[T]):
    """Minimal pub/sub base: ``subscribe`` hands back a disposer that unsubscribes."""

    def __init__(self) -> None:
        self._listeners: Dict[object, Listener] = {}

    def subscribe(self, listener: Listener) -> Disposer:
        token = object()
        self._listeners[token] = listener

        def dispose() -> None:
            self._listeners.pop(token, None)

        return dispose

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    def _emit(self, value: T) -> None:
        for listener in list(self._listeners.values()):
            try:
                listener(value)
            except Exception:
                # one broken consumer must not stop invalidation reaching the others
                logger.exception("Listener %r failed on %r", listener, value)
