"""Status-change broadcast channel.

Subscribers are called synchronously, in registration order. A subscriber
that raises is logged and skipped; delivery to the rest continues.
"""

import logging
import threading
from typing import Callable, Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Subscription:
    """Handle returned by ``StatusChannel.subscribe``; call it to unsubscribe."""

    def __init__(self, channel: "StatusChannel", callback: Callable):
        self._channel = channel
        self._callback = callback
        self.active = True

    def unsubscribe(self) -> None:
        if self.active:
            self._channel._remove(self._callback)
            self.active = False

    def __call__(self) -> None:
        self.unsubscribe()


class StatusChannel(Generic[T]):

    def __init__(self):
        self._subscribers: list[Callable[[T], None]] = []
        self._lock = threading.Lock()

    def subscribe(self, callback: Callable[[T], None]) -> Subscription:
        with self._lock:
            self._subscribers.append(callback)
        return Subscription(self, callback)

    def _remove(self, callback: Callable) -> None:
        with self._lock:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

    def publish(self, value: T) -> int:
        """Deliver ``value`` to every subscriber; returns how many succeeded."""
        with self._lock:
            subscribers = list(self._subscribers)

        delivered = 0
        for callback in subscribers:
            try:
                callback(value)
                delivered += 1
            except Exception as e:
                logger.error(f"Error in sync status subscriber {callback!r}: {e}", exc_info=True)
        return delivered

    def __len__(self) -> int:
        return len(self._subscribers)
