"""
In-process fan-out of hit notifications.

Every subscriber gets its own bounded queue. publish() never waits on a
subscriber: if its queue is full the message is dropped for that subscriber
only (delivery is best-effort, at most once).
"""

import logging
import queue
import threading
from datetime import datetime

log = logging.getLogger(__name__)

GLOBAL_TOPIC = "hits"
DEFAULT_QUEUE_SIZE = 100


def format_hit_message(timestamp: datetime, display_path: str, count: int, fingerprint: str) -> str:
    """
    "2026-10-17T09:30:00+00:00 project/badge 2 1a2b3c4d5e"
    """
    return " ".join([timestamp.isoformat(timespec="seconds"), display_path, str(count), fingerprint])


class Subscription:
    def __init__(self, topic: str, maxsize: int = DEFAULT_QUEUE_SIZE):
        self.topic = topic
        self.dropped = 0
        self._queue: queue.Queue[str] = queue.Queue(maxsize=maxsize)

    def deliver(self, message: str) -> bool:
        try:
            self._queue.put_nowait(message)
        except queue.Full:
            self.dropped += 1
            return False
        return True

    def get(self, timeout: float | None = None) -> str:
        """Blocks; raises queue.Empty on timeout."""
        return self._queue.get(timeout=timeout)


class Broadcaster:
    def __init__(self, queue_size: int = DEFAULT_QUEUE_SIZE):
        self.queue_size = queue_size
        self._subscribers: dict[str, set[Subscription]] = {}
        self._lock = threading.Lock()

    def subscribe(self, topic: str = GLOBAL_TOPIC) -> Subscription:
        sub = Subscription(topic, self.queue_size)
        with self._lock:
            self._subscribers.setdefault(topic, set()).add(sub)
        log.debug("Subscribed to %s (%d listening)", topic, self.subscriber_count(topic))
        return sub

    def unsubscribe(self, sub: Subscription) -> None:
        with self._lock:
            subs = self._subscribers.get(sub.topic)
            if subs is None:
                return
            subs.discard(sub)
            if not subs:
                del self._subscribers[sub.topic]

    def subscriber_count(self, topic: str = GLOBAL_TOPIC) -> int:
        with self._lock:
            return len(self._subscribers.get(topic, ()))

    def publish(self, topic: str, message: str) -> int:
        """
        Hand `message` to every current subscriber of `topic`.
        Returns how many accepted it.
        """
        with self._lock:
            targets = list(self._subscribers.get(topic, ()))
        delivered = sum(1 for sub in targets if sub.deliver(message))
        if delivered < len(targets):
            log.warning("Dropped hit message for %d slow subscriber(s) on %s",
                        len(targets) - delivered, topic)
        return delivered
