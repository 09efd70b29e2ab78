from __future__ import annotations
import logging
import queue
import threading

from pydantic import BaseModel

logger = logging.getLogger(__name__)


class ProgressHub:
    """Fan-out of progress events to live subscribers.

    Delivery is best effort: no replay for late subscribers, and a subscriber
    whose queue is full misses the event.
    """

    def __init__(self, max_queue_size: int = 256):
        self.max_queue_size = max_queue_size
        self._lock = threading.Lock()
        self._subscribers: list[queue.Queue] = []

    def subscribe(self) -> queue.Queue:
        q: queue.Queue = queue.Queue(maxsize=self.max_queue_size)
        with self._lock:
            self._subscribers.append(q)
        return q

    def unsubscribe(self, q: queue.Queue) -> None:
        with self._lock:
            if q in self._subscribers:
                self._subscribers.remove(q)

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscribers)

    def publish(self, event: BaseModel | dict) -> int:
        payload = event.model_dump() if isinstance(event, BaseModel) else dict(event)
        with self._lock:
            subscribers = list(self._subscribers)
        delivered = 0
        for q in subscribers:
            try:
                q.put_nowait(payload)
                delivered += 1
            except queue.Full:
                logger.debug("progress subscriber queue full, dropping %s event", payload.get("type"))
        return delivered


hub = ProgressHub()
