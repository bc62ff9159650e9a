# gridwc/common/channel.py

import queue
import threading
from typing import Optional

from gridwc.common.job_api import WordCount

# end-of-stream marker; only the closer puts it
_END = object()


class CancelSignal:
    """One-shot broadcast observed by every task of a run.

    Fires either when the armed deadline elapses or on an explicit cancel().
    Once set it stays set.
    """

    def __init__(self):
        self._event = threading.Event()
        self._timer: Optional[threading.Timer] = None
        self.reason: Optional[str] = None

    def arm(self, seconds: float):
        if self._timer is not None:
            raise RuntimeError("cancel signal already armed")
        self._timer = threading.Timer(seconds, self.cancel, args=("deadline",))
        self._timer.name = "deadline"
        self._timer.daemon = True
        self._timer.start()

    def disarm(self):
        if self._timer is not None:
            self._timer.cancel()

    def cancel(self, reason: str = "teardown"):
        if not self._event.is_set():
            self.reason = reason
            self._event.set()

    def is_set(self) -> bool:
        return self._event.is_set()

    def wait(self, timeout: Optional[float] = None) -> bool:
        return self._event.wait(timeout)


class PartialQueue:
    """Bounded channel of per-file WordCounts, many producers and one consumer.

    Capacity is the number of producers, so put() never waits on a slow
    consumer. One extra slot holds the end-of-stream marker.
    """

    def __init__(self, capacity: int):
        if capacity < 1:
            raise ValueError("capacity must be >= 1")
        self._q: "queue.Queue" = queue.Queue(maxsize=capacity + 1)
        self._lock = threading.Lock()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def put(self, counts: WordCount):
        with self._lock:
            if self._closed:
                raise RuntimeError("put on closed queue")
        self._q.put(counts)

    def close(self):
        with self._lock:
            if self._closed:
                raise RuntimeError("queue already closed")
            self._closed = True
        self._q.put(_END)

    def get(self, timeout: Optional[float] = None):
        """Next partial map, or None once the queue is closed and drained.

        Raises queue.Empty if nothing arrives within `timeout` seconds.
        """
        item = self._q.get(timeout=timeout)
        if item is _END:
            # leave the marker for any later reader
            self._q.put(_END)
            return None
        return item
