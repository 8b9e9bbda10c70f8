import queue
import threading
from typing import Any

from notary.logging.logger import Log


class Listener:
    """One connected live-feed consumer with a bounded inbox."""

    def __init__(self, max_pending: int = 256) -> None:
        self._inbox: queue.Queue[dict[str, Any]] = queue.Queue(maxsize=max_pending)
        self._closed = threading.Event()

    @property
    def closed(self) -> bool:
        return self._closed.is_set()

    def offer(self, message: dict[str, Any]) -> bool:
        """Queue ``message`` without blocking; False if closed or full."""
        if self.closed:
            return False
        try:
            self._inbox.put_nowait(message)
        except queue.Full:
            return False
        return True

    def poll(self) -> dict[str, Any] | None:
        """Next message if one is already queued, without waiting."""
        try:
            return self._inbox.get_nowait()
        except queue.Empty:
            return None

    def get(self, timeout: float | None = None) -> dict[str, Any] | None:
        """Next message, or None when ``timeout`` elapses first."""
        try:
            return self._inbox.get(timeout=timeout)
        except queue.Empty:
            return None

    def close(self) -> None:
        self._closed.set()


class Broadcaster:
    """Best-effort fan-out of events to every connected listener.

    A listener that is closed or cannot keep up is dropped; delivery to the
    others continues.
    """

    def __init__(self, max_pending: int = 256) -> None:
        self._lock = threading.Lock()
        self._listeners: set[Listener] = set()
        self._max_pending = max_pending

    def subscribe(self, greeting: dict[str, Any] | None = None) -> Listener:
        listener = Listener(self._max_pending)
        if greeting is not None:
            listener.offer(greeting)
        with self._lock:
            self._listeners.add(listener)
        Log.debug(f"Live listener connected ({self.listener_count} active)")
        return listener

    def unsubscribe(self, listener: Listener) -> None:
        listener.close()
        with self._lock:
            self._listeners.discard(listener)

    @property
    def listener_count(self) -> int:
        with self._lock:
            return len(self._listeners)

    def broadcast(self, message: dict[str, Any]) -> int:
        """Deliver ``message`` to every live listener; return how many got it."""
        with self._lock:
            listeners = list(self._listeners)
        delivered = 0
        for listener in listeners:
            if listener.offer(message):
                delivered += 1
            else:
                self.unsubscribe(listener)
                Log.debug("Dropped unresponsive live listener")
        return delivered
