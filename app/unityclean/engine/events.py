"""Queue-backed delivery of engine events to observers.

Events are published from the cleaning worker and delivered on a
separate daemon thread, so a slow or failing observer never blocks or
breaks a run. Delivery order equals publish order.
"""

import logging
import queue
import threading
from collections.abc import Callable

from unityclean.engine.models import EngineEvent

logger = logging.getLogger(__name__)

Observer = Callable[[EngineEvent], None]

_STOP = object()


class EventDispatcher:
    """Delivers events to subscribed observers on a background thread."""

    def __init__(self) -> None:
        self._queue: queue.Queue[object] = queue.Queue()
        self._observers: list[Observer] = []
        self._lock = threading.Lock()
        self._thread: threading.Thread | None = None

    def subscribe(self, observer: Observer) -> Callable[[], None]:
        """Register an observer.

        Args:
            observer: Callable receiving every published event.

        Returns:
            A function that removes the observer again.
        """
        with self._lock:
            self._observers.append(observer)

        def unsubscribe() -> None:
            with self._lock:
                if observer in self._observers:
                    self._observers.remove(observer)

        return unsubscribe

    def publish(self, event: EngineEvent) -> None:
        """Queue an event for delivery."""
        self._ensure_started()
        self._queue.put(event)

    def flush(self, timeout: float | None = None) -> bool:
        """Wait until every queued event has been delivered.

        Args:
            timeout: Maximum seconds to wait, None to wait indefinitely.

        Returns:
            True if the queue drained in time.
        """
        if self._thread is None:
            return True
        done = threading.Event()

        def waiter() -> None:
            self._queue.join()
            done.set()

        threading.Thread(target=waiter, daemon=True).start()
        return done.wait(timeout)

    def close(self) -> None:
        """Deliver pending events and stop the delivery thread."""
        with self._lock:
            thread = self._thread
            self._thread = None
        if thread is None:
            return
        self._queue.put(_STOP)
        thread.join()

    def _ensure_started(self) -> None:
        with self._lock:
            if self._thread is None:
                self._thread = threading.Thread(
                    target=self._run, name="unityclean-events", daemon=True
                )
                self._thread.start()

    def _run(self) -> None:
        while True:
            event = self._queue.get()
            try:
                if event is _STOP:
                    return
                with self._lock:
                    observers = list(self._observers)
                for observer in observers:
                    try:
                        observer(event)  # type: ignore[arg-type]
                    except Exception:
                        logger.exception("Event observer %r failed", observer)
            finally:
                self._queue.task_done()
