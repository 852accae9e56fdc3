# i3link/protocol/dispatcher.py
from __future__ import annotations

import logging
import queue
import threading
from typing import Any, Callable, Dict, List, Optional

from i3link.interfaces.event_handler import EventHandler

from .core import Frame, Protocol
from .errors import ProtocolError
from ._internal.dispatch_worker import DispatchWorker, stop_all


class EventDispatcher:
    """
    Routes event frames to handlers registered per event category.

    Each category has its own bounded queue and worker thread, so a slow
    handler only delays its own category. Within a category events are
    delivered in arrival order. When a category's queue is full the new
    event is dropped and counted; ingestion never waits on a handler.
    """

    def __init__(
        self,
        proto: Protocol,
        *,
        queue_size: int = 200,
        logger: Optional[logging.Logger] = None,
    ):
        self.proto = proto
        self.queue_size = int(queue_size)
        self._log = logger or logging.getLogger(__name__)

        self._lock = threading.Lock()
        self._handlers: Dict[str, List[EventHandler]] = {}
        self._queues: Dict[str, "queue.Queue[Any]"] = {}
        self._workers: Dict[str, DispatchWorker] = {}
        self._closed = False

        self.dropped: Dict[str, int] = {}
        self.decode_errors = 0
        self.unknown_frames = 0

    # ---------------- Registration ----------------
    def on(self, category: str, handler: EventHandler) -> Callable[[], None]:
        with self._lock:
            if self._closed:
                raise RuntimeError("EventDispatcher is closed")
            self._handlers.setdefault(category, []).append(handler)
            self._ensure_worker(category)

        def _unsubscribe() -> None:
            with self._lock:
                handlers = self._handlers.get(category, [])
                if handler in handlers:
                    handlers.remove(handler)

        return _unsubscribe

    def categories(self) -> List[str]:
        with self._lock:
            return sorted(c for c, hs in self._handlers.items() if hs)

    def _ensure_worker(self, category: str) -> None:
        if category in self._workers:
            return
        q: "queue.Queue[Any]" = queue.Queue(maxsize=self.queue_size)
        worker = DispatchWorker(category, q, lambda c=category: self._handlers_for(c), self._log)
        self._queues[category] = q
        self._workers[category] = worker
        worker.start()

    def _handlers_for(self, category: str) -> List[EventHandler]:
        with self._lock:
            return list(self._handlers.get(category, []))

    # ---------------- Routing ----------------
    def route(self, frame: Frame) -> bool:
        """Decode and enqueue one event frame. Returns True if it was queued."""
        category = self.proto.event_for_code(frame.msg_type)
        if category is None:
            self.unknown_frames += 1
            self._log.warning("EVENT_UNKNOWN_TYPE type=%d len=%d", frame.msg_type, frame.length)
            return False

        try:
            _, event = self.proto.decode_event(frame.msg_type, frame.payload)
        except ProtocolError as e:
            self.decode_errors += 1
            self._log.warning("EVENT_DECODE_FAILED category=%s err=%s", category, e)
            return False

        with self._lock:
            q = self._queues.get(category)
        if q is None:
            self._log.debug("EVENT_NO_HANDLERS category=%s", category)
            return False

        try:
            q.put_nowait(event)
        except queue.Full:
            self.dropped[category] = self.dropped.get(category, 0) + 1
            self._log.warning(
                "EVENT_QUEUE_FULL category=%s dropped=%d", category, self.dropped[category]
            )
            return False
        return True

    def drain(self) -> None:
        """Block until every queued event has been handed to its handlers."""
        with self._lock:
            queues = list(self._queues.values())
        for q in queues:
            q.join()

    def close(self, timeout: float = 1.0) -> None:
        with self._lock:
            if self._closed:
                return
            self._closed = True
            workers = list(self._workers.values())

        for category, stopped in stop_all(workers, timeout):
            if not stopped:
                self._log.warning("DISPATCH_WORKER_STUCK category=%s", category)
