# i3link/protocol/_internal/dispatch_worker.py
from __future__ import annotations

import logging
import queue
import threading
from typing import Any, Callable, List, Tuple

_STOP = object()


class DispatchWorker(threading.Thread):
    """Drains one event category's queue and calls its handlers in order."""

    def __init__(
        self,
        category: str,
        events: "queue.Queue[Any]",
        handlers: Callable[[], List[Callable[[str, Any], None]]],
        logger: logging.Logger,
    ):
        super().__init__(daemon=True, name=f"i3link-dispatch-{category}")
        self.category = category
        self.events = events
        self._handlers = handlers
        self._log = logger
        self.delivered = 0

    def run(self) -> None:
        while True:
            item = self.events.get()
            try:
                if item is _STOP:
                    return
                for handler in self._handlers():
                    try:
                        handler(self.category, item)
                    except Exception:
                        self._log.exception("EVENT_HANDLER_ERROR category=%s", self.category)
                self.delivered += 1
            finally:
                self.events.task_done()

    def stop(self, timeout: float) -> bool:
        try:
            self.events.put(_STOP, timeout=timeout)
        except queue.Full:
            return False
        return True


def stop_all(workers: List[DispatchWorker], timeout: float) -> List[Tuple[str, bool]]:
    for w in workers:
        w.stop(timeout)
    out = []
    for w in workers:
        w.join(timeout=timeout)
        out.append((w.category, not w.is_alive()))
    return out
