# i3link/protocol/_internal/rx_worker.py
from __future__ import annotations

import threading
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from i3link.protocol.subscriber import EventSubscriber


class RxWorker(threading.Thread):
    """
    Reads frames from a subscribed connection until the stream ends.

    Stream-level failures are handled by the subscriber's pump, which returns
    False. Anything else escaping the pump is a bug; it is logged and the
    stream is aborted so listeners still see a disconnect.
    """

    def __init__(self, subscriber: "EventSubscriber"):
        super().__init__(daemon=True, name="i3link-rx")
        self.subscriber = subscriber
        self._stop_event = threading.Event()

    def run(self) -> None:
        while not self._stop_event.is_set():
            try:
                more = self.subscriber._pump_rx()
            except Exception as e:
                self.subscriber._log.exception("RX_WORKER_EXCEPTION frames=%d", self.subscriber.frames_received)
                self.subscriber._abort(f"rx worker error: {type(e).__name__}: {e}")
                return
            if not more:
                return

    def stop(self) -> None:
        self._stop_event.set()
