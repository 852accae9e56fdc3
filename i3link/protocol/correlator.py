# i3link/protocol/correlator.py
from __future__ import annotations

import logging
import threading
import time
from typing import Optional

from i3link.interfaces.request_sink import RequestEvent, RequestSink
from i3link.transport.errors import ConnectionClosed, TransportError

from .connection import Connection, ConnectionState
from .core import Frame
from .errors import ProtocolError


class RequestCorrelator:
    """
    Pairs each request with the next frame read on the same connection.

    The protocol has no message ids, so correlation is positional: at most
    one request may be outstanding. A second caller blocks on the lock until
    the first caller's reply has been read.
    """

    def __init__(
        self,
        connection: Connection,
        *,
        request_sink: Optional[RequestSink] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self.connection = connection
        self._sink = request_sink
        self._log = logger or logging.getLogger(__name__)
        self._lock = threading.Lock()

    @property
    def proto(self):
        return self.connection.proto

    def request(self, msg_type: int, payload: bytes = b"") -> Frame:
        name = self.proto.message_name(msg_type)

        with self._lock:
            self.connection.begin_request()
            t0 = time.perf_counter()
            self._emit(RequestEvent(name=name, kind="send", payload={"len": len(payload)}))

            sent = False
            try:
                self.connection.send_frame(msg_type, payload)
                sent = True
                reply = self.connection.read_frame()
            except (ProtocolError, TransportError) as e:
                rtt_ms = (time.perf_counter() - t0) * 1000.0
                self._emit(RequestEvent(name=name, kind="error", payload={"error": str(e)}, rtt_ms=rtt_ms))
                if self.connection.closed and not isinstance(e, ConnectionClosed):
                    raise ConnectionClosed(f"{name}: connection closed while request was in flight") from e
                raise
            except BaseException as e:
                if sent and self.connection.state is ConnectionState.REQUEST_IN_FLIGHT:
                    # the reply may still arrive and must not answer the next request
                    self.connection.mark_failed(f"{name}: {type(e).__name__} after request was sent")
                raise
            finally:
                # FAILED and CLOSED are kept; only an in-flight state is released
                self.connection.end_request()

        rtt_ms = (time.perf_counter() - t0) * 1000.0
        self._log.debug("REQUEST_OK type=%s reply_type=%d len=%d rtt_ms=%.2f", name, reply.msg_type, reply.length, rtt_ms)
        self._emit(
            RequestEvent(
                name=name,
                kind="ok",
                payload={"reply_type": reply.msg_type, "len": reply.length},
                rtt_ms=rtt_ms,
            )
        )
        return reply

    def _emit(self, event: RequestEvent) -> None:
        if self._sink is None:
            return
        try:
            self._sink.on_request(event)
        except Exception:
            self._log.exception("REQUEST_SINK_ERROR kind=%s", event.kind)
