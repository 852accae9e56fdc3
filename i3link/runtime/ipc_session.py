# i3link/runtime/ipc_session.py
from __future__ import annotations

import logging
import threading
from typing import Callable, List, Optional, Sequence, TypeVar

from i3link.core.errors import I3LinkError
from i3link.interfaces.event_handler import EventHandler
from i3link.interfaces.request_sink import RequestSink
from i3link.model import CommandReply, Output, Workspace
from i3link.protocol.client import I3Client
from i3link.protocol.connection import ConnectionState
from i3link.protocol.core import Protocol
from i3link.protocol.errors import ProtocolError
from i3link.transport.base import Transport
from i3link.transport.errors import TransportError

from .ipc_link import EventLink, RequestLink, to_operator_error
from .state import ConnectionStatus, EventStatus, SessionStatus

T = TypeVar("T")

TransportFactory = Callable[[], Transport]


class IpcSession:
    """
    High-level session with two independent connections to the peer: one
    for request/reply traffic and one for the subscribed event stream.

    Replies and events are each ordered on their own connection but not
    relative to each other.
    """

    def __init__(
        self,
        *,
        proto: Protocol,
        transport_factory: TransportFactory,
        event_transport_factory: Optional[TransportFactory] = None,
        queue_size: int = 200,
        request_sink: Optional[RequestSink] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self._proto = proto
        self._transport_factory = transport_factory
        self._event_transport_factory = event_transport_factory or transport_factory
        self._queue_size = int(queue_size)
        self._request_sink = request_sink
        self._log = logger or logging.getLogger(__name__)

        self._lock = threading.RLock()
        self._request_link: Optional[RequestLink] = None
        self._event_link: Optional[EventLink] = None
        self._request_last_error: Optional[str] = None
        self._disconnect_cbs: List[Callable[[str], None]] = []

    @property
    def proto(self) -> Protocol:
        return self._proto

    # ---------------- Requests ----------------
    def command(self, text: str, *, check: bool = True) -> CommandReply:
        self._log.info("COMMAND text=%r", text)
        return self._call(lambda c: c.command(text, check=check))

    def get_workspaces(self) -> List[Workspace]:
        return self._call(lambda c: c.get_workspaces())

    def get_outputs(self) -> List[Output]:
        return self._call(lambda c: c.get_outputs())

    def _call(self, fn: Callable[[I3Client], T]) -> T:
        with self._lock:
            link = self._require_request_link()
        try:
            result = fn(link.client)
        except (ProtocolError, TransportError) as e:
            endpoint = link.transport.endpoint
            with self._lock:
                self._request_last_error = str(e)
                conn = link.connection
                if conn is None or conn.state in (ConnectionState.FAILED, ConnectionState.CLOSED):
                    # the next call opens a fresh connection
                    link.stop()
                    if self._request_link is link:
                        self._request_link = None
            raise to_operator_error(e, endpoint=endpoint) from None
        with self._lock:
            self._request_last_error = None
        return result

    def _require_request_link(self) -> RequestLink:
        if self._request_link is None:
            link = RequestLink(
                proto=self._proto,
                transport=self._transport_factory(),
                request_sink=self._request_sink,
                logger=self._log,
            )
            try:
                link.start()
            except I3LinkError as e:
                self._request_last_error = e.message
                raise
            self._request_link = link
        return self._request_link

    # ---------------- Events ----------------
    def on(self, category: str, handler: EventHandler) -> Callable[[], None]:
        return self._require_event_link().on(category, handler)

    def on_disconnect(self, cb: Callable[[str], None]) -> Callable[[], None]:
        with self._lock:
            self._disconnect_cbs.append(cb)

        def _unsubscribe() -> None:
            with self._lock:
                if cb in self._disconnect_cbs:
                    self._disconnect_cbs.remove(cb)

        return _unsubscribe

    def subscribe(self, events: Sequence[str]) -> CommandReply:
        link = self._require_event_link()
        if link.is_started:
            raise I3LinkError(
                "Event stream already subscribed.",
                hint=f"subscribed: {link.subscribed()}; a connection subscribes once",
            )
        return link.start(events)

    def _require_event_link(self) -> EventLink:
        with self._lock:
            if self._event_link is None:
                self._event_link = EventLink(
                    proto=self._proto,
                    transport=self._event_transport_factory(),
                    queue_size=self._queue_size,
                    logger=self._log,
                    on_disconnect=self._fanout_disconnect,
                )
            return self._event_link

    def _fanout_disconnect(self, reason: str) -> None:
        with self._lock:
            cbs = list(self._disconnect_cbs)
        for cb in cbs:
            try:
                cb(reason)
            except Exception:
                self._log.exception("DISCONNECT_CALLBACK_ERROR")

    # ---------------- Lifecycle ----------------
    def status(self) -> SessionStatus:
        with self._lock:
            req = self._request_link
            ev = self._event_link

            request_status = None
            if req is not None and req.connection is not None:
                request_status = ConnectionStatus(
                    role="request",
                    endpoint=req.transport.endpoint,
                    state=req.connection.state.value,
                    last_error=self._request_last_error or req.connection.failure,
                )
            elif self._request_last_error is not None:
                request_status = ConnectionStatus(
                    role="request", endpoint="-", state="disconnected", last_error=self._request_last_error
                )

            event_status = None
            events = EventStatus()
            if ev is not None and ev.connection is not None:
                event_status = ConnectionStatus(
                    role="event",
                    endpoint=ev.transport.endpoint,
                    state=ev.connection.state.value,
                    last_error=ev.connection.failure,
                )
                sub = ev.subscriber
                events = EventStatus(
                    subscribed=ev.subscribed(),
                    running=bool(sub and sub.running),
                    frames_received=sub.frames_received if sub else 0,
                    dropped=dict(ev.dispatcher.dropped),
                    decode_errors=ev.dispatcher.decode_errors,
                    disconnect_reason=sub.disconnect_reason if sub else None,
                )

        return SessionStatus(request=request_status, event=event_status, events=events)

    def close(self) -> None:
        self._log.info("SESSION_CLOSE")
        with self._lock:
            req, self._request_link = self._request_link, None
            ev, self._event_link = self._event_link, None
        if req is not None:
            req.stop()
        if ev is not None:
            ev.stop()

    def __enter__(self) -> "IpcSession":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
