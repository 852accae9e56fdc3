# i3link/protocol/subscriber.py
from __future__ import annotations

import json
import logging
import threading
from typing import Callable, List, Optional, Sequence

from i3link.model import CommandReply
from i3link.transport.errors import ConnectionClosed, TransportError

from .connection import Connection
from .core import MessageType
from .correlator import RequestCorrelator
from .dispatcher import EventDispatcher
from .errors import BadMagic, ConnectionModeError, ProtocolError, SubscribeFailed, TruncatedFrame
from ._internal.rx_worker import RxWorker


class EventSubscriber:
    """
    Turns a connection into an event source.

    subscribe() is the last request ever sent on the connection. Once the
    peer acknowledges it, every frame read is an event and goes to the
    dispatcher. Replies and events carry no distinguishing marker, so a
    subscribed connection must not be used for requests; keep a separate
    connection for those.
    """

    def __init__(
        self,
        connection: Connection,
        dispatcher: EventDispatcher,
        *,
        on_disconnect: Optional[Callable[[str], None]] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self.connection = connection
        self.dispatcher = dispatcher
        self.on_disconnect = on_disconnect
        self._log = logger or logging.getLogger(__name__)
        self._correlator = RequestCorrelator(connection, logger=self._log)
        self._rx_thread: Optional[RxWorker] = None
        self.events: List[str] = []
        self.frames_received = 0
        self.disconnect_reason: Optional[str] = None

    # ---------------- Handshake ----------------
    def subscribe(self, events: Sequence[str]) -> CommandReply:
        names = [str(e) for e in events]
        if not names:
            raise ValueError("subscribe() needs at least one event name")

        proto = self.connection.proto
        code = proto.message_code(MessageType.SUBSCRIBE.name)
        payload = json.dumps(names).encode("utf-8")

        frame = self._correlator.request(code, payload)
        try:
            if frame.msg_type != code:
                raise ProtocolError(f"SUBSCRIBE answered with message type {frame.msg_type}")
            reply: CommandReply = proto.decode_reply(code, frame.payload)
        except ProtocolError as e:
            self.connection.mark_failed(f"malformed SUBSCRIBE reply: {e}")
            raise

        if not reply.success:
            self.connection.mark_failed("SUBSCRIBE rejected by peer")
            raise SubscribeFailed(names, reply.as_dict())

        self.connection.enter_event_mode()
        self.events = names
        self._log.info("SUBSCRIBED events=%s", names)
        return reply

    # ---------------- RX Thread ----------------
    def start(self) -> None:
        if not self.connection.in_event_mode:
            raise ConnectionModeError("start() requires a successful subscribe()")
        if self._rx_thread is None or not self._rx_thread.is_alive():
            self._rx_thread = RxWorker(self)
            self._rx_thread.start()
            self._log.info("RX_THREAD_STARTED")

    def stop(self, timeout: float = 1.0) -> None:
        if self._rx_thread is not None:
            self._rx_thread.stop()
        # closing is the only way to abort a blocked read
        self.connection.close()
        if self._rx_thread is not None and self._rx_thread is not threading.current_thread():
            self._rx_thread.join(timeout=timeout)
            self._log.info("RX_THREAD_STOPPED")
        self.dispatcher.close(timeout=timeout)

    @property
    def running(self) -> bool:
        return self._rx_thread is not None and self._rx_thread.is_alive()

    # ---------------- RX Pump ----------------
    def _pump_rx(self) -> bool:
        """Read and route one frame. Returns False when the stream is over."""
        try:
            frame = self.connection.read_frame()
        except ConnectionClosed:
            self._disconnected("closed")
            return False
        except TruncatedFrame as e:
            self._abort("peer closed" if e.at_boundary else f"truncated frame ({e.received}/{e.expected} bytes)")
            return False
        except BadMagic as e:
            self._log.error("EVENT_STREAM_DESYNC err=%s", e)
            self._abort("bad magic")
            return False
        except (ProtocolError, TransportError) as e:
            self._log.error("EVENT_STREAM_ERROR err=%s", e)
            self._abort(str(e))
            return False

        self.frames_received += 1
        self.dispatcher.route(frame)
        return True

    def _abort(self, reason: str) -> None:
        self.connection.close()
        self._disconnected(reason)

    def _disconnected(self, reason: str) -> None:
        self.disconnect_reason = reason
        level = logging.INFO if reason in ("closed", "peer closed") else logging.WARNING
        self._log.log(level, "EVENT_STREAM_ENDED reason=%s frames=%d", reason, self.frames_received)
        cb = self.on_disconnect
        if cb is not None:
            try:
                cb(reason)
            except Exception:
                self._log.exception("ON_DISCONNECT_CALLBACK_ERROR")
