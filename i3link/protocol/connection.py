# i3link/protocol/connection.py
from __future__ import annotations

import enum
import logging
import threading
from typing import Optional

from i3link.transport.base import Transport
from i3link.transport.errors import BrokenPipe, ConnectionClosed, TransportError

from .core import Frame, FrameCodec, Protocol
from .errors import ConnectionModeError, ProtocolError


class ConnectionState(enum.Enum):
    IDLE = "idle"
    REQUEST_IN_FLIGHT = "request_in_flight"
    EVENT_MODE = "event_mode"
    FAILED = "failed"
    CLOSED = "closed"


class Connection:
    """
    Exclusive owner of one byte stream.

    Writes are serialized by a write lock and reads by a read lock, so frames
    never interleave; reading and writing may run concurrently.

    State transitions:
        IDLE -> REQUEST_IN_FLIGHT -> IDLE
        IDLE -> EVENT_MODE            (successful SUBSCRIBE only; terminal)
        any  -> FAILED | CLOSED
    """

    def __init__(self, proto: Protocol, transport: Transport, *, logger: Optional[logging.Logger] = None):
        self.proto = proto
        self.transport = transport
        self._log = logger or logging.getLogger(__name__)
        self._codec = FrameCodec(proto, logger=self._log)

        self._write_lock = threading.Lock()
        self._read_lock = threading.Lock()
        self._state_lock = threading.Lock()

        self._state = ConnectionState.IDLE
        self._failure: Optional[str] = None

    # ---------------- State ----------------
    @property
    def state(self) -> ConnectionState:
        with self._state_lock:
            return self._state

    @property
    def failure(self) -> Optional[str]:
        return self._failure

    @property
    def closed(self) -> bool:
        return self.state is ConnectionState.CLOSED

    @property
    def in_event_mode(self) -> bool:
        return self.state is ConnectionState.EVENT_MODE

    def begin_request(self) -> None:
        with self._state_lock:
            if self._state is not ConnectionState.IDLE:
                raise ConnectionModeError(f"cannot send a request while connection is {self._state.value}")
            self._state = ConnectionState.REQUEST_IN_FLIGHT

    def end_request(self) -> None:
        with self._state_lock:
            if self._state is ConnectionState.REQUEST_IN_FLIGHT:
                self._state = ConnectionState.IDLE

    def enter_event_mode(self) -> None:
        with self._state_lock:
            if self._state not in (ConnectionState.IDLE, ConnectionState.REQUEST_IN_FLIGHT):
                raise ConnectionModeError(f"cannot enter event mode while connection is {self._state.value}")
            self._state = ConnectionState.EVENT_MODE
        self._log.info("CONNECTION_EVENT_MODE endpoint=%s", self.transport.endpoint)

    def mark_failed(self, reason: str) -> None:
        with self._state_lock:
            if self._state is ConnectionState.CLOSED:
                return
            self._state = ConnectionState.FAILED
            self._failure = reason
        self._log.warning("CONNECTION_FAILED endpoint=%s reason=%s", self.transport.endpoint, reason)

    # ---------------- Lifecycle ----------------
    def open(self) -> None:
        self.transport.open()

    def close(self) -> None:
        with self._state_lock:
            if self._state is ConnectionState.CLOSED:
                return
            self._state = ConnectionState.CLOSED
        try:
            self.transport.close()
        finally:
            self._log.debug("CONNECTION_CLOSED endpoint=%s", self.transport.endpoint)

    def __enter__(self) -> "Connection":
        self.open()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    # ---------------- I/O ----------------
    def send_frame(self, msg_type: int, payload: bytes = b"") -> int:
        raw = self._codec.encode(msg_type, payload)
        view = memoryview(raw)

        with self._write_lock:
            sent = 0
            try:
                while sent < len(raw):
                    n = self.transport.write(view[sent:])
                    if not n:
                        raise BrokenPipe(f"stream accepted no bytes after {sent}/{len(raw)}")
                    sent += n
                self.transport.flush()
            except BaseException as e:
                # a partial frame may be on the wire
                self._fail_on(e)
                raise

        self._log.debug("FRAME_SENT type=%d len=%d", msg_type, len(payload))
        return len(raw)

    def read_frame(self) -> Frame:
        with self._read_lock:
            try:
                return self._codec.decode(self.transport)
            except (ProtocolError, TransportError) as e:
                self._fail_on(e)
                if self.closed and not isinstance(e, ConnectionClosed):
                    raise ConnectionClosed("connection closed while reading") from e
                raise
            except BaseException as e:
                self._fail_on(e)
                raise

    def _fail_on(self, exc: BaseException) -> None:
        if not self.closed:
            self.mark_failed(f"{type(exc).__name__}: {exc}")
