# i3link/runtime/ipc_link.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence

from i3link.core.errors import (
    CommandRejectedError,
    I3LinkError,
    MalformedReplyError,
    PeerConnectError,
    PeerDisconnectedError,
    ProtocolCommunicationError,
)
from i3link.interfaces.event_handler import EventHandler
from i3link.interfaces.request_sink import RequestSink
from i3link.model import CommandReply
from i3link.protocol.client import I3Client
from i3link.protocol.connection import Connection
from i3link.protocol.core import Protocol
from i3link.protocol.correlator import RequestCorrelator
from i3link.protocol.dispatcher import EventDispatcher
from i3link.protocol.errors import (
    CommandFailed,
    ConnectionModeError,
    JsonParseError,
    ProtocolError,
    TruncatedFrame,
)
from i3link.protocol.subscriber import EventSubscriber
from i3link.transport.base import Transport
from i3link.transport.errors import (
    BrokenPipe,
    ConnectionClosed,
    ConnectRefused,
    TransportError,
    TransportTimeout,
)


def to_operator_error(exc: Exception, *, endpoint: str) -> I3LinkError:
    """Map a low-level failure to the error a caller can act on."""
    details = {"endpoint": endpoint, "cause": type(exc).__name__}

    if isinstance(exc, ConnectRefused):
        return PeerConnectError(
            "Could not connect to the window manager IPC endpoint.",
            hint=f"{exc}. Is the window manager running and the socket path correct?",
            details=details,
        )
    if isinstance(exc, (BrokenPipe, ConnectionClosed, TruncatedFrame)):
        return PeerDisconnectedError("Connection to the window manager was lost.", hint=str(exc), details=details)
    if isinstance(exc, TransportTimeout):
        return ProtocolCommunicationError(
            "Timed out waiting for the window manager.",
            hint=f"{exc}. The connection was dropped; retry on a new one.",
            details=details,
        )
    if isinstance(exc, CommandFailed):
        return CommandRejectedError(str(exc), hint=exc.error, details=dict(details, reply=exc.reply))
    if isinstance(exc, JsonParseError):
        return MalformedReplyError("Received malformed data from the window manager.", hint=str(exc), details=details)
    if isinstance(exc, ConnectionModeError):
        return ProtocolCommunicationError("Connection cannot carry this request.", hint=str(exc), details=details)
    if isinstance(exc, (ProtocolError, TransportError)):
        return ProtocolCommunicationError("IPC protocol failure.", hint=str(exc), details=details)
    return I3LinkError(str(exc), details=details)


@dataclass
class RequestLink:
    """
    One connection used only for request/reply traffic.

    Responsibilities:
      - open/close the underlying transport
      - expose an I3Client once started
    """

    proto: Protocol
    transport: Transport
    request_sink: Optional[RequestSink] = None
    logger: Optional[logging.Logger] = None

    def __post_init__(self) -> None:
        self._log = self.logger or logging.getLogger(__name__)
        self._connection: Optional[Connection] = None
        self._client: Optional[I3Client] = None

    @property
    def is_started(self) -> bool:
        return self._client is not None

    @property
    def connection(self) -> Optional[Connection]:
        return self._connection

    @property
    def client(self) -> I3Client:
        if self._client is None:
            raise RuntimeError("RequestLink not started (client is None)")
        return self._client

    def start(self) -> None:
        if self.is_started:
            return

        try:
            self.transport.open()
        except TransportError as e:
            self._log.warning("TRANSPORT_OPEN_FAILED endpoint=%s err=%s", self.transport.endpoint, e)
            raise to_operator_error(e, endpoint=self.transport.endpoint) from None

        self._connection = Connection(self.proto, self.transport, logger=self._log)
        correlator = RequestCorrelator(self._connection, request_sink=self.request_sink, logger=self._log)
        self._client = I3Client(correlator, logger=self._log)
        self._log.info("REQUEST_LINK_STARTED endpoint=%s", self.transport.endpoint)

    def stop(self) -> None:
        self._client = None
        if self._connection is not None:
            try:
                self._connection.close()
            except Exception:
                self._log.exception("Failed to close request connection")
            self._connection = None

    def __enter__(self) -> "RequestLink":
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.stop()


@dataclass
class EventLink:
    """
    One connection used only for a subscribed event stream.

    Handlers may be registered before start(); they receive events from
    the moment the subscription is acknowledged.
    """

    proto: Protocol
    transport: Transport
    queue_size: int = 200
    logger: Optional[logging.Logger] = None
    on_disconnect: Optional[Callable[[str], None]] = None

    def __post_init__(self) -> None:
        self._log = self.logger or logging.getLogger(__name__)
        self.dispatcher = EventDispatcher(self.proto, queue_size=self.queue_size, logger=self._log)
        self._connection: Optional[Connection] = None
        self._subscriber: Optional[EventSubscriber] = None

    @property
    def is_started(self) -> bool:
        return self._subscriber is not None

    @property
    def connection(self) -> Optional[Connection]:
        return self._connection

    @property
    def subscriber(self) -> Optional[EventSubscriber]:
        return self._subscriber

    def on(self, category: str, handler: EventHandler) -> Callable[[], None]:
        return self.dispatcher.on(category, handler)

    def start(self, events: Sequence[str]) -> CommandReply:
        if self.is_started:
            raise RuntimeError("EventLink already started")

        endpoint = self.transport.endpoint
        try:
            self.transport.open()
        except TransportError as e:
            self._log.warning("TRANSPORT_OPEN_FAILED endpoint=%s err=%s", endpoint, e)
            raise to_operator_error(e, endpoint=endpoint) from None

        connection = Connection(self.proto, self.transport, logger=self._log)
        subscriber = EventSubscriber(
            connection,
            self.dispatcher,
            on_disconnect=self._on_disconnect,
            logger=self._log,
        )

        try:
            reply = subscriber.subscribe(list(events))
        except (ProtocolError, TransportError) as e:
            connection.close()
            raise to_operator_error(e, endpoint=endpoint) from None

        self._connection = connection
        self._subscriber = subscriber
        subscriber.start()
        return reply

    def stop(self, timeout: float = 1.0) -> None:
        if self._subscriber is not None:
            try:
                self._subscriber.stop(timeout=timeout)
            except Exception:
                self._log.exception("Failed to stop event subscriber")
            self._subscriber = None
        else:
            self.dispatcher.close(timeout=timeout)
        if self._connection is not None:
            self._connection.close()
            self._connection = None

    def subscribed(self) -> List[str]:
        return list(self._subscriber.events) if self._subscriber else []

    def _on_disconnect(self, reason: str) -> None:
        cb = self.on_disconnect
        if cb is not None:
            cb(reason)

    def __enter__(self) -> "EventLink":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.stop()
