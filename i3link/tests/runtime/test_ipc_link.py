from __future__ import annotations

import os
import threading
import time

import pytest

from i3link.core.errors import (
    CommandRejectedError,
    I3LinkError,
    MalformedReplyError,
    PeerConnectError,
    PeerDisconnectedError,
    ProtocolCommunicationError,
)
from i3link.protocol.connection import Connection
from i3link.protocol.correlator import RequestCorrelator
from i3link.protocol.errors import (
    BadMagic,
    CommandFailed,
    ConnectionModeError,
    JsonParseError,
    SubscribeFailed,
    TruncatedFrame,
)
from i3link.runtime.ipc_link import EventLink, RequestLink, to_operator_error
from i3link.transport.errors import BrokenPipe, ConnectionClosed, ConnectRefused, TransportTimeout
from i3link.transport.unix import UnixSocketTransport


@pytest.mark.parametrize("exc,expected", [
    (ConnectRefused("nope"), PeerConnectError),
    (BrokenPipe("epipe"), PeerDisconnectedError),
    (ConnectionClosed("closed"), PeerDisconnectedError),
    (TransportTimeout("slow"), ProtocolCommunicationError),
    (CommandFailed("COMMAND", {"success": False}, error="bad"), CommandRejectedError),
    (SubscribeFailed(["workspace"], {"success": False}), CommandRejectedError),
    (JsonParseError("bad json"), MalformedReplyError),
    (ConnectionModeError("subscribed"), ProtocolCommunicationError),
    (BadMagic(b"xxxxxx", b"i3-ipc"), ProtocolCommunicationError),
    (TruncatedFrame(14, 3), PeerDisconnectedError),
    (RuntimeError("other"), I3LinkError),
])
def test_operator_error_mapping(exc, expected):
    err = to_operator_error(exc, endpoint="unix:/x")
    assert type(err) is expected
    assert err.details["endpoint"] == "unix:/x"
    assert err.details["cause"] == type(exc).__name__


def test_request_link_lifecycle(proto, fake_peer):
    link = RequestLink(proto=proto, transport=UnixSocketTransport(fake_peer.path, timeout=1.0))
    with pytest.raises(RuntimeError):
        link.client

    with link:
        assert link.is_started
        assert link.client.command("nop").success
    assert not link.is_started
    assert link.connection is None


def test_request_link_open_failure(proto, short_tmp):
    link = RequestLink(proto=proto, transport=UnixSocketTransport(os.path.join(short_tmp, "x.sock")))
    with pytest.raises(PeerConnectError):
        link.start()
    assert not link.is_started


def test_event_link_handlers_before_start(proto, fake_peer):
    fake_peer.events = [(3, b'{"change":"unspecified"}')]
    link = EventLink(proto=proto, transport=UnixSocketTransport(fake_peer.path))
    got = []
    link.on("output", lambda _c, ev: got.append(ev.change))

    with link:
        link.start(["output"])
        assert link.subscribed() == ["output"]
        with pytest.raises(RuntimeError):
            link.start(["output"])
        deadline = time.time() + 1.0
        while not got and time.time() < deadline:
            time.sleep(0.005)

    assert got == ["unspecified"]
    assert link.subscribed() == []


def test_reply_cut_mid_payload_reports_peer_disconnected(proto, socket_pair, wire):
    a, b = socket_pair
    corr = RequestCorrelator(Connection(proto, UnixSocketTransport.from_socket(a, timeout=1.0)))

    def peer():
        wire.recv(b)
        frame = wire.pack(1, b"[1,2]")    # 14 header bytes + 5 payload bytes
        b.sendall(frame[:16])
        b.close()

    th = threading.Thread(target=peer)
    th.start()
    with pytest.raises(TruncatedFrame) as ei:
        corr.request(1)
    th.join(timeout=1.0)

    assert (ei.value.received, ei.value.expected) == (16, 19)
    err = to_operator_error(ei.value, endpoint="unix:/x")
    assert isinstance(err, PeerDisconnectedError)
