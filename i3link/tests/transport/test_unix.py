from __future__ import annotations

import os
import threading
import time

import pytest

from i3link.transport.errors import BrokenPipe, ConnectionClosed, ConnectRefused, TransportTimeout
from i3link.transport.unix import UnixSocketTransport


def test_open_missing_socket_is_refused(short_tmp):
    t = UnixSocketTransport(os.path.join(short_tmp, "nope.sock"))
    with pytest.raises(ConnectRefused):
        t.open()
    assert not t.is_open()


def test_open_and_exchange_with_peer(fake_peer, wire):
    with UnixSocketTransport(fake_peer.path, timeout=1.0) as t:
        assert t.endpoint == f"unix:{fake_peer.path}"
        t.write(wire.pack(0, b"nop"))
        t.flush()
        hdr = t.read(14)
        assert hdr[:6] == b"i3-ipc"
    assert not t.is_open()


def test_read_timeout(socket_pair):
    a, _b = socket_pair
    t = UnixSocketTransport.from_socket(a, timeout=0.05)
    with pytest.raises(TransportTimeout):
        t.read(1)


def test_read_returns_empty_on_peer_close(socket_pair):
    a, b = socket_pair
    t = UnixSocketTransport.from_socket(a)
    b.close()
    assert t.read(1) == b""


def test_close_wakes_blocked_reader(socket_pair):
    a, _b = socket_pair
    t = UnixSocketTransport.from_socket(a)
    out = []

    def reader():
        try:
            out.append(t.read(1))
        except Exception as e:
            out.append(e)

    th = threading.Thread(target=reader)
    th.start()
    time.sleep(0.05)
    t.close()
    th.join(timeout=1.0)

    assert not th.is_alive()
    assert out and (out[0] == b"" or isinstance(out[0], ConnectionClosed))


def test_use_after_close(socket_pair):
    t = UnixSocketTransport.from_socket(socket_pair[0])
    t.close()
    t.close()
    with pytest.raises(ConnectionClosed):
        t.read(1)
    with pytest.raises(ConnectionClosed):
        t.write(b"x")
    with pytest.raises(ConnectionClosed):
        t.flush()


def test_write_to_closed_peer_is_broken_pipe(socket_pair):
    a, b = socket_pair
    t = UnixSocketTransport.from_socket(a, timeout=0.5)
    b.close()
    with pytest.raises(BrokenPipe):
        # the first send may still succeed into the buffer
        for _ in range(100):
            t.write(b"x" * 4096)
