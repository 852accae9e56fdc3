# i3link/tests/conftest.py
from __future__ import annotations

import json
import os
import shutil
import socket
import struct
import tempfile
import threading
from types import SimpleNamespace
from typing import List, Optional, Tuple

import pytest

from i3link.protocol.core import Protocol

HEADER = struct.Struct("<6sII")

WORKSPACES_REPLY = [
    {
        "num": 0, "name": "1", "visible": True, "focused": True, "urgent": False,
        "rect": {"x": 0, "y": 0, "width": 1280, "height": 800}, "output": "LVDS1",
    },
    {
        "num": 1, "name": "2", "visible": False, "focused": False, "urgent": False,
        "rect": {"x": 0, "y": 0, "width": 1280, "height": 800}, "output": "LVDS1",
    },
]

OUTPUTS_REPLY = [
    {"name": "LVDS1", "active": True, "current_workspace": 4,
     "rect": {"x": 0, "y": 0, "width": 1280, "height": 800}},
    {"name": "VGA1", "active": True, "current_workspace": 1,
     "rect": {"x": 1280, "y": 0, "width": 1280, "height": 1024}},
]


def pack_frame(msg_type: int, payload: bytes = b"") -> bytes:
    return HEADER.pack(b"i3-ipc", len(payload), msg_type) + payload


def recv_exact(sock: socket.socket, n: int) -> Optional[bytes]:
    buf = b""
    while len(buf) < n:
        chunk = sock.recv(n - len(buf))
        if not chunk:
            return None
        buf += chunk
    return buf


def recv_frame(sock: socket.socket) -> Optional[Tuple[int, bytes]]:
    hdr = recv_exact(sock, HEADER.size)
    if hdr is None:
        return None
    _, length, msg_type = HEADER.unpack(hdr)
    payload = recv_exact(sock, length) if length else b""
    if payload is None:
        return None
    return msg_type, payload


class FakePeer:
    """
    Minimal window manager stand-in on a unix socket.

    Replies to COMMAND / GET_WORKSPACES / GET_OUTPUTS / SUBSCRIBE. After a
    successful SUBSCRIBE it sends `events` and then either closes the
    connection (`close_after_events`) or waits for the client to hang up.
    """

    def __init__(self, path: str):
        self.path = path
        self.received: List[Tuple[int, bytes]] = []
        self.subscribe_ok = True
        self.events: List[Tuple[int, bytes]] = []
        self.close_after_events = False
        self.connections = 0

        self._srv: Optional[socket.socket] = None
        self._thread: Optional[threading.Thread] = None
        self._stop = threading.Event()
        self._lock = threading.Lock()

    def start(self) -> "FakePeer":
        srv = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
        srv.bind(self.path)
        srv.listen(8)
        srv.settimeout(0.1)
        self._srv = srv
        self._thread = threading.Thread(target=self._serve, daemon=True)
        self._thread.start()
        return self

    def stop(self) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout=1.0)
        if self._srv is not None:
            self._srv.close()

    def _serve(self) -> None:
        while not self._stop.is_set():
            try:
                conn, _ = self._srv.accept()
            except socket.timeout:
                continue
            except OSError:
                return
            with self._lock:
                self.connections += 1
            threading.Thread(target=self._handle, args=(conn,), daemon=True).start()

    def _handle(self, conn: socket.socket) -> None:
        with conn:
            while True:
                try:
                    got = recv_frame(conn)
                except OSError:
                    return
                if got is None:
                    return
                msg_type, payload = got
                with self._lock:
                    self.received.append(got)

                if msg_type == 0:
                    text = payload.decode("utf-8")
                    if text == "fail":
                        body = {"success": False, "error": "unknown command"}
                    else:
                        body = {"success": True}
                    conn.sendall(pack_frame(0, json.dumps(body).encode()))
                elif msg_type == 1:
                    conn.sendall(pack_frame(1, json.dumps(WORKSPACES_REPLY).encode()))
                elif msg_type == 3:
                    conn.sendall(pack_frame(3, json.dumps(OUTPUTS_REPLY).encode()))
                elif msg_type == 2:
                    conn.sendall(pack_frame(2, json.dumps({"success": self.subscribe_ok}).encode()))
                    if not self.subscribe_ok:
                        continue
                    for code, body in self.events:
                        conn.sendall(pack_frame(code, body))
                    if self.close_after_events:
                        return
                else:
                    return


@pytest.fixture
def proto() -> Protocol:
    return Protocol.load()


@pytest.fixture
def wire():
    return SimpleNamespace(pack=pack_frame, recv=recv_frame, header=HEADER)


@pytest.fixture
def socket_pair():
    a, b = socket.socketpair()
    yield a, b
    for s in (a, b):
        try:
            s.close()
        except OSError:
            pass


@pytest.fixture
def short_tmp():
    # AF_UNIX paths are limited to ~100 bytes; pytest's tmp_path can exceed that
    d = tempfile.mkdtemp(prefix="i3l-")
    yield d
    shutil.rmtree(d, ignore_errors=True)


@pytest.fixture
def fake_peer(short_tmp):
    peer = FakePeer(os.path.join(short_tmp, "ipc.sock")).start()
    yield peer
    peer.stop()
