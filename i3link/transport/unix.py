# i3link/transport/unix.py
from __future__ import annotations

import socket
import threading
from typing import Optional

from .base import Transport
from .errors import BrokenPipe, ConnectionClosed, ConnectRefused, TransportTimeout


class UnixSocketTransport(Transport):
    """
    Unix domain stream socket.

    timeout=None blocks indefinitely; a timeout applies to each read/write call.
    """

    def __init__(self, path: str, timeout: Optional[float] = None):
        self.path = str(path)
        self.timeout = timeout
        self.sock: Optional[socket.socket] = None
        self._close_lock = threading.Lock()

    @classmethod
    def from_socket(cls, sock: socket.socket, *, timeout: Optional[float] = None) -> "UnixSocketTransport":
        """Adopt an already connected socket (e.g. one end of socket.socketpair())."""
        t = cls(path="<adopted>", timeout=timeout)
        sock.settimeout(timeout)
        t.sock = sock
        return t

    @property
    def endpoint(self) -> str:
        return f"unix:{self.path}"

    def open(self) -> None:
        if self.sock is not None:
            return
        sock = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
        try:
            sock.settimeout(self.timeout)
            sock.connect(self.path)
        except OSError as e:
            sock.close()
            raise ConnectRefused(f"could not connect to {self.path!r}: {e}") from None
        self.sock = sock

    def close(self) -> None:
        with self._close_lock:
            sock, self.sock = self.sock, None
        if sock is None:
            return
        try:
            # wakes any thread blocked in recv()
            sock.shutdown(socket.SHUT_RDWR)
        except OSError:
            pass
        finally:
            sock.close()

    def is_open(self) -> bool:
        return self.sock is not None

    def read(self, n: int) -> bytes:
        sock = self.sock
        if sock is None:
            raise ConnectionClosed("read while transport not open")
        try:
            return sock.recv(n)
        except socket.timeout:
            raise TransportTimeout(f"read timed out after {self.timeout}s") from None
        except OSError as e:
            if self.sock is None:
                raise ConnectionClosed("transport closed during read") from None
            raise BrokenPipe(f"unix socket read failed: {e}") from None

    def write(self, data: bytes) -> int:
        sock = self.sock
        if sock is None:
            raise ConnectionClosed("write while transport not open")
        try:
            return sock.send(data)
        except socket.timeout:
            raise TransportTimeout(f"write timed out after {self.timeout}s") from None
        except OSError as e:
            if self.sock is None:
                raise ConnectionClosed("transport closed during write") from None
            raise BrokenPipe(f"unix socket write failed: {e}") from None

    def flush(self) -> None:
        if self.sock is None:
            raise ConnectionClosed("flush while transport not open")
