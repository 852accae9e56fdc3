# i3link/transport/serial_url.py
from __future__ import annotations

from typing import Optional

import serial
from serial import SerialException

from .base import Transport
from .errors import BrokenPipe, ConnectionClosed, ConnectRefused, TransportTimeout


class SerialUrlTransport(Transport):
    """
    Byte stream opened through pyserial's URL handlers.

    Useful when the IPC socket is bridged, e.g. `socket://127.0.0.1:7000`
    behind `socat UNIX-CONNECT:... TCP-LISTEN:7000`, a pty, or `loop://`.

    pyserial returns b"" on timeout rather than raising, so read() maps an
    empty read to TransportTimeout while a timeout is configured.
    """

    def __init__(self, url: str, timeout: Optional[float] = None):
        self.url = url
        self.timeout = timeout
        self.ser: Optional[serial.SerialBase] = None

    @property
    def endpoint(self) -> str:
        return self.url

    def open(self) -> None:
        if self.ser is not None:
            return
        try:
            self.ser = serial.serial_for_url(self.url, timeout=self.timeout, write_timeout=self.timeout)
        except (SerialException, ValueError) as e:
            self.ser = None
            raise ConnectRefused(f"could not open {self.url!r}: {e}") from None

    def close(self) -> None:
        if self.ser is not None:
            try:
                self.ser.close()
            finally:
                self.ser = None

    def is_open(self) -> bool:
        return self.ser is not None and self.ser.is_open

    def read(self, n: int) -> bytes:
        ser = self.ser
        if ser is None:
            raise ConnectionClosed("read while transport not open")
        try:
            chunk = ser.read(n)
        except SerialException as e:
            self.ser = None
            raise BrokenPipe(f"serial read failed: {e}") from None
        if not chunk and self.timeout is not None:
            raise TransportTimeout(f"read timed out after {self.timeout}s")
        return chunk

    def write(self, data: bytes) -> int:
        ser = self.ser
        if ser is None:
            raise ConnectionClosed("write while transport not open")
        try:
            written = ser.write(data)
        except serial.SerialTimeoutException:
            raise TransportTimeout(f"write timed out after {self.timeout}s") from None
        except SerialException as e:
            self.ser = None
            raise BrokenPipe(f"serial write failed: {e}") from None
        return len(data) if written is None else written

    def flush(self) -> None:
        ser = self.ser
        if ser is None:
            raise ConnectionClosed("flush while transport not open")
        try:
            ser.flush()
        except SerialException as e:
            self.ser = None
            raise BrokenPipe(f"serial flush failed: {e}") from None
