# i3link/transport/__init__.py
from .base import Transport
from .errors import (
    TransportError,
    ConnectRefused,
    BrokenPipe,
    TransportTimeout,
    ConnectionClosed,
)
from .unix import UnixSocketTransport
from .serial_url import SerialUrlTransport
from .registry import TransportDriverRegistry

__all__ = [
    "Transport",
    "TransportError", "ConnectRefused", "BrokenPipe", "TransportTimeout", "ConnectionClosed",
    "UnixSocketTransport", "SerialUrlTransport",
    "TransportDriverRegistry",
]
