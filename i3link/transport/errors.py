# i3link/transport/errors.py
from __future__ import annotations


class TransportError(Exception):
    """Base class for transport-layer failures."""


class ConnectRefused(TransportError):
    """The peer endpoint could not be opened."""


class BrokenPipe(TransportError):
    """The stream failed while reading or writing."""


class TransportTimeout(TransportError):
    """No progress within the configured timeout."""


class ConnectionClosed(TransportError):
    """The stream was closed locally."""
