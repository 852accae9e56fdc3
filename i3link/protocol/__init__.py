# i3link/protocol/__init__.py

from .errors import (
    ProtocolError,
    BadMagic,
    TruncatedFrame,
    JsonParseError,
    ConnectionModeError,
    CommandFailed,
    SubscribeFailed,
)

__all__ = [
    "ProtocolError",
    "BadMagic", "TruncatedFrame", "JsonParseError",
    "ConnectionModeError", "CommandFailed", "SubscribeFailed",
]
