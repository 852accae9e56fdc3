# i3link/protocol/errors.py
from __future__ import annotations

from typing import Any, Optional


class ProtocolError(Exception):
    """Base for protocol-level failures (framing/parse/command semantics)."""


class BadMagic(ProtocolError):
    """Frame did not start with the magic literal; the stream is desynchronized."""

    def __init__(self, got: bytes, expected: bytes):
        super().__init__(f"bad magic {got!r} (expected {expected!r})")
        self.got = got
        self.expected = expected


class TruncatedFrame(ProtocolError):
    """Stream ended before a complete frame was read."""

    def __init__(self, expected: int, received: int, *, at_boundary: bool = False):
        super().__init__(f"stream closed after {received} of {expected} bytes")
        self.expected = expected
        self.received = received
        self.at_boundary = at_boundary


class JsonParseError(ProtocolError):
    pass


class ConnectionModeError(ProtocolError):
    """Operation not allowed in the connection's current state."""


class CommandFailed(ProtocolError):
    def __init__(self, cmd: str, reply: Any, error: Optional[str] = None):
        msg = f"{cmd} failed: {error}" if error else f"{cmd} failed: {reply}"
        super().__init__(msg)
        self.cmd = cmd
        self.reply = reply
        self.error = error


class SubscribeFailed(CommandFailed):
    def __init__(self, events: list[str], reply: Any):
        super().__init__("SUBSCRIBE", reply, error=f"peer rejected subscription to {events}")
        self.events = list(events)
