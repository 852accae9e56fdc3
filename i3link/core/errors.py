# i3link/core/errors.py
from __future__ import annotations


class I3LinkError(Exception):
    """
    Base class for all expected operational errors in i3link.
    """

    #: Stable machine-readable identifier (for CLI exit mapping, logs, etc.)
    code: str = "unknown"

    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        details: dict | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.hint = hint
        self.details = details or {}

    def __str__(self) -> str:
        return self.message


# ---------------------------------------------------------------------------
# Configuration / setup errors (no peer access yet)
# ---------------------------------------------------------------------------

class ConfigError(I3LinkError):
    """
    Configuration is invalid.

    Examples:
      - unreadable or malformed config file
      - unknown transport driver
      - protocol metadata failed to load
    """
    code = "config_error"


# ---------------------------------------------------------------------------
# Could not talk to the peer
# ---------------------------------------------------------------------------

class PeerConnectError(I3LinkError):
    """
    The IPC endpoint could not be opened.

    Examples:
      - socket path does not exist
      - window manager not running
      - permission denied
    """
    code = "peer_connect_error"


class PeerDisconnectedError(I3LinkError):
    """
    The peer was reachable but the stream broke or was closed mid-exchange.
    """
    code = "peer_disconnected"


class ProtocolCommunicationError(I3LinkError):
    """
    Protocol-level communication failure.

    Examples:
      - bad magic (stream desynchronized)
      - request timed out
      - request on a connection that is subscribed or failed
    """
    code = "protocol_communication_error"


# ---------------------------------------------------------------------------
# Peer answered, but not with what we wanted
# ---------------------------------------------------------------------------

class MalformedReplyError(I3LinkError):
    """
    A reply or event payload could not be decoded.
    """
    code = "malformed_reply"


class CommandRejectedError(I3LinkError):
    """
    The peer responded with success:false.
    """
    code = "command_rejected"
