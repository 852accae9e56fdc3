# i3link/runtime/state.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional


@dataclass(frozen=True)
class ConnectionStatus:
    """
    Runtime state of one connection to the peer.
    """
    role: str                     # "request" | "event"
    endpoint: str
    state: str
    last_error: Optional[str] = None


@dataclass(frozen=True)
class EventStatus:
    """
    Runtime state of the event stream.
    """
    subscribed: List[str] = field(default_factory=list)
    running: bool = False
    frames_received: int = 0
    dropped: Dict[str, int] = field(default_factory=dict)
    decode_errors: int = 0
    disconnect_reason: Optional[str] = None


@dataclass(frozen=True)
class SessionStatus:
    """
    A snapshot of the full session status, safe to share across threads.
    """
    request: Optional[ConnectionStatus]
    event: Optional[ConnectionStatus]
    events: EventStatus
