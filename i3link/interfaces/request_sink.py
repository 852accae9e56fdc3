# i3link/interfaces/request_sink.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Optional, Protocol


@dataclass(frozen=True, slots=True)
class RequestEvent:
    """
    Request telemetry event (for tracing/debugging).
    Keep this small + stable; put details into payload.
    """
    name: str                   # e.g. "GET_WORKSPACES"
    kind: str                   # "send" | "ok" | "error"
    payload: Optional[Mapping[str, Any]] = None
    rtt_ms: Optional[float] = None


class RequestSink(Protocol):
    def on_request(self, event: RequestEvent) -> None: ...
    def close(self) -> None: ...
