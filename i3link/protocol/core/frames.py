# i3link/protocol/core/frames.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from .decoder import parse_json


@dataclass(frozen=True)
class Frame:
    """One magic + length + type + payload unit, header stripped."""
    msg_type: int
    payload: bytes = b""

    @property
    def length(self) -> int:
        return len(self.payload)

    def text(self) -> str:
        return self.payload.decode("utf-8", errors="replace")

    def json(self) -> Any:
        return parse_json(self.payload)
