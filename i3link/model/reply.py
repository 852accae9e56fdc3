# i3link/model/reply.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from ._fields import field, require_object


@dataclass(frozen=True)
class CommandReply:
    """Acknowledgement for COMMAND and SUBSCRIBE. Unknown fields are ignored."""
    success: bool
    error: Optional[str] = None

    @classmethod
    def from_json(cls, obj: Any) -> "CommandReply":
        o = require_object(obj, "reply")
        return cls(
            success=field(o, "success", bool, "reply"),
            error=field(o, "error", str, "reply", default=None),
        )

    def as_dict(self) -> dict:
        d: dict = {"success": self.success}
        if self.error is not None:
            d["error"] = self.error
        return d
