# i3link/model/output.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, List, Optional

from ._fields import field, require_list, require_object
from .geometry import Rect


@dataclass(frozen=True)
class Output:
    """
    One entry of a GET_OUTPUTS reply.

    current_workspace is None exactly when the output is inactive.
    """
    name: str
    active: bool
    current_workspace: Optional[int]
    rect: Rect

    @classmethod
    def from_json(cls, obj: Any) -> "Output":
        o = require_object(obj, "output")
        return cls(
            name=field(o, "name", str, "output"),
            active=field(o, "active", bool, "output"),
            current_workspace=field(o, "current_workspace", int, "output", default=None),
            rect=Rect.from_json(field(o, "rect", dict, "output")),
        )

    @classmethod
    def list_from_json(cls, obj: Any) -> List["Output"]:
        return [cls.from_json(item) for item in require_list(obj, "outputs")]

    @property
    def consistent(self) -> bool:
        return self.active == (self.current_workspace is not None)

    def as_dict(self) -> dict:
        return {
            "name": self.name,
            "active": self.active,
            "current_workspace": self.current_workspace,
            "rect": self.rect.as_dict(),
        }
