# i3link/model/geometry.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from ._fields import field, require_object


@dataclass(frozen=True)
class Rect:
    x: int
    y: int
    width: int
    height: int

    @classmethod
    def from_json(cls, obj: Any) -> "Rect":
        o = require_object(obj, "rect")
        return cls(
            x=field(o, "x", int, "rect"),
            y=field(o, "y", int, "rect"),
            width=field(o, "width", int, "rect"),
            height=field(o, "height", int, "rect"),
        )

    def as_dict(self) -> dict:
        return {"x": self.x, "y": self.y, "width": self.width, "height": self.height}
