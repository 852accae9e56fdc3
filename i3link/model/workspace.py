# i3link/model/workspace.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, List

from ._fields import field, require_list, require_object
from .geometry import Rect


@dataclass(frozen=True)
class Workspace:
    """
    One entry of a GET_WORKSPACES reply.

    `num` is not guaranteed to be contiguous. At most one workspace of a
    reply is expected to be focused; the wire format does not enforce it.
    """
    num: int
    name: str
    visible: bool
    focused: bool
    urgent: bool
    rect: Rect
    output: str

    @classmethod
    def from_json(cls, obj: Any) -> "Workspace":
        o = require_object(obj, "workspace")
        return cls(
            num=field(o, "num", int, "workspace"),
            name=field(o, "name", str, "workspace"),
            visible=field(o, "visible", bool, "workspace"),
            focused=field(o, "focused", bool, "workspace"),
            urgent=field(o, "urgent", bool, "workspace", default=False),
            rect=Rect.from_json(field(o, "rect", dict, "workspace")),
            output=field(o, "output", str, "workspace"),
        )

    @classmethod
    def list_from_json(cls, obj: Any) -> List["Workspace"]:
        return [cls.from_json(item) for item in require_list(obj, "workspaces")]

    def as_dict(self) -> dict:
        return {
            "num": self.num,
            "name": self.name,
            "visible": self.visible,
            "focused": self.focused,
            "urgent": self.urgent,
            "rect": self.rect.as_dict(),
            "output": self.output,
        }
