# i3link/model/events.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, ClassVar, FrozenSet

from ._fields import field, require_object


@dataclass(frozen=True)
class WorkspaceEvent:
    KNOWN_CHANGES: ClassVar[FrozenSet[str]] = frozenset({"focus", "init", "empty", "urgent"})

    change: str

    @classmethod
    def from_json(cls, obj: Any) -> "WorkspaceEvent":
        o = require_object(obj, "workspace event")
        return cls(change=field(o, "change", str, "workspace event"))

    @property
    def is_known(self) -> bool:
        return self.change in self.KNOWN_CHANGES

    def as_dict(self) -> dict:
        return {"change": self.change}


@dataclass(frozen=True)
class OutputEvent:
    KNOWN_CHANGES: ClassVar[FrozenSet[str]] = frozenset({"unspecified"})

    change: str

    @classmethod
    def from_json(cls, obj: Any) -> "OutputEvent":
        o = require_object(obj, "output event")
        return cls(change=field(o, "change", str, "output event"))

    @property
    def is_known(self) -> bool:
        return self.change in self.KNOWN_CHANGES

    def as_dict(self) -> dict:
        return {"change": self.change}
