# i3link/model/__init__.py
from .geometry import Rect
from .workspace import Workspace
from .output import Output
from .reply import CommandReply
from .events import WorkspaceEvent, OutputEvent

__all__ = [
    "Rect",
    "Workspace",
    "Output",
    "CommandReply",
    "WorkspaceEvent",
    "OutputEvent",
]
