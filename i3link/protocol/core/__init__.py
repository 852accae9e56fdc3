# i3link/protocol/core/__init__.py

from .types import MessageType
from .defs import Protocol
from .frames import Frame
from .codec import FrameCodec

__all__ = [
    "MessageType",
    "Protocol",
    "Frame",
    "FrameCodec",
]
