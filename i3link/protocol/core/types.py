# i3link/protocol/core/types.py
from __future__ import annotations

from enum import IntEnum

YAML_TO_STRUCT: dict[str, str] = {
    "uint8": "B", "int8": "b",
    "uint16": "H", "int16": "h",
    "uint32": "I", "int32": "i",
}

BYTE_ORDER_PREFIX: dict[str, str] = {
    "little": "<",
    "big": ">",
    "native": "=",
}


class MessageType(IntEnum):
    """Message codes of protocol version 3. Replies reuse the request code."""

    COMMAND = 0
    GET_WORKSPACES = 1
    SUBSCRIBE = 2
    GET_OUTPUTS = 3
