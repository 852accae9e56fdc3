# i3link/protocol/core/defs.py
from __future__ import annotations

import struct
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

from .types import BYTE_ORDER_PREFIX, YAML_TO_STRUCT
from .decoder import REPLY_SHAPES, EVENT_SHAPES, decode_reply, decode_event
from ..loader import ProtocolLoader


class Protocol:
    """Runtime access to protocol metadata."""

    def __init__(self, loader: ProtocolLoader):
        self.constants: Dict[str, Any] = loader.constants
        self.header_def: list[Dict[str, Any]] = loader.header
        self.messages: Dict[str, Dict[str, Any]] = loader.messages
        self.events: Dict[str, Dict[str, Any]] = loader.events
        self.version: int = loader.protocol_version()

        magic = self.constants.get("magic")
        if not isinstance(magic, str) or not magic:
            raise ValueError(f"Invalid magic in constants.yml: {magic!r}")
        self.magic: bytes = magic.encode("ascii")

        order = str(self.constants.get("byte_order", "little")).lower()
        if order not in BYTE_ORDER_PREFIX:
            raise ValueError(f"Unknown byte_order '{order}' (use one of {sorted(BYTE_ORDER_PREFIX)})")
        self.byte_order = order

        self.max_payload = int(self.constants.get("max_payload", 0) or 0)

        # Build header struct
        try:
            self.header_fields = [f["name"] for f in self.header_def]
            self.header_fmt = BYTE_ORDER_PREFIX[order] + "".join(
                self._field_fmt(f["type"]) for f in self.header_def
            )
        except KeyError as e:
            raise ValueError(f"Unknown header field type in header.yml: {e}") from None
        self.header_struct = struct.Struct(self.header_fmt)

        for required in ("magic", "len", "type"):
            if required not in self.header_fields:
                raise ValueError(f"header.yml is missing field '{required}'")

        # Fast lookup maps
        self.message_types: Dict[str, int] = {}
        self.messages_by_code: Dict[int, Dict[str, Any]] = {}
        for name, msg in self.messages.items():
            code = int(msg["code"])
            if code in self.messages_by_code:
                raise ValueError(
                    f"Duplicate message code={code} for '{name}' and '{self.messages_by_code[code]['name']}'"
                )
            shape = msg.get("reply")
            if shape is not None and shape not in REPLY_SHAPES:
                raise ValueError(f"Unknown reply shape '{shape}' for message '{name}'")
            self.message_types[name] = code
            self.messages_by_code[code] = dict(msg, name=name)

        self.event_types: Dict[str, int] = {}
        self.events_by_code: Dict[int, Dict[str, Any]] = {}
        for name, ev in self.events.items():
            code = int(ev["code"])
            if code in self.events_by_code:
                raise ValueError(
                    f"Duplicate event code={code} for '{name}' and '{self.events_by_code[code]['name']}'"
                )
            shape = ev.get("shape")
            if shape not in EVENT_SHAPES:
                raise ValueError(f"Unknown event shape '{shape}' for event '{name}'")
            self.event_types[name] = code
            self.events_by_code[code] = dict(ev, name=name)

    @classmethod
    def load(cls, config_dir: str | Path | None = None) -> "Protocol":
        loader = ProtocolLoader(config_dir)
        loader.load_all()
        return cls(loader)

    def _field_fmt(self, type_name: str) -> str:
        if type_name == "magic":
            return f"{len(self.magic)}s"
        return YAML_TO_STRUCT[type_name]

    @property
    def header_size(self) -> int:
        return self.header_struct.size

    def message_code(self, name: str) -> int:
        if name not in self.message_types:
            raise ValueError(f"Unknown message type: {name}")
        return self.message_types[name]

    def message_name(self, code: int) -> str:
        msg = self.messages_by_code.get(int(code))
        return msg["name"] if msg else f"TYPE_{int(code)}"

    def event_for_code(self, code: int) -> Optional[str]:
        ev = self.events_by_code.get(int(code))
        return ev["name"] if ev else None

    def pack_header(self, msg_type: int, length: int) -> bytes:
        fields = {"magic": self.magic, "len": int(length), "type": int(msg_type)}
        return self.header_struct.pack(*(fields[name] for name in self.header_fields))

    def unpack_header(self, raw: bytes) -> Tuple[bytes, int, int]:
        if len(raw) != self.header_struct.size:
            raise ValueError(f"Header size mismatch: {len(raw)} != {self.header_struct.size}")
        hdr = dict(zip(self.header_fields, self.header_struct.unpack(raw)))
        return hdr["magic"], hdr["len"], hdr["type"]

    # Delegated
    def decode_reply(self, code: int, payload: bytes) -> Any:
        return decode_reply(self, code, payload)

    def decode_event(self, code: int, payload: bytes) -> Any:
        return decode_event(self, code, payload)
