# i3link/protocol/core/decoder.py
from __future__ import annotations

import json
from typing import Any, Callable, Dict, Tuple

from i3link.model import CommandReply, Output, OutputEvent, Workspace, WorkspaceEvent
from i3link.protocol.errors import JsonParseError, ProtocolError


REPLY_SHAPES: Dict[str, Callable[[Any], Any]] = {
    "command_reply": CommandReply.from_json,
    "workspace_list": Workspace.list_from_json,
    "output_list": Output.list_from_json,
}

EVENT_SHAPES: Dict[str, Callable[[Any], Any]] = {
    "workspace_event": WorkspaceEvent.from_json,
    "output_event": OutputEvent.from_json,
}


def parse_json(payload: bytes) -> Any:
    try:
        return json.loads(payload.decode("utf-8"))
    except UnicodeDecodeError as e:
        raise JsonParseError(f"payload is not valid UTF-8: {e}") from None
    except json.JSONDecodeError as e:
        raise JsonParseError(f"payload is not valid JSON: {e}") from None


def decode_reply(proto, code: int, payload: bytes) -> Any:
    msg = proto.messages_by_code.get(int(code))
    if not msg:
        raise ProtocolError(f"No reply shape for message code={code}")

    shape = msg.get("reply")
    if shape is None:
        return parse_json(payload)
    return REPLY_SHAPES[shape](parse_json(payload))


def decode_event(proto, code: int, payload: bytes) -> Tuple[str, Any]:
    ev = proto.events_by_code.get(int(code))
    if not ev:
        raise ProtocolError(f"No event registered for code={code}")

    return ev["name"], EVENT_SHAPES[ev["shape"]](parse_json(payload))
