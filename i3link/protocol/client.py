# i3link/protocol/client.py
from __future__ import annotations

import logging
from typing import Any, List, Optional, Union

from i3link.model import CommandReply, Output, Workspace

from .correlator import RequestCorrelator
from .core import Frame, MessageType
from .errors import CommandFailed, ProtocolError


class I3Client:
    """
    User-facing API over RequestCorrelator.
    """

    def __init__(self, correlator: RequestCorrelator, *, logger: Optional[logging.Logger] = None):
        self._correlator = correlator
        self._log = logger or logging.getLogger(__name__)

    @property
    def proto(self):
        return self._correlator.proto

    def _request(self, msg: Union[MessageType, str], payload: bytes = b"") -> Frame:
        name = msg.name if isinstance(msg, MessageType) else msg
        code = self.proto.message_code(name)
        frame = self._correlator.request(code, payload)
        if frame.msg_type != code:
            raise ProtocolError(f"{name} answered with message type {frame.msg_type} (expected {code})")
        return frame

    def request_json(self, name: str, payload: bytes = b"") -> Any:
        """Send any known message and return its reply as plain JSON."""
        return self._request(name, payload).json()

    def command(self, text: str, *, check: bool = True) -> CommandReply:
        frame = self._request(MessageType.COMMAND, text.encode("utf-8"))
        reply: CommandReply = self.proto.decode_reply(frame.msg_type, frame.payload)
        if check and not reply.success:
            raise CommandFailed("COMMAND", reply.as_dict(), error=reply.error)
        return reply

    def get_workspaces(self) -> List[Workspace]:
        frame = self._request(MessageType.GET_WORKSPACES)
        workspaces: List[Workspace] = self.proto.decode_reply(frame.msg_type, frame.payload)

        focused = sum(1 for w in workspaces if w.focused)
        if workspaces and focused != 1:
            self._log.warning("WORKSPACES_FOCUS_COUNT focused=%d total=%d", focused, len(workspaces))
        return workspaces

    def get_outputs(self) -> List[Output]:
        frame = self._request(MessageType.GET_OUTPUTS)
        outputs: List[Output] = self.proto.decode_reply(frame.msg_type, frame.payload)

        for o in outputs:
            if not o.consistent:
                self._log.warning(
                    "OUTPUT_INCONSISTENT name=%s active=%s current_workspace=%s",
                    o.name, o.active, o.current_workspace,
                )
        return outputs
