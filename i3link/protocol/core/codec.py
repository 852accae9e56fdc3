# i3link/protocol/core/codec.py
from __future__ import annotations

import logging
from typing import Optional, Protocol as TypingProtocol

from i3link.protocol.errors import BadMagic, ProtocolError, TruncatedFrame
from .defs import Protocol
from .frames import Frame


class ByteSource(TypingProtocol):
    """read(n) returns 0..n bytes; b"" means end of stream."""
    def read(self, n: int) -> bytes: ...


def read_exact(stream: ByteSource, n: int, *, offset: int = 0, total: Optional[int] = None) -> bytes:
    """
    Read exactly n bytes or raise TruncatedFrame.

    `offset`/`total` place these bytes inside the enclosing frame so the
    error reports frame-relative counts.
    """
    total = n if total is None else total
    buf = bytearray()
    while len(buf) < n:
        chunk = stream.read(n - len(buf))
        if not chunk:
            received = offset + len(buf)
            raise TruncatedFrame(total, received, at_boundary=(received == 0))
        buf.extend(chunk)
    return bytes(buf)


class FrameCodec:
    def __init__(self, proto: Protocol, logger: Optional[logging.Logger] = None):
        self.proto = proto
        self._log = logger or logging.getLogger(__name__)

    def encode(self, msg_type: int, payload: bytes = b"") -> bytes:
        payload = bytes(payload)
        if self.proto.max_payload and len(payload) > self.proto.max_payload:
            raise ProtocolError(f"Payload too long: {len(payload)} > max_payload {self.proto.max_payload}")
        if not 0 <= int(msg_type) <= 0xFFFFFFFF:
            raise ProtocolError(f"Message type out of range: {msg_type}")
        return self.proto.pack_header(msg_type, len(payload)) + payload

    def decode(self, stream: ByteSource) -> Frame:
        hdr_size = self.proto.header_size
        magic_len = len(self.proto.magic)

        # magic first, so a desynchronized stream fails before we trust a length
        magic = read_exact(stream, magic_len, total=hdr_size)
        if magic != self.proto.magic:
            raise BadMagic(magic, self.proto.magic)

        rest = read_exact(stream, hdr_size - magic_len, offset=magic_len, total=hdr_size)
        _, length, msg_type = self.proto.unpack_header(magic + rest)

        if self.proto.max_payload and length > self.proto.max_payload:
            raise ProtocolError(f"Payload length too large: {length} (max={self.proto.max_payload})")

        payload = read_exact(stream, length, offset=hdr_size, total=hdr_size + length) if length else b""

        self._log.debug("FRAME_DECODED type=%d len=%d", msg_type, length)
        return Frame(msg_type=msg_type, payload=payload)
