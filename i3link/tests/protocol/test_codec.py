from __future__ import annotations

import io
import json

import pytest

from i3link.protocol.core import Frame, FrameCodec
from i3link.protocol.core.codec import read_exact
from i3link.protocol.errors import BadMagic, ProtocolError, TruncatedFrame


class TrickleStream:
    """Returns at most `step` bytes per read, like a slow socket."""
    def __init__(self, data: bytes, step: int = 1):
        self._buf = io.BytesIO(data)
        self._step = step

    def read(self, n: int) -> bytes:
        return self._buf.read(min(n, self._step))


def test_encode_command_exit_literal_bytes(proto):
    codec = FrameCodec(proto)
    raw = codec.encode(0, b"exit")
    assert raw == bytes.fromhex("69 33 2d 69 70 63 04 00 00 00 00 00 00 00 65 78 69 74")
    assert len(raw) == 14 + 4


def test_encode_empty_payload_is_header_only(proto):
    raw = FrameCodec(proto).encode(1)
    assert raw == b"i3-ipc" + b"\x00\x00\x00\x00" + b"\x01\x00\x00\x00"


@pytest.mark.parametrize("msg_type,payload", [
    (0, b"workspace 2"),
    (1, b""),
    (2, json.dumps(["workspace", "output"]).encode()),
    (0xFFFFFFFF, b"x" * 70000),
])
def test_decode_returns_what_was_encoded(proto, msg_type, payload):
    codec = FrameCodec(proto)
    frame = codec.decode(io.BytesIO(codec.encode(msg_type, payload)))
    assert frame == Frame(msg_type=msg_type, payload=payload)
    assert frame.length == len(payload)


def test_decode_reassembles_partial_reads(proto):
    codec = FrameCodec(proto)
    raw = codec.encode(3, b'[{"name":"LVDS1"}]')
    frame = codec.decode(TrickleStream(raw, step=1))
    assert frame.msg_type == 3
    assert frame.json() == [{"name": "LVDS1"}]


def test_decode_consecutive_frames_keep_boundaries(proto):
    codec = FrameCodec(proto)
    stream = io.BytesIO(codec.encode(0, b"a") + codec.encode(1, b"bc") + codec.encode(2))
    assert [codec.decode(stream).payload for _ in range(3)] == [b"a", b"bc", b""]


@pytest.mark.parametrize("index", range(6))
def test_any_flipped_magic_byte_raises_bad_magic(proto, index):
    codec = FrameCodec(proto)
    raw = bytearray(codec.encode(0, b"exit"))
    raw[index] ^= 0x01
    with pytest.raises(BadMagic) as ei:
        codec.decode(io.BytesIO(bytes(raw)))
    assert ei.value.expected == b"i3-ipc"


def test_bad_magic_is_detected_before_reading_length(proto):
    """
    Algorithm:
      - magic is wrong and the claimed length is huge
      - decode must fail on magic without waiting for the payload
    """
    raw = b"XX-ipc" + b"\xff\xff\xff\x7f" + b"\x00\x00\x00\x00"
    with pytest.raises(BadMagic):
        FrameCodec(proto).decode(io.BytesIO(raw))


def test_empty_stream_is_truncated_at_boundary(proto):
    with pytest.raises(TruncatedFrame) as ei:
        FrameCodec(proto).decode(io.BytesIO(b""))
    assert ei.value.at_boundary is True
    assert ei.value.received == 0


def test_truncated_header(proto):
    raw = FrameCodec(proto).encode(0, b"exit")[:9]
    with pytest.raises(TruncatedFrame) as ei:
        FrameCodec(proto).decode(io.BytesIO(raw))
    assert ei.value.at_boundary is False
    assert ei.value.received == 9
    assert ei.value.expected == 14


def test_truncated_payload_reports_frame_relative_counts(proto):
    raw = FrameCodec(proto).encode(0, b"exit")[:-2]
    with pytest.raises(TruncatedFrame) as ei:
        FrameCodec(proto).decode(io.BytesIO(raw))
    assert ei.value.expected == 18
    assert ei.value.received == 16


def test_max_payload_enforced_both_ways(proto):
    proto.max_payload = 4
    codec = FrameCodec(proto)
    with pytest.raises(ProtocolError):
        codec.encode(0, b"12345")

    raw = proto.pack_header(0, 5) + b"12345"
    with pytest.raises(ProtocolError):
        codec.decode(io.BytesIO(raw))


def test_encode_rejects_out_of_range_type(proto):
    with pytest.raises(ProtocolError):
        FrameCodec(proto).encode(-1, b"")


def test_read_exact_zero_bytes_reads_nothing():
    assert read_exact(io.BytesIO(b"abc"), 0) == b""
