"""Frame encoding and resumable decoding for the IPC wire format.

Each frame is an 8-byte header followed by a UTF-8 JSON payload::

    [ opcode : uint32 LE ] [ length : uint32 LE ] [ JSON payload : length bytes ]
"""

from __future__ import annotations

import json
import logging
import struct
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from discord_rpc.constants import OpCode
from discord_rpc.errors import ProtocolError, ProtocolErrorKind
from discord_rpc.limits import MAX_FRAME_BYTES

if TYPE_CHECKING:
    from collections.abc import Iterator

logger = logging.getLogger(__name__)

_HEADER = struct.Struct("<II")
HEADER_SIZE = _HEADER.size


@dataclass(frozen=True, slots=True)
class Frame:
    """One decoded opcode-tagged unit from the wire."""

    opcode: OpCode
    payload: Any


def encode(opcode: OpCode | int, payload: Any) -> bytes:
    """Serialise *payload* as JSON and prefix it with the frame header."""
    body = json.dumps(payload, separators=(",", ":"), ensure_ascii=False).encode("utf-8")
    if len(body) > MAX_FRAME_BYTES:
        msg = f"payload of {len(body)} bytes exceeds the {MAX_FRAME_BYTES} byte frame limit"
        raise ProtocolError(ProtocolErrorKind.MALFORMED_FRAME, msg)
    return _HEADER.pack(int(opcode), len(body)) + body


class FrameDecoder:
    """Accumulates raw bytes and yields frames once they are complete.

    ``feed`` never blocks; callers push bytes as the transport delivers them
    and pull frames with ``next_frame`` or ``frames``.  After a
    ``ProtocolError`` the decoder is poisoned and the connection must be
    dropped.
    """

    def __init__(self, *, max_frame_bytes: int = MAX_FRAME_BYTES) -> None:
        self._buffer = bytearray()
        self._max_frame_bytes = max_frame_bytes

    @property
    def buffered(self) -> int:
        """Number of bytes received but not yet consumed as frames."""
        return len(self._buffer)

    def feed(self, data: bytes) -> None:
        self._buffer.extend(data)

    def next_frame(self) -> Frame | None:
        """Pop one complete frame, or return ``None`` when more bytes are needed."""
        if len(self._buffer) < HEADER_SIZE:
            return None

        raw_opcode, length = _HEADER.unpack_from(self._buffer)
        if length > self._max_frame_bytes:
            msg = f"declared length {length} exceeds the {self._max_frame_bytes} byte limit"
            raise ProtocolError(ProtocolErrorKind.MALFORMED_FRAME, msg)
        try:
            opcode = OpCode(raw_opcode)
        except ValueError as exc:
            msg = f"unknown opcode {raw_opcode}"
            raise ProtocolError(ProtocolErrorKind.UNEXPECTED_OPCODE, msg) from exc

        end = HEADER_SIZE + length
        if len(self._buffer) < end:
            return None

        body = bytes(self._buffer[HEADER_SIZE:end])
        del self._buffer[:end]
        try:
            payload = json.loads(body.decode("utf-8")) if body else None
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            msg = f"undecodable {opcode.name} payload ({length} bytes)"
            raise ProtocolError(ProtocolErrorKind.MALFORMED_FRAME, msg) from exc

        logger.debug("Decoded %s frame (%d bytes)", opcode.name, length)
        return Frame(opcode=opcode, payload=payload)

    def frames(self) -> Iterator[Frame]:
        """Drain every complete frame currently buffered."""
        while (frame := self.next_frame()) is not None:
            yield frame

    def reset(self) -> None:
        self._buffer.clear()


__all__ = ["HEADER_SIZE", "Frame", "FrameDecoder", "encode"]
