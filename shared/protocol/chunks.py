"""
Chunk framing for the datagram transport.

Every datagram is ``header + payload + marker``: the header carries the
message id and the chunk index (big endian ``u32, u16``), the marker is one
trailing byte, ``0x01`` on the final chunk of a message and ``0x00`` otherwise.
"""

from __future__ import annotations

import itertools
import random
import struct
from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from .constants import (
    CHUNK_HEADER_FORMAT,
    LAST_CHUNK,
    MAX_CHUNK_PAYLOAD,
    MAX_CHUNKS_PER_MESSAGE,
    MORE_CHUNKS,
)
from .errors import ProtocolError, StatusCode

_HEADER = struct.Struct(CHUNK_HEADER_FORMAT)
_message_ids = itertools.count(random.randrange(0, 0xFFFFFFFF))


def next_message_id() -> int:
    """Return the next message id for this process (wraps at 2**32)."""
    return next(_message_ids) & 0xFFFFFFFF


@dataclass(frozen=True, slots=True)
class Chunk:
    msg_id: int
    index: int
    payload: bytes
    is_last: bool

    def to_bytes(self) -> bytes:
        return encode_chunk(self)


def encode_chunk(chunk: Chunk) -> bytes:
    if len(chunk.payload) > MAX_CHUNK_PAYLOAD:
        raise ProtocolError(StatusCode.BAD_REQUEST, message=f"Chunk payload too large: {len(chunk.payload)}")
    marker = LAST_CHUNK if chunk.is_last else MORE_CHUNKS
    return _HEADER.pack(chunk.msg_id, chunk.index) + chunk.payload + bytes([marker])


def decode_chunk(data: bytes) -> Chunk:
    if len(data) < _HEADER.size + 1:
        raise ProtocolError(StatusCode.BAD_REQUEST, message="Datagram shorter than chunk header")
    marker = data[-1]
    if marker not in (MORE_CHUNKS, LAST_CHUNK):
        raise ProtocolError(StatusCode.BAD_REQUEST, message=f"Invalid continuation marker {marker:#04x}")
    msg_id, index = _HEADER.unpack_from(data)
    return Chunk(msg_id=msg_id, index=index, payload=bytes(data[_HEADER.size : -1]), is_last=marker == LAST_CHUNK)


def fragment(message: bytes, msg_id: Optional[int] = None) -> List[Chunk]:
    """Split `message` into chunks; an empty message still yields one (last) chunk."""
    if msg_id is None:
        msg_id = next_message_id()
    pieces = [message[start : start + MAX_CHUNK_PAYLOAD] for start in range(0, len(message), MAX_CHUNK_PAYLOAD)]
    if not pieces:
        pieces = [b""]
    if len(pieces) > MAX_CHUNKS_PER_MESSAGE:
        raise ProtocolError(StatusCode.BAD_REQUEST, message=f"Message too large: {len(message)} bytes")
    last = len(pieces) - 1
    return [Chunk(msg_id=msg_id, index=i, payload=piece, is_last=i == last) for i, piece in enumerate(pieces)]


@dataclass
class _Partial:
    chunks: Dict[int, bytes] = field(default_factory=dict)
    last_index: Optional[int] = None

    def complete(self) -> bool:
        return self.last_index is not None and len(self.chunks) == self.last_index + 1


class Reassembler:
    """
    Rebuilds messages from chunks in any arrival order.

    Chunks are buffered per message id; duplicates are ignored, including
    late copies of a message that was already delivered. Only
    ``max_pending`` incomplete messages are kept, the oldest is dropped first,
    and the last ``max_completed`` delivered ids are remembered.
    """

    def __init__(self, max_pending: int = 8, max_completed: int = 64) -> None:
        self.max_pending = max_pending
        self.max_completed = max_completed
        self._pending: "OrderedDict[int, _Partial]" = OrderedDict()
        self._completed: "OrderedDict[int, None]" = OrderedDict()

    def __len__(self) -> int:
        return len(self._pending)

    def feed(self, chunk: Chunk) -> Optional[bytes]:
        if chunk.msg_id in self._completed:
            return None
        partial = self._pending.get(chunk.msg_id)
        if partial is None:
            partial = _Partial()
        if chunk.is_last:
            if partial.last_index is not None and partial.last_index != chunk.index:
                raise ProtocolError(StatusCode.BAD_REQUEST, message=f"Conflicting last chunk for message {chunk.msg_id}")
            if any(index > chunk.index for index in partial.chunks):
                raise ProtocolError(StatusCode.BAD_REQUEST, message=f"Chunk past end of message {chunk.msg_id}")
            partial.last_index = chunk.index
        if partial.last_index is not None and chunk.index > partial.last_index:
            raise ProtocolError(StatusCode.BAD_REQUEST, message=f"Chunk {chunk.index} past end of message {chunk.msg_id}")
        partial.chunks.setdefault(chunk.index, chunk.payload)

        if not partial.complete():
            if chunk.msg_id not in self._pending:
                self._pending[chunk.msg_id] = partial
                while len(self._pending) > self.max_pending:
                    self._pending.popitem(last=False)
            return None
        self._pending.pop(chunk.msg_id, None)
        self._completed[chunk.msg_id] = None
        while len(self._completed) > self.max_completed:
            self._completed.popitem(last=False)
        return b"".join(partial.chunks[i] for i in range(partial.last_index + 1))

    def reset(self) -> None:
        self._pending.clear()
        self._completed.clear()


def reassemble(chunks: List[Chunk]) -> bytes:
    """Reassemble a full set of chunks for a single message."""
    reassembler = Reassembler()
    for chunk in chunks:
        message = reassembler.feed(chunk)
        if message is not None:
            return message
    raise ProtocolError(StatusCode.BAD_REQUEST, message="Incomplete message")


__all__ = [
    "Chunk",
    "encode_chunk",
    "decode_chunk",
    "fragment",
    "next_message_id",
    "reassemble",
    "Reassembler",
]
