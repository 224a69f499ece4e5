from __future__ import annotations

import asyncio
import logging
import socket
import time
from collections.abc import Callable
from typing import Any, Optional

from .chunks import Reassembler, decode_chunk, fragment
from .constants import DEFAULT_POLL_INTERVAL_MS, PACKET_SIZE
from .errors import ProtocolError, TransportIOError, TransportTimeout

logger = logging.getLogger(__name__)

Writer = Callable[[bytes], Any]
Clock = Callable[[], float]


def send_message(write: Writer, message: bytes) -> int:
    """Fragment `message` and write every chunk as one datagram, in order.

    No acknowledgement is awaited. Returns the number of chunks written.
    """
    chunks = fragment(message)
    logger.debug("Sending %s chunk(s) for message %s (%s bytes)", len(chunks), chunks[0].msg_id, len(message))
    try:
        for chunk in chunks:
            write(chunk.to_bytes())
    except OSError as exc:
        raise TransportIOError(f"Send failed: {exc}") from exc
    return len(chunks)


async def receive_message(
    sock: socket.socket,
    timeout: float,
    poll_interval: float = DEFAULT_POLL_INTERVAL_MS / 1000,
    reassembler: Optional[Reassembler] = None,
    clock: Clock = time.monotonic,
) -> bytes:
    """Poll a non-blocking socket until a full message has been reassembled.

    Raises TransportTimeout once `timeout` seconds have passed since the call
    began and TransportIOError when the socket itself fails.
    """
    reassembler = reassembler if reassembler is not None else Reassembler()
    deadline = clock() + timeout
    while True:
        remaining = deadline - clock()
        if remaining <= 0:
            raise TransportTimeout(f"No complete message within {timeout:.3f}s")
        try:
            data = sock.recv(PACKET_SIZE)
        except (BlockingIOError, InterruptedError):
            await asyncio.sleep(min(poll_interval, remaining))
            continue
        except OSError as exc:
            raise TransportIOError(f"Receive failed: {exc}") from exc
        try:
            message = reassembler.feed(decode_chunk(data))
        except ProtocolError as exc:
            logger.warning("Dropping malformed datagram: %s", exc.message)
            continue
        if message is not None:
            logger.debug("Reassembled message (%s bytes)", len(message))
            return message


__all__ = ["send_message", "receive_message"]
