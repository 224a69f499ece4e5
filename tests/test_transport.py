from __future__ import annotations

import os
import socket
import time

import pytest

from shared.protocol.chunks import fragment
from shared.protocol.constants import MAX_CHUNK_PAYLOAD
from shared.protocol.errors import TransportIOError, TransportTimeout
from shared.protocol.transport import receive_message, send_message


@pytest.fixture
def sender(udp_socket):
    sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
    sock.connect(udp_socket.getsockname())
    yield sock
    sock.close()


@pytest.mark.asyncio
async def test_large_message_crosses_loopback(sender, udp_socket):
    message = os.urandom(8 * MAX_CHUNK_PAYLOAD + 3)

    assert send_message(sender.send, message) == 9
    assert await receive_message(udp_socket, timeout=2.0) == message


@pytest.mark.asyncio
async def test_empty_message_crosses_loopback(sender, udp_socket):
    assert send_message(sender.send, b"") == 1
    assert await receive_message(udp_socket, timeout=2.0) == b""


@pytest.mark.asyncio
async def test_receive_times_out_when_nothing_arrives(udp_socket):
    start = time.monotonic()
    with pytest.raises(TransportTimeout):
        await receive_message(udp_socket, timeout=0.2, poll_interval=0.01)
    elapsed = time.monotonic() - start

    assert 0.2 <= elapsed < 0.5


@pytest.mark.asyncio
async def test_receive_reassembles_chunks_sent_out_of_order(sender, udp_socket):
    message = b"".join(bytes([i]) * 1000 for i in range(5))
    for chunk in reversed(fragment(message)):
        sender.send(chunk.to_bytes())

    assert await receive_message(udp_socket, timeout=2.0) == message


@pytest.mark.asyncio
async def test_receive_skips_malformed_datagrams(sender, udp_socket):
    sender.send(b"\x01")
    send_message(sender.send, b"hello")

    assert await receive_message(udp_socket, timeout=2.0) == b"hello"


def test_send_wraps_socket_errors():
    def broken(_: bytes) -> None:
        raise OSError("network is down")

    with pytest.raises(TransportIOError):
        send_message(broken, b"data")


@pytest.mark.asyncio
async def test_receive_wraps_socket_errors():
    sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
    sock.close()

    with pytest.raises(TransportIOError):
        await receive_message(sock, timeout=0.1)
