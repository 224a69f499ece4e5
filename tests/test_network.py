from __future__ import annotations

import asyncio
import socket

import pytest

from client.core.network import UDPClient
from shared.protocol import framing
from shared.protocol.chunks import Reassembler, decode_chunk
from shared.protocol.constants import PACKET_SIZE, PING_TOKEN, PONG_TOKEN
from shared.protocol.errors import TransportIOError
from shared.protocol.messages import Request, make_response
from shared.protocol.transport import send_message


async def _answer(sock: socket.socket, *replies: bytes) -> bytes:
    """Wait for one full message, send back `replies`, return what was received."""
    reassembler = Reassembler()
    while True:
        try:
            data, addr = sock.recvfrom(PACKET_SIZE)
        except BlockingIOError:
            await asyncio.sleep(0.005)
            continue
        message = reassembler.feed(decode_chunk(data))
        if message is None:
            continue
        for reply in replies:
            send_message(lambda chunk: sock.sendto(chunk, addr), reply)
        return message


@pytest.fixture
def client(udp_socket, make_client_config):
    udp_client = UDPClient(config=make_client_config(udp_socket.getsockname()[1]))
    yield udp_client
    udp_client.close()


@pytest.mark.asyncio
async def test_probe_succeeds_on_exact_pong(client, udp_socket):
    server = asyncio.create_task(_answer(udp_socket, PONG_TOKEN))

    assert await client.probe(timeout=1.0) is True
    assert await server == PING_TOKEN


@pytest.mark.asyncio
@pytest.mark.parametrize("reply", [b"PONGX", b"", b"pong"])
async def test_probe_fails_on_other_payloads(client, udp_socket, reply):
    server = asyncio.create_task(_answer(udp_socket, reply))

    assert await client.probe(timeout=0.3) is False
    await server


@pytest.mark.asyncio
async def test_probe_skips_stale_reply_before_pong(client, udp_socket):
    server = asyncio.create_task(_answer(udp_socket, b"stale", PONG_TOKEN))

    assert await client.probe(timeout=1.0) is True
    await server


@pytest.mark.asyncio
async def test_probe_fails_when_nobody_answers(client):
    assert await client.probe(timeout=0.2) is False


@pytest.mark.asyncio
async def test_probe_fails_when_server_port_is_closed(make_client_config):
    probe_sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
    probe_sock.bind(("127.0.0.1", 0))
    port = probe_sock.getsockname()[1]
    probe_sock.close()

    with UDPClient(config=make_client_config(port)) as udp_client:
        assert await udp_client.probe(timeout=0.2) is False


@pytest.mark.asyncio
async def test_send_and_receive_skips_responses_to_other_requests(client, udp_socket):
    request = Request(command="show")
    stale = make_response(Request(command="info"), message="old")
    fresh = make_response(request, message="fresh")
    server = asyncio.create_task(
        _answer(udp_socket, framing.encode_response(stale), framing.encode_response(fresh))
    )

    response = await client.send_and_receive(request)

    assert response.id == request.id
    assert response.payload.message == "fresh"
    assert framing.decode_request(await server).id == request.id


def test_close_is_idempotent(client):
    client.close()
    client.close()

    assert client.closed
    with pytest.raises(TransportIOError):
        client.send(b"late")
