from __future__ import annotations

import socket
from unittest.mock import Mock

import pytest
import pytest_asyncio

from client.core.network import UDPClient
from server.config import SERVER_CONFIG
from server.core import ClientContext, CommandRouter, ConnectionManager, DatagramServer
from server.main import EXIT_BIND_FAILED, EXIT_INVALID_DATA, build_router, run_server
from server.storage import ProductRepository, SQLiteStore
from shared.protocol import framing
from shared.protocol.chunks import fragment
from shared.protocol.commands import CommandName
from shared.protocol.constants import PING_TOKEN, PONG_TOKEN
from shared.protocol.errors import StatusCode
from shared.protocol.messages import Product, Request, RequestPayload


@pytest_asyncio.fixture
async def running(tmp_path):
    store = SQLiteStore(str(tmp_path / "products.db"))
    repository = ProductRepository(store)
    connection_manager = ConnectionManager()
    server = DatagramServer("127.0.0.1", 0, build_router(repository), connection_manager)
    await server.start()
    yield server, repository
    server.close()
    store.close()


@pytest.fixture
def connect(make_client_config):
    clients = []

    def _connect(server: DatagramServer) -> UDPClient:
        client = UDPClient(config=make_client_config(server.port))
        clients.append(client)
        return client

    yield _connect
    for client in clients:
        client.close()


@pytest.mark.asyncio
async def test_probe_against_real_server(running, connect):
    server, _ = running

    assert await connect(server).probe(timeout=1.0) is True


@pytest.mark.asyncio
async def test_show_round_trip(running, connect):
    server, repository = running
    repository.add(Product(name="bolt", price=2.5, part_number="PN-100"))
    repository.add(Product(name="nut", price=1.0, part_number="PN-200"))

    response = await connect(server).send_and_receive(Request(command=CommandName.SHOW))

    assert response.status == StatusCode.OK
    assert response.payload.data == [p.model_dump(mode="json") for p in repository.list_products()]


@pytest.mark.asyncio
async def test_listing_larger_than_one_packet(running, connect):
    server, repository = running
    for i in range(40):
        repository.add(Product(name=f"part-{i}-" + "x" * 80, price=i + 1, part_number=f"PN-{i}"))

    response = await connect(server).send_and_receive(Request(command=CommandName.SHOW))

    assert len(framing.encode_response(response)) > 4 * 1024
    assert len(response.payload.data) == 40


@pytest.mark.asyncio
async def test_unknown_command_over_the_wire(running, connect):
    server, _ = running

    response = await connect(server).send_and_receive(Request(command="NOPE"))

    assert response.status == StatusCode.UNKNOWN_COMMAND


@pytest.mark.asyncio
async def test_malformed_and_outdated_requests_get_error_responses(running, connect):
    server, _ = running
    client = connect(server)

    client.send(b"not json")
    assert framing.decode_response(await client.receive(1.0)).status == StatusCode.BAD_REQUEST

    client.send(framing.encode_request(Request(command=CommandName.INFO, headers={"version": "0.9"})))
    assert framing.decode_response(await client.receive(1.0)).status == StatusCode.UPGRADE_REQUIRED


@pytest.mark.asyncio
async def test_each_client_address_gets_its_own_context(running, connect):
    server, _ = running
    first, second = connect(server), connect(server)

    assert await first.probe(timeout=1.0)
    assert await second.probe(timeout=1.0)
    assert len(server.connection_manager) == 2
    assert server.connection_manager.get(first.local_address) is not None


@pytest.mark.asyncio
async def test_after_hook_runs_after_each_request(running, connect):
    server, _ = running
    hook = Mock()
    server.set_after_hook(hook)
    client = connect(server)

    await client.send_and_receive(Request(command=CommandName.INFO))
    await client.send_and_receive(Request(command=CommandName.SHOW))

    assert hook.call_count == 2


def test_handler_crash_becomes_internal_error():
    def broken(request):
        raise RuntimeError("boom")

    router = CommandRouter()
    router.register(CommandName.SHOW, broken)
    server = DatagramServer("127.0.0.1", 0, router, ConnectionManager())
    ctx = ClientContext(address=("127.0.0.1", 50000))

    reply = server.handle_message(ctx, framing.encode_request(Request(command=CommandName.SHOW)))

    assert framing.decode_response(reply).status == StatusCode.INTERNAL_ERROR
    assert server.handle_message(ctx, PING_TOKEN) == PONG_TOKEN


def test_duplicated_request_datagram_runs_once(tmp_path):
    store = SQLiteStore(str(tmp_path / "products.db"))
    repository = ProductRepository(store)
    server = DatagramServer("127.0.0.1", 0, build_router(repository), ConnectionManager())
    request = Request(
        command=CommandName.ADD,
        payload=RequestPayload(product=Product(name="bolt", price=2.5, part_number="PN-100")),
    )
    wire = fragment(framing.encode_request(request))[0].to_bytes()

    server.handle_datagram(wire, ("127.0.0.1", 50000))
    server.handle_datagram(wire, ("127.0.0.1", 50000))

    assert len(repository) == 1
    store.close()


@pytest.fixture
def server_env(monkeypatch, tmp_path):
    saved = dict(SERVER_CONFIG)
    db_path = tmp_path / "products.db"
    monkeypatch.setenv("SERVER_DB_PATH", str(db_path))
    monkeypatch.setenv("SERVER_HOST", "127.0.0.1")
    yield db_path
    SERVER_CONFIG.clear()
    SERVER_CONFIG.update(saved)


@pytest.mark.asyncio
async def test_run_server_refuses_invalid_stored_products(server_env):
    store = SQLiteStore(str(server_env))
    store.replace_products(
        [
            {
                "id": 1,
                "name": "bolt",
                "price": -1.0,
                "part_number": "PN-1",
                "unit_of_measure": None,
                "creation_date": "2024-01-01T00:00:00+00:00",
            }
        ]
    )
    store.close()

    assert await run_server() == EXIT_INVALID_DATA


@pytest.mark.asyncio
async def test_run_server_reports_port_in_use(server_env, monkeypatch):
    with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as taken:
        taken.bind(("127.0.0.1", 0))
        monkeypatch.setenv("SERVER_PORT", str(taken.getsockname()[1]))

        assert await run_server() == EXIT_BIND_FAILED
