from __future__ import annotations

import socket
from typing import Any, Dict

import pytest

from client.config import DEFAULT_CONFIG


@pytest.fixture
def make_client_config():
    def _make(port: int, **overrides: Any) -> Dict[str, Any]:
        config = dict(DEFAULT_CONFIG)
        config.update(
            server_host="127.0.0.1",
            server_port=port,
            connect_timeout_ms=1000,
            request_timeout_ms=1000,
            poll_interval_ms=5,
        )
        config.update(overrides)
        return config

    return _make


@pytest.fixture
def udp_socket():
    sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
    sock.bind(("127.0.0.1", 0))
    sock.setblocking(False)
    yield sock
    sock.close()
