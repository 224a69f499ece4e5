from __future__ import annotations

import logging
import socket
import time
from typing import Any, Dict, Optional, Tuple

from client.config import CLIENT_CONFIG
from shared.protocol import framing
from shared.protocol.chunks import Reassembler
from shared.protocol.constants import PING_TOKEN, PONG_TOKEN
from shared.protocol.errors import TransportError, TransportIOError, TransportTimeout
from shared.protocol.messages import Request, Response
from shared.protocol.transport import receive_message, send_message

logger = logging.getLogger(__name__)


class UDPClient:
    """Datagram client bound to an ephemeral port and connected to one server."""

    def __init__(
        self,
        host: Optional[str] = None,
        port: Optional[int] = None,
        config: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.config = config or CLIENT_CONFIG
        self.host: str = host or self.config["server_host"]
        self.port: int = int(port or self.config["server_port"])
        self.timeout: float = self.config["connect_timeout_ms"] / 1000
        self.request_timeout: float = self.config["request_timeout_ms"] / 1000
        self.poll_interval: float = self.config["poll_interval_ms"] / 1000
        self._reassembler = Reassembler()

        sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
        try:
            sock.bind(("", 0))
            sock.connect((self.host, self.port))
            sock.setblocking(False)
        except OSError:
            sock.close()
            raise
        self._sock: Optional[socket.socket] = sock
        logger.info("Datagram socket %s connected to %s:%s", self.local_address, self.host, self.port)

    @property
    def local_address(self) -> Optional[Tuple[str, int]]:
        if self._sock is None:
            return None
        return self._sock.getsockname()

    @property
    def closed(self) -> bool:
        return self._sock is None

    def _socket(self) -> socket.socket:
        if self._sock is None:
            raise TransportIOError("Socket is closed")
        return self._sock

    def send(self, message: bytes) -> int:
        return send_message(self._socket().send, message)

    async def receive(self, timeout: Optional[float] = None) -> bytes:
        timeout = self.request_timeout if timeout is None else timeout
        return await receive_message(self._socket(), timeout, self.poll_interval, self._reassembler)

    async def probe(self, timeout: Optional[float] = None) -> bool:
        """Send PING and wait for an exact PONG; any failure means not alive."""
        timeout = self.timeout if timeout is None else timeout
        deadline = time.monotonic() + timeout
        try:
            self.send(PING_TOKEN)
            while True:
                reply = await self.receive(max(0.0, deadline - time.monotonic()))
                if reply == PONG_TOKEN:
                    return True
                logger.debug("Ignoring unexpected probe reply (%s bytes)", len(reply))
        except TransportTimeout:
            logger.info("No reply to connection check within %.1fs", timeout)
        except TransportError as exc:
            logger.warning("Connection check failed: %s", exc)
        return False

    async def send_and_receive(self, request: Request) -> Response:
        """One request/response round trip; replies to other requests are skipped."""
        self.send(framing.encode_request(request))
        deadline = time.monotonic() + self.request_timeout
        while True:
            raw = await self.receive(max(0.0, deadline - time.monotonic()))
            if raw == PONG_TOKEN:
                continue
            response = framing.decode_response(raw)
            if response.id != request.id:
                logger.debug("Skipping stale response %s (waiting for %s)", response.id, request.id)
                continue
            logger.info("Received response for %s: status %s", response.command_text, response.status)
            return response

    def close(self) -> None:
        if self._sock is None:
            return
        try:
            self._sock.close()
            logger.info("Connection closed")
        except OSError as exc:
            logger.error("Error while closing socket: %s", exc)
        finally:
            self._sock = None
            self._reassembler.reset()

    def __enter__(self) -> "UDPClient":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
