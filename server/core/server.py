from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from typing import Any, Dict, Optional, Tuple

from shared.protocol import DEFAULT_VERSION, framing, validator
from shared.protocol.chunks import decode_chunk
from shared.protocol.constants import PING_TOKEN, PONG_TOKEN
from shared.protocol.errors import ProtocolError, StatusCode, TransportIOError
from shared.protocol.messages import Request, Response, ResponsePayload
from shared.protocol.transport import send_message
from shared.utils.common import generate_message_id

from .connection import Address, ClientContext
from .connection_manager import ConnectionManager
from .router import CommandRouter

logger = logging.getLogger(__name__)

AfterHook = Callable[[], None]


class _ServerProtocol(asyncio.DatagramProtocol):
    def __init__(self, server: "DatagramServer") -> None:
        self.server = server

    def datagram_received(self, data: bytes, addr: Tuple[str, int]) -> None:
        self.server.handle_datagram(data, addr)

    def error_received(self, exc: Exception) -> None:
        logger.warning("Datagram endpoint error: %s", exc)


class DatagramServer:
    """UDP server: reassembles requests per client address and replies through the router."""

    def __init__(
        self,
        host: str,
        port: int,
        router: CommandRouter,
        connection_manager: ConnectionManager,
        after_hook: Optional[AfterHook] = None,
    ) -> None:
        self.host = host
        self.port = port
        self.router = router
        self.connection_manager = connection_manager
        self.after_hook = after_hook
        self._transport: Optional[asyncio.DatagramTransport] = None

    async def start(self) -> None:
        loop = asyncio.get_running_loop()
        self._transport, _ = await loop.create_datagram_endpoint(
            lambda: _ServerProtocol(self), local_addr=(self.host, self.port)
        )
        self.host, self.port = self._transport.get_extra_info("sockname")[:2]
        logger.info("Server listening on %s:%s", self.host, self.port)

    def close(self) -> None:
        if self._transport is not None:
            self._transport.close()
            self._transport = None
            logger.info("Server socket closed")

    def set_after_hook(self, hook: Optional[AfterHook]) -> None:
        self.after_hook = hook

    def handle_datagram(self, data: bytes, addr: Address) -> None:
        ctx = self.connection_manager.get_or_create(addr)
        ctx.touch()
        try:
            message = ctx.reassembler.feed(decode_chunk(data))
        except ProtocolError as exc:
            logger.warning("Dropping malformed datagram from %s: %s", ctx.peername, exc.message)
            return
        if message is None:
            return
        reply = self.handle_message(ctx, message)
        self._send(addr, reply)

    def handle_message(self, ctx: ClientContext, message: bytes) -> bytes:
        if message == PING_TOKEN:
            logger.debug("Liveness probe from %s", ctx.peername)
            return PONG_TOKEN

        raw: Dict[str, Any] = {}
        try:
            raw = framing.decode_msg(message)
            validator.validate_msg(raw)
            request = Request.from_dict(raw)
            logger.info("Request %s from %s", request.command_text, ctx.peername)
            response = self.router.dispatch(request)
        except ProtocolError as exc:
            logger.warning("Protocol error for %s: %s", ctx.peername, exc)
            response = _error_response(raw, exc)
        except Exception as exc:
            logger.exception("Unhandled error for %s: %s", ctx.peername, exc)
            response = _error_response(raw, ProtocolError(StatusCode.INTERNAL_ERROR, message="Internal server error"))

        ctx.requests_handled += 1
        if self.after_hook:
            try:
                self.after_hook()
            except Exception as exc:
                logger.error("After-request hook failed: %s", exc)
        return framing.encode_response(response)

    def _send(self, addr: Address, data: bytes) -> None:
        if self._transport is None:
            logger.warning("Reply to %s dropped, server is closed", addr)
            return
        transport = self._transport
        try:
            send_message(lambda chunk: transport.sendto(chunk, addr), data)
        except TransportIOError as exc:
            logger.warning("Reply to %s failed: %s", addr, exc)


def _error_response(request: Dict[str, Any], error: ProtocolError) -> Response:
    req = request or {}
    headers = req.get("headers")
    headers = dict(headers) if isinstance(headers, dict) else {}
    headers["version"] = DEFAULT_VERSION
    return Response(
        id=str(req.get("id") or generate_message_id()),
        command=str(req.get("command") or ""),
        headers=headers,
        payload=ResponsePayload(**error.to_payload()),
    )
