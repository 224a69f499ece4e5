from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any, Dict, Optional

from client.config import CLIENT_CONFIG
from shared.protocol.errors import TransportError
from shared.utils.common import elapsed_ms

from .network import UDPClient

logger = logging.getLogger(__name__)

ClientFactory = Callable[[], UDPClient]
InteractiveRunner = Callable[[UDPClient], Awaitable[bool]]
Notifier = Callable[[str], None]
Clock = Callable[[], float]
Sleeper = Callable[[float], Awaitable[Any]]

CONNECTED_MESSAGE = "Connected to the server."
CONNECTION_LOST_MESSAGE = "Connection to the server lost!"


class ConnectionStatus(StrEnum):
    DISCONNECTED = "disconnected"
    CONNECTED = "connected"


@dataclass
class ConnectionState:
    """Connection health as seen by the reconnect loop. Times are monotonic seconds."""

    status: ConnectionStatus = ConnectionStatus.DISCONNECTED
    last_success_at: float = field(default_factory=time.monotonic)
    loss_announced: bool = False

    def mark_connected(self, now: float) -> None:
        self.status = ConnectionStatus.CONNECTED
        self.last_success_at = now
        self.loss_announced = False

    def mark_disconnected(self, now: float) -> None:
        # the link was usable up to the moment the interactive session ended
        if self.status is ConnectionStatus.CONNECTED:
            self.last_success_at = now
        self.status = ConnectionStatus.DISCONNECTED

    def register_failure(self, now: float, threshold_ms: float) -> bool:
        """Record a failed attempt; True exactly once per outage, after the threshold."""
        self.status = ConnectionStatus.DISCONNECTED
        if self.loss_announced or elapsed_ms(self.last_success_at, now) <= threshold_ms:
            return False
        self.loss_announced = True
        return True


class ClientSession:
    """Reconnect loop: probe the server, run the interactive mode while it answers."""

    def __init__(
        self,
        client_factory: ClientFactory,
        interactive: InteractiveRunner,
        notify: Notifier = print,
        config: Optional[Dict[str, Any]] = None,
        clock: Clock = time.monotonic,
        sleep: Sleeper = asyncio.sleep,
    ) -> None:
        self.config = config or CLIENT_CONFIG
        self.client_factory = client_factory
        self.interactive = interactive
        self.notify = notify
        self.clock = clock
        self.sleep = sleep
        self.probe_timeout: float = self.config["connect_timeout_ms"] / 1000
        self.retry_interval: float = self.config["reconnect_interval_ms"] / 1000
        self.lost_threshold_ms: float = self.config["connection_lost_timeout_ms"]
        self.state = ConnectionState(last_success_at=clock())

    async def run(self) -> None:
        while True:
            if await self.run_once():
                logger.info("Session ended by user")
                return
            try:
                await self.sleep(self.retry_interval)
            except asyncio.CancelledError:
                logger.info("Reconnect loop interrupted, shutting down")
                raise

    async def run_once(self) -> bool:
        """One probe (and interactive session if alive). Returns True when the user quit."""
        try:
            client = self.client_factory()
        except OSError as exc:
            logger.error("Cannot open datagram socket: %s", exc)
            self._on_failure()
            return False

        try:
            if not await client.probe(self.probe_timeout):
                self._on_failure()
                return False
            self.state.mark_connected(self.clock())
            self.notify(CONNECTED_MESSAGE)
            try:
                return await self.interactive(client)
            except TransportError as exc:
                logger.warning("Connection dropped during session: %s", exc)
                return False
            finally:
                self.state.mark_disconnected(self.clock())
        finally:
            client.close()

    def _on_failure(self) -> None:
        now = self.clock()
        logger.debug("Server unreachable for %.0f ms", elapsed_ms(self.state.last_success_at, now))
        if self.state.register_failure(now, self.lost_threshold_ms):
            logger.warning("No successful connection check for %s ms", self.lost_threshold_ms)
            self.notify(CONNECTION_LOST_MESSAGE)
