from __future__ import annotations

import asyncio
import contextlib
import logging
import time
from typing import Optional

from server.core.connection_manager import ConnectionManager

logger = logging.getLogger(__name__)


class ContextCleaner:
    """Periodically drops receive contexts of clients that went quiet."""

    def __init__(self, connection_manager: ConnectionManager, timeout: int = 300, interval: int = 30) -> None:
        self.connection_manager = connection_manager
        self.timeout = timeout
        self.interval = interval
        self._task: Optional[asyncio.Task] = None

    def start(self) -> None:
        if self._task is None:
            self._task = asyncio.create_task(self._run(), name="context-cleaner")

    async def stop(self) -> None:
        if self._task:
            self._task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._task
            self._task = None

    def sweep(self) -> int:
        removed = self.connection_manager.cleanup_idle(time.time() - self.timeout)
        if removed:
            logger.info("Cleaned up %s idle client contexts", len(removed))
        return len(removed)

    async def _run(self) -> None:
        while True:
            try:
                self.sweep()
            except Exception as exc:
                logger.exception("Context cleaner failed: %s", exc)
            await asyncio.sleep(self.interval)
