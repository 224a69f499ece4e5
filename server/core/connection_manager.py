from __future__ import annotations

from typing import Dict, Optional

from shared.protocol.chunks import Reassembler

from .connection import Address, ClientContext


class ConnectionManager:
    """Tracks a receive context per client address."""

    def __init__(self, max_pending_messages: int = 8) -> None:
        self.max_pending_messages = max_pending_messages
        self._by_address: Dict[Address, ClientContext] = {}

    def __len__(self) -> int:
        return len(self._by_address)

    def get_or_create(self, address: Address) -> ClientContext:
        ctx = self._by_address.get(address)
        if ctx is None:
            ctx = ClientContext(address=address, reassembler=Reassembler(self.max_pending_messages))
            self._by_address[address] = ctx
        return ctx

    def get(self, address: Address) -> Optional[ClientContext]:
        return self._by_address.get(address)

    def unregister(self, address: Address) -> Optional[ClientContext]:
        return self._by_address.pop(address, None)

    def cleanup_idle(self, idle_before: float) -> Dict[Address, ClientContext]:
        removed: Dict[Address, ClientContext] = {}
        for address, ctx in list(self._by_address.items()):
            if ctx.last_seen < idle_before:
                self._by_address.pop(address, None)
                removed[address] = ctx
        return removed
