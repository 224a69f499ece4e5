from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Tuple

from shared.protocol.chunks import Reassembler

Address = Tuple[str, int]


@dataclass
class ClientContext:
    """Per-address receive state: one reassembly pipeline per client."""

    address: Address
    reassembler: Reassembler = field(default_factory=Reassembler)
    last_seen: float = field(default_factory=time.time)
    requests_handled: int = 0

    @property
    def peername(self) -> str:
        host, port = self.address[0], self.address[1]
        return f"{host}:{port}"

    def touch(self) -> None:
        self.last_seen = time.time()
