from __future__ import annotations

import time
from typing import Optional
from uuid import uuid4


def generate_message_id(prefix: Optional[str] = None) -> str:
    """Generate unique request ids."""
    base = uuid4().hex
    return f"{prefix}-{base}" if prefix else base


def utc_timestamp() -> int:
    """Current UTC timestamp in seconds."""
    return int(time.time())


def elapsed_ms(since: float, now: float) -> float:
    """Milliseconds between two monotonic readings (seconds)."""
    return (now - since) * 1000.0


__all__ = ["generate_message_id", "utc_timestamp", "elapsed_ms"]
