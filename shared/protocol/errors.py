from __future__ import annotations

from enum import IntEnum
from typing import Optional


class StatusCode(IntEnum):
    """HTTP-like status codes used across responses."""

    OK = 200
    BAD_REQUEST = 400
    NOT_FOUND = 404
    CONFLICT = 409
    UPGRADE_REQUIRED = 426
    INTERNAL_ERROR = 500
    UNKNOWN_COMMAND = 501


class ErrorCode(IntEnum):
    """Domain specific error codes."""

    VERSION_MISMATCH = 1002
    PARAM_MISSING = 1004
    INVALID_PRODUCT = 1007
    DECODE_FAILED = 1008


class ProtocolError(Exception):
    """Structured protocol exception carrying status + code + message."""

    def __init__(self, status: StatusCode, code: Optional[ErrorCode] = None, message: str = "") -> None:
        self.status = status
        self.code = code
        self.message = message
        super().__init__(f"{status.name} ({int(status)}): {message} (code={code.name if code else 'n/a'})")

    def to_payload(self) -> dict:
        """Map error into payload fragment consumable by clients."""
        return {
            "status": int(self.status),
            "message": self.message,
            "data": {"error_code": int(self.code)} if self.code is not None else None,
        }


class TransportError(Exception):
    """Datagram transport failure; the session loop retries on these."""


class TransportTimeout(TransportError):
    """No complete message was reassembled within the receive bound."""


class TransportIOError(TransportError):
    """The underlying socket operation failed."""


__all__ = [
    "StatusCode",
    "ErrorCode",
    "ProtocolError",
    "TransportError",
    "TransportTimeout",
    "TransportIOError",
]
