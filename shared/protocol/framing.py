from __future__ import annotations

import json
from typing import Any, Dict

from . import validator
from .constants import ENCODING
from .errors import ErrorCode, ProtocolError, StatusCode
from .messages import Request, Response


def encode_msg(msg: Dict[str, Any]) -> bytes:
    """Encode message dict into compact UTF-8 JSON bytes."""
    try:
        json_str = json.dumps(msg, ensure_ascii=False, separators=(",", ":"))
    except (TypeError, ValueError) as exc:
        raise ProtocolError(StatusCode.BAD_REQUEST, message=f"Encode failed: {exc}") from exc
    return json_str.encode(ENCODING)


def decode_msg(data: bytes) -> Dict[str, Any]:
    """Decode bytes into a dictionary."""
    try:
        decoded = json.loads(data.decode(ENCODING))
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise ProtocolError(StatusCode.BAD_REQUEST, ErrorCode.DECODE_FAILED, f"Decode failed: {exc}") from exc
    if not isinstance(decoded, dict):
        raise ProtocolError(StatusCode.BAD_REQUEST, ErrorCode.DECODE_FAILED, "Message must be a JSON object")
    return decoded


def encode_request(request: Request) -> bytes:
    return encode_msg(request.model_dump(mode="json"))


def decode_request(data: bytes) -> Request:
    msg = decode_msg(data)
    validator.validate_msg(msg)
    return Request.from_dict(msg)


def encode_response(response: Response) -> bytes:
    return encode_msg(response.model_dump(mode="json"))


def decode_response(data: bytes) -> Response:
    msg = decode_msg(data)
    validator.validate_msg(msg)
    return Response.from_dict(msg)


__all__ = [
    "encode_msg",
    "decode_msg",
    "encode_request",
    "decode_request",
    "encode_response",
    "decode_response",
]
