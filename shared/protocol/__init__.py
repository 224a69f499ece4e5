"""
Shared protocol package: command names, message models, the JSON codec,
chunk framing and the datagram transport used by both client and server.
"""

from .chunks import Chunk, Reassembler, decode_chunk, encode_chunk, fragment, reassemble
from .commands import CommandName, expected_args, is_command, normalize_command, requires_product
from .constants import (
    DEFAULT_HOST,
    DEFAULT_PORT,
    DEFAULT_VERSION,
    ENCODING,
    MAX_CHUNK_PAYLOAD,
    PACKET_SIZE,
    PING_TOKEN,
    PONG_TOKEN,
)
from .errors import ErrorCode, ProtocolError, StatusCode, TransportError, TransportIOError, TransportTimeout
from .framing import decode_msg, decode_request, decode_response, encode_msg, encode_request, encode_response
from .messages import BaseMsg, Product, Request, RequestPayload, Response, ResponsePayload, make_response
from .transport import receive_message, send_message
from .validator import load_schema, validate_msg, validate_version

__all__ = [
    "Chunk",
    "Reassembler",
    "decode_chunk",
    "encode_chunk",
    "fragment",
    "reassemble",
    "CommandName",
    "expected_args",
    "is_command",
    "normalize_command",
    "requires_product",
    "DEFAULT_HOST",
    "DEFAULT_PORT",
    "DEFAULT_VERSION",
    "ENCODING",
    "MAX_CHUNK_PAYLOAD",
    "PACKET_SIZE",
    "PING_TOKEN",
    "PONG_TOKEN",
    "ErrorCode",
    "ProtocolError",
    "StatusCode",
    "TransportError",
    "TransportIOError",
    "TransportTimeout",
    "encode_msg",
    "decode_msg",
    "encode_request",
    "decode_request",
    "encode_response",
    "decode_response",
    "BaseMsg",
    "Product",
    "Request",
    "RequestPayload",
    "Response",
    "ResponsePayload",
    "make_response",
    "receive_message",
    "send_message",
    "load_schema",
    "validate_msg",
    "validate_version",
]
