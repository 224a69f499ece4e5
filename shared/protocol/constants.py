"""Protocol-wide constants shared by client and server."""

DEFAULT_VERSION = "1.0"
ENCODING = "utf-8"

DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 23586

# Datagram layout: header (msg_id, index) + payload + continuation marker.
PACKET_SIZE = 1024
CHUNK_HEADER_FORMAT = "!IH"
CHUNK_HEADER_SIZE = 6
MARKER_SIZE = 1
MAX_CHUNK_PAYLOAD = PACKET_SIZE - CHUNK_HEADER_SIZE - MARKER_SIZE
MAX_CHUNKS_PER_MESSAGE = 0xFFFF + 1
MORE_CHUNKS = 0x00
LAST_CHUNK = 0x01

PING_TOKEN = b"PING"
PONG_TOKEN = b"PONG"

DEFAULT_TIMEOUT_MS = 5000
DEFAULT_RETRY_INTERVAL_MS = 1000
DEFAULT_LOST_THRESHOLD_MS = 30000
DEFAULT_POLL_INTERVAL_MS = 10

__all__ = [
    "DEFAULT_VERSION",
    "ENCODING",
    "DEFAULT_HOST",
    "DEFAULT_PORT",
    "PACKET_SIZE",
    "CHUNK_HEADER_FORMAT",
    "CHUNK_HEADER_SIZE",
    "MARKER_SIZE",
    "MAX_CHUNK_PAYLOAD",
    "MAX_CHUNKS_PER_MESSAGE",
    "MORE_CHUNKS",
    "LAST_CHUNK",
    "PING_TOKEN",
    "PONG_TOKEN",
    "DEFAULT_TIMEOUT_MS",
    "DEFAULT_RETRY_INTERVAL_MS",
    "DEFAULT_LOST_THRESHOLD_MS",
    "DEFAULT_POLL_INTERVAL_MS",
]
