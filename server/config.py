from __future__ import annotations

import os
from typing import Any, Dict

from shared.protocol.constants import DEFAULT_HOST, DEFAULT_PORT

DEFAULT_SERVER_CONFIG: Dict[str, Any] = {
    "host": DEFAULT_HOST,
    "port": DEFAULT_PORT,
    "log_level": "INFO",
    "db_path": "data/products.db",
    "context_timeout": 300,
    "context_scan_interval": 30,
    "max_pending_messages": 8,
}

SERVER_CONFIG = DEFAULT_SERVER_CONFIG.copy()


def load_server_config() -> Dict[str, Any]:
    SERVER_CONFIG["host"] = os.getenv("SERVER_HOST", SERVER_CONFIG["host"])
    SERVER_CONFIG["port"] = int(os.getenv("SERVER_PORT", SERVER_CONFIG["port"]))
    SERVER_CONFIG["log_level"] = os.getenv("SERVER_LOG_LEVEL", SERVER_CONFIG["log_level"])
    SERVER_CONFIG["db_path"] = os.getenv("SERVER_DB_PATH", SERVER_CONFIG["db_path"])
    SERVER_CONFIG["context_timeout"] = int(os.getenv("SERVER_CONTEXT_TIMEOUT", SERVER_CONFIG["context_timeout"]))
    SERVER_CONFIG["context_scan_interval"] = int(
        os.getenv("SERVER_CONTEXT_SCAN_INTERVAL", SERVER_CONFIG["context_scan_interval"])
    )
    SERVER_CONFIG["max_pending_messages"] = int(
        os.getenv("SERVER_MAX_PENDING_MESSAGES", SERVER_CONFIG["max_pending_messages"])
    )
    return SERVER_CONFIG


__all__ = ["SERVER_CONFIG", "DEFAULT_SERVER_CONFIG", "load_server_config"]
