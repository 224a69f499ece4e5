from __future__ import annotations

import logging
import os
from typing import Any, Dict

from dotenv import load_dotenv

from shared.protocol.constants import (
    DEFAULT_HOST,
    DEFAULT_LOST_THRESHOLD_MS,
    DEFAULT_POLL_INTERVAL_MS,
    DEFAULT_PORT,
    DEFAULT_RETRY_INTERVAL_MS,
    DEFAULT_TIMEOUT_MS,
)

DEFAULT_CONFIG: Dict[str, Any] = {
    "server_host": DEFAULT_HOST,
    "server_port": DEFAULT_PORT,
    "connect_timeout_ms": DEFAULT_TIMEOUT_MS,
    "request_timeout_ms": DEFAULT_TIMEOUT_MS,
    "reconnect_interval_ms": DEFAULT_RETRY_INTERVAL_MS,
    "connection_lost_timeout_ms": DEFAULT_LOST_THRESHOLD_MS,
    "poll_interval_ms": DEFAULT_POLL_INTERVAL_MS,
    "log_level": "INFO",
}

CLIENT_CONFIG: Dict[str, Any] = DEFAULT_CONFIG.copy()


class ConfigError(Exception):
    """Raised when configuration values are invalid."""

    pass


def load_config(env_path: str = ".env") -> Dict[str, Any]:
    """Load client configuration from env file/environment variables."""
    if os.path.exists(env_path):
        load_dotenv(env_path)

    for key, default_value in DEFAULT_CONFIG.items():
        env_key = f"CLIENT_{key.upper()}"
        value = os.getenv(env_key, default_value)
        CLIENT_CONFIG[key] = _coerce_type(value, type(default_value))

    _validate_config()
    logging.getLogger().setLevel(CLIENT_CONFIG["log_level"])
    return CLIENT_CONFIG


def _coerce_type(value: Any, target_type: type) -> Any:
    if isinstance(value, target_type):
        return value
    try:
        if target_type is bool:
            return str(value).lower() in ("1", "true", "yes", "on")
        return target_type(value)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"Cannot convert {value} to {target_type}") from exc


def _validate_config() -> None:
    if not (1 <= int(CLIENT_CONFIG["server_port"]) <= 65535):
        raise ConfigError("server_port must be between 1 and 65535")
    for key in ("connect_timeout_ms", "request_timeout_ms", "reconnect_interval_ms", "poll_interval_ms"):
        if CLIENT_CONFIG[key] <= 0:
            raise ConfigError(f"{key} must be positive")
    if CLIENT_CONFIG["connection_lost_timeout_ms"] < 0:
        raise ConfigError("connection_lost_timeout_ms must not be negative")


__all__ = ["CLIENT_CONFIG", "DEFAULT_CONFIG", "ConfigError", "load_config"]
