from __future__ import annotations

import json
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Optional

import jsonschema

from .constants import DEFAULT_VERSION
from .errors import ErrorCode, ProtocolError, StatusCode

SCHEMA_DIR = Path(__file__).parent / "schemas"

# Mapping message type -> schema filename (relative to SCHEMA_DIR)
SCHEMA_REGISTRY: Dict[str, str] = {
    "request": "request.json",
    "response": "response.json",
}


def _schema_path(kind: str) -> Optional[Path]:
    filename = SCHEMA_REGISTRY.get(kind)
    if not filename:
        return None
    path = SCHEMA_DIR / filename
    return path if path.exists() else None


@lru_cache(maxsize=4)
def load_schema(kind: str) -> Optional[dict]:
    """Load JSON schema for a message type if present."""
    path = _schema_path(kind)
    if not path:
        return None
    with path.open("r", encoding="utf-8") as fp:
        return json.load(fp)


def validate_version(headers: Optional[Dict[str, Any]]) -> None:
    """Ensure headers declare supported protocol version."""
    version = (headers or {}).get("version", "0.0")
    if version != DEFAULT_VERSION:
        raise ProtocolError(
            StatusCode.UPGRADE_REQUIRED,
            ErrorCode.VERSION_MISMATCH,
            f"Protocol version mismatch: expected {DEFAULT_VERSION}, got {version}",
        )


def validate_msg(msg: Dict[str, Any], schema: Optional[dict] = None) -> None:
    """Run standard validations (version + json-schema)."""
    validate_version(msg.get("headers"))
    if not schema:
        schema = load_schema(str(msg.get("type", "")))
    if schema:
        try:
            jsonschema.validate(instance=msg, schema=schema)
        except jsonschema.ValidationError as exc:
            raise ProtocolError(
                StatusCode.BAD_REQUEST, ErrorCode.PARAM_MISSING, f"Schema validation failed: {exc.message}"
            ) from exc


__all__ = ["load_schema", "validate_msg", "validate_version"]
