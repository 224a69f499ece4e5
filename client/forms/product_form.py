from __future__ import annotations

from collections.abc import Callable
from typing import Any, Dict, Optional, Tuple

from pydantic import ValidationError

from shared.protocol.messages import Product

Ask = Callable[[str], str]
Say = Callable[[str], None]

# (field, prompt, optional)
FIELDS: Tuple[Tuple[str, str, bool], ...] = (
    ("name", "Name", False),
    ("price", "Price", False),
    ("part_number", "Part number", False),
    ("unit_of_measure", "Unit of measure (empty to skip)", True),
)

# Known-good values used to validate one field at a time.
_PLACEHOLDERS: Dict[str, Any] = {"name": "placeholder", "price": 1.0, "part_number": "placeholder"}


class ProductForm:
    """Asks for product fields one by one, repeating a prompt until its value is valid."""

    def __init__(self, ask: Ask = input, say: Say = print) -> None:
        self.ask = ask
        self.say = say

    def build(self) -> Product:
        values: Dict[str, Any] = {}
        for field, prompt, optional in FIELDS:
            values[field] = self._ask_field(field, prompt, optional)
        return Product(**values)

    def _ask_field(self, field: str, prompt: str, optional: bool) -> Optional[str]:
        while True:
            raw = self.ask(f"{prompt}: ").strip()
            if optional and not raw:
                return None
            error = _field_error(field, raw)
            if error is None:
                return raw
            self.say(f"Invalid {field.replace('_', ' ')}: {error}")


def _field_error(field: str, raw: str) -> Optional[str]:
    try:
        Product.model_validate({**_PLACEHOLDERS, field: raw})
    except ValidationError as exc:
        for error in exc.errors():
            if error["loc"] and error["loc"][0] == field:
                return error["msg"]
    return None
