from __future__ import annotations

from enum import StrEnum
from typing import Dict, Union


class CommandName(StrEnum):
    """
    Canonical command names shared by client/server.
    The client sends the value verbatim; the server registers handlers under it.
    """

    HELP = "help"
    INFO = "info"
    SHOW = "show"
    ADD = "add"
    UPDATE = "update"
    REMOVE_BY_ID = "remove_by_id"
    CLEAR = "clear"
    HEAD = "head"
    ADD_IF_MAX = "add_if_max"
    ADD_IF_MIN = "add_if_min"
    SUM_OF_PRICE = "sum_of_price"
    FILTER_BY_PRICE = "filter_by_price"
    FILTER_CONTAINS_PART_NUMBER = "filter_contains_part_number"


# Number of positional arguments each command expects.
COMMAND_ARGS: Dict[str, int] = {
    CommandName.HELP.value: 0,
    CommandName.INFO.value: 0,
    CommandName.SHOW.value: 0,
    CommandName.ADD.value: 0,
    CommandName.UPDATE.value: 1,
    CommandName.REMOVE_BY_ID.value: 1,
    CommandName.CLEAR.value: 0,
    CommandName.HEAD.value: 0,
    CommandName.ADD_IF_MAX.value: 0,
    CommandName.ADD_IF_MIN.value: 0,
    CommandName.SUM_OF_PRICE.value: 0,
    CommandName.FILTER_BY_PRICE.value: 1,
    CommandName.FILTER_CONTAINS_PART_NUMBER.value: 1,
}

# Commands whose request carries a product built on the client.
PRODUCT_COMMANDS = frozenset(
    {
        CommandName.ADD.value,
        CommandName.UPDATE.value,
        CommandName.ADD_IF_MAX.value,
        CommandName.ADD_IF_MIN.value,
    }
)


def normalize_command(command: Union[str, CommandName]) -> str:
    """Convert enum/string into canonical command text."""
    return command.value if isinstance(command, CommandName) else str(command).strip().lower()


def is_command(value: str) -> bool:
    """Check if `value` is a known command."""
    try:
        CommandName(normalize_command(value))
        return True
    except ValueError:
        return False


def requires_product(command: Union[str, CommandName]) -> bool:
    return normalize_command(command) in PRODUCT_COMMANDS


def expected_args(command: Union[str, CommandName]) -> int:
    return COMMAND_ARGS.get(normalize_command(command), 0)


__all__ = [
    "CommandName",
    "COMMAND_ARGS",
    "PRODUCT_COMMANDS",
    "normalize_command",
    "is_command",
    "requires_product",
    "expected_args",
]
