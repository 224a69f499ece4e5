from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Dict, Union

from shared.protocol.commands import CommandName, normalize_command
from shared.protocol.errors import StatusCode
from shared.protocol.messages import Request, Response, make_response

logger = logging.getLogger(__name__)

Handler = Callable[[Request], Response]


class CommandRouter:
    """Maps command names to handlers. Populated once at startup, read-only afterwards."""

    def __init__(self) -> None:
        self._handlers: Dict[str, Handler] = {}
        self._descriptions: Dict[str, str] = {}

    def register(self, command: Union[CommandName, str], handler: Handler, description: str = "") -> None:
        name = normalize_command(command)
        if name in self._handlers:
            logger.warning("Handler for %s registered twice, keeping the last one", name)
        self._handlers[name] = handler
        self._descriptions[name] = description

    def commands(self) -> Dict[str, str]:
        return dict(self._descriptions)

    def __contains__(self, command: object) -> bool:
        return isinstance(command, str) and normalize_command(command) in self._handlers

    def dispatch(self, request: Request) -> Response:
        command = request.command_text
        handler = self._handlers.get(command)
        if handler is None:
            logger.info("Unknown command %r", command)
            return make_response(request, StatusCode.UNKNOWN_COMMAND, f"Unknown command: {command}")
        return handler(request)
