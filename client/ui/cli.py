from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Callable
from typing import Any, List, Optional

from client.core.network import UDPClient
from client.forms import ProductForm
from shared.protocol.commands import expected_args, is_command, normalize_command, requires_product
from shared.protocol.errors import ProtocolError, StatusCode
from shared.protocol.messages import Product, Request, RequestPayload, Response

logger = logging.getLogger(__name__)

EXIT_COMMAND = "exit"

Ask = Callable[[str], str]
Say = Callable[[str], None]


class CollectionCLI:
    """Interactive mode: reads commands, sends them to the server and prints the results.

    `run()` returns True when the user asked to quit; transport failures
    propagate so the session loop can reconnect.
    """

    def __init__(self, client: UDPClient, ask: Ask = input, say: Say = print, form: Optional[ProductForm] = None) -> None:
        self.client = client
        self.ask = ask
        self.say = say
        self.form = form or ProductForm(ask, say)

    async def run(self) -> bool:
        self.say(f"Type 'help' for commands, '{EXIT_COMMAND}' to quit.")
        loop = asyncio.get_running_loop()
        try:
            while True:
                line = await loop.run_in_executor(None, self.ask, "> ")
                parts = line.strip().split()
                if not parts:
                    continue
                command = normalize_command(parts[0])
                if command == EXIT_COMMAND:
                    return True
                await self.execute(command, parts[1:])
        except EOFError:
            return True

    async def execute(self, command: str, args: List[str]) -> Optional[Response]:
        if is_command(command) and len(args) != expected_args(command):
            self.say(f"{command} expects {expected_args(command)} argument(s)")
            return None
        product: Optional[Product] = None
        if requires_product(command):
            loop = asyncio.get_running_loop()
            product = await loop.run_in_executor(None, self.form.build)

        request = Request(command=command, payload=RequestPayload(args=args, product=product))
        try:
            response = await self.client.send_and_receive(request)
        except ProtocolError as exc:
            logger.warning("Command %s failed: %s", command, exc)
            self.say(f"Command failed: {exc.message}")
            return None
        self._print_response(response)
        return response

    def _print_response(self, response: Response) -> None:
        if not response.ok:
            try:
                status = StatusCode(response.status).name
            except ValueError:
                status = str(response.status)
            self.say(f"Error ({status}): {response.payload.message}")
            return
        if response.payload.message:
            self.say(response.payload.message)
        for line in _format_data(response.payload.data):
            self.say(line)


def _format_data(data: Any) -> List[str]:
    if data is None:
        return []
    if isinstance(data, list):
        return [json.dumps(item, ensure_ascii=False) if isinstance(item, dict) else str(item) for item in data]
    if isinstance(data, dict):
        return [f"{key}: {value}" for key, value in data.items()]
    return [str(data)]
