from __future__ import annotations

import asyncio
import logging
import sys

from client.config import CLIENT_CONFIG, ConfigError, load_config
from client.core import ClientSession, UDPClient
from client.ui import CollectionCLI

logger = logging.getLogger(__name__)


async def _interactive(client: UDPClient) -> bool:
    return await CollectionCLI(client).run()


async def run_client() -> None:
    session = ClientSession(lambda: UDPClient(config=CLIENT_CONFIG), _interactive)
    await session.run()


def main() -> None:
    try:
        load_config()
    except ConfigError as exc:
        logging.basicConfig()
        logger.critical("Invalid client configuration: %s", exc)
        sys.exit(1)
    logging.basicConfig(level=CLIENT_CONFIG["log_level"])
    try:
        asyncio.run(run_client())
    except KeyboardInterrupt:
        logger.info("Client interrupted")


if __name__ == "__main__":
    main()
