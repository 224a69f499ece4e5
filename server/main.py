from __future__ import annotations

import asyncio
import logging
import sys

from server.config import SERVER_CONFIG, load_server_config
from server.core import CommandRouter, ConnectionManager, DatagramServer
from server.services import CollectionService, HelpService
from server.storage import ProductRepository, SQLiteStore
from server.workers import ContextCleaner
from shared.protocol.commands import CommandName

logger = logging.getLogger(__name__)

EXIT_BIND_FAILED = 1
EXIT_INVALID_DATA = 2


def build_router(repository: ProductRepository) -> CommandRouter:
    router = CommandRouter()
    collection = CollectionService(repository)
    help_service = HelpService(router.commands)

    router.register(CommandName.HELP, help_service.handle_help, "show available commands")
    router.register(CommandName.INFO, collection.handle_info, "collection type, init date and size")
    router.register(CommandName.SHOW, collection.handle_show, "list every product")
    router.register(CommandName.ADD, collection.handle_add, "add a new product")
    router.register(CommandName.UPDATE, collection.handle_update, "update <id>: replace a product")
    router.register(CommandName.REMOVE_BY_ID, collection.handle_remove_by_id, "remove_by_id <id>: delete a product")
    router.register(CommandName.CLEAR, collection.handle_clear, "remove every product")
    router.register(CommandName.HEAD, collection.handle_head, "first product of the collection")
    router.register(CommandName.ADD_IF_MAX, collection.handle_add_if_max, "add if priced above every product")
    router.register(CommandName.ADD_IF_MIN, collection.handle_add_if_min, "add if priced below every product")
    router.register(CommandName.SUM_OF_PRICE, collection.handle_sum_of_price, "sum of all prices")
    router.register(CommandName.FILTER_BY_PRICE, collection.handle_filter_by_price, "filter_by_price <price>")
    router.register(
        CommandName.FILTER_CONTAINS_PART_NUMBER,
        collection.handle_filter_contains_part_number,
        "filter_contains_part_number <text>",
    )
    return router


async def run_server() -> int:
    load_server_config()
    logging.basicConfig(level=SERVER_CONFIG["log_level"])

    store = SQLiteStore(SERVER_CONFIG["db_path"])
    logger.info("Using product database %s", store.db_path.resolve())
    repository = ProductRepository(store)
    if not repository.validate_all():
        logger.critical("Stored products failed validation, refusing to start")
        store.close()
        return EXIT_INVALID_DATA

    router = build_router(repository)
    connection_manager = ConnectionManager(SERVER_CONFIG["max_pending_messages"])
    server = DatagramServer(
        SERVER_CONFIG["host"],
        SERVER_CONFIG["port"],
        router,
        connection_manager,
        after_hook=repository.save,
    )
    try:
        await server.start()
    except OSError as exc:
        logger.critical("Cannot bind %s:%s, the port may already be in use: %s", server.host, server.port, exc)
        store.close()
        return EXIT_BIND_FAILED

    cleaner = ContextCleaner(
        connection_manager,
        timeout=SERVER_CONFIG["context_timeout"],
        interval=SERVER_CONFIG["context_scan_interval"],
    )
    cleaner.start()
    try:
        await asyncio.Event().wait()  # keep running
    finally:
        await cleaner.stop()
        server.close()
        repository.save()
        store.close()
    return 0


def main() -> None:
    try:
        code = asyncio.run(run_server())
    except KeyboardInterrupt:
        code = 0
    sys.exit(code)


if __name__ == "__main__":
    main()
