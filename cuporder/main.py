"""Composition root for the cup order admin system.

This module is the ONLY location that imports both core domain logic
and concrete adapter implementations. All wiring of dependencies
happens here, creating a clear entry point for the application.

Module Structure:
- Configuration loading via config module
- Adapter instantiation and stock seeding
- Core service initialization
- Interactive admin CLI
"""

import asyncio
import json
import logging
import sys

from cuporder.adapters.cli.commands import CLICommandHandler, run_command
from cuporder.adapters.store.memory import InMemoryOrderStore, InMemoryStockSource
from cuporder.adapters.store.sqlite import SQLiteOrderStore, SQLiteStockSource
from cuporder.config import Settings, load_settings
from cuporder.core.order_creation import OrderCreationService
from cuporder.core.ports import OrderStorePort, StockSourcePort

HELP_TEXT = """
Available Commands (JSON format):

  order
    Place an order for a customer.
    Required: customer_id, quantity
    Optional: membership (basic, premium), verbose

    Example: order {"customer_id": 1, "quantity": 3, "membership": "premium"}

  orders
    List a customer's orders.
    Required: customer_id
    Optional: format (json, text)

    Example: orders {"customer_id": 1, "format": "text"}

  help
    Show this help message.

  exit
    Exit the CLI.

Note: All commands accept arguments as a single JSON object.
Provide the JSON after the command name on the same line.
"""


async def _run_cli_interactive(cli_handler: CLICommandHandler) -> None:
    """Run interactive CLI loop.

    Provides a REPL-like interface for admin commands.

    Args:
        cli_handler: CLICommandHandler instance for executing commands.
    """
    logger = logging.getLogger(__name__)
    logger.info("Starting interactive CLI. Type 'help' for available commands or 'exit' to quit.")

    loop = asyncio.get_running_loop()

    while True:
        try:
            # Read command from stdin in a thread to avoid blocking
            command_line = await loop.run_in_executor(None, input, "cuporder> ")
        except EOFError:
            logger.info("EOF received, exiting CLI")
            break

        command_line = command_line.strip()
        if not command_line:
            continue

        if command_line.lower() == "exit":
            logger.info("Exiting CLI")
            break

        if command_line.lower() == "help":
            print(HELP_TEXT)
            continue

        parts = command_line.split(maxsplit=1)
        command = parts[0].lower()
        args_str = parts[1] if len(parts) > 1 else ""

        try:
            args = json.loads(args_str) if args_str else {}
        except json.JSONDecodeError:
            logger.error("Invalid JSON arguments. Use 'help' for command syntax.")
            continue

        try:
            result = await run_command(cli_handler, command, args)
        except Exception as e:
            logger.error(f"Command execution error: {e}", exc_info=True)
            result = {"status": "error", "message": str(e)}

        print(json.dumps(result, indent=2, default=str))


def configure_logging(log_level: str, log_format: str) -> None:
    """Configure application logging.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        log_format: Log format (json, text).
    """
    level = getattr(logging, log_level, logging.INFO)

    if log_format == "json":
        format_str = '{"time": "%(asctime)s", "level": "%(levelname)s", "message": "%(message)s"}'
    else:
        format_str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    logging.basicConfig(
        level=level,
        format=format_str,
        handlers=[
            logging.StreamHandler(sys.stdout),
        ],
    )


async def create_adapters(settings: Settings) -> tuple[OrderStorePort, StockSourcePort]:
    """Instantiate the order store and stock source for the configured backend.

    Seeds the stock source with settings.initial_cups_in_stock cups.

    Raises:
        ValueError: If the store backend is unknown.
    """
    logger = logging.getLogger(__name__)

    order_store: OrderStorePort
    stock_source: StockSourcePort

    if settings.store_backend == "memory":
        order_store = InMemoryOrderStore()
        stock_source = InMemoryStockSource(settings.initial_cups_in_stock)
        logger.info("Order store and stock source: in-memory")
    elif settings.store_backend == "sqlite":
        order_store = SQLiteOrderStore(
            db_path=settings.store_sqlite_path,
            pool_size=settings.store_pool_size,
        )
        sqlite_stock = SQLiteStockSource(
            db_path=settings.store_sqlite_path,
            pool_size=settings.store_pool_size,
        )
        if settings.initial_cups_in_stock:
            await sqlite_stock.add_cups(settings.initial_cups_in_stock)
        stock_source = sqlite_stock
        logger.info(f"Order store and stock source: SQLite at {settings.store_sqlite_path}")
    else:
        raise ValueError(f"Unknown store backend: {settings.store_backend}")

    return order_store, stock_source


async def close_adapters(*adapters: object) -> None:
    """Close pooled connections held by adapters that have them."""
    for adapter in adapters:
        if isinstance(adapter, (SQLiteOrderStore, SQLiteStockSource)):
            await adapter.close_pool()


async def bootstrap() -> None:
    """Load configuration, wire adapters, and start the admin CLI.

    This is the composition root: the single place where all components
    are instantiated and wired together.

    Steps:
    1. Load configuration from environment
    2. Configure logging
    3. Instantiate adapters with configuration
    4. Initialize core services
    5. Run the interactive CLI
    """
    settings = load_settings()

    configure_logging("DEBUG" if settings.debug else settings.log_level, settings.log_format)
    logger = logging.getLogger(__name__)
    logger.info("Loading cup order admin...")

    order_store, stock_source = await create_adapters(settings)

    try:
        order_creation = OrderCreationService(
            order_store=order_store,
            stock_source=stock_source,
        )
        cli_handler = CLICommandHandler(order_creation, order_store=order_store)

        cups_in_stock = await stock_source.get_in_stock_count()
        logger.info(f"Ready with {cups_in_stock} cups in stock")

        await _run_cli_interactive(cli_handler)
    finally:
        await close_adapters(order_store, stock_source)


def main() -> None:
    """Application entry point.

    Exit codes:
        0: Successful shutdown
        1: Fatal bootstrap or runtime error
        130: Interrupted by user (SIGINT/KeyboardInterrupt)
    """
    logger = logging.getLogger(__name__)
    try:
        asyncio.run(bootstrap())
    except KeyboardInterrupt:
        logger.warning("Shutdown requested by user (SIGINT)")
        sys.exit(130)
    except Exception as e:
        logger.error(f"Fatal error: {e}", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
