"""CLI command implementations for cup order administration.

Provides human-initiated actions through command-line interface.

This adapter maps CLI commands (order, orders) to OrderCreationPort and
OrderStorePort operations. It handles CLI-specific formatting and error
reporting.
"""

import logging
from typing import Any

from cuporder.core.errors import ArgumentError
from cuporder.core.models import Customer, CustomerMembership, Order
from cuporder.core.ports import OrderCreationPort, OrderStorePort

logger = logging.getLogger(__name__)


def _order_to_dict(order: Order) -> dict[str, Any]:
    return {
        "id": order.id,
        "customer_id": order.customer_id,
        "number_of_ordered_cups": order.number_of_ordered_cups,
        "discount_in_percent": order.discount_in_percent,
        "coffee_cup_ids": [cup.id for cup in order.coffee_cups],
    }


def _parse_whole_number(value: Any, name: str) -> int:
    """Coerce JSON input ("3", 3, 3.0) to an int.

    Raises:
        ValueError: If the value is not a whole number.
    """
    if isinstance(value, bool):
        raise ValueError(f"{name} must be a whole number, got {value!r}")
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            pass
    raise ValueError(f"{name} must be a whole number, got {value!r}")


def _parse_membership(value: Any) -> CustomerMembership:
    """Map a tier name such as 'Premium' to CustomerMembership.

    Raises:
        ValueError: If the value is not a known tier name.
    """
    if not isinstance(value, str):
        raise ValueError(f"membership must be a tier name, got {value!r}")
    try:
        return CustomerMembership(value.strip().lower())
    except ValueError:
        tiers = ", ".join(tier.value for tier in CustomerMembership)
        raise ValueError(f"Unknown membership {value!r}, expected one of: {tiers}") from None


class CLICommandHandler:
    """Handles CLI commands by delegating to the core ports.

    Provides a command-line interface for placing orders and looking up
    a customer's orders.
    """

    def __init__(
        self,
        order_creation: OrderCreationPort,
        order_store: OrderStorePort | None = None,
    ):
        """Initialize the CLI command handler.

        Args:
            order_creation: OrderCreationPort implementation to place orders.
            order_store: Optional OrderStorePort for order lookups.
        """
        self.order_creation = order_creation
        self.order_store = order_store

    async def create_order(
        self,
        customer_id: int,
        quantity: int,
        membership: str = "basic",
        verbose: bool = False,
    ) -> dict[str, Any]:
        """Place an order via CLI.

        Args:
            customer_id: Numeric ID of the ordering customer.
            quantity: Number of cups to order.
            membership: Membership tier name ('basic' or 'premium').
            verbose: If True, log additional information.

        Returns:
            Dictionary with status and order details. Status is 'success',
            'stock_exceeded' or 'error'.
        """
        try:
            customer = Customer(
                id=_parse_whole_number(customer_id, "customer_id"),
                membership=_parse_membership(membership),
            )
            result = await self.order_creation.create_order(
                customer, _parse_whole_number(quantity, "quantity")
            )
        except ValueError as e:
            # ArgumentError subclasses ValueError, as do the parse failures
            logger.error(f"Failed to create order: {e}")
            response: dict[str, Any] = {
                "status": "error",
                "operation": "create_order",
                "customer_id": customer_id,
                "message": str(e),
            }
            if isinstance(e, ArgumentError):
                response["parameter"] = e.param_name
            return response

        if not result.succeeded:
            return {
                "status": "stock_exceeded",
                "operation": "create_order",
                "customer_id": customer_id,
                "remaining_cups_in_stock": result.remaining_cups_in_stock,
                "message": (
                    f"Only {result.remaining_cups_in_stock} cups in stock, "
                    f"{quantity} requested"
                ),
            }

        order = result.created_order
        assert order is not None

        if verbose:
            logger.info(
                f"Created order {order.id} for customer {customer_id}",
                extra={"order_id": order.id, "verbose": True},
            )

        return {
            "status": "success",
            "operation": "create_order",
            "customer_id": customer_id,
            "order_id": order.id,
            "discount_in_percent": order.discount_in_percent,
            "remaining_cups_in_stock": result.remaining_cups_in_stock,
            "message": f"Order {order.id} created with {order.number_of_ordered_cups} cups",
        }

    async def list_orders(
        self, customer_id: int, output_format: str = "json"
    ) -> dict[str, Any]:
        """List a customer's orders via CLI.

        Args:
            customer_id: Numeric ID of the customer.
            output_format: Output format ('json', 'text'). Default 'json'.

        Returns:
            Dictionary with the orders or status/message on error.
        """
        if self.order_store is None:
            return {
                "status": "error",
                "operation": "list_orders",
                "message": "Order lookups are not available",
            }

        orders = await self.order_store.get_by_customer(customer_id)

        if output_format == "json":
            return {
                "status": "success",
                "operation": "list_orders",
                "customer_id": customer_id,
                "data": [_order_to_dict(order) for order in orders],
            }

        elif output_format == "text":
            return {
                "status": "success",
                "operation": "list_orders",
                "customer_id": customer_id,
                "data": self._format_orders_as_text(customer_id, orders),
            }

        else:
            return {
                "status": "error",
                "operation": "list_orders",
                "message": f"Unsupported format: {output_format}",
            }

    def _format_orders_as_text(self, customer_id: int, orders: list[Order]) -> str:
        """Format a customer's orders as human-readable text."""
        if not orders:
            return f"No orders for customer {customer_id}"

        lines = [f"Orders for customer {customer_id}:"]
        for order in orders:
            lines.append(
                f"  - Order {order.id}: {order.number_of_ordered_cups} cups, "
                f"{order.discount_in_percent:g}% discount"
            )
        return "\n".join(lines)


async def run_command(
    handler: CLICommandHandler,
    command: str,
    args: dict[str, Any],
) -> dict[str, Any]:
    """Run a CLI command.

    Entry point for executing CLI commands. Maps command names to handler methods.

    Args:
        handler: CLICommandHandler to execute the command with.
        command: Command name ('order', 'orders').
        args: Dictionary of command arguments.

    Returns:
        Dictionary with command result.

    Raises:
        ValueError: If command is not recognized or a required argument is missing.
    """
    if command == "order":
        for required in ("customer_id", "quantity"):
            if required not in args:
                raise ValueError(f"Missing required parameter: {required}")
        return await handler.create_order(
            customer_id=args["customer_id"],
            quantity=args["quantity"],
            membership=args.get("membership", "basic"),
            verbose=args.get("verbose", False),
        )

    elif command == "orders":
        if "customer_id" not in args:
            raise ValueError("Missing required parameter: customer_id")
        return await handler.list_orders(
            customer_id=args["customer_id"],
            output_format=args.get("format", "json"),
        )

    else:
        raise ValueError(f"Unknown command: {command}. Use 'help' for available commands.")
