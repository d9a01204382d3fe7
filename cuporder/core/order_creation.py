"""Order creation service: implements OrderCreationPort.

Validates an order request, checks stock, applies the membership
discount, allocates cups and persists the order. Insufficient stock is
reported through the result code rather than raised.
"""

import logging
from collections.abc import Sequence

from .errors import ArgumentError, ArgumentMissingError, ArgumentOutOfRangeError
from .models import (
    CoffeeCup,
    Customer,
    CustomerMembership,
    Order,
    OrderCreationResult,
    OrderCreationResultCode,
)
from .ports import OrderCreationPort, OrderStorePort, StockSourcePort

logger = logging.getLogger(__name__)

# Quantity from which the bulk discount applies
BULK_ORDER_THRESHOLD = 5

# (regular, bulk) discount in percent per membership tier
DISCOUNT_TABLE: dict[CustomerMembership, tuple[float, float]] = {
    CustomerMembership.BASIC: (0.0, 3.0),
    CustomerMembership.PREMIUM: (5.0, 8.0),
}


class OrderCreationService(OrderCreationPort):
    """Core implementation of OrderCreationPort.

    Relies on the stock source for consistency between the count check
    and the allocation; this service does not lock anything itself.
    """

    def __init__(
        self,
        order_store: OrderStorePort,
        stock_source: StockSourcePort,
    ):
        """Initialize the order creation service.

        Args:
            order_store: OrderStorePort implementation for persistence.
            stock_source: StockSourcePort implementation for cup stock.

        Raises:
            ArgumentMissingError: If either collaborator is None.
        """
        if order_store is None:
            raise ArgumentMissingError("order_store")
        if stock_source is None:
            raise ArgumentMissingError("stock_source")

        self.order_store = order_store
        self.stock_source = stock_source

    async def create_order(
        self, customer: Customer, requested_quantity: int
    ) -> OrderCreationResult:
        """Create and persist an order if enough cups are in stock.

        Args:
            customer: Customer placing the order.
            requested_quantity: Number of cups to order.

        Returns:
            SUCCESS result with the persisted order and the stock left
            after allocation, or STOCK_EXCEEDED with the unchanged stock.

        Raises:
            ArgumentMissingError: If customer is None.
            ArgumentError: If requested_quantity is not an integer.
            ArgumentOutOfRangeError: If requested_quantity < 1.
            Exception: Any failure from the order store or stock source.
        """
        if customer is None:
            raise ArgumentMissingError("customer")
        if isinstance(requested_quantity, bool) or not isinstance(requested_quantity, int):
            raise ArgumentError(
                "requested_quantity",
                f"requested_quantity must be an integer, got {requested_quantity!r}",
            )
        if requested_quantity < 1:
            raise ArgumentOutOfRangeError(
                "requested_quantity",
                requested_quantity,
                f"requested_quantity must be >= 1, got {requested_quantity}",
            )

        cups_in_stock = await self.stock_source.get_in_stock_count()

        if requested_quantity > cups_in_stock:
            logger.info(
                f"Order for customer {customer.id} rejected: "
                f"{requested_quantity} cups requested, {cups_in_stock} in stock",
                extra={
                    "customer_id": customer.id,
                    "requested_quantity": requested_quantity,
                    "cups_in_stock": cups_in_stock,
                },
            )
            return OrderCreationResult(
                result_code=OrderCreationResultCode.STOCK_EXCEEDED,
                remaining_cups_in_stock=cups_in_stock,
            )

        discount_in_percent = self.calculate_discount_percentage(
            customer.membership, requested_quantity
        )
        coffee_cups = await self.stock_source.get_in_stock(requested_quantity)

        order = Order(
            customer_id=customer.id,
            number_of_ordered_cups=requested_quantity,
            discount_in_percent=discount_in_percent,
            coffee_cups=tuple(coffee_cups),
        )

        try:
            created_order = await self.order_store.save(order)
        except BaseException:
            await self._release_after_failed_save(customer, coffee_cups)
            raise

        remaining_cups_in_stock = cups_in_stock - requested_quantity

        logger.info(
            f"Order {created_order.id} created for customer {customer.id}",
            extra={
                "order_id": created_order.id,
                "customer_id": customer.id,
                "number_of_ordered_cups": requested_quantity,
                "discount_in_percent": discount_in_percent,
                "remaining_cups_in_stock": remaining_cups_in_stock,
            },
        )

        return OrderCreationResult(
            result_code=OrderCreationResultCode.SUCCESS,
            remaining_cups_in_stock=remaining_cups_in_stock,
            created_order=created_order,
        )

    async def _release_after_failed_save(
        self, customer: Customer, coffee_cups: Sequence[CoffeeCup]
    ) -> None:
        """Give allocated cups back when the order could not be persisted.

        A failing release is logged; the caller re-raises the save error.
        """
        try:
            await self.stock_source.release(coffee_cups)
        except Exception as e:
            logger.error(
                f"Failed to release {len(coffee_cups)} cups after failed save "
                f"for customer {customer.id}: {e}",
                exc_info=True,
                extra={"customer_id": customer.id, "cup_count": len(coffee_cups)},
            )
        else:
            logger.warning(
                f"Released {len(coffee_cups)} cups after failed save "
                f"for customer {customer.id}",
                extra={"customer_id": customer.id, "cup_count": len(coffee_cups)},
            )

    @staticmethod
    def calculate_discount_percentage(
        membership: CustomerMembership, number_of_ordered_cups: int
    ) -> float:
        """Return the discount in percent for a membership tier and quantity.

        Basic members get 0% below five cups and 3% from five cups on.
        Premium members get 5% below five cups and 8% from five cups on.
        """
        regular, bulk = DISCOUNT_TABLE[membership]
        if number_of_ordered_cups >= BULK_ORDER_THRESHOLD:
            return bulk
        return regular
