"""Port interfaces for the cup order admin system.

These abstract base classes define the boundaries between core
domain logic and external adapters. Implementations live in the
adapters/ package.

Port Interface Categories:

1. **Driven Ports** (core calls out to adapters)
   - OrderStorePort: Persist and query orders
   - StockSourcePort: Report and allocate coffee cups in stock

2. **Driving Ports** (adapters/external systems call into core)
   - OrderCreationPort: Entry point for creating orders
"""

from abc import ABC, abstractmethod
from collections.abc import Sequence

from .models import CoffeeCup, Customer, Order, OrderCreationResult


# ============================================================================
# DRIVEN PORTS (Core calls out to adapters)
# ============================================================================


class OrderStorePort(ABC):
    """Port for persisting finalized orders.

    Ownership of an order passes to the store on save. The store may
    return an adjusted copy (for example with an assigned id); callers
    must use the returned object.
    """

    @abstractmethod
    async def save(self, order: Order) -> Order:
        """Persist a new order.

        Args:
            order: Fully built order. Its id is normally None.

        Returns:
            The persisted order, carrying any store-assigned fields.

        Raises:
            Exception: If the backing storage is unavailable.
        """

    @abstractmethod
    async def get_by_id(self, order_id: int) -> Order | None:
        """Retrieve an order by ID.

        Returns:
            Order if found, None otherwise.

        Raises:
            Exception: If the backing storage is unavailable.
        """

    @abstractmethod
    async def get_by_customer(self, customer_id: int) -> list[Order]:
        """Retrieve all orders placed by a customer, oldest first.

        Returns:
            List of orders. Empty list if the customer has none.

        Raises:
            Exception: If the backing storage is unavailable.
        """


class StockSourcePort(ABC):
    """Port for reporting and allocating coffee cups in stock.

    The stock source is the sole authority for stock consistency. The
    order workflow checks the count and then allocates; implementations
    that serve concurrent callers must make allocation itself atomic and
    refuse to over-allocate.
    """

    @abstractmethod
    async def get_in_stock_count(self) -> int:
        """Return the number of cups currently available."""

    @abstractmethod
    async def get_in_stock(self, count: int) -> list[CoffeeCup]:
        """Allocate cups from stock.

        Args:
            count: Number of cups to allocate.

        Returns:
            Exactly `count` allocated cups.

        Raises:
            StockExhaustedError: If fewer than `count` cups are available.
            Exception: If the backing storage is unavailable.
        """

    @abstractmethod
    async def release(self, cups: Sequence[CoffeeCup]) -> None:
        """Return previously allocated cups to stock.

        Args:
            cups: Cups obtained from get_in_stock that were not used.

        Raises:
            Exception: If the backing storage is unavailable.
        """


# ============================================================================
# DRIVING PORTS (External systems call into core)
# ============================================================================


class OrderCreationPort(ABC):
    """Port for creating orders from the outside world (CLI, etc.)."""

    @abstractmethod
    async def create_order(
        self, customer: Customer, requested_quantity: int
    ) -> OrderCreationResult:
        """Create an order for a customer.

        Args:
            customer: Customer placing the order.
            requested_quantity: Number of cups to order (>= 1).

        Returns:
            OrderCreationResult. Insufficient stock is reported as
            STOCK_EXCEEDED, not raised.

        Raises:
            ArgumentMissingError: If customer is None.
            ArgumentOutOfRangeError: If requested_quantity < 1.
            Exception: Any failure from the order store or stock source.
        """
