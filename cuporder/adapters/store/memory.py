"""In-memory order store and stock source adapters.

Zero-config backends for local runs and demos. State lives for the
lifetime of the process only.
"""

import asyncio
import logging
from collections.abc import Sequence
from dataclasses import replace

from cuporder.core.errors import StockExhaustedError
from cuporder.core.models import CoffeeCup, Order
from cuporder.core.ports import OrderStorePort, StockSourcePort

logger = logging.getLogger(__name__)


class InMemoryStockSource(StockSourcePort):
    """Stock source backed by a list of free cups.

    Allocation checks and removes cups under a single asyncio.Lock, so
    concurrent orders within one event loop never over-allocate.
    """

    def __init__(self, initial_count: int = 0):
        """Initialize with a number of freshly stocked cups.

        Args:
            initial_count: Number of cups available at start.

        Raises:
            ValueError: If initial_count is negative.
        """
        if initial_count < 0:
            raise ValueError(f"initial_count must be non-negative, got {initial_count}")
        self._lock = asyncio.Lock()
        self._next_cup_id = 1
        self._free_cups: list[CoffeeCup] = []
        self._stock(initial_count)

    def _stock(self, count: int) -> None:
        for _ in range(count):
            self._free_cups.append(CoffeeCup(id=self._next_cup_id))
            self._next_cup_id += 1

    async def add_cups(self, count: int) -> None:
        """Restock with new cups."""
        if count < 0:
            raise ValueError(f"count must be non-negative, got {count}")
        async with self._lock:
            self._stock(count)
        logger.debug(f"Stocked {count} cups")

    async def get_in_stock_count(self) -> int:
        """Return the number of free cups."""
        async with self._lock:
            return len(self._free_cups)

    async def get_in_stock(self, count: int) -> list[CoffeeCup]:
        """Allocate `count` cups, oldest first."""
        if count < 0:
            raise ValueError(f"count must be non-negative, got {count}")
        async with self._lock:
            available = len(self._free_cups)
            if count > available:
                raise StockExhaustedError(requested=count, available=available)
            allocated = self._free_cups[:count]
            del self._free_cups[:count]
        return allocated

    async def release(self, cups: Sequence[CoffeeCup]) -> None:
        """Put cups back at the front of the stock."""
        async with self._lock:
            self._free_cups[:0] = list(cups)
        logger.debug(f"Released {len(cups)} cups back to stock")


class InMemoryOrderStore(OrderStorePort):
    """Order store that keeps orders in a dict keyed by assigned id."""

    def __init__(self) -> None:
        """Initialize with no orders."""
        self._orders: dict[int, Order] = {}
        self._next_order_id = 1
        self._lock = asyncio.Lock()

    async def save(self, order: Order) -> Order:
        """Assign the next id and store a copy of the order."""
        async with self._lock:
            order_id = self._next_order_id
            self._next_order_id += 1
            persisted = order.mark_persisted(order_id)
            self._orders[order_id] = persisted
        return replace(persisted)

    async def get_by_id(self, order_id: int) -> Order | None:
        """Look up an order by its ID."""
        order = self._orders.get(order_id)
        return replace(order) if order is not None else None

    async def get_by_customer(self, customer_id: int) -> list[Order]:
        """Return a customer's orders in creation order."""
        return [
            replace(order)
            for _, order in sorted(self._orders.items())
            if order.customer_id == customer_id
        ]
