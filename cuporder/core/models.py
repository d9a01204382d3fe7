"""Domain models for the cup order admin system.

All models in this module use only Python standard library types,
ensuring zero external dependencies in the core domain.
"""

from dataclasses import dataclass, field, replace
from enum import Enum


class CustomerMembership(Enum):
    """Membership tiers that govern the discount a customer receives."""

    BASIC = "basic"
    PREMIUM = "premium"


@dataclass(frozen=True)
class Customer:
    """A customer placing an order.

    Owned by the caller; the order workflow only reads the id and
    membership tier.
    """

    id: int
    membership: CustomerMembership = CustomerMembership.BASIC
    first_name: str = ""
    last_name: str = ""


@dataclass(frozen=True)
class CoffeeCup:
    """A single cup allocated from stock.

    Opaque to the order workflow: only the number of cups matters.
    The id is whatever the stock source uses to track the unit.
    """

    id: int | None = None


@dataclass
class Order:
    """An order of coffee cups for a single customer.

    Created once per successful order creation and handed to the order
    store. The id stays None until the store assigns one.

    Note: This dataclass is intentionally mutable so that stores can
    record the assigned id on their persisted copy.
    """

    customer_id: int
    number_of_ordered_cups: int
    discount_in_percent: float
    coffee_cups: tuple[CoffeeCup, ...] = field(default_factory=tuple)
    id: int | None = None

    def __post_init__(self) -> None:
        """Validate order invariants on creation or deserialization."""
        if self.number_of_ordered_cups < 1:
            raise ValueError(
                f"number_of_ordered_cups must be >= 1, got {self.number_of_ordered_cups}"
            )
        if not 0 <= self.discount_in_percent <= 100:
            raise ValueError(
                f"discount_in_percent must be between 0 and 100, got {self.discount_in_percent}"
            )
        if not isinstance(self.coffee_cups, tuple):
            self.coffee_cups = tuple(self.coffee_cups)

    def mark_persisted(self, order_id: int) -> "Order":
        """Return a copy of this order carrying the store-assigned id."""
        if self.id is not None and self.id != order_id:
            raise ValueError(
                f"Order already persisted with id {self.id}, cannot reassign to {order_id}"
            )
        return replace(self, id=order_id)


class OrderCreationResultCode(Enum):
    """Outcome of an order creation attempt."""

    SUCCESS = "success"
    STOCK_EXCEEDED = "stock_exceeded"


@dataclass(frozen=True)
class OrderCreationResult:
    """Structured result of an order creation attempt.

    remaining_cups_in_stock reflects availability before allocation on
    STOCK_EXCEEDED and after allocation on SUCCESS. created_order is only
    present on SUCCESS.
    """

    result_code: OrderCreationResultCode
    remaining_cups_in_stock: int
    created_order: Order | None = None

    def __post_init__(self) -> None:
        """Validate result invariants on creation."""
        if self.remaining_cups_in_stock < 0:
            raise ValueError(
                f"remaining_cups_in_stock must be non-negative, got {self.remaining_cups_in_stock}"
            )
        if self.result_code == OrderCreationResultCode.SUCCESS and self.created_order is None:
            raise ValueError("SUCCESS result requires a created_order")
        if self.result_code != OrderCreationResultCode.SUCCESS and self.created_order is not None:
            raise ValueError(
                f"{self.result_code.name} result must not carry a created_order"
            )

    @property
    def succeeded(self) -> bool:
        """True when the order was created."""
        return self.result_code == OrderCreationResultCode.SUCCESS
