"""Core domain logic for the cup order admin system.

This package contains zero external dependencies and represents
the pure business logic of the application. All adapters and
external integrations are handled by the adapters package.
"""

from .errors import (
    ArgumentError,
    ArgumentMissingError,
    ArgumentOutOfRangeError,
    StockExhaustedError,
)
from .models import (
    CoffeeCup,
    Customer,
    CustomerMembership,
    Order,
    OrderCreationResult,
    OrderCreationResultCode,
)

__all__ = [
    "ArgumentError",
    "ArgumentMissingError",
    "ArgumentOutOfRangeError",
    "CoffeeCup",
    "Customer",
    "CustomerMembership",
    "Order",
    "OrderCreationResult",
    "OrderCreationResultCode",
    "StockExhaustedError",
]
