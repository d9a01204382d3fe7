"""Fake/mock implementations of core ports for testing.

These in-memory implementations allow core domain logic to be tested
without external dependencies:

- FakeOrderStorePort: In-memory order persistence
- FakeStockSourcePort: Fixed-count cup stock with call tracking
- FakeOrderCreationPort: Canned order creation results
"""

from .order_creation import FakeOrderCreationPort
from .stock import FakeStockSourcePort
from .store import FakeOrderStorePort

__all__ = [
    "FakeOrderCreationPort",
    "FakeOrderStorePort",
    "FakeStockSourcePort",
]
