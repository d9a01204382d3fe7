"""Unit tests for the order creation service.

Tests verify that OrderCreationService validates its inputs, reports
stock shortfalls as results, applies membership discounts and hands
the persisted order back to the caller.
"""

import asyncio

import pytest

from cuporder.core.errors import (
    ArgumentError,
    ArgumentMissingError,
    ArgumentOutOfRangeError,
)
from cuporder.core.models import (
    Customer,
    CustomerMembership,
    Order,
    OrderCreationResultCode,
)
from cuporder.core.order_creation import OrderCreationService
from cuporder.tests.fakes import FakeOrderStorePort, FakeStockSourcePort

CUPS_IN_STOCK = 10

# ============================================================================
# Test Fixtures
# ============================================================================


@pytest.fixture
def order_store() -> FakeOrderStorePort:
    """Create an order store that assigns ids."""
    return FakeOrderStorePort()


@pytest.fixture
def stock_source() -> FakeStockSourcePort:
    """Create a stock source holding ten cups."""
    return FakeStockSourcePort(cups_in_stock=CUPS_IN_STOCK)


@pytest.fixture
def service(
    order_store: FakeOrderStorePort, stock_source: FakeStockSourcePort
) -> OrderCreationService:
    """Create an OrderCreationService wired to fakes."""
    return OrderCreationService(order_store, stock_source)


@pytest.fixture
def customer() -> Customer:
    """Create a basic-tier customer."""
    return Customer(id=99, membership=CustomerMembership.BASIC)


# ============================================================================
# Test-Specific Port Subclasses
# ============================================================================


class IdAssigningOrderStorePort(FakeOrderStorePort):
    """Returns a persisted copy distinct from the order it was given."""

    async def save(self, order: Order) -> Order:
        """Persist under a fixed server-side id."""
        self.saved_orders.append(order)
        return order.mark_persisted(4711)


class CancelledOrderStorePort(FakeOrderStorePort):
    """Simulates the calling task being cancelled mid-save."""

    async def save(self, order: Order) -> Order:
        """Always cancelled."""
        self.saved_orders.append(order)
        raise asyncio.CancelledError()


# ============================================================================
# Construction Tests
# ============================================================================


class TestConstruction:
    """Tests for collaborator checks at construction."""

    def test_rejects_missing_order_store(self) -> None:
        """A missing order store is reported by name."""
        with pytest.raises(ArgumentMissingError) as exc_info:
            OrderCreationService(None, FakeStockSourcePort())  # type: ignore[arg-type]

        assert exc_info.value.param_name == "order_store"

    def test_rejects_missing_stock_source(self) -> None:
        """A missing stock source is reported by name."""
        with pytest.raises(ArgumentMissingError) as exc_info:
            OrderCreationService(FakeOrderStorePort(), None)  # type: ignore[arg-type]

        assert exc_info.value.param_name == "stock_source"

    def test_argument_errors_are_value_errors(self) -> None:
        """Argument errors can be caught as ValueError."""
        with pytest.raises(ValueError):
            OrderCreationService(None, None)  # type: ignore[arg-type]


# ============================================================================
# Validation Tests
# ============================================================================


class TestValidation:
    """Tests for per-call argument validation."""

    async def test_rejects_missing_customer(
        self, service: OrderCreationService, stock_source: FakeStockSourcePort
    ) -> None:
        """A None customer raises before stock is touched."""
        with pytest.raises(ArgumentMissingError) as exc_info:
            await service.create_order(None, 1)  # type: ignore[arg-type]

        assert exc_info.value.param_name == "customer"
        assert stock_source.count_calls == 0

    @pytest.mark.parametrize("requested_quantity", [0, -1, -100])
    async def test_rejects_quantity_below_one(
        self,
        service: OrderCreationService,
        stock_source: FakeStockSourcePort,
        customer: Customer,
        requested_quantity: int,
    ) -> None:
        """Quantities below one raise an out-of-range error."""
        with pytest.raises(ArgumentOutOfRangeError) as exc_info:
            await service.create_order(customer, requested_quantity)

        assert exc_info.value.param_name == "requested_quantity"
        assert exc_info.value.value == requested_quantity
        assert stock_source.count_calls == 0
        assert stock_source.allocation_requests == []

    async def test_missing_customer_is_checked_before_quantity(
        self, service: OrderCreationService
    ) -> None:
        """With both arguments invalid, the customer is reported."""
        with pytest.raises(ArgumentMissingError) as exc_info:
            await service.create_order(None, 0)  # type: ignore[arg-type]

        assert exc_info.value.param_name == "customer"

    async def test_quantity_error_regardless_of_customer_tier(
        self, service: OrderCreationService
    ) -> None:
        """Premium customers get the same quantity validation."""
        premium = Customer(id=1, membership=CustomerMembership.PREMIUM)

        with pytest.raises(ArgumentOutOfRangeError):
            await service.create_order(premium, 0)

    @pytest.mark.parametrize("requested_quantity", [2.5, "3", True, None])
    async def test_rejects_non_integer_quantity(
        self,
        service: OrderCreationService,
        stock_source: FakeStockSourcePort,
        customer: Customer,
        requested_quantity: object,
    ) -> None:
        """Only whole numbers are accepted as quantities."""
        with pytest.raises(ArgumentError) as exc_info:
            await service.create_order(customer, requested_quantity)  # type: ignore[arg-type]

        assert exc_info.value.param_name == "requested_quantity"
        assert stock_source.count_calls == 0


# ============================================================================
# Order Creation Tests
# ============================================================================


class TestCreateOrder:
    """Tests for the stock check and order assembly."""

    async def test_stores_created_order_in_result(
        self, service: OrderCreationService, customer: Customer
    ) -> None:
        """A successful result carries an order for the customer."""
        result = await service.create_order(customer, 1)

        assert result.result_code == OrderCreationResultCode.SUCCESS
        assert result.created_order is not None
        assert result.created_order.customer_id == customer.id
        assert result.succeeded

    async def test_stores_remaining_cups_in_result(
        self, service: OrderCreationService
    ) -> None:
        """Remaining stock is the checked count minus the ordered cups."""
        result = await service.create_order(Customer(id=1), 3)

        assert result.result_code == OrderCreationResultCode.SUCCESS
        assert result.remaining_cups_in_stock == CUPS_IN_STOCK - 3
        assert result.created_order is not None
        assert result.created_order.discount_in_percent == 0

    async def test_remaining_cups_not_requeried(
        self,
        service: OrderCreationService,
        stock_source: FakeStockSourcePort,
        customer: Customer,
    ) -> None:
        """Stock is counted once per call."""
        await service.create_order(customer, 4)

        assert stock_source.count_calls == 1
        assert stock_source.allocation_requests == [4]

    async def test_can_order_entire_stock(
        self, service: OrderCreationService, customer: Customer
    ) -> None:
        """Ordering exactly the stock succeeds and leaves nothing."""
        result = await service.create_order(customer, CUPS_IN_STOCK)

        assert result.result_code == OrderCreationResultCode.SUCCESS
        assert result.remaining_cups_in_stock == 0

    async def test_returns_stock_exceeded_if_not_enough_cups(
        self,
        service: OrderCreationService,
        order_store: FakeOrderStorePort,
        stock_source: FakeStockSourcePort,
        customer: Customer,
    ) -> None:
        """Ordering more than the stock is rejected without side effects."""
        result = await service.create_order(customer, CUPS_IN_STOCK + 1)

        assert result.result_code == OrderCreationResultCode.STOCK_EXCEEDED
        assert result.remaining_cups_in_stock == CUPS_IN_STOCK
        assert result.created_order is None
        assert not result.succeeded
        assert stock_source.allocation_requests == []
        assert order_store.saved_orders == []

    async def test_stock_exceeded_with_empty_stock(
        self, order_store: FakeOrderStorePort, customer: Customer
    ) -> None:
        """An empty stock rejects even a single cup."""
        service = OrderCreationService(order_store, FakeStockSourcePort(cups_in_stock=0))

        result = await service.create_order(customer, 1)

        assert result.result_code == OrderCreationResultCode.STOCK_EXCEEDED
        assert result.remaining_cups_in_stock == 0

    async def test_order_carries_allocated_cups_and_discount(
        self,
        service: OrderCreationService,
        order_store: FakeOrderStorePort,
    ) -> None:
        """The saved order holds the quantity, discount and cups."""
        premium = Customer(id=7, membership=CustomerMembership.PREMIUM)

        await service.create_order(premium, 5)

        assert len(order_store.saved_orders) == 1
        saved = order_store.saved_orders[0]
        assert saved.customer_id == 7
        assert saved.number_of_ordered_cups == 5
        assert saved.discount_in_percent == 8
        assert len(saved.coffee_cups) == 5
        assert saved.id is None

    async def test_result_carries_persisted_copy(
        self, stock_source: FakeStockSourcePort, customer: Customer
    ) -> None:
        """The result holds the object the store returned."""
        order_store = IdAssigningOrderStorePort()
        service = OrderCreationService(order_store, stock_source)

        result = await service.create_order(customer, 2)

        assert result.created_order is not None
        assert result.created_order.id == 4711
        assert result.created_order is not order_store.saved_orders[0]
        assert order_store.saved_orders[0].id is None

    async def test_store_returning_same_object_is_passed_through(
        self, stock_source: FakeStockSourcePort, customer: Customer
    ) -> None:
        """A store that returns its input yields that same order."""
        order_store = FakeOrderStorePort(assign_ids=False)
        service = OrderCreationService(order_store, stock_source)

        result = await service.create_order(customer, 2)

        assert result.created_order is order_store.saved_orders[0]


# ============================================================================
# Collaborator Failure Tests
# ============================================================================


class TestCollaboratorFailures:
    """Tests for failures raised by the store or stock source."""

    async def test_store_failure_propagates_and_releases_cups(
        self,
        service: OrderCreationService,
        order_store: FakeOrderStorePort,
        stock_source: FakeStockSourcePort,
        customer: Customer,
    ) -> None:
        """A failing save gives the cups back and re-raises."""
        order_store.should_fail = True

        with pytest.raises(RuntimeError, match="Order store is unavailable"):
            await service.create_order(customer, 3)

        assert [cup.id for cup in stock_source.released_cups] == [1, 2, 3]

    async def test_cancelled_save_releases_cups(
        self,
        stock_source: FakeStockSourcePort,
        customer: Customer,
    ) -> None:
        """Cancellation during the save still gives the cups back."""
        service = OrderCreationService(CancelledOrderStorePort(), stock_source)

        with pytest.raises(asyncio.CancelledError):
            await service.create_order(customer, 3)

        assert [cup.id for cup in stock_source.released_cups] == [1, 2, 3]

    async def test_release_failure_keeps_original_error(
        self,
        service: OrderCreationService,
        order_store: FakeOrderStorePort,
        stock_source: FakeStockSourcePort,
        customer: Customer,
    ) -> None:
        """If the release fails too, the save error still surfaces."""
        order_store.should_fail = True
        order_store.fail_message = "disk full"
        stock_source.should_fail_release = True

        with pytest.raises(RuntimeError, match="disk full"):
            await service.create_order(customer, 3)

    async def test_stock_count_failure_propagates(
        self, order_store: FakeOrderStorePort, customer: Customer
    ) -> None:
        """Errors from the stock count reach the caller unchanged."""

        class BrokenStockSource(FakeStockSourcePort):
            async def get_in_stock_count(self) -> int:
                raise ConnectionError("stock backend down")

        service = OrderCreationService(order_store, BrokenStockSource())

        with pytest.raises(ConnectionError, match="stock backend down"):
            await service.create_order(customer, 1)

        assert order_store.saved_orders == []


# ============================================================================
# Discount Tests
# ============================================================================


class TestDiscount:
    """Tests for the membership discount table."""

    @pytest.mark.parametrize(
        "expected_discount, number_of_ordered_cups, membership",
        [
            (3, 5, CustomerMembership.BASIC),
            (0, 4, CustomerMembership.BASIC),
            (0, 1, CustomerMembership.BASIC),
            (8, 5, CustomerMembership.PREMIUM),
            (5, 4, CustomerMembership.PREMIUM),
            (5, 1, CustomerMembership.PREMIUM),
        ],
    )
    def test_calculates_correct_discount_percentage(
        self,
        expected_discount: float,
        number_of_ordered_cups: int,
        membership: CustomerMembership,
    ) -> None:
        """Discount matches the membership table."""
        discount = OrderCreationService.calculate_discount_percentage(
            membership, number_of_ordered_cups
        )

        assert discount == expected_discount

    @pytest.mark.parametrize("number_of_ordered_cups", [2, 3, 4])
    def test_basic_below_threshold_has_no_discount(
        self, number_of_ordered_cups: int
    ) -> None:
        """Basic members pay full price for up to four cups."""
        assert OrderCreationService.calculate_discount_percentage(
            CustomerMembership.BASIC, number_of_ordered_cups
        ) == 0

    @pytest.mark.parametrize("number_of_ordered_cups", [5, 6, 100])
    def test_basic_bulk_discount(self, number_of_ordered_cups: int) -> None:
        """Basic members get 3% from five cups on."""
        assert OrderCreationService.calculate_discount_percentage(
            CustomerMembership.BASIC, number_of_ordered_cups
        ) == 3

    @pytest.mark.parametrize("number_of_ordered_cups", [2, 3, 4])
    def test_premium_below_threshold(self, number_of_ordered_cups: int) -> None:
        """Premium members get 5% for up to four cups."""
        assert OrderCreationService.calculate_discount_percentage(
            CustomerMembership.PREMIUM, number_of_ordered_cups
        ) == 5

    @pytest.mark.parametrize("number_of_ordered_cups", [5, 6, 100])
    def test_premium_bulk_discount(self, number_of_ordered_cups: int) -> None:
        """Premium members get 8% from five cups on."""
        assert OrderCreationService.calculate_discount_percentage(
            CustomerMembership.PREMIUM, number_of_ordered_cups
        ) == 8

    async def test_discount_applied_to_created_order(
        self, service: OrderCreationService
    ) -> None:
        """The created order records the computed discount."""
        result = await service.create_order(
            Customer(id=3, membership=CustomerMembership.BASIC), 5
        )

        assert result.created_order is not None
        assert result.created_order.discount_in_percent == 3
