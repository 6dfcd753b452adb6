"""Tests for the generic repository contract through OrderRepository."""

import pytest
from protean.exceptions import ValidationError
from storefront.ordering.order.order import Order, OrderItem, OrderStatus, ShippingAddress
from storefront.ordering.order.repository import OrderRepository
from storefront.shared.repository import Pagination, SearchCriteria, Sort


@pytest.fixture
def orders():
    return OrderRepository()


def _order(user_id="user-1", status=OrderStatus.CONFIRMED.value, total=219_500.0, coupon_code="WELCOME10"):
    return Order(
        user_id=user_id,
        email="ana@example.com",
        items=[
            OrderItem(product_id="prod-1", product_name="Linen Shirt", quantity=2, unit_price=87_500.0, size="M"),
            OrderItem(product_id="prod-2", product_name="Canvas Tote", quantity=1, unit_price=45_000.0, color="sand"),
        ],
        shipping_address=ShippingAddress(street="Calle 10 #43-12", city="Medellín", postal_code="050021"),
        shipping_method="express",
        shipping_cost=44_500.0,
        payment_method="stripe",
        transaction_id="txn-1",
        coupon_code=coupon_code,
        subtotal=175_000.0,
        tax=0.0,
        discount=0.0,
        total=total,
        status=status,
    )


class TestRoundTrip:
    def test_create_then_read_back(self, orders):
        draft = _order()
        created = orders.create(draft)
        found = orders.find_by_id(created.id)

        assert found == created
        for field in (
            "user_id",
            "email",
            "shipping_address",
            "shipping_method",
            "shipping_cost",
            "payment_method",
            "transaction_id",
            "coupon_code",
            "subtotal",
            "tax",
            "discount",
            "total",
            "status",
            "currency",
        ):
            assert getattr(found, field) == getattr(draft, field), field

        assert [(i.product_id, i.product_name, i.quantity, i.unit_price, i.size, i.color) for i in found.items] == [
            ("prod-1", "Linen Shirt", 2, 87_500.0, "M", None),
            ("prod-2", "Canvas Tote", 1, 45_000.0, None, "sand"),
        ]

    def test_create_stamps_timestamps(self, orders):
        created = orders.create(_order())
        assert created.created_at is not None
        assert created.updated_at is not None

    def test_find_missing_returns_none(self, orders):
        assert orders.find_by_id("does-not-exist") is None


class TestPartialUpdate:
    def test_none_values_do_not_overwrite(self, orders):
        created = orders.create(_order())
        updated = orders.update(created.id, email="new@example.com", coupon_code=None, transaction_id=None)

        assert updated.email == "new@example.com"
        assert updated.coupon_code == "WELCOME10"
        assert updated.transaction_id == "txn-1"

    def test_update_missing_returns_none(self, orders):
        assert orders.update("does-not-exist", email="x@example.com") is None


class TestDeleteAndExists:
    def test_delete_existing(self, orders):
        created = orders.create(_order())
        assert orders.exists(created.id) is True
        assert orders.delete(created.id) is True
        assert orders.exists(created.id) is False

    def test_delete_missing_is_false_not_an_error(self, orders):
        assert orders.delete("does-not-exist") is False


class TestQueries:
    def test_find_all_newest_first(self, orders):
        ids = [orders.create(_order(total=float(i + 1))).id for i in range(3)]
        assert [o.id for o in orders.find_all()] == list(reversed(ids))

    def test_find_all_beyond_one_batch(self, orders):
        for i in range(105):
            orders.create(_order(total=float(i + 1)))
        assert len(orders.find_all()) == 105

    def test_find_by_user_and_status(self, orders):
        orders.create(_order(user_id="user-1"))
        orders.create(_order(user_id="user-2"))
        orders.create(_order(user_id="user-1", status=OrderStatus.PENDING.value))

        assert len(orders.find_by_user("user-1")) == 2
        assert len(orders.find_by_status("pending")) == 1


class TestCriteriaSearch:
    def test_defaults_page_one_limit_ten_newest_first(self, orders):
        created = [orders.create(_order(total=float(i + 1))) for i in range(12)]

        page = orders.find_by_criteria()

        assert page.total == 12
        assert page.page == 1
        assert page.limit == 10
        assert page.total_pages == 2
        assert len(page.data) == 10
        assert page.data[0].id == created[-1].id

    def test_filters_ignore_none_values(self, orders):
        for i in range(7):
            orders.create(_order(user_id="user-1", total=float(i + 1)))
        orders.create(_order(user_id="user-2"))

        page = orders.find_by_criteria(
            SearchCriteria(filters={"user_id": "user-1", "status": None}, pagination=Pagination(page=2, limit=5))
        )

        assert page.total == 7
        assert page.total_pages == 2
        assert len(page.data) == 2
        assert {o.user_id for o in page.data} == {"user-1"}

    def test_sort_ascending_by_field(self, orders):
        for total in (300.0, 100.0, 200.0):
            orders.create(_order(total=total))

        page = orders.find_by_criteria(SearchCriteria(sort=Sort(field="total", descending=False)))
        assert [o.total for o in page.data] == [100.0, 200.0, 300.0]

    def test_page_past_the_end_is_empty(self, orders):
        orders.create(_order())
        page = orders.find_by_criteria(SearchCriteria(pagination=Pagination(page=3, limit=10)))
        assert page.data == []
        assert page.total == 1


class TestUpdateStatus:
    def test_legal_transition(self, orders):
        created = orders.create(_order())
        assert orders.update_status(created.id, "processing").status == "processing"

    def test_illegal_transition_raises(self, orders):
        created = orders.create(_order(status="delivered"))
        with pytest.raises(ValidationError):
            orders.update_status(created.id, "cancelled")
        assert orders.find_by_id(created.id).status == "delivered"

    def test_missing_order(self, orders):
        assert orders.update_status("does-not-exist", "processing") is None
