"""Shared fixtures for checkout and order tests."""

from datetime import UTC, datetime, timedelta

import pytest
from storefront.catalogue.product import Product, ProductRepository
from storefront.ordering.checkout.orchestrator import CartItem, CheckoutRequest
from storefront.ordering.coupon.coupon import Coupon, CouponRepository
from storefront.ordering.order.order import ShippingAddress
from storefront.payments.gateway import set_gateway
from storefront.payments.gateway.fake_adapter import FakeGateway

VALID_CARD = {"card_number": "4242424242424242", "expiry_date": "12/35", "cvv": "123"}
DECLINED_CARD = {**VALID_CARD, "card_number": "4000000000000002"}


@pytest.fixture
def card_gateway():
    gateway = FakeGateway(name="stripe")
    set_gateway("stripe", gateway)
    return gateway


@pytest.fixture
def make_product():
    repo = ProductRepository()

    def _make(name="Linen Shirt", price=87_500.0, stock=10, weight=0.5, **kwargs):
        return repo.create(Product(name=name, price=price, stock=stock, weight=weight, **kwargs))

    return _make


@pytest.fixture
def make_coupon():
    repo = CouponRepository()

    def _make(code="WELCOME10", discount_type="percentage", discount_value=10.0, **kwargs):
        kwargs.setdefault("valid_until", datetime.now(UTC) + timedelta(days=30))
        return repo.create(
            Coupon(code=code, discount_type=discount_type, discount_value=discount_value, **kwargs)
        )

    return _make


@pytest.fixture
def address():
    return ShippingAddress(street="Calle 10 #43-12", city="Medellín", postal_code="050021", country="CO")


@pytest.fixture
def make_request(address):
    def _make(products_and_quantities, **overrides):
        fields = {
            "user_id": "user-1",
            "email": "ana@example.com",
            "items": [CartItem(product_id=p.id, quantity=q) for p, q in products_and_quantities],
            "shipping_address": address,
            "payment_type": "stripe",
            "payment_data": dict(VALID_CARD),
        }
        fields.update(overrides)
        return CheckoutRequest(**fields)

    return _make
