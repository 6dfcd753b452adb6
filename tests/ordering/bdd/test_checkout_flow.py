"""BDD tests for checkout settlement."""

import pytest
from pytest_bdd import given, parsers, scenarios, then, when
from storefront.catalogue.product import ProductRepository
from storefront.exceptions import CouponRedemptionFailed
from storefront.ordering.checkout.orchestrator import CheckoutOrchestrator, CheckoutState
from storefront.ordering.coupon.coupon import CouponRepository
from storefront.ordering.coupon.ledger import CouponLedger
from storefront.ordering.order.repository import OrderRepository

scenarios("features/checkout.feature")


class UnreachableCouponLedger(CouponLedger):
    def record_usage(self, code, order_id, user_id, discount):
        raise CouponRedemptionFailed(code, order_id, "ledger unreachable")


@pytest.fixture()
def checkout():
    """Mutable scenario state: catalogue, cart and collaborator overrides."""
    return {"products": {}, "lines": [], "overrides": {}, "collaborators": {}, "result": None}


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given(parsers.cfparse('a product "{name}" priced at {price:d} with {stock:d} in stock'))
def _(checkout, make_product, card_gateway, name, price, stock):
    checkout["products"][name] = make_product(name=name, price=float(price), stock=stock)


@given(parsers.cfparse('a coupon "{code}" worth {value:d} percent'))
def _(make_coupon, code, value):
    make_coupon(code=code, discount_type="percentage", discount_value=float(value))


@given("the coupon ledger cannot record usage")
def _(checkout, capturing_logger):
    checkout["collaborators"]["coupon_service"] = UnreachableCouponLedger()
    checkout["collaborators"]["logger"] = capturing_logger


@given(parsers.cfparse('the cart holds {quantity:d} "{name}"'))
def _(checkout, quantity, name):
    checkout["lines"].append((checkout["products"][name], quantity))


@given(parsers.cfparse('the customer picks "{method}" shipping for {weight:g} kg over {distance:g} km'))
def _(checkout, method, weight, distance):
    checkout["overrides"].update(shipping_method=method, weight=weight, distance=distance)


@given(parsers.cfparse('the customer applies coupon "{code}"'))
def _(checkout, code):
    checkout["overrides"]["coupon_code"] = code


# ---------------------------------------------------------------------------
# When steps
# ---------------------------------------------------------------------------
@when(parsers.cfparse('the customer checks out paying with card "{card_number}"'))
def _(checkout, make_request, card_number):
    request = make_request(
        checkout["lines"],
        payment_data={"card_number": card_number, "expiry_date": "12/35", "cvv": "123"},
        **checkout["overrides"],
    )
    checkout["result"] = CheckoutOrchestrator(**checkout["collaborators"]).checkout(request)


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then("the checkout succeeds")
def _(checkout):
    assert checkout["result"].success is True
    assert checkout["result"].state == CheckoutState.COMPLETE


@then("the checkout fails with a payment error")
def _(checkout):
    result = checkout["result"]
    assert result.success is False
    assert result.state == CheckoutState.PAYMENT_FAILED
    assert "Card declined" in result.error


@then(parsers.cfparse("the order total is {total:d}"))
def _(checkout, total):
    assert checkout["result"].total == total


@then(parsers.cfparse("the shipping cost is {cost:d}"))
def _(checkout, cost):
    assert checkout["result"].shipping_cost == cost


@then(parsers.cfparse("the gateway was charged once for {amount:d}"))
def _(card_gateway, amount):
    assert [call["amount"] for call in card_gateway.calls] == [amount]


@then(parsers.cfparse('the order is recorded as "{status}"'))
def _(checkout, status):
    order = OrderRepository().find_by_id(checkout["result"].order_id)
    assert order.status == status


@then("no order is recorded")
def _():
    assert OrderRepository().find_all() == []


@then(parsers.cfparse('{remaining:d} "{name}" remain in stock'))
def _(checkout, remaining, name):
    assert ProductRepository().find_by_id(checkout["products"][name].id).stock == remaining


@then(parsers.cfparse('coupon "{code}" has been used {count:d} times'))
def _(code, count):
    assert CouponRepository().find_by_code(code).used_count == count


@then(parsers.cfparse('a "{event}" warning is logged'))
def _(logged_events, event):
    assert event in logged_events("warning")
