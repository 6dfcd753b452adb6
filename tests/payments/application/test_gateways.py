"""Tests for the gateway adapters and the gateway registry."""

import json
from types import SimpleNamespace

import httpx
import pytest
import stripe
from storefront.exceptions import PaymentInfrastructureError
from storefront.payments.gateway import get_gateway, reset_gateways, set_gateway
from storefront.payments.gateway.fake_adapter import FakeGateway
from storefront.payments.gateway.paypal_adapter import PayPalGateway
from storefront.payments.gateway.port import ChargeResult
from storefront.payments.gateway.stripe_adapter import StripeGateway, to_minor_units


def _charge(gateway, source="4242424242424242", amount=59_900.0, currency="COP"):
    return gateway.create_charge(
        amount=amount,
        currency=currency,
        payment_method_type="card",
        source=source,
        idempotency_key="draft-test",
    )


class TestFakeGateway:
    def test_default_charge_succeeds(self):
        result = _charge(FakeGateway())
        assert isinstance(result, ChargeResult)
        assert result.success is True
        assert result.gateway_status == "succeeded"

    def test_configured_charge_fails(self):
        gateway = FakeGateway()
        gateway.configure(should_succeed=False, failure_reason="Do not honor")
        result = _charge(gateway)
        assert result.success is False
        assert result.failure_reason == "Do not honor"

    def test_declining_test_card(self):
        assert _charge(FakeGateway(), source="4000 0000 0000 0002").failure_reason == "Card declined"

    def test_unavailable_raises(self):
        gateway = FakeGateway()
        gateway.configure(available=False)
        with pytest.raises(PaymentInfrastructureError):
            _charge(gateway)
        assert len(gateway.calls) == 1

    def test_records_calls(self):
        gateway = FakeGateway()
        _charge(gateway)
        _charge(gateway)
        assert [c["idempotency_key"] for c in gateway.calls] == ["draft-test", "draft-test"]


class TestGatewayRegistry:
    def test_defaults_to_fake(self, monkeypatch):
        monkeypatch.delenv("STRIPE_SECRET_KEY", raising=False)
        monkeypatch.delenv("PAYPAL_CLIENT_ID", raising=False)
        assert isinstance(get_gateway("stripe"), FakeGateway)
        assert isinstance(get_gateway("paypal"), FakeGateway)

    def test_same_instance_until_reset(self):
        gateway = get_gateway("stripe")
        assert get_gateway("stripe") is gateway
        reset_gateways()
        assert get_gateway("stripe") is not gateway

    def test_set_gateway(self):
        custom = FakeGateway(name="custom")
        set_gateway("stripe", custom)
        assert get_gateway("stripe") is custom

    def test_stripe_when_key_configured(self, monkeypatch):
        monkeypatch.setenv("STRIPE_SECRET_KEY", "sk_test_123")
        assert isinstance(get_gateway("stripe"), StripeGateway)

    def test_paypal_when_credentials_configured(self, monkeypatch):
        monkeypatch.setenv("PAYPAL_CLIENT_ID", "client")
        monkeypatch.setenv("PAYPAL_CLIENT_SECRET", "secret")
        assert isinstance(get_gateway("paypal"), PayPalGateway)


class TestStripeGateway:
    def test_requires_api_key(self):
        with pytest.raises(PaymentInfrastructureError):
            StripeGateway(api_key="")

    def test_minor_units(self):
        assert to_minor_units(59.99, "USD") == 5999
        assert to_minor_units(1500, "JPY") == 1500

    def test_successful_intent(self, monkeypatch):
        captured = {}

        def fake_create(**kwargs):
            captured.update(kwargs)
            return SimpleNamespace(id="pi_123", status="succeeded", amount=kwargs["amount"])

        monkeypatch.setattr(stripe.PaymentIntent, "create", fake_create)
        result = _charge(StripeGateway(api_key="sk_test_123"), source="pm_card_visa")

        assert result.success is True
        assert result.gateway_transaction_id == "pi_123"
        assert captured["idempotency_key"] == "draft-test"
        assert captured["amount"] == 5_990_000
        assert captured["currency"] == "cop"
        assert captured["confirm"] is True

    def test_card_error_is_a_decline(self, monkeypatch):
        def fake_create(**kwargs):
            raise stripe.CardError("Your card was declined.", param=None, code="card_declined")

        monkeypatch.setattr(stripe.PaymentIntent, "create", fake_create)
        result = _charge(StripeGateway(api_key="sk_test_123"))

        assert result.success is False
        assert "declined" in result.failure_reason

    def test_other_stripe_errors_are_infrastructure_failures(self, monkeypatch):
        def fake_create(**kwargs):
            raise stripe.APIConnectionError("Network error")

        monkeypatch.setattr(stripe.PaymentIntent, "create", fake_create)
        with pytest.raises(PaymentInfrastructureError):
            _charge(StripeGateway(api_key="sk_test_123"))

    def test_incomplete_intent_is_not_a_success(self, monkeypatch):
        monkeypatch.setattr(
            stripe.PaymentIntent,
            "create",
            lambda **kwargs: SimpleNamespace(id="pi_456", status="requires_action", amount=kwargs["amount"]),
        )
        result = _charge(StripeGateway(api_key="sk_test_123"))
        assert result.success is False
        assert "requires_action" in result.failure_reason


def _paypal(handler):
    return PayPalGateway(
        client_id="client",
        client_secret="secret",
        api_base="https://api-m.sandbox.paypal.com",
        transport=httpx.MockTransport(handler),
    )


def _token_response(request):
    return httpx.Response(200, json={"access_token": "A21AA", "token_type": "Bearer"})


class TestPayPalGateway:
    def test_capture_completed(self):
        seen = {}

        def handler(request):
            if request.url.path == "/v1/oauth2/token":
                return _token_response(request)
            seen["path"] = request.url.path
            seen["request_id"] = request.headers["PayPal-Request-Id"]
            seen["auth"] = request.headers["Authorization"]
            return httpx.Response(
                201,
                json={
                    "id": "ORDER-1",
                    "status": "COMPLETED",
                    "purchase_units": [{"payments": {"captures": [{"id": "CAPTURE-1"}]}}],
                },
            )

        result = _charge(_paypal(handler), source="ORDER-1")

        assert result.success is True
        assert result.gateway_transaction_id == "CAPTURE-1"
        assert seen == {
            "path": "/v2/checkout/orders/ORDER-1/capture",
            "request_id": "draft-test",
            "auth": "Bearer A21AA",
        }

    def test_unprocessable_capture_is_a_decline(self):
        def handler(request):
            if request.url.path == "/v1/oauth2/token":
                return _token_response(request)
            body = {
                "name": "UNPROCESSABLE_ENTITY",
                "details": [{"issue": "INSTRUMENT_DECLINED", "description": "The instrument was declined."}],
            }
            return httpx.Response(422, content=json.dumps(body), headers={"Content-Type": "application/json"})

        result = _charge(_paypal(handler), source="ORDER-2")

        assert result.success is False
        assert result.failure_reason == "The instrument was declined."

    def test_missing_token_is_a_decline(self):
        result = _charge(_paypal(_token_response), source=None)
        assert result.success is False

    def test_authentication_failure_is_infrastructure(self):
        def handler(request):
            return httpx.Response(401, json={"error": "invalid_client"})

        with pytest.raises(PaymentInfrastructureError):
            _charge(_paypal(handler), source="ORDER-3")

    def test_network_error_is_infrastructure(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(PaymentInfrastructureError):
            _charge(_paypal(handler), source="ORDER-4")

    def test_server_error_is_infrastructure(self):
        def handler(request):
            if request.url.path == "/v1/oauth2/token":
                return _token_response(request)
            return httpx.Response(503, json={"message": "Service Unavailable"})

        with pytest.raises(PaymentInfrastructureError):
            _charge(_paypal(handler), source="ORDER-5")
