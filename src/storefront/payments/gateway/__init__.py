"""Payment gateway factory.

Provides get_gateway() / set_gateway() to swap implementations per provider:
- FakeGateway for development and testing
- StripeGateway when STRIPE_SECRET_KEY is set
- PayPalGateway when PAYPAL_CLIENT_ID and PAYPAL_CLIENT_SECRET are set
"""

import os

from storefront.payments.gateway.fake_adapter import FakeGateway
from storefront.payments.gateway.port import PaymentGateway

_gateways: dict[str, PaymentGateway] = {}


def _build_gateway(name: str) -> PaymentGateway:
    if name == "stripe" and os.environ.get("STRIPE_SECRET_KEY"):
        from storefront.payments.gateway.stripe_adapter import StripeGateway

        return StripeGateway(api_key=os.environ["STRIPE_SECRET_KEY"])

    if name == "paypal" and os.environ.get("PAYPAL_CLIENT_ID") and os.environ.get("PAYPAL_CLIENT_SECRET"):
        from storefront.payments.gateway.paypal_adapter import DEFAULT_API_BASE, PayPalGateway

        return PayPalGateway(
            client_id=os.environ["PAYPAL_CLIENT_ID"],
            client_secret=os.environ["PAYPAL_CLIENT_SECRET"],
            api_base=os.environ.get("PAYPAL_API_BASE", DEFAULT_API_BASE),
        )

    return FakeGateway(name=name)


def get_gateway(name: str) -> PaymentGateway:
    """Return the gateway for ``name``. Defaults to FakeGateway."""
    if name not in _gateways:
        _gateways[name] = _build_gateway(name)
    return _gateways[name]


def set_gateway(name: str, gateway: PaymentGateway) -> None:
    """Override the gateway for ``name`` (useful for tests)."""
    _gateways[name] = gateway


def reset_gateways() -> None:
    """Reset to default gateways."""
    _gateways.clear()
