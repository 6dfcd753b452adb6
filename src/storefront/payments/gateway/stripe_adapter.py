"""Stripe payment gateway adapter.

Creates and confirms a PaymentIntent in one call. Card errors are business
outcomes; every other Stripe error means the gateway could not do its job.
"""

import stripe

from storefront.exceptions import PaymentInfrastructureError
from storefront.payments.gateway.port import ChargeResult, PaymentGateway

# Currencies Stripe expects in whole units rather than cents
ZERO_DECIMAL_CURRENCIES = {"jpy", "krw", "vnd", "clp", "pyg", "xof", "xaf"}


def to_minor_units(amount: float, currency: str) -> int:
    if currency.lower() in ZERO_DECIMAL_CURRENCIES:
        return int(round(amount))
    return int(round(amount * 100))


class StripeGateway(PaymentGateway):
    """Production Stripe gateway adapter."""

    name = "stripe"

    def __init__(self, api_key: str) -> None:
        if not api_key:
            raise PaymentInfrastructureError(self.name, "missing API key")
        self.api_key = api_key

    def create_charge(
        self,
        amount: float,
        currency: str,
        payment_method_type: str,
        source: str | None,
        idempotency_key: str,
    ) -> ChargeResult:
        try:
            intent = stripe.PaymentIntent.create(
                api_key=self.api_key,
                amount=to_minor_units(amount, currency),
                currency=currency.lower(),
                payment_method=source,
                confirm=True,
                automatic_payment_methods={"enabled": True, "allow_redirects": "never"},
                metadata={"order_ref": idempotency_key, "payment_type": payment_method_type},
                idempotency_key=idempotency_key,
            )
        except stripe.CardError as e:
            return ChargeResult(
                success=False,
                gateway_status="declined",
                failure_reason=e.user_message or str(e),
                raw={"code": e.code, "decline_code": getattr(e, "decline_code", None)},
            )
        except stripe.StripeError as e:
            raise PaymentInfrastructureError(self.name, str(e)) from e

        if intent.status != "succeeded":
            return ChargeResult(
                success=False,
                gateway_transaction_id=intent.id,
                gateway_status=intent.status,
                failure_reason=f"Payment not completed (status: {intent.status})",
                raw={"id": intent.id, "status": intent.status},
            )
        return ChargeResult(
            success=True,
            gateway_transaction_id=intent.id,
            gateway_status=intent.status,
            gateway_response="Charge successful",
            raw={"id": intent.id, "status": intent.status, "amount": intent.amount},
        )
