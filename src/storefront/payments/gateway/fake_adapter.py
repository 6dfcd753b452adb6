"""Configurable fake payment gateway for development and testing.

This adapter simulates a real payment gateway without any external calls.
It can be configured at runtime to succeed, decline or be unreachable, and
it honours Stripe's test card numbers so checkout flows can be driven by
the payment data alone.
"""

from uuid import uuid4

from storefront.exceptions import PaymentInfrastructureError
from storefront.payments.gateway.port import ChargeResult, PaymentGateway

# Stripe test cards that decline
DECLINING_CARDS = {
    "4000000000000002": "Card declined",
    "4000000000009995": "Insufficient funds",
    "4000000000009987": "Lost card",
    "4000000000000069": "Expired card",
}


class FakeGateway(PaymentGateway):
    """Configurable fake payment gateway."""

    def __init__(self, name: str = "fake") -> None:
        self.name = name
        self.should_succeed: bool = True
        self.failure_reason: str = "Card declined"
        self.available: bool = True
        self.calls: list[dict] = []

    def configure(
        self,
        should_succeed: bool = True,
        failure_reason: str = "Card declined",
        available: bool = True,
    ) -> None:
        """Configure gateway behavior at runtime."""
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason
        self.available = available

    def create_charge(
        self,
        amount: float,
        currency: str,
        payment_method_type: str,
        source: str | None,
        idempotency_key: str,
    ) -> ChargeResult:
        call = {
            "method": "create_charge",
            "amount": amount,
            "currency": currency,
            "payment_method_type": payment_method_type,
            "source": source,
            "idempotency_key": idempotency_key,
        }
        self.calls.append(call)

        if not self.available:
            raise PaymentInfrastructureError(self.name, "connection refused")

        decline = DECLINING_CARDS.get((source or "").replace(" ", ""))
        if self.should_succeed and decline is None:
            return ChargeResult(
                success=True,
                gateway_transaction_id=f"fake_txn_{uuid4().hex[:12]}",
                gateway_status="succeeded",
                gateway_response="Charge successful",
                raw={"amount": amount, "currency": currency, "idempotency_key": idempotency_key},
            )
        return ChargeResult(
            success=False,
            gateway_status="failed",
            failure_reason=decline or self.failure_reason,
            raw={"amount": amount, "currency": currency, "idempotency_key": idempotency_key},
        )
