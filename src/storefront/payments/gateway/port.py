"""Payment gateway port (abstract interface).

Defines the contract that all payment gateway adapters must implement.
This enables swapping between FakeGateway (dev/test) and the live Stripe
and PayPal adapters without changing any checkout code.

Adapters report business outcomes (declines, insufficient funds) through
``ChargeResult``. They raise ``PaymentInfrastructureError`` only when the
gateway cannot be reached or is misconfigured.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class ChargeResult:
    """Result of a payment charge attempt."""

    success: bool
    gateway_transaction_id: str | None = None
    gateway_status: str | None = None
    gateway_response: str | None = None
    failure_reason: str | None = None
    raw: dict[str, Any] = field(default_factory=dict)


class PaymentGateway(ABC):
    """Abstract payment gateway interface."""

    name: str = "gateway"

    @abstractmethod
    def create_charge(
        self,
        amount: float,
        currency: str,
        payment_method_type: str,
        source: str | None,
        idempotency_key: str,
    ) -> ChargeResult:
        """Charge ``amount`` against ``source`` (card token or number, wallet order token)."""
        ...
