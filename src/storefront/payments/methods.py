"""Payment providers.

Every provider is an independent ``PaymentMethod``: it validates its own
payment data shape and settles through a gateway adapter. A gateway decline
comes back as a failed ``PaymentResult``; an unreachable or misconfigured
gateway raises ``PaymentInfrastructureError`` from the adapter untouched.
"""

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from storefront.payments.gateway import get_gateway
from storefront.payments.gateway.port import PaymentGateway
from storefront.utils.logging import get_logger

DEFAULT_CURRENCY = "COP"

_EXPIRY_PATTERN = re.compile(r"^(0[1-9]|1[0-2])/(\d{2})$")
_EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


@dataclass(frozen=True)
class PaymentResult:
    """Normalized settlement outcome.

    ``transaction_id`` is present only on success, ``error`` only on failure.
    """

    success: bool
    transaction_id: str | None = None
    error: str | None = None
    raw: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def failed(cls, error: str, raw: dict[str, Any] | None = None) -> "PaymentResult":
        return cls(success=False, error=error, raw=raw or {})


@dataclass(frozen=True)
class ProviderInfo:
    name: str
    icon: str
    supported_currencies: tuple[str, ...]
    processing_fee: float


# ---------------------------------------------------------------------------
# Card checks
# ---------------------------------------------------------------------------
def luhn_valid(number: str) -> bool:
    digits = re.sub(r"[\s-]", "", number or "")
    if not digits.isdigit() or not 13 <= len(digits) <= 19:
        return False

    total = 0
    for i, ch in enumerate(reversed(digits)):
        d = int(ch)
        if i % 2 == 1:
            d *= 2
            if d > 9:
                d -= 9
        total += d
    return total % 10 == 0


def expiry_valid(expiry: str, today: datetime | None = None) -> bool:
    """``MM/YY`` that is not in the past (a card is valid through its month)."""
    match = _EXPIRY_PATTERN.match((expiry or "").strip())
    if not match:
        return False
    today = today or datetime.now(UTC)
    month, year = int(match.group(1)), 2000 + int(match.group(2))
    return (year, month) >= (today.year, today.month)


def cvv_valid(cvv: str) -> bool:
    cvv = str(cvv or "").strip()
    return cvv.isdigit() and len(cvv) in (3, 4)


def _card_source(payment_data: dict | None) -> str | None:
    if not payment_data:
        return None
    return payment_data.get("payment_method_id") or re.sub(r"[\s-]", "", payment_data.get("card_number") or "")


# ---------------------------------------------------------------------------
# Provider contract
# ---------------------------------------------------------------------------
class PaymentMethod(ABC):
    """Contract every payment provider implements."""

    type: str

    @abstractmethod
    def validate(self, payment_data: dict) -> bool:
        """Provider-specific shape checks, run before any gateway call."""
        ...

    @abstractmethod
    def settle(
        self,
        amount: float,
        order_ref: str,
        payment_data: dict | None = None,
        currency: str = DEFAULT_CURRENCY,
    ) -> PaymentResult: ...

    @abstractmethod
    def provider_info(self) -> ProviderInfo: ...


def _to_result(charge, extra: dict[str, Any] | None = None) -> PaymentResult:
    raw = {**charge.raw, "gateway_status": charge.gateway_status, **(extra or {})}
    if charge.success:
        return PaymentResult(success=True, transaction_id=charge.gateway_transaction_id, raw=raw)
    return PaymentResult.failed(charge.failure_reason or "Payment declined", raw=raw)


class StripePaymentMethod(PaymentMethod):
    """Card network gateway."""

    type = "stripe"

    def __init__(self, gateway: PaymentGateway | None = None, logger=None):
        self._gateway = gateway
        self._logger = logger or get_logger(__name__)

    @property
    def gateway(self) -> PaymentGateway:
        return self._gateway or get_gateway("stripe")

    def validate(self, payment_data):
        card_number = payment_data.get("card_number")
        expiry_date = payment_data.get("expiry_date")
        cvv = payment_data.get("cvv")
        if not (card_number and expiry_date and cvv):
            return False
        return luhn_valid(card_number) and expiry_valid(expiry_date) and cvv_valid(cvv)

    def settle(self, amount, order_ref, payment_data=None, currency=DEFAULT_CURRENCY):
        self._logger.info("payment_settling", provider=self.type, amount=amount, order_ref=order_ref)
        charge = self.gateway.create_charge(
            amount=amount,
            currency=currency,
            payment_method_type="card",
            source=_card_source(payment_data),
            idempotency_key=order_ref,
        )
        return _to_result(charge)

    def provider_info(self):
        return ProviderInfo(
            name="Stripe",
            icon="💳",
            supported_currencies=("USD", "EUR", "COP"),
            processing_fee=2.9,
        )


class PayPalPaymentMethod(PaymentMethod):
    """Wallet redirect gateway. The buyer approves in PayPal; we capture the token."""

    type = "paypal"

    def __init__(self, gateway: PaymentGateway | None = None, logger=None):
        self._gateway = gateway
        self._logger = logger or get_logger(__name__)

    @property
    def gateway(self) -> PaymentGateway:
        return self._gateway or get_gateway("paypal")

    def validate(self, payment_data):
        email = payment_data.get("email")
        token = payment_data.get("paypal_token")
        return bool(email and token and _EMAIL_PATTERN.match(email))

    def settle(self, amount, order_ref, payment_data=None, currency=DEFAULT_CURRENCY):
        self._logger.info("payment_settling", provider=self.type, amount=amount, order_ref=order_ref)
        charge = self.gateway.create_charge(
            amount=amount,
            currency=currency,
            payment_method_type="wallet",
            source=(payment_data or {}).get("paypal_token"),
            idempotency_key=order_ref,
        )
        return _to_result(charge, extra={"provider": self.type})

    def provider_info(self):
        return ProviderInfo(
            name="PayPal",
            icon="🏛️",
            supported_currencies=("USD", "EUR", "COP"),
            processing_fee=3.4,
        )


class DebitCardPaymentMethod(PaymentMethod):
    """Debit cards settle through the card gateway, tagged as debit."""

    type = "debit"

    def __init__(self, card: StripePaymentMethod | None = None, logger=None):
        self._logger = logger or get_logger(__name__)
        self._card = card or StripePaymentMethod(logger=self._logger)

    def validate(self, payment_data):
        return payment_data.get("card_type") == "debit" and self._card.validate(payment_data)

    def settle(self, amount, order_ref, payment_data=None, currency=DEFAULT_CURRENCY):
        result = self._card.settle(amount, order_ref, payment_data, currency)
        return PaymentResult(
            success=result.success,
            transaction_id=result.transaction_id,
            error=result.error,
            raw={**result.raw, "payment_type": "debit"},
        )

    def provider_info(self):
        return ProviderInfo(
            name="Debit Card",
            icon="💳",
            supported_currencies=("COP", "USD"),
            processing_fee=2.5,
        )
