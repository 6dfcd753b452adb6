"""Errors raised across the checkout pipeline.

Validation and stock problems are not raised: they travel back to the
caller as a field -> messages mapping. Gateway declines travel as a failed
``PaymentResult``. Everything below is either a caller error reported with
a clear message, or an infrastructure failure that must reach the caller's
error boundary.
"""


class CheckoutError(Exception):
    """Base class for checkout pipeline errors."""


class UnsupportedShippingMethod(CheckoutError):
    def __init__(self, method: str, supported: list[str]):
        self.method = method
        self.supported = supported
        super().__init__(f"Unsupported shipping method: {method}. Supported methods: {', '.join(supported)}")


class ShippingNotAvailableForSubtotal(CheckoutError):
    def __init__(self, method: str, subtotal: float):
        self.method = method
        self.subtotal = subtotal
        super().__init__(f"Shipping method {method} is not available for a subtotal of {subtotal:,.2f}")


class UnsupportedPaymentMethod(CheckoutError):
    def __init__(self, payment_type: str, supported: list[str]):
        self.payment_type = payment_type
        self.supported = supported
        super().__init__(f"Unsupported payment method: {payment_type}. Supported methods: {', '.join(supported)}")


class PaymentInfrastructureError(CheckoutError):
    """The gateway could not be reached or is misconfigured."""

    def __init__(self, provider: str, reason: str):
        self.provider = provider
        self.reason = reason
        super().__init__(f"Payment gateway {provider} unavailable: {reason}")


class PersistenceFailed(CheckoutError):
    """The order could not be written after the customer was charged.

    Requires manual reconciliation; retrying the checkout could charge twice.
    """

    def __init__(self, transaction_id: str, reason: str):
        self.transaction_id = transaction_id
        self.reason = reason
        super().__init__(f"Something went wrong, contact support with reference {transaction_id}")


class CouponRedemptionFailed(CheckoutError):
    def __init__(self, code: str, order_id: str, reason: str):
        self.code = code
        self.order_id = order_id
        self.reason = reason
        super().__init__(f"Could not record usage of coupon {code} for order {order_id}: {reason}")
