"""Payment provider registry and the processor the checkout calls."""

from collections.abc import Callable

from storefront.exceptions import UnsupportedPaymentMethod
from storefront.payments.methods import (
    DEFAULT_CURRENCY,
    DebitCardPaymentMethod,
    PaymentMethod,
    PaymentResult,
    PayPalPaymentMethod,
    ProviderInfo,
    StripePaymentMethod,
)
from storefront.utils.logging import get_logger

MethodFactory = Callable[[], PaymentMethod]

INVALID_PAYMENT_DATA = "Invalid payment data"


def _default_methods() -> dict[str, MethodFactory]:
    return {
        "stripe": StripePaymentMethod,
        "paypal": PayPalPaymentMethod,
        "debit": DebitCardPaymentMethod,
    }


class PaymentMethodFactory:
    """Maps a provider key to a constructor. Lookups are case-insensitive."""

    def __init__(self, methods: dict[str, MethodFactory] | None = None, logger=None):
        self._methods: dict[str, MethodFactory] = dict(_default_methods() if methods is None else methods)
        self._logger = logger or get_logger(__name__)

    def create(self, payment_type: str) -> PaymentMethod:
        creator = self._methods.get((payment_type or "").strip().lower())
        if creator is None:
            raise UnsupportedPaymentMethod(payment_type, self.supported_types())
        return creator()

    def register(self, payment_type: str, creator: MethodFactory) -> None:
        payment_type = payment_type.strip().lower()
        if payment_type in self._methods:
            self._logger.warning("payment_method_overwritten", payment_type=payment_type)
        self._methods[payment_type] = creator
        self._logger.info("payment_method_registered", payment_type=payment_type)

    def supported_types(self) -> list[str]:
        return list(self._methods)

    def is_supported(self, payment_type: str) -> bool:
        return (payment_type or "").strip().lower() in self._methods

    def all_provider_info(self) -> dict[str, ProviderInfo]:
        return {key: creator().provider_info() for key, creator in self._methods.items()}


class PaymentProcessor:
    def __init__(self, factory: PaymentMethodFactory | None = None, logger=None):
        self._logger = logger or get_logger(__name__)
        self.factory = factory or PaymentMethodFactory(logger=self._logger)

    def process(
        self,
        payment_type: str,
        amount: float,
        order_ref: str,
        payment_data: dict | None = None,
        currency: str = DEFAULT_CURRENCY,
    ) -> PaymentResult:
        """Validate supplied data, then settle exactly once.

        Raises ``UnsupportedPaymentMethod`` for an unknown provider and lets
        ``PaymentInfrastructureError`` from the gateway propagate.
        """
        method = self.factory.create(payment_type)

        if payment_data and not method.validate(payment_data):
            self._logger.info("payment_data_rejected", provider=method.type, order_ref=order_ref)
            return PaymentResult.failed(INVALID_PAYMENT_DATA)

        result = method.settle(amount, order_ref, payment_data, currency)
        if result.success:
            self._logger.info(
                "payment_settled",
                provider=method.type,
                amount=amount,
                order_ref=order_ref,
                transaction_id=result.transaction_id,
            )
        else:
            self._logger.warning(
                "payment_declined",
                provider=method.type,
                amount=amount,
                order_ref=order_ref,
                reason=result.error,
            )
        return result
