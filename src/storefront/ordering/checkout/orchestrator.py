"""Checkout orchestrator: turns a cart into a paid, persisted order.

State Machine:
    VALIDATING → SHIPPING_SELECTED → PAYMENT_PENDING → PAYMENT_SETTLED
        → ORDER_PERSISTED → COUPON_APPLIED (optional) → COMPLETE
    Failure exits: VALIDATION_FAILED, PAYMENT_FAILED, PERSISTENCE_FAILED

Steps run strictly in order and none is retried:

1. Validate cart, stock, address, email, payment type, coupon and total.
   Every violation is collected and returned together.
2. Resolve shipping: the requested method (which must pass its gate), or
   the cheapest available one.
3. Settle payment exactly once. A decline stops here with nothing written.
4. Persist the order as confirmed. If that fails after money moved, the
   charge is escalated to the operator queue and ``PersistenceFailed`` is
   raised; it is never retried.
5. Best-effort follow-ups: stock decrement, coupon usage, notification.
   Their failures are logged and never affect the result.
"""

import os
import re
from collections import Counter
from dataclasses import dataclass, field
from enum import Enum
from typing import Any
from uuid import uuid4

from storefront.catalogue.product import Product, ProductRepository
from storefront.exceptions import (
    PaymentInfrastructureError,
    PersistenceFailed,
    ShippingNotAvailableForSubtotal,
    UnsupportedPaymentMethod,
    UnsupportedShippingMethod,
)
from storefront.ordering.checkout.collaborators import (
    LoggingNotifier,
    LoggingOperatorQueue,
    Notifier,
    OperatorQueue,
    ReconciliationItem,
)
from storefront.ordering.coupon.ledger import CouponLedger, CouponService
from storefront.ordering.order.order import Order, OrderItem, OrderStatus, ShippingAddress
from storefront.ordering.order.repository import OrderRepository
from storefront.payments.methods import DEFAULT_CURRENCY
from storefront.payments.processor import PaymentProcessor
from storefront.shared.repository import repository_for
from storefront.shipping.calculator import ShippingQuote, ShippingService
from storefront.utils.logging import get_logger

_EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

DECLINE_MESSAGE = "Your payment could not be processed"


class CheckoutState(Enum):
    VALIDATING = "validating"
    SHIPPING_SELECTED = "shipping_selected"
    PAYMENT_PENDING = "payment_pending"
    PAYMENT_SETTLED = "payment_settled"
    ORDER_PERSISTED = "order_persisted"
    COUPON_APPLIED = "coupon_applied"
    COMPLETE = "complete"
    VALIDATION_FAILED = "validation_failed"
    PAYMENT_FAILED = "payment_failed"
    PERSISTENCE_FAILED = "persistence_failed"


@dataclass(frozen=True)
class CartItem:
    product_id: str
    quantity: int
    size: str | None = None
    color: str | None = None


@dataclass
class CheckoutRequest:
    user_id: str
    email: str
    items: list[CartItem]
    shipping_address: ShippingAddress
    payment_type: str
    payment_data: dict[str, Any] | None = None
    shipping_method: str | None = None
    coupon_code: str | None = None
    weight: float | None = None
    distance: float | None = None


@dataclass(frozen=True)
class PaymentAttempt:
    """Everything needed for one settlement call. Never persisted."""

    provider: str
    payload: dict[str, Any] | None
    amount: float
    order_ref: str
    currency: str = DEFAULT_CURRENCY


@dataclass
class CheckoutResult:
    success: bool
    state: CheckoutState
    order_id: str | None = None
    transaction_id: str | None = None
    shipping_method: str | None = None
    shipping_cost: float | None = None
    estimated_delivery: str | None = None
    subtotal: float | None = None
    tax: float | None = None
    discount: float | None = None
    total: float | None = None
    error: str | None = None
    errors: dict[str, list[str]] = field(default_factory=dict)


@dataclass
class _Validated:
    lines: list[tuple[CartItem, Product]]
    subtotal: float
    tax: float
    discount: float
    coupon_code: str | None
    shipping: ShippingQuote | None


class CheckoutOrchestrator:
    def __init__(
        self,
        shipping_service: ShippingService | None = None,
        payment_processor: PaymentProcessor | None = None,
        order_repo: OrderRepository | None = None,
        product_repo: ProductRepository | None = None,
        coupon_service: CouponService | None = None,
        notifier: Notifier | None = None,
        operator_queue: OperatorQueue | None = None,
        tax_rate: float = 0.0,
        currency: str = DEFAULT_CURRENCY,
        logger=None,
    ):
        self._logger = logger or get_logger(__name__)
        self.shipping_service = shipping_service or ShippingService(logger=self._logger)
        self.payment_processor = payment_processor or PaymentProcessor(logger=self._logger)
        self.order_repo = order_repo or repository_for(Order)
        self.product_repo = product_repo or repository_for(Product)
        self.coupon_service = coupon_service or CouponLedger(logger=self._logger)
        self.notifier = notifier or LoggingNotifier(logger=self._logger)
        self.operator_queue = operator_queue or LoggingOperatorQueue(logger=self._logger)
        self.tax_rate = tax_rate
        self.currency = currency

    @classmethod
    def from_env(cls, **collaborators) -> "CheckoutOrchestrator":
        """Build with ``CHECKOUT_TAX_RATE`` and ``CHECKOUT_CURRENCY`` applied."""
        return cls(
            tax_rate=float(os.environ.get("CHECKOUT_TAX_RATE", "0")),
            currency=os.environ.get("CHECKOUT_CURRENCY", DEFAULT_CURRENCY),
            **collaborators,
        )

    # -------------------------------------------------------------------
    # Pipeline
    # -------------------------------------------------------------------
    def checkout(self, request: CheckoutRequest) -> CheckoutResult:
        log = self._logger.bind(user_id=request.user_id, payment_type=request.payment_type)
        log.info("checkout_started", items=len(request.items))

        errors: dict[str, list[str]] = {}
        validated = self._validate(request, errors)
        if errors:
            log.info("checkout_validation_failed", fields=sorted(errors))
            return CheckoutResult(
                success=False,
                state=CheckoutState.VALIDATION_FAILED,
                error="Checkout validation failed",
                errors=errors,
            )

        shipping = validated.shipping
        total = round(validated.subtotal + shipping.cost + validated.tax - validated.discount, 2)
        log.info("checkout_shipping_selected", shipping_method=shipping.key, shipping_cost=shipping.cost, total=total)

        attempt = PaymentAttempt(
            provider=request.payment_type.strip().lower(),
            payload=request.payment_data,
            amount=total,
            order_ref=f"draft-{uuid4().hex}",
            currency=self.currency,
        )
        try:
            payment = self.payment_processor.process(
                attempt.provider, attempt.amount, attempt.order_ref, attempt.payload, attempt.currency
            )
        except PaymentInfrastructureError as exc:
            log.error("checkout_payment_unavailable", order_ref=attempt.order_ref, provider=exc.provider, reason=exc.reason)
            raise

        summary = {
            "shipping_method": shipping.key,
            "shipping_cost": shipping.cost,
            "estimated_delivery": shipping.estimated_days,
            "subtotal": validated.subtotal,
            "tax": validated.tax,
            "discount": validated.discount,
            "total": total,
        }
        if not payment.success:
            log.info("checkout_payment_failed", order_ref=attempt.order_ref, reason=payment.error)
            return CheckoutResult(
                success=False,
                state=CheckoutState.PAYMENT_FAILED,
                error=f"{DECLINE_MESSAGE}: {payment.error}",
                **summary,
            )

        order = self._persist(request, validated, attempt, payment.transaction_id, total)
        log = log.bind(order_id=order.id, transaction_id=payment.transaction_id)
        log.info("checkout_order_persisted")

        self._decrement_stock(validated.lines, order.id)
        state = CheckoutState.ORDER_PERSISTED
        if validated.coupon_code and self._record_coupon(validated, order):
            state = CheckoutState.COUPON_APPLIED
        self._notify(order)

        log.info("checkout_complete", total=total, last_state=state.value)
        return CheckoutResult(
            success=True,
            state=CheckoutState.COMPLETE,
            order_id=order.id,
            transaction_id=payment.transaction_id,
            **summary,
        )

    # -------------------------------------------------------------------
    # Steps
    # -------------------------------------------------------------------
    def _validate(self, request: CheckoutRequest, errors: dict[str, list[str]]) -> _Validated:
        def reject(key: str, message: str) -> None:
            errors.setdefault(key, []).append(message)

        if not request.items:
            reject("items", "Cart is empty")

        lines: list[tuple[CartItem, Product]] = []
        for item in request.items:
            if item.quantity < 1:
                reject("items", f"Quantity for product {item.product_id} must be at least 1")
                continue
            product = self.product_repo.find_by_id(item.product_id)
            if product is None or not product.active:
                reject("items", f"Product {item.product_id} is not available")
                continue
            lines.append((item, product))

        # Variants of one product share its stock
        requested = Counter()
        products: dict[str, Product] = {}
        for item, product in lines:
            requested[product.id] += item.quantity
            products[product.id] = product
        for product_id, quantity in requested.items():
            product = products[product_id]
            if product.stock < quantity:
                reject(
                    "stock",
                    f"Insufficient stock for {product.name}: {product.stock} available, {quantity} requested",
                )

        for missing in request.shipping_address.missing_fields():
            reject("shipping_address", f"{missing.replace('_', ' ').capitalize()} is required")

        if not _EMAIL_PATTERN.match(request.email or ""):
            reject("email", "A valid email address is required")

        if not self.payment_processor.factory.is_supported(request.payment_type):
            supported = self.payment_processor.factory.supported_types()
            reject("payment_type", str(UnsupportedPaymentMethod(request.payment_type, supported)))

        subtotal = round(sum(product.price * item.quantity for item, product in lines), 2)
        tax = round(subtotal * self.tax_rate, 2)

        discount, coupon_code = 0.0, None
        if request.coupon_code:
            validation = self.coupon_service.validate(request.coupon_code, subtotal)
            if validation.valid:
                discount, coupon_code = validation.discount, validation.code
            else:
                reject("coupon", validation.error or "Coupon is not valid")

        if subtotal + tax - discount <= 0:
            reject("total", "Order total must be greater than zero")

        shipping = None
        if lines:
            weight = request.weight
            if weight is None:
                weight = sum(product.weight * item.quantity for item, product in lines)
            try:
                shipping = self._resolve_shipping(request.shipping_method, subtotal, weight, request.distance)
            except (UnsupportedShippingMethod, ShippingNotAvailableForSubtotal) as exc:
                reject("shipping_method", str(exc))

        return _Validated(
            lines=lines,
            subtotal=subtotal,
            tax=tax,
            discount=discount,
            coupon_code=coupon_code,
            shipping=shipping,
        )

    def _resolve_shipping(
        self, method: str | None, subtotal: float, weight: float | None, distance: float | None
    ) -> ShippingQuote:
        if method:
            return self.shipping_service.select(method, subtotal, weight, distance)
        return self.shipping_service.recommend(subtotal, weight, distance)

    def _persist(
        self,
        request: CheckoutRequest,
        validated: _Validated,
        attempt: PaymentAttempt,
        transaction_id: str,
        total: float,
    ) -> Order:
        order = Order(
            user_id=request.user_id,
            email=request.email,
            items=[
                OrderItem(
                    product_id=product.id,
                    product_name=product.name,
                    quantity=item.quantity,
                    unit_price=product.price,
                    size=item.size,
                    color=item.color,
                )
                for item, product in validated.lines
            ],
            shipping_address=request.shipping_address,
            shipping_method=validated.shipping.key,
            shipping_cost=validated.shipping.cost,
            payment_method=attempt.provider,
            transaction_id=transaction_id,
            coupon_code=validated.coupon_code,
            subtotal=validated.subtotal,
            tax=validated.tax,
            discount=validated.discount,
            total=total,
            currency=attempt.currency,
            status=OrderStatus.CONFIRMED.value,
        )
        try:
            return self.order_repo.create(order)
        except Exception as exc:
            self._logger.error(
                "checkout_persistence_failed",
                transaction_id=transaction_id,
                order_ref=attempt.order_ref,
                user_id=request.user_id,
                amount=total,
                error=str(exc),
            )
            try:
                self.operator_queue.escalate(
                    ReconciliationItem(
                        transaction_id=transaction_id,
                        order_ref=attempt.order_ref,
                        user_id=request.user_id,
                        amount=total,
                        payment_method=attempt.provider,
                        reason=str(exc),
                    )
                )
            except Exception as escalation_error:
                self._logger.critical(
                    "reconciliation_escalation_failed",
                    transaction_id=transaction_id,
                    order_ref=attempt.order_ref,
                    error=str(escalation_error),
                )
            raise PersistenceFailed(transaction_id, str(exc)) from exc

    def _decrement_stock(self, lines: list[tuple[CartItem, Product]], order_id: str) -> None:
        for item, product in lines:
            try:
                self.product_repo.decrement_stock(product.id, item.quantity)
            except Exception as exc:
                self._logger.warning(
                    "stock_decrement_failed",
                    order_id=order_id,
                    product_id=product.id,
                    quantity=item.quantity,
                    error=str(exc),
                )

    def _record_coupon(self, validated: _Validated, order: Order) -> bool:
        try:
            self.coupon_service.record_usage(validated.coupon_code, order.id, order.user_id, validated.discount)
        except Exception as exc:
            self._logger.warning(
                "coupon_redemption_failed",
                code=validated.coupon_code,
                order_id=order.id,
                error=str(exc),
            )
            return False
        return True

    def _notify(self, order: Order) -> None:
        try:
            self.notifier.order_confirmed(order)
        except Exception as exc:
            self._logger.warning("order_notification_failed", order_id=order.id, error=str(exc))
