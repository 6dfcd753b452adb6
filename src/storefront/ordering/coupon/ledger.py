"""Coupon collaborator used by checkout.

Validation runs before payment and never touches the usage count. Usage is
recorded only once an order exists, at most once per order.
"""

from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Protocol

from protean import UnitOfWork
from protean.utils.globals import current_domain

from storefront.exceptions import CouponRedemptionFailed
from storefront.ordering.coupon.coupon import Coupon, CouponRepository, CouponUsageRecord, normalize_code
from storefront.shared.repository import repository_for
from storefront.utils.logging import get_logger


@dataclass(frozen=True)
class CouponValidation:
    valid: bool
    code: str
    discount: float = 0.0
    error: str | None = None


class CouponService(Protocol):
    def validate(self, code: str, subtotal: float) -> CouponValidation: ...

    def record_usage(self, code: str, order_id: str, user_id: str, discount: float) -> bool: ...


class CouponLedger:
    """``CouponService`` backed by the coupon repository."""

    def __init__(self, coupons: CouponRepository | None = None, logger=None):
        self._logger = logger or get_logger(__name__)
        self.coupons = coupons or repository_for(Coupon)

    def validate(self, code: str, subtotal: float) -> CouponValidation:
        code = normalize_code(code)
        coupon = self.coupons.find_by_code(code)

        error = self._rejection(coupon, subtotal)
        if error:
            self._logger.info("coupon_rejected", code=code, subtotal=subtotal, reason=error)
            return CouponValidation(valid=False, code=code, error=error)

        discount = coupon.discount_for(subtotal)
        self._logger.debug("coupon_validated", code=code, subtotal=subtotal, discount=discount)
        return CouponValidation(valid=True, code=code, discount=discount)

    @staticmethod
    def _rejection(coupon: Coupon | None, subtotal: float) -> str | None:
        if coupon is None or not coupon.active or coupon.is_expired():
            return "Coupon is not valid or has expired"
        if coupon.minimum_amount and subtotal < coupon.minimum_amount:
            return f"The minimum amount for this coupon is {coupon.minimum_amount:,.2f}"
        if coupon.is_exhausted():
            return "This coupon has reached its usage limit"
        return None

    def record_usage(self, code: str, order_id: str, user_id: str, discount: float) -> bool:
        """Record one use of ``code`` against ``order_id``.

        Returns ``False`` when the order already has its usage recorded.
        """
        code = normalize_code(code)
        usage_repo = current_domain.repository_for(CouponUsageRecord)
        if usage_repo._dao.query.filter(order_id=order_id).all().total > 0:
            self._logger.info("coupon_usage_already_recorded", code=code, order_id=order_id)
            return False

        coupon = self.coupons.find_by_code(code)
        if coupon is None:
            raise CouponRedemptionFailed(code, order_id, "coupon not found")

        # Usage row and counter commit together or not at all
        try:
            with UnitOfWork():
                usage_repo.add(
                    CouponUsageRecord(
                        coupon_code=code,
                        order_id=order_id,
                        user_id=user_id,
                        discount_amount=discount,
                        used_at=datetime.now(UTC),
                    )
                )
                self.coupons.update(coupon.id, used_count=coupon.used_count + 1)
        except Exception as exc:
            raise CouponRedemptionFailed(code, order_id, str(exc)) from exc
        self._logger.info("coupon_usage_recorded", code=code, order_id=order_id, discount=discount)
        return True
