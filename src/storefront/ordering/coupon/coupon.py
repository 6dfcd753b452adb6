"""Discount coupons and their usage ledger rows."""

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import UTC, datetime
from enum import Enum
from typing import Any

from protean.fields import Boolean, DateTime, Float, Integer, String

from storefront.domain import storefront
from storefront.shared.repository import Repository, omit_none, repositories


class DiscountType(Enum):
    PERCENTAGE = "percentage"
    FIXED = "fixed"


def normalize_code(code: str) -> str:
    return (code or "").strip().upper()


@dataclass
class Coupon:
    code: str
    discount_type: str
    discount_value: float
    max_discount: float | None = None
    minimum_amount: float | None = None
    usage_limit: int | None = None
    used_count: int = 0
    valid_until: datetime | None = None
    active: bool = True
    id: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def is_expired(self, now: datetime | None = None) -> bool:
        if self.valid_until is None:
            return False
        now = now or datetime.now(UTC)
        valid_until = self.valid_until if self.valid_until.tzinfo else self.valid_until.replace(tzinfo=UTC)
        return valid_until < now

    def is_exhausted(self) -> bool:
        return bool(self.usage_limit) and self.used_count >= self.usage_limit

    def discount_for(self, subtotal: float) -> float:
        if self.discount_type == DiscountType.PERCENTAGE.value:
            discount = subtotal * self.discount_value / 100
            if self.max_discount and discount > self.max_discount:
                discount = self.max_discount
            return round(discount, 2)
        return round(self.discount_value, 2)


@storefront.aggregate
class CouponRecord:
    code = String(max_length=50, required=True, unique=True)
    discount_type = String(max_length=20, choices=DiscountType, required=True)
    discount_value = Float(required=True, min_value=0.0)
    max_discount = Float()
    minimum_amount = Float()
    usage_limit = Integer()
    used_count = Integer(default=0)
    valid_until = DateTime()
    active = Boolean(default=True)
    created_at = DateTime()
    updated_at = DateTime()


@storefront.aggregate
class CouponUsageRecord:
    coupon_code = String(max_length=50, required=True)
    order_id = String(max_length=64, required=True, unique=True)
    user_id = String(max_length=64)
    discount_amount = Float(default=0.0)
    used_at = DateTime()


class CouponRepository(Repository[Coupon]):
    record_cls = CouponRecord

    def from_row(self, record):
        return Coupon(
            id=str(record.id),
            code=record.code,
            discount_type=record.discount_type,
            discount_value=record.discount_value,
            max_discount=record.max_discount,
            minimum_amount=record.minimum_amount,
            usage_limit=record.usage_limit,
            used_count=record.used_count or 0,
            valid_until=record.valid_until,
            active=bool(record.active),
            created_at=record.created_at,
            updated_at=record.updated_at,
        )

    def to_row(self, fields: Mapping[str, Any]) -> dict[str, Any]:
        row = omit_none(fields)
        if "code" in row:
            row["code"] = normalize_code(row["code"])
        return row

    def find_by_code(self, code: str) -> Coupon | None:
        result = self._query({"code": normalize_code(code)}).all()
        return self.from_row(result.items[0]) if result.items else None


repositories.register(Coupon, CouponRepository)
