"""Saved payment methods for the account settings screens.

At most one active method per user is the default: setting a new default
clears the others first. Deleting only deactivates the row.
"""

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from protean.fields import Boolean, DateTime, Integer, String

from storefront.domain import storefront
from storefront.shared.repository import Repository, omit_none, repositories


@dataclass
class SavedPaymentMethod:
    user_id: str
    type: str  # card, paypal
    provider: str
    external_id: str
    card_last_four: str | None = None
    card_brand: str | None = None
    card_exp_month: int | None = None
    card_exp_year: int | None = None
    paypal_email: str | None = None
    nickname: str | None = None
    is_default: bool = False
    active: bool = True
    id: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


@storefront.aggregate
class SavedPaymentMethodRecord:
    user_id = String(max_length=64, required=True)
    type = String(max_length=20, required=True)
    provider = String(max_length=50, required=True)
    external_id = String(max_length=255, required=True)
    card_last_four = String(max_length=4)
    card_brand = String(max_length=50)
    card_exp_month = Integer(min_value=1, max_value=12)
    card_exp_year = Integer()
    paypal_email = String(max_length=254)
    nickname = String(max_length=100)
    is_default = Boolean(default=False)
    active = Boolean(default=True)
    created_at = DateTime()
    updated_at = DateTime()


class SavedPaymentMethodRepository(Repository[SavedPaymentMethod]):
    record_cls = SavedPaymentMethodRecord

    def from_row(self, record):
        return SavedPaymentMethod(
            id=str(record.id),
            user_id=record.user_id,
            type=record.type,
            provider=record.provider,
            external_id=record.external_id,
            card_last_four=record.card_last_four,
            card_brand=record.card_brand,
            card_exp_month=record.card_exp_month,
            card_exp_year=record.card_exp_year,
            paypal_email=record.paypal_email,
            nickname=record.nickname,
            is_default=bool(record.is_default),
            active=bool(record.active),
            created_at=record.created_at,
            updated_at=record.updated_at,
        )

    def to_row(self, fields: Mapping[str, Any]) -> dict[str, Any]:
        return omit_none(fields)

    def list_for_user(self, user_id: str) -> list[SavedPaymentMethod]:
        """Active methods, the default first, then newest first."""
        methods = self.find_all(user_id=user_id, active=True)
        return sorted(methods, key=lambda m: not m.is_default)

    def _clear_defaults(self, user_id: str) -> None:
        for method in self.find_all(user_id=user_id, is_default=True):
            self.update(method.id, is_default=False)

    def save(self, method: SavedPaymentMethod) -> SavedPaymentMethod:
        if method.is_default:
            self._clear_defaults(method.user_id)
        method.active = True
        return self.create(method)

    def change(
        self, method_id: str, user_id: str, is_default: bool | None = None, nickname: str | None = None
    ) -> SavedPaymentMethod | None:
        method = self.find_by_id(method_id)
        if method is None or method.user_id != user_id:
            return None
        if is_default:
            self._clear_defaults(user_id)
        return self.update(method_id, is_default=is_default, nickname=nickname)

    def deactivate(self, method_id: str, user_id: str) -> bool:
        method = self.find_by_id(method_id)
        if method is None or method.user_id != user_id or not method.active:
            return False
        self.update(method_id, active=False, is_default=False)
        return True


repositories.register(SavedPaymentMethod, SavedPaymentMethodRepository)
