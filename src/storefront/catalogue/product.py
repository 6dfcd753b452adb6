"""Products as seen by checkout: price, weight and stock at settlement time."""

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Float, Integer, String

from storefront.domain import storefront
from storefront.shared.repository import Repository, omit_none, repositories

DEFAULT_PRODUCT_WEIGHT_KG = 0.5


@dataclass
class Product:
    name: str
    price: float
    stock: int = 0
    category: str | None = None
    weight: float = DEFAULT_PRODUCT_WEIGHT_KG
    active: bool = True
    featured: bool = False
    id: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def can_supply(self, quantity: int) -> bool:
        return self.active and self.stock >= quantity


@storefront.aggregate
class ProductRecord:
    name = String(max_length=255, required=True)
    price = Float(required=True, min_value=0.0)
    stock = Integer(default=0, min_value=0)
    category = String(max_length=100)
    weight = Float(default=DEFAULT_PRODUCT_WEIGHT_KG, min_value=0.0)
    active = Boolean(default=True)
    featured = Boolean(default=False)
    created_at = DateTime()
    updated_at = DateTime()


class ProductRepository(Repository[Product]):
    record_cls = ProductRecord

    def from_row(self, record):
        return Product(
            id=str(record.id),
            name=record.name,
            price=record.price,
            stock=record.stock or 0,
            category=record.category,
            weight=record.weight if record.weight is not None else DEFAULT_PRODUCT_WEIGHT_KG,
            active=bool(record.active),
            featured=bool(record.featured),
            created_at=record.created_at,
            updated_at=record.updated_at,
        )

    def to_row(self, fields: Mapping[str, Any]) -> dict[str, Any]:
        return omit_none(fields)

    def find_by_category(self, category: str) -> list[Product]:
        return self.find_all(category=category, active=True)

    def find_featured(self, limit: int = 8) -> list[Product]:
        return self.find_all(featured=True, active=True)[:limit]

    def search_by_name(self, term: str) -> list[Product]:
        return self.find_all(name__icontains=term, active=True)

    def decrement_stock(self, product_id: str, quantity: int) -> Product:
        product = self.find_by_id(product_id)
        if product is None:
            raise ValidationError({"product_id": [f"Product {product_id} not found"]})
        if product.stock < quantity:
            raise ValidationError(
                {"stock": [f"Insufficient stock for {product.name}: {product.stock} left, {quantity} requested"]}
            )
        return self.update(product_id, stock=product.stock - quantity)


repositories.register(Product, ProductRepository)
