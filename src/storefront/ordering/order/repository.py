"""Order repository: explicit mapping between ``Order`` and ``OrderRecord``."""

import json
from collections.abc import Mapping
from typing import Any

from storefront.ordering.order.order import Order, OrderItem, ShippingAddress, assert_can_transition
from storefront.ordering.order.records import OrderItemRecord, OrderRecord
from storefront.shared.repository import Repository, omit_none, repositories


class OrderRepository(Repository[Order]):
    record_cls = OrderRecord

    def from_row(self, record):
        address = json.loads(record.shipping_address) if record.shipping_address else {}
        return Order(
            id=str(record.id),
            user_id=record.user_id,
            email=record.email,
            status=record.status,
            items=[
                OrderItem(
                    id=str(item.id),
                    product_id=item.product_id,
                    product_name=item.product_name,
                    quantity=item.quantity,
                    unit_price=item.unit_price,
                    size=item.size,
                    color=item.color,
                )
                for item in record.items or []
            ],
            shipping_address=ShippingAddress(**address),
            shipping_method=record.shipping_method,
            shipping_cost=record.shipping_cost,
            payment_method=record.payment_method,
            transaction_id=record.transaction_id,
            coupon_code=record.coupon_code,
            subtotal=record.subtotal,
            tax=record.tax,
            discount=record.discount,
            total=record.total,
            currency=record.currency,
            created_at=record.created_at,
            updated_at=record.updated_at,
        )

    def to_row(self, fields: Mapping[str, Any]) -> dict[str, Any]:
        row = omit_none(fields)
        if "shipping_address" in row:
            address = row["shipping_address"]
            row["shipping_address"] = json.dumps(address.to_dict() if isinstance(address, ShippingAddress) else address)
        if "items" in row:
            row["items"] = [
                OrderItemRecord(
                    **omit_none(
                        {
                            "product_id": item.product_id,
                            "product_name": item.product_name,
                            "quantity": item.quantity,
                            "unit_price": item.unit_price,
                            "size": item.size,
                            "color": item.color,
                        }
                    )
                )
                for item in row["items"]
            ]
        return row

    def find_by_user(self, user_id: str) -> list[Order]:
        return self.find_all(user_id=user_id)

    def find_by_status(self, status: str) -> list[Order]:
        return self.find_all(status=status)

    def update_status(self, order_id: str, status: str) -> Order | None:
        """Move an order along the status machine; illegal moves raise ``ValidationError``."""
        order = self.find_by_id(order_id)
        if order is None:
            return None
        target = assert_can_transition(order.status, status)
        self._logger.info("order_status_changed", order_id=order_id, from_status=order.status, to_status=target.value)
        return self.update(order_id, status=target.value)


repositories.register(Order, OrderRepository)
