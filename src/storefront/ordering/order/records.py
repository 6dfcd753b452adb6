"""Storage rows for orders."""

from protean.fields import DateTime, Float, HasMany, Integer, String, Text

from storefront.domain import storefront
from storefront.ordering.order.order import OrderStatus


@storefront.entity(part_of="OrderRecord")
class OrderItemRecord:
    product_id = String(max_length=64, required=True)
    product_name = String(max_length=255)
    quantity = Integer(required=True, min_value=1)
    unit_price = Float(required=True, min_value=0.0)
    size = String(max_length=50)
    color = String(max_length=50)


@storefront.aggregate
class OrderRecord:
    user_id = String(max_length=64, required=True)
    email = String(max_length=254, required=True)
    status = String(max_length=20, choices=OrderStatus, default=OrderStatus.PENDING.value)
    shipping_address = Text()  # JSON: address dict
    shipping_method = String(max_length=50)
    shipping_cost = Float(default=0.0)
    payment_method = String(max_length=50)
    transaction_id = String(max_length=255)
    coupon_code = String(max_length=50)
    subtotal = Float(default=0.0)
    tax = Float(default=0.0)
    discount = Float(default=0.0)
    total = Float(default=0.0)
    currency = String(max_length=3, default="COP")
    items = HasMany(OrderItemRecord)
    created_at = DateTime()
    updated_at = DateTime()
