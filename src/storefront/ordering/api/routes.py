"""FastAPI routes for checkout, orders and shipping quotes.

Thin adapters: schema -> domain call -> response. Checkout outcomes map to
status codes as follows: 201 order created, 422 validation failures,
402 payment declined, 503 gateway unavailable, 500 order not recorded
after a successful charge.
"""

from dataclasses import asdict

from fastapi import APIRouter, Depends, HTTPException, Query
from protean.exceptions import ValidationError

from storefront.exceptions import PaymentInfrastructureError, PersistenceFailed, ShippingNotAvailableForSubtotal
from storefront.ordering.api.schemas import (
    AddressSchema,
    CheckoutRequestSchema,
    CheckoutResponse,
    OrderItemResponse,
    OrderListResponse,
    OrderResponse,
    ShippingOptionResponse,
    ShippingOptionsResponse,
    UpdateOrderStatusRequest,
)
from storefront.ordering.checkout.orchestrator import (
    CartItem,
    CheckoutOrchestrator,
    CheckoutRequest,
    CheckoutResult,
    CheckoutState,
)
from storefront.ordering.order.order import Order, ShippingAddress
from storefront.ordering.order.repository import OrderRepository
from storefront.shared.repository import Pagination, SearchCriteria, repository_for
from storefront.shipping.calculator import ShippingService
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


def get_checkout_orchestrator() -> CheckoutOrchestrator:
    return CheckoutOrchestrator.from_env()


def get_order_repository() -> OrderRepository:
    return repository_for(Order)


def get_shipping_service() -> ShippingService:
    return ShippingService()


def _checkout_response(result: CheckoutResult) -> CheckoutResponse:
    return CheckoutResponse(
        success=result.success,
        state=result.state.value,
        order_id=result.order_id,
        transaction_id=result.transaction_id,
        shipping_method=result.shipping_method,
        shipping_cost=result.shipping_cost,
        estimated_delivery=result.estimated_delivery,
        subtotal=result.subtotal,
        tax=result.tax,
        discount=result.discount,
        total=result.total,
    )


def _order_response(order: Order) -> OrderResponse:
    return OrderResponse(
        order_id=order.id,
        user_id=order.user_id,
        email=order.email,
        status=order.status,
        items=[
            OrderItemResponse(
                product_id=item.product_id,
                product_name=item.product_name,
                quantity=item.quantity,
                unit_price=item.unit_price,
                size=item.size,
                color=item.color,
            )
            for item in order.items
        ],
        shipping_address=AddressSchema(**asdict(order.shipping_address)),
        shipping_method=order.shipping_method,
        shipping_cost=order.shipping_cost,
        payment_method=order.payment_method,
        transaction_id=order.transaction_id,
        coupon_code=order.coupon_code,
        subtotal=order.subtotal,
        tax=order.tax,
        discount=order.discount,
        total=order.total,
        currency=order.currency,
        created_at=order.created_at,
    )


# ---------------------------------------------------------------------------
# Checkout
# ---------------------------------------------------------------------------
checkout_router = APIRouter(prefix="/checkout", tags=["checkout"])


@checkout_router.post("", status_code=201, response_model=CheckoutResponse)
def checkout(
    body: CheckoutRequestSchema,
    orchestrator: CheckoutOrchestrator = Depends(get_checkout_orchestrator),
) -> CheckoutResponse:
    """Settle a cart: validate, charge once, record the order.

    Declared sync so the blocking gateway call runs in the threadpool.
    """
    request = CheckoutRequest(
        user_id=body.user_id,
        email=body.email,
        items=[CartItem(**item.model_dump()) for item in body.items],
        shipping_address=ShippingAddress(**body.shipping_address.model_dump()),
        payment_type=body.payment_type,
        payment_data=body.payment_data,
        shipping_method=body.shipping_method,
        coupon_code=body.coupon_code,
        weight=body.weight,
        distance=body.distance,
    )

    try:
        result = orchestrator.checkout(request)
    except PaymentInfrastructureError:
        raise HTTPException(status_code=503, detail="Payment service is unavailable, please try again later")
    except PersistenceFailed as exc:
        raise HTTPException(status_code=500, detail={"message": str(exc), "reference": exc.transaction_id})

    if result.state == CheckoutState.VALIDATION_FAILED:
        raise HTTPException(status_code=422, detail={"message": result.error, "errors": result.errors})
    if result.state == CheckoutState.PAYMENT_FAILED:
        raise HTTPException(status_code=402, detail={"message": result.error})
    return _checkout_response(result)


# ---------------------------------------------------------------------------
# Orders
# ---------------------------------------------------------------------------
order_router = APIRouter(prefix="/orders", tags=["orders"])


@order_router.get("", response_model=OrderListResponse)
async def list_orders(
    user_id: str | None = None,
    status: str | None = None,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
    orders: OrderRepository = Depends(get_order_repository),
) -> OrderListResponse:
    """Newest orders first, optionally filtered by user and status."""
    result = orders.find_by_criteria(
        SearchCriteria(filters={"user_id": user_id, "status": status}, pagination=Pagination(page=page, limit=limit))
    )
    return OrderListResponse(
        orders=[_order_response(order) for order in result.data],
        total=result.total,
        page=result.page,
        limit=result.limit,
        total_pages=result.total_pages,
    )


@order_router.get("/{order_id}", response_model=OrderResponse)
async def get_order(order_id: str, orders: OrderRepository = Depends(get_order_repository)) -> OrderResponse:
    order = orders.find_by_id(order_id)
    if order is None:
        raise HTTPException(status_code=404, detail=f"Order {order_id} not found")
    return _order_response(order)


@order_router.patch("/{order_id}/status", response_model=OrderResponse)
async def update_order_status(
    order_id: str,
    body: UpdateOrderStatusRequest,
    orders: OrderRepository = Depends(get_order_repository),
) -> OrderResponse:
    try:
        order = orders.update_status(order_id, body.status)
    except ValidationError as exc:
        raise HTTPException(status_code=422, detail=exc.messages)
    if order is None:
        raise HTTPException(status_code=404, detail=f"Order {order_id} not found")
    return _order_response(order)


# ---------------------------------------------------------------------------
# Shipping
# ---------------------------------------------------------------------------
shipping_router = APIRouter(prefix="/shipping", tags=["shipping"])


@shipping_router.get("/options", response_model=ShippingOptionsResponse)
async def shipping_options(
    subtotal: float = Query(ge=0),
    weight: float | None = Query(default=None, ge=0),
    distance: float | None = Query(default=None, ge=0),
    service: ShippingService = Depends(get_shipping_service),
) -> ShippingOptionsResponse:
    """Every shipping option available for the cart, with the cheapest flagged."""
    options = service.options(subtotal, weight, distance)
    try:
        recommended = service.recommend(subtotal, weight, distance).key
    except ShippingNotAvailableForSubtotal:
        recommended = None

    return ShippingOptionsResponse(
        options=[
            ShippingOptionResponse(
                key=quote.key,
                name=quote.name,
                description=quote.description,
                cost=quote.cost,
                is_free=quote.is_free,
                estimated_days=quote.estimated_days,
                icon=quote.icon,
                free_shipping_threshold=quote.method.free_shipping_threshold,
            )
            for quote in options
        ],
        recommended=recommended,
    )
