"""FastAPI routes for payment providers and saved payment methods."""

import os
from dataclasses import asdict

from fastapi import APIRouter, Depends, HTTPException

from storefront.payments.api.schemas import (
    ConfigureGatewayRequest,
    GatewayConfigResponse,
    PaymentMethodListResponse,
    PaymentMethodResponse,
    ProviderInfoResponse,
    ProvidersResponse,
    SavePaymentMethodRequest,
    StatusResponse,
    UpdatePaymentMethodRequest,
)
from storefront.payments.gateway import get_gateway
from storefront.payments.gateway.fake_adapter import FakeGateway
from storefront.payments.processor import PaymentMethodFactory
from storefront.payments.saved_method import SavedPaymentMethod, SavedPaymentMethodRepository
from storefront.shared.repository import repository_for

payment_router = APIRouter(prefix="/payments", tags=["payments"])


def get_payment_method_factory() -> PaymentMethodFactory:
    return PaymentMethodFactory()


def get_saved_methods() -> SavedPaymentMethodRepository:
    return repository_for(SavedPaymentMethod)


def _method_response(method: SavedPaymentMethod) -> PaymentMethodResponse:
    fields = asdict(method)
    fields.pop("updated_at")
    return PaymentMethodResponse(**fields)


@payment_router.get("/providers", response_model=ProvidersResponse)
async def list_providers(factory: PaymentMethodFactory = Depends(get_payment_method_factory)) -> ProvidersResponse:
    return ProvidersResponse(
        providers=[
            ProviderInfoResponse(
                key=key,
                name=info.name,
                icon=info.icon,
                supported_currencies=list(info.supported_currencies),
                processing_fee=info.processing_fee,
            )
            for key, info in factory.all_provider_info().items()
        ]
    )


# ---------------------------------------------------------------------------
# Saved payment methods
# ---------------------------------------------------------------------------
@payment_router.get("/methods", response_model=PaymentMethodListResponse)
async def list_payment_methods(
    user_id: str, methods: SavedPaymentMethodRepository = Depends(get_saved_methods)
) -> PaymentMethodListResponse:
    """Active methods of a user, the default first, then newest first."""
    return PaymentMethodListResponse(payment_methods=[_method_response(m) for m in methods.list_for_user(user_id)])


@payment_router.post("/methods", status_code=201, response_model=PaymentMethodResponse)
async def save_payment_method(
    body: SavePaymentMethodRequest, methods: SavedPaymentMethodRepository = Depends(get_saved_methods)
) -> PaymentMethodResponse:
    return _method_response(methods.save(SavedPaymentMethod(**body.model_dump())))


@payment_router.patch("/methods/{method_id}", response_model=PaymentMethodResponse)
async def update_payment_method(
    method_id: str,
    body: UpdatePaymentMethodRequest,
    methods: SavedPaymentMethodRepository = Depends(get_saved_methods),
) -> PaymentMethodResponse:
    method = methods.change(method_id, body.user_id, is_default=body.is_default, nickname=body.nickname)
    if method is None:
        raise HTTPException(status_code=404, detail=f"Payment method {method_id} not found")
    return _method_response(method)


@payment_router.delete("/methods/{method_id}", response_model=StatusResponse)
async def delete_payment_method(
    method_id: str, user_id: str, methods: SavedPaymentMethodRepository = Depends(get_saved_methods)
) -> StatusResponse:
    """Deactivate a saved method; rows are never hard-deleted."""
    if not methods.deactivate(method_id, user_id):
        raise HTTPException(status_code=404, detail=f"Payment method {method_id} not found")
    return StatusResponse(status="deleted")


# ---------------------------------------------------------------------------
# Gateway configuration (non-production only)
# ---------------------------------------------------------------------------
@payment_router.post("/gateway/configure", response_model=GatewayConfigResponse)
async def configure_gateway(body: ConfigureGatewayRequest) -> GatewayConfigResponse:
    """Configure FakeGateway behavior for manual API testing."""
    if os.environ.get("PROTEAN_ENV") == "production":
        raise HTTPException(status_code=403, detail="Not available in production")

    gateway = get_gateway(body.gateway)
    if not isinstance(gateway, FakeGateway):
        raise HTTPException(status_code=400, detail="Only FakeGateway can be configured")

    gateway.configure(
        should_succeed=body.should_succeed,
        failure_reason=body.failure_reason,
        available=body.available,
    )
    return GatewayConfigResponse(
        gateway=body.gateway,
        should_succeed=gateway.should_succeed,
        failure_reason=gateway.failure_reason,
        available=gateway.available,
    )
