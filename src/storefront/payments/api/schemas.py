"""Pydantic request/response schemas for the Payments API."""

from datetime import datetime

from pydantic import BaseModel, Field


class ProviderInfoResponse(BaseModel):
    key: str
    name: str
    icon: str
    supported_currencies: list[str]
    processing_fee: float


class ProvidersResponse(BaseModel):
    providers: list[ProviderInfoResponse]


class SavePaymentMethodRequest(BaseModel):
    user_id: str
    type: str
    provider: str
    external_id: str
    card_last_four: str | None = Field(default=None, min_length=4, max_length=4)
    card_brand: str | None = None
    card_exp_month: int | None = Field(default=None, ge=1, le=12)
    card_exp_year: int | None = None
    paypal_email: str | None = None
    nickname: str | None = None
    is_default: bool = False

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "user_id": "user-001",
                    "type": "card",
                    "provider": "stripe",
                    "external_id": "pm_1N8xyz",
                    "card_last_four": "4242",
                    "card_brand": "visa",
                    "card_exp_month": 12,
                    "card_exp_year": 2030,
                    "is_default": True,
                }
            ]
        }
    }


class UpdatePaymentMethodRequest(BaseModel):
    user_id: str
    is_default: bool | None = None
    nickname: str | None = None


class PaymentMethodResponse(BaseModel):
    id: str
    user_id: str
    type: str
    provider: str
    external_id: str
    card_last_four: str | None = None
    card_brand: str | None = None
    card_exp_month: int | None = None
    card_exp_year: int | None = None
    paypal_email: str | None = None
    nickname: str | None = None
    is_default: bool
    active: bool
    created_at: datetime | None = None


class PaymentMethodListResponse(BaseModel):
    payment_methods: list[PaymentMethodResponse]


class StatusResponse(BaseModel):
    status: str


class ConfigureGatewayRequest(BaseModel):
    gateway: str = "stripe"
    should_succeed: bool = True
    failure_reason: str = "Card declined"
    available: bool = True


class GatewayConfigResponse(BaseModel):
    gateway: str
    should_succeed: bool
    failure_reason: str
    available: bool
