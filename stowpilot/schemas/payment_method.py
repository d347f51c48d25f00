import uuid
from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

PAYMENT_METHOD_TYPES = Literal["credit_card", "ach", "cash", "check"]
PAYMENT_METHOD_STATUSES = Literal["active", "expired", "failed"]


class PaymentMethodCreate(BaseModel):
    customer_id: uuid.UUID
    type: PAYMENT_METHOD_TYPES
    provider: str = Field(default="stripe", min_length=1, max_length=50)
    provider_payment_method_id: str | None = None
    last_four: str | None = Field(default=None, max_length=4)
    expiry_month: int | None = Field(default=None, ge=1, le=12)
    expiry_year: int | None = Field(default=None, ge=2000, le=2100)
    is_default: bool = False
    status: PAYMENT_METHOD_STATUSES = "active"


class PaymentMethodUpdate(BaseModel):
    type: PAYMENT_METHOD_TYPES | None = None
    provider: str | None = Field(default=None, min_length=1, max_length=50)
    provider_payment_method_id: str | None = None
    last_four: str | None = Field(default=None, max_length=4)
    expiry_month: int | None = Field(default=None, ge=1, le=12)
    expiry_year: int | None = Field(default=None, ge=2000, le=2100)
    is_default: bool | None = None
    status: PAYMENT_METHOD_STATUSES | None = None


class PaymentMethodResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    customer_id: uuid.UUID
    type: str
    provider: str
    provider_payment_method_id: str | None
    last_four: str | None
    expiry_month: int | None
    expiry_year: int | None
    is_default: bool
    status: str
    created_at: datetime


class PaymentMethodEnvelope(BaseModel):
    payment_method: PaymentMethodResponse


class PaymentMethodListEnvelope(BaseModel):
    payment_methods: list[PaymentMethodResponse]
