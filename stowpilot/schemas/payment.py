import uuid
from datetime import datetime
from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

PAYMENT_STATUSES = Literal["pending", "completed", "failed", "refunded"]


class PaymentCreate(BaseModel):
    invoice_id: uuid.UUID
    customer_id: uuid.UUID
    amount: Decimal = Field(gt=0, max_digits=10, decimal_places=2)
    payment_method_id: uuid.UUID | None = None
    transaction_id: str | None = None
    notes: str | None = None
    status: PAYMENT_STATUSES = "pending"


class PaymentUpdate(BaseModel):
    invoice_id: uuid.UUID | None = None
    amount: Decimal | None = Field(default=None, gt=0, max_digits=10, decimal_places=2)
    payment_method_id: uuid.UUID | None = None
    transaction_id: str | None = None
    notes: str | None = None
    status: PAYMENT_STATUSES | None = None
    processed_at: datetime | None = None


class PaymentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    invoice_id: uuid.UUID
    customer_id: uuid.UUID
    amount: Decimal
    payment_method_id: uuid.UUID | None
    transaction_id: str | None
    notes: str | None
    status: str
    processed_at: datetime | None
    created_at: datetime


class PaymentEnvelope(BaseModel):
    payment: PaymentResponse


class PaymentListEnvelope(BaseModel):
    payments: list[PaymentResponse]
