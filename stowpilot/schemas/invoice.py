import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

INVOICE_STATUSES = Literal["draft", "sent", "paid", "overdue", "cancelled"]


class InvoiceCreate(BaseModel):
    customer_id: uuid.UUID
    rental_id: uuid.UUID | None = None
    invoice_number: str = Field(min_length=1, max_length=100)
    period_start: date
    period_end: date
    amount_due: Decimal = Field(gt=0, max_digits=10, decimal_places=2)
    status: INVOICE_STATUSES = "draft"
    due_date: date
    payment_method_id: uuid.UUID | None = None
    stripe_invoice_id: str | None = None

    @model_validator(mode="after")
    def period_ordered(self):
        if self.period_end < self.period_start:
            raise ValueError("period_end must be on or after period_start")
        return self


class InvoiceUpdate(BaseModel):
    rental_id: uuid.UUID | None = None
    invoice_number: str | None = Field(default=None, min_length=1, max_length=100)
    period_start: date | None = None
    period_end: date | None = None
    amount_due: Decimal | None = Field(default=None, gt=0, max_digits=10, decimal_places=2)
    amount_paid: Decimal | None = Field(default=None, ge=0, max_digits=10, decimal_places=2)
    status: INVOICE_STATUSES | None = None
    due_date: date | None = None
    paid_at: datetime | None = None
    payment_method_id: uuid.UUID | None = None
    stripe_invoice_id: str | None = None


class InvoiceResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    customer_id: uuid.UUID
    rental_id: uuid.UUID | None
    invoice_number: str
    period_start: date
    period_end: date
    amount_due: Decimal
    amount_paid: Decimal
    status: str
    due_date: date
    paid_at: datetime | None
    payment_method_id: uuid.UUID | None
    stripe_invoice_id: str | None
    created_at: datetime
    updated_at: datetime | None = None


class InvoiceEnvelope(BaseModel):
    invoice: InvoiceResponse


class InvoiceListEnvelope(BaseModel):
    invoices: list[InvoiceResponse]
