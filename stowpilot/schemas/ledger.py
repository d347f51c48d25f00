import uuid
from datetime import date as date_type, datetime
from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

LEDGER_TYPES = Literal["income", "expense", "adjustment"]


class LedgerEntryCreate(BaseModel):
    facility_id: uuid.UUID | None = None
    customer_id: uuid.UUID | None = None
    rental_id: uuid.UUID | None = None
    payment_id: uuid.UUID | None = None
    type: LEDGER_TYPES
    category: str = Field(min_length=1, max_length=100)
    description: str = Field(min_length=1, max_length=500)
    amount: Decimal = Field(gt=0, max_digits=10, decimal_places=2)
    date: date_type


class LedgerEntryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    owner_id: uuid.UUID
    facility_id: uuid.UUID | None
    customer_id: uuid.UUID | None
    rental_id: uuid.UUID | None
    payment_id: uuid.UUID | None
    type: str
    category: str
    description: str
    amount: Decimal
    date: date_type
    created_at: datetime


class LedgerEntryEnvelope(BaseModel):
    ledger_entry: LedgerEntryResponse


class LedgerListEnvelope(BaseModel):
    ledger_entries: list[LedgerEntryResponse]
