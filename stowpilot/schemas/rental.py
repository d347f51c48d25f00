import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

RENTAL_STATUSES = Literal["draft", "pending_signature", "active", "terminated", "expired"]


def check_rental_terms(
    start_date: date,
    end_date: date | None,
    insurance_required: bool,
    insurance_provider: str | None,
    insurance_policy_number: str | None,
) -> None:
    """Cross-field rules shared by create and (after merging with the stored row) update."""
    if end_date is not None and end_date < start_date:
        raise ValueError("end_date must be on or after start_date")
    if insurance_required and not (insurance_provider and insurance_policy_number):
        raise ValueError("insurance_provider and insurance_policy_number are required when insurance is required")


class RentalCreate(BaseModel):
    customer_id: uuid.UUID
    unit_id: uuid.UUID
    start_date: date
    end_date: date | None = None
    monthly_rate: Decimal = Field(gt=0, max_digits=10, decimal_places=2)
    security_deposit: Decimal = Field(default=Decimal("0"), ge=0, max_digits=10, decimal_places=2)
    late_fee_rate: Decimal = Field(default=Decimal("0"), ge=0, max_digits=10, decimal_places=2)
    auto_renew: bool = True
    insurance_required: bool = False
    insurance_provider: str | None = None
    insurance_policy_number: str | None = None
    special_terms: str | None = None
    status: RENTAL_STATUSES = "draft"

    @model_validator(mode="after")
    def terms_consistent(self):
        check_rental_terms(
            self.start_date,
            self.end_date,
            self.insurance_required,
            self.insurance_provider,
            self.insurance_policy_number,
        )
        return self


class RentalUpdate(BaseModel):
    customer_id: uuid.UUID | None = None
    unit_id: uuid.UUID | None = None
    start_date: date | None = None
    end_date: date | None = None
    monthly_rate: Decimal | None = Field(default=None, gt=0, max_digits=10, decimal_places=2)
    security_deposit: Decimal | None = Field(default=None, ge=0, max_digits=10, decimal_places=2)
    late_fee_rate: Decimal | None = Field(default=None, ge=0, max_digits=10, decimal_places=2)
    auto_renew: bool | None = None
    insurance_required: bool | None = None
    insurance_provider: str | None = None
    insurance_policy_number: str | None = None
    special_terms: str | None = None
    status: RENTAL_STATUSES | None = None


class RentalResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    owner_id: uuid.UUID
    customer_id: uuid.UUID
    unit_id: uuid.UUID
    start_date: date
    end_date: date | None
    monthly_rate: Decimal
    security_deposit: Decimal
    late_fee_rate: Decimal
    auto_renew: bool
    insurance_required: bool
    insurance_provider: str | None
    insurance_policy_number: str | None
    special_terms: str | None
    status: str
    signed_at: datetime | None
    terminated_at: datetime | None
    created_at: datetime
    updated_at: datetime | None = None


class RentalEnvelope(BaseModel):
    rental: RentalResponse


class RentalListEnvelope(BaseModel):
    rentals: list[RentalResponse]
