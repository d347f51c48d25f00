import uuid
from datetime import date, datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from stowpilot.schemas.common import Address, blank_to_none

CUSTOMER_STATUSES = Literal["active", "inactive", "delinquent"]
BACKGROUND_CHECK_STATUSES = Literal["pending", "approved", "rejected", "not_required"]
ID_TYPES = Literal["drivers_license", "passport", "state_id", "other"]


class EmergencyContact(BaseModel):
    name: str = Field(min_length=1)
    phone: str = Field(min_length=1)
    relationship: str = Field(min_length=1)


class Identification(BaseModel):
    type: ID_TYPES
    number: str = Field(min_length=1)
    expiry: date | None = None

    def to_column(self) -> dict:
        return {
            "type": self.type,
            "number": self.number,
            "expiry": self.expiry.isoformat() if self.expiry else None,
        }


class CustomerCreate(BaseModel):
    first_name: str = Field(min_length=1, max_length=100)
    last_name: str = Field(min_length=1, max_length=100)
    email: EmailStr | None = None
    phone: str | None = None
    address: Address | None = None
    emergency_contact: EmergencyContact | None = None
    identification: Identification | None = None
    credit_score: int | None = Field(default=None, ge=300, le=850)
    background_check_status: BACKGROUND_CHECK_STATUSES
    notes: str | None = None
    status: CUSTOMER_STATUSES = "active"

    @field_validator("email", "phone", mode="before")
    @classmethod
    def blank_optional(cls, v):
        return blank_to_none(v)


class CustomerUpdate(BaseModel):
    first_name: str | None = Field(default=None, min_length=1, max_length=100)
    last_name: str | None = Field(default=None, min_length=1, max_length=100)
    email: EmailStr | None = None
    phone: str | None = None
    address: Address | None = None
    emergency_contact: EmergencyContact | None = None
    identification: Identification | None = None
    credit_score: int | None = Field(default=None, ge=300, le=850)
    background_check_status: BACKGROUND_CHECK_STATUSES | None = None
    notes: str | None = None
    status: CUSTOMER_STATUSES | None = None

    @field_validator("email", "phone", mode="before")
    @classmethod
    def blank_optional(cls, v):
        return blank_to_none(v)


class IdentificationResponse(BaseModel):
    type: str
    number_last4: str | None = None
    expiry: str | None = None


class CustomerResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    owner_id: uuid.UUID
    first_name: str
    last_name: str
    email: str | None
    phone: str | None
    address: dict | None
    emergency_contact: dict | None
    identification: IdentificationResponse | None = None
    credit_score: int | None
    background_check_status: str
    notes: str | None
    status: str
    created_at: datetime
    updated_at: datetime | None = None


class CustomerEnvelope(BaseModel):
    customer: CustomerResponse


class CustomerListEnvelope(BaseModel):
    customers: list[CustomerResponse]
