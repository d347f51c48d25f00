import uuid
from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from stowpilot.schemas.common import Address, HttpUrlStr, blank_to_none

FACILITY_STATUSES = Literal["active", "inactive", "maintenance"]


class Amenity(BaseModel):
    name: str = Field(min_length=1)
    description: str | None = None


class ContactInfo(BaseModel):
    phone: str | None = None
    email: EmailStr | None = None
    manager: str | None = None

    @field_validator("email", mode="before")
    @classmethod
    def blank_email(cls, v):
        return blank_to_none(v)


class DayHours(BaseModel):
    open: str
    close: str
    closed: bool | None = None


# ─── Facility ──────────────────────────────────────────────────────────────

class FacilityCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    address: Address
    amenities: list[Amenity] = []
    contact_info: ContactInfo | None = None
    operating_hours: dict[str, DayHours] | None = None
    photos: list[HttpUrlStr] = []
    notes: str | None = None
    status: FACILITY_STATUSES = "active"


class FacilityUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    address: Address | None = None
    amenities: list[Amenity] | None = None
    contact_info: ContactInfo | None = None
    operating_hours: dict[str, DayHours] | None = None
    photos: list[HttpUrlStr] | None = None
    notes: str | None = None
    status: FACILITY_STATUSES | None = None


class FacilityResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    owner_id: uuid.UUID
    name: str
    address: dict
    total_units: int
    amenities: list
    contact_info: dict | None
    operating_hours: dict | None
    photos: list
    notes: str | None
    status: str
    created_at: datetime
    updated_at: datetime | None = None


class FacilityEnvelope(BaseModel):
    facility: FacilityResponse


class FacilityListEnvelope(BaseModel):
    facilities: list[FacilityResponse]
