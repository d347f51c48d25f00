import uuid
from datetime import datetime
from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from stowpilot.schemas.common import HttpUrlStr

UNIT_TYPES = Literal["standard", "climate_controlled", "outdoor", "vehicle"]
UNIT_STATUSES = Literal["available", "occupied", "reserved", "maintenance", "out_of_service"]


class UnitSize(BaseModel):
    width: float = Field(gt=0)
    length: float = Field(gt=0)
    square_feet: float = Field(gt=0)


class UnitFields(BaseModel):
    unit_number: str = Field(min_length=1, max_length=50)
    size: UnitSize
    type: UNIT_TYPES = "standard"
    floor_level: int = Field(default=1, ge=0)
    features: list[str] = []
    monthly_rate: Decimal = Field(gt=0, max_digits=10, decimal_places=2)
    status: UNIT_STATUSES = "available"
    photos: list[HttpUrlStr] = []
    notes: str | None = None


class UnitCreate(UnitFields):
    facility_id: uuid.UUID


class UnitBulkImport(BaseModel):
    """Several units for one facility in a single request."""
    facility_id: uuid.UUID
    units: list[UnitFields] = Field(min_length=1)


class UnitUpdate(BaseModel):
    facility_id: uuid.UUID | None = None
    unit_number: str | None = Field(default=None, min_length=1, max_length=50)
    size: UnitSize | None = None
    type: UNIT_TYPES | None = None
    floor_level: int | None = Field(default=None, ge=0)
    features: list[str] | None = None
    monthly_rate: Decimal | None = Field(default=None, gt=0, max_digits=10, decimal_places=2)
    status: UNIT_STATUSES | None = None
    photos: list[HttpUrlStr] | None = None
    notes: str | None = None


class UnitResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    facility_id: uuid.UUID
    unit_number: str
    size: dict
    type: str
    floor_level: int
    features: list
    monthly_rate: Decimal
    status: str
    photos: list
    notes: str | None
    created_at: datetime
    updated_at: datetime | None = None


class UnitEnvelope(BaseModel):
    unit: UnitResponse


class UnitListEnvelope(BaseModel):
    units: list[UnitResponse]
