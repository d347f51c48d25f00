import logging
import uuid

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from stowpilot.core.database import get_db
from stowpilot.core.deps import get_current_user
from stowpilot.models.facility import Facility, Unit
from stowpilot.models.profile import Profile
from stowpilot.models.rental import Rental
from stowpilot.schemas.common import DeleteResponse, changed_fields, split_csv
from stowpilot.schemas.unit import (
    UnitBulkImport,
    UnitCreate,
    UnitEnvelope,
    UnitListEnvelope,
    UnitResponse,
    UnitUpdate,
)
from stowpilot.services.occupancy import refresh_facility_unit_count
from stowpilot.services.ownership import ensure_owned, get_owned, scoped

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/units", tags=["units"])

_REQUIRED = ("unit_number", "size", "type", "floor_level", "features", "monthly_rate", "status", "photos", "facility_id")


@router.get("", response_model=UnitListEnvelope)
async def list_units(
    facility_id: uuid.UUID | None = None,
    status: str | None = None,
    type: str | None = None,
    search: str | None = None,
    user: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    stmt = scoped(Unit, user.id).order_by(Unit.unit_number)
    if facility_id:
        stmt = stmt.where(Unit.facility_id == facility_id)
    if statuses := split_csv(status):
        stmt = stmt.where(Unit.status.in_(statuses))
    if types := split_csv(type):
        stmt = stmt.where(Unit.type.in_(types))
    if search:
        pattern = f"%{search}%"
        stmt = stmt.where(or_(Unit.unit_number.ilike(pattern), Unit.notes.ilike(pattern)))

    result = await db.execute(stmt)
    return {"units": [UnitResponse.model_validate(u) for u in result.scalars().all()]}


@router.post("", status_code=201)
async def create_units(
    payload: UnitCreate | UnitBulkImport,
    user: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Create one unit, or several when the body carries a `units` list."""
    await ensure_owned(db, Facility, payload.facility_id, user.id)

    if isinstance(payload, UnitBulkImport):
        units = [Unit(facility_id=payload.facility_id, **item.model_dump()) for item in payload.units]
        db.add_all(units)
        await db.flush()
        for unit in units:
            await db.refresh(unit)
        count = await refresh_facility_unit_count(db, payload.facility_id)
        logger.info("Imported %d units into facility %s (now %d)", len(units), payload.facility_id, count)
        return UnitListEnvelope(units=[UnitResponse.model_validate(u) for u in units])

    unit = Unit(**payload.model_dump())
    db.add(unit)
    await db.flush()
    await db.refresh(unit)
    await refresh_facility_unit_count(db, unit.facility_id)
    return UnitEnvelope(unit=UnitResponse.model_validate(unit))


@router.get("/{unit_id}", response_model=UnitEnvelope)
async def get_unit(
    unit_id: uuid.UUID,
    user: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    unit = await get_owned(db, Unit, unit_id, user.id)
    return {"unit": UnitResponse.model_validate(unit)}


@router.patch("/{unit_id}", response_model=UnitEnvelope)
async def update_unit(
    unit_id: uuid.UUID,
    payload: UnitUpdate,
    user: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    unit = await get_owned(db, Unit, unit_id, user.id)
    changes = changed_fields(payload, *_REQUIRED)

    previous_facility = unit.facility_id
    if "facility_id" in changes:
        await ensure_owned(db, Facility, changes["facility_id"], user.id)

    for field, value in changes.items():
        setattr(unit, field, value)
    await db.flush()

    if unit.facility_id != previous_facility:
        await refresh_facility_unit_count(db, previous_facility)
        await refresh_facility_unit_count(db, unit.facility_id)

    await db.refresh(unit)
    return {"unit": UnitResponse.model_validate(unit)}


@router.delete("/{unit_id}", response_model=DeleteResponse)
async def delete_unit(
    unit_id: uuid.UUID,
    user: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    unit = await get_owned(db, Unit, unit_id, user.id)

    rentals = await db.scalar(select(func.count(Rental.id)).where(Rental.unit_id == unit.id))
    if rentals:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Unit has rentals and cannot be deleted",
        )

    facility_id = unit.facility_id
    await db.delete(unit)
    await db.flush()
    await refresh_facility_unit_count(db, facility_id)
    return {"success": True}
