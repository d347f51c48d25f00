import logging
import uuid

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import delete, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from stowpilot.core.database import get_db
from stowpilot.core.deps import get_current_user
from stowpilot.models.facility import Facility, Unit
from stowpilot.models.profile import Profile
from stowpilot.models.rental import Rental
from stowpilot.schemas.common import DeleteResponse, changed_fields, split_csv
from stowpilot.schemas.facility import (
    FacilityCreate,
    FacilityEnvelope,
    FacilityListEnvelope,
    FacilityResponse,
    FacilityUpdate,
)
from stowpilot.services.ownership import get_owned, scoped

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/facilities", tags=["facilities"])


@router.get("", response_model=FacilityListEnvelope)
async def list_facilities(
    status: str | None = None,
    city: str | None = None,
    state: str | None = None,
    search: str | None = None,
    user: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    stmt = scoped(Facility, user.id).order_by(Facility.created_at.desc())
    if statuses := split_csv(status):
        stmt = stmt.where(Facility.status.in_(statuses))
    if city:
        stmt = stmt.where(Facility.address["city"].as_string() == city)
    if state:
        stmt = stmt.where(Facility.address["state"].as_string() == state)
    if search:
        pattern = f"%{search}%"
        stmt = stmt.where(or_(Facility.name.ilike(pattern), Facility.notes.ilike(pattern)))

    result = await db.execute(stmt)
    return {"facilities": [FacilityResponse.model_validate(f) for f in result.scalars().all()]}


@router.post("", response_model=FacilityEnvelope, status_code=201)
async def create_facility(
    payload: FacilityCreate,
    user: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    facility = Facility(owner_id=user.id, total_units=0, **payload.model_dump())
    db.add(facility)
    await db.flush()
    await db.refresh(facility)
    return {"facility": FacilityResponse.model_validate(facility)}


@router.get("/{facility_id}", response_model=FacilityEnvelope)
async def get_facility(
    facility_id: uuid.UUID,
    user: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    facility = await get_owned(db, Facility, facility_id, user.id)
    return {"facility": FacilityResponse.model_validate(facility)}


@router.patch("/{facility_id}", response_model=FacilityEnvelope)
async def update_facility(
    facility_id: uuid.UUID,
    payload: FacilityUpdate,
    user: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    facility = await get_owned(db, Facility, facility_id, user.id)
    changes = changed_fields(payload, "name", "address", "amenities", "photos", "status")
    for field, value in changes.items():
        setattr(facility, field, value)

    await db.flush()
    await db.refresh(facility)
    return {"facility": FacilityResponse.model_validate(facility)}


@router.delete("/{facility_id}", response_model=DeleteResponse)
async def delete_facility(
    facility_id: uuid.UUID,
    user: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    facility = await get_owned(db, Facility, facility_id, user.id)

    rentals = await db.scalar(
        select(func.count(Rental.id))
        .join(Unit, Rental.unit_id == Unit.id)
        .where(Unit.facility_id == facility.id)
    )
    if rentals:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Facility has rentals and cannot be deleted",
        )

    await db.execute(delete(Unit).where(Unit.facility_id == facility.id))
    await db.delete(facility)
    await db.flush()
    logger.info("Deleted facility %s", facility_id)
    return {"success": True}
