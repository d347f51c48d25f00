import logging
import uuid

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import or_
from sqlalchemy.ext.asyncio import AsyncSession

from stowpilot.core.database import get_db
from stowpilot.core.deps import get_current_user
from stowpilot.models.customer import Customer
from stowpilot.models.facility import Unit
from stowpilot.models.profile import Profile
from stowpilot.models.rental import Rental
from stowpilot.schemas.common import DeleteResponse, changed_fields, split_csv
from stowpilot.schemas.rental import (
    RentalCreate,
    RentalEnvelope,
    RentalListEnvelope,
    RentalResponse,
    RentalUpdate,
    check_rental_terms,
)
from stowpilot.services.occupancy import stamp_rental_transition, sync_unit_status
from stowpilot.services.ownership import ensure_owned, get_owned, scoped

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/rentals", tags=["rentals"])

_REQUIRED = (
    "customer_id", "unit_id", "start_date", "monthly_rate", "security_deposit",
    "late_fee_rate", "auto_renew", "insurance_required", "status",
)


@router.get("", response_model=RentalListEnvelope)
async def list_rentals(
    status: str | None = None,
    customer_id: uuid.UUID | None = None,
    unit_id: uuid.UUID | None = None,
    facility_id: uuid.UUID | None = None,
    search: str | None = None,
    user: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    stmt = scoped(Rental, user.id).order_by(Rental.created_at.desc())
    if statuses := split_csv(status):
        stmt = stmt.where(Rental.status.in_(statuses))
    if customer_id:
        stmt = stmt.where(Rental.customer_id == customer_id)
    if unit_id:
        stmt = stmt.where(Rental.unit_id == unit_id)
    if facility_id or search:
        stmt = stmt.join(Unit, Rental.unit_id == Unit.id)
    if facility_id:
        stmt = stmt.where(Unit.facility_id == facility_id)
    if search:
        pattern = f"%{search}%"
        stmt = stmt.join(Customer, Rental.customer_id == Customer.id).where(or_(
            Customer.first_name.ilike(pattern),
            Customer.last_name.ilike(pattern),
            Unit.unit_number.ilike(pattern),
            Rental.special_terms.ilike(pattern),
        ))

    result = await db.execute(stmt)
    return {"rentals": [RentalResponse.model_validate(r) for r in result.scalars().all()]}


@router.post("", response_model=RentalEnvelope, status_code=201)
async def create_rental(
    payload: RentalCreate,
    user: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await ensure_owned(db, Customer, payload.customer_id, user.id)
    await ensure_owned(db, Unit, payload.unit_id, user.id)

    rental = Rental(owner_id=user.id, **payload.model_dump())
    stamp_rental_transition(rental, None)
    db.add(rental)
    await db.flush()

    await sync_unit_status(db, rental.unit_id, rental.status)
    await db.refresh(rental)
    logger.info("Created rental %s on unit %s (%s)", rental.id, rental.unit_id, rental.status)
    return {"rental": RentalResponse.model_validate(rental)}


@router.get("/{rental_id}", response_model=RentalEnvelope)
async def get_rental(
    rental_id: uuid.UUID,
    user: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    rental = await get_owned(db, Rental, rental_id, user.id)
    return {"rental": RentalResponse.model_validate(rental)}


@router.patch("/{rental_id}", response_model=RentalEnvelope)
async def update_rental(
    rental_id: uuid.UUID,
    payload: RentalUpdate,
    user: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    rental = await get_owned(db, Rental, rental_id, user.id)
    changes = changed_fields(payload, *_REQUIRED)

    if "customer_id" in changes:
        await ensure_owned(db, Customer, changes["customer_id"], user.id)
    if "unit_id" in changes:
        await ensure_owned(db, Unit, changes["unit_id"], user.id)

    merged = {
        field: changes.get(field, getattr(rental, field))
        for field in (
            "start_date", "end_date", "insurance_required",
            "insurance_provider", "insurance_policy_number",
        )
    }
    try:
        check_rental_terms(**merged)
    except ValueError as exc:
        logger.debug("Rejected rental %s update: %s", rental_id, exc)
        raise HTTPException(status_code=400, detail="Invalid input data")

    previous_status = rental.status
    previous_unit = rental.unit_id
    for field, value in changes.items():
        setattr(rental, field, value)
    stamp_rental_transition(rental, previous_status)
    await db.flush()

    if rental.unit_id != previous_unit:
        await sync_unit_status(db, previous_unit)
    # only a real status transition may release a unit set aside by hand
    transition = rental.status if rental.status != previous_status else None
    await sync_unit_status(db, rental.unit_id, transition)

    await db.refresh(rental)
    return {"rental": RentalResponse.model_validate(rental)}


@router.delete("/{rental_id}", response_model=DeleteResponse)
async def delete_rental(
    rental_id: uuid.UUID,
    user: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    rental = await get_owned(db, Rental, rental_id, user.id)
    unit_id = rental.unit_id
    await db.delete(rental)
    await db.flush()
    await sync_unit_status(db, unit_id)
    return {"success": True}
