import uuid
from datetime import date

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from stowpilot.core.database import get_db
from stowpilot.core.deps import get_current_user
from stowpilot.models.billing import LedgerEntry, Payment
from stowpilot.models.customer import Customer
from stowpilot.models.facility import Facility
from stowpilot.models.profile import Profile
from stowpilot.models.rental import Rental
from stowpilot.schemas.common import split_csv
from stowpilot.schemas.ledger import (
    LedgerEntryCreate,
    LedgerEntryEnvelope,
    LedgerEntryResponse,
    LedgerListEnvelope,
)
from stowpilot.services.ownership import ensure_owned, scoped

router = APIRouter(prefix="/ledger", tags=["ledger"])


@router.get("", response_model=LedgerListEnvelope)
async def list_ledger_entries(
    type: str | None = None,
    category: str | None = None,
    facility_id: uuid.UUID | None = None,
    customer_id: uuid.UUID | None = None,
    rental_id: uuid.UUID | None = None,
    date_from: date | None = None,
    date_to: date | None = None,
    user: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    stmt = scoped(LedgerEntry, user.id).order_by(
        LedgerEntry.date.desc(), LedgerEntry.created_at.desc()
    )
    if types := split_csv(type):
        stmt = stmt.where(LedgerEntry.type.in_(types))
    if category:
        stmt = stmt.where(LedgerEntry.category == category)
    if facility_id:
        stmt = stmt.where(LedgerEntry.facility_id == facility_id)
    if customer_id:
        stmt = stmt.where(LedgerEntry.customer_id == customer_id)
    if rental_id:
        stmt = stmt.where(LedgerEntry.rental_id == rental_id)
    if date_from:
        stmt = stmt.where(LedgerEntry.date >= date_from)
    if date_to:
        stmt = stmt.where(LedgerEntry.date <= date_to)

    result = await db.execute(stmt)
    return {"ledger_entries": [LedgerEntryResponse.model_validate(e) for e in result.scalars().all()]}


@router.post("", response_model=LedgerEntryEnvelope, status_code=201)
async def create_ledger_entry(
    payload: LedgerEntryCreate,
    user: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await ensure_owned(db, Facility, payload.facility_id, user.id)
    await ensure_owned(db, Customer, payload.customer_id, user.id)
    await ensure_owned(db, Rental, payload.rental_id, user.id)
    await ensure_owned(db, Payment, payload.payment_id, user.id)

    entry = LedgerEntry(owner_id=user.id, **payload.model_dump())
    db.add(entry)
    await db.flush()
    await db.refresh(entry)
    return {"ledger_entry": LedgerEntryResponse.model_validate(entry)}
