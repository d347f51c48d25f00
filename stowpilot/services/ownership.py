"""Owner-scoped queries.

Every read and write goes through here so tenant isolation is expressed once
per entity instead of once per handler. Rows that exist but belong to
someone else are reported exactly like rows that do not exist (404).
"""
import uuid
from typing import TypeVar

from fastapi import HTTPException
from sqlalchemy import Select, select
from sqlalchemy.ext.asyncio import AsyncSession

from stowpilot.models.billing import Invoice, LedgerEntry, Payment
from stowpilot.models.customer import Customer, PaymentMethod
from stowpilot.models.facility import Facility, Unit
from stowpilot.models.profile import TeamMember
from stowpilot.models.rental import Rental

ModelT = TypeVar("ModelT")

# Entities carrying owner_id directly.
_DIRECT = (Facility, Customer, Rental, LedgerEntry, TeamMember)
# Entities owned through their customer.
_VIA_CUSTOMER = (Invoice, Payment, PaymentMethod)

_LABELS = {
    Facility: "Facility",
    Unit: "Unit",
    Customer: "Customer",
    Rental: "Rental",
    Invoice: "Invoice",
    Payment: "Payment",
    PaymentMethod: "Payment method",
    LedgerEntry: "Ledger entry",
    TeamMember: "Invitation",
}


def scoped(model: type[ModelT], owner_id: uuid.UUID) -> Select:
    """SELECT model rows visible to owner_id."""
    if model in _DIRECT:
        return select(model).where(model.owner_id == owner_id)
    if model is Unit:
        return (
            select(Unit)
            .join(Facility, Unit.facility_id == Facility.id)
            .where(Facility.owner_id == owner_id)
        )
    if model in _VIA_CUSTOMER:
        return (
            select(model)
            .join(Customer, model.customer_id == Customer.id)
            .where(Customer.owner_id == owner_id)
        )
    raise TypeError(f"{model.__name__} is not an owner-scoped model")


def not_found(model: type) -> HTTPException:
    return HTTPException(status_code=404, detail=f"{_LABELS[model]} not found")


async def get_owned(
    db: AsyncSession,
    model: type[ModelT],
    entity_id: uuid.UUID,
    owner_id: uuid.UUID,
) -> ModelT:
    result = await db.execute(scoped(model, owner_id).where(model.id == entity_id))
    row = result.scalar_one_or_none()
    if row is None:
        raise not_found(model)
    return row


async def ensure_owned(
    db: AsyncSession,
    model: type,
    entity_id: uuid.UUID | None,
    owner_id: uuid.UUID,
) -> None:
    """404 unless entity_id is None or refers to a row owner_id can see."""
    if entity_id is not None:
        await get_owned(db, model, entity_id, owner_id)
