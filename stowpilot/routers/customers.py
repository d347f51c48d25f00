import logging
import uuid

from cryptography.fernet import InvalidToken
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from stowpilot.core.database import get_db
from stowpilot.core.deps import get_current_user
from stowpilot.core.security import decrypt_value, encrypt_value
from stowpilot.models.customer import Customer
from stowpilot.models.profile import Profile
from stowpilot.models.rental import Rental
from stowpilot.schemas.common import DeleteResponse, changed_fields, split_csv
from stowpilot.schemas.customer import (
    CustomerCreate,
    CustomerEnvelope,
    CustomerListEnvelope,
    CustomerResponse,
    CustomerUpdate,
    Identification,
    IdentificationResponse,
)
from stowpilot.services.ownership import get_owned, scoped

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/customers", tags=["customers"])


def _seal_identification(identification: Identification | None) -> dict | None:
    """ID numbers never reach the database in clear text."""
    if identification is None:
        return None
    data = identification.to_column()
    data["number"] = encrypt_value(data["number"])
    return data


def _mask_identification(stored: dict | None) -> IdentificationResponse | None:
    if not stored:
        return None
    last4 = None
    if stored.get("number"):
        try:
            last4 = decrypt_value(stored["number"])[-4:]
        except InvalidToken:
            logger.warning("Could not decrypt identification number (key rotated?)")
    return IdentificationResponse(type=stored.get("type"), number_last4=last4, expiry=stored.get("expiry"))


def _to_response(customer: Customer) -> CustomerResponse:
    response = CustomerResponse.model_validate(customer)
    response.identification = _mask_identification(customer.identification)
    return response


@router.get("", response_model=CustomerListEnvelope)
async def list_customers(
    status: str | None = None,
    background_check_status: str | None = None,
    search: str | None = None,
    user: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    stmt = scoped(Customer, user.id).order_by(Customer.created_at.desc())
    if statuses := split_csv(status):
        stmt = stmt.where(Customer.status.in_(statuses))
    if checks := split_csv(background_check_status):
        stmt = stmt.where(Customer.background_check_status.in_(checks))
    if search:
        pattern = f"%{search}%"
        stmt = stmt.where(or_(
            Customer.first_name.ilike(pattern),
            Customer.last_name.ilike(pattern),
            Customer.email.ilike(pattern),
            Customer.phone.ilike(pattern),
            Customer.notes.ilike(pattern),
        ))

    result = await db.execute(stmt)
    return {"customers": [_to_response(c) for c in result.scalars().all()]}


@router.post("", response_model=CustomerEnvelope, status_code=201)
async def create_customer(
    payload: CustomerCreate,
    user: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    data = payload.model_dump(exclude={"identification"})
    customer = Customer(
        owner_id=user.id,
        identification=_seal_identification(payload.identification),
        **data,
    )
    db.add(customer)
    await db.flush()
    await db.refresh(customer)
    return {"customer": _to_response(customer)}


@router.get("/{customer_id}", response_model=CustomerEnvelope)
async def get_customer(
    customer_id: uuid.UUID,
    user: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    customer = await get_owned(db, Customer, customer_id, user.id)
    return {"customer": _to_response(customer)}


@router.patch("/{customer_id}", response_model=CustomerEnvelope)
async def update_customer(
    customer_id: uuid.UUID,
    payload: CustomerUpdate,
    user: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    customer = await get_owned(db, Customer, customer_id, user.id)
    changes = changed_fields(
        payload, "first_name", "last_name", "background_check_status", "status"
    )
    if "identification" in changes:
        changes["identification"] = _seal_identification(payload.identification)

    for field, value in changes.items():
        setattr(customer, field, value)

    await db.flush()
    await db.refresh(customer)
    return {"customer": _to_response(customer)}


@router.delete("/{customer_id}", response_model=DeleteResponse)
async def delete_customer(
    customer_id: uuid.UUID,
    user: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    customer = await get_owned(db, Customer, customer_id, user.id)

    rentals = await db.scalar(select(func.count(Rental.id)).where(Rental.customer_id == customer.id))
    if rentals:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Customer has rentals and cannot be deleted",
        )

    await db.delete(customer)
    await db.flush()
    return {"success": True}
