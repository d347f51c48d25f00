import uuid

from fastapi import APIRouter, Depends
from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession

from stowpilot.core.database import get_db
from stowpilot.core.deps import get_current_user
from stowpilot.models.customer import Customer, PaymentMethod
from stowpilot.models.profile import Profile
from stowpilot.schemas.common import DeleteResponse, changed_fields, split_csv
from stowpilot.schemas.payment_method import (
    PaymentMethodCreate,
    PaymentMethodEnvelope,
    PaymentMethodListEnvelope,
    PaymentMethodResponse,
    PaymentMethodUpdate,
)
from stowpilot.services.ownership import ensure_owned, get_owned, scoped

router = APIRouter(prefix="/payment-methods", tags=["payment-methods"])


async def _clear_other_defaults(db: AsyncSession, customer_id: uuid.UUID, keep_id: uuid.UUID | None) -> None:
    """A customer has at most one default method."""
    stmt = update(PaymentMethod).where(
        PaymentMethod.customer_id == customer_id,
        PaymentMethod.is_default.is_(True),
    )
    if keep_id is not None:
        stmt = stmt.where(PaymentMethod.id != keep_id)
    await db.execute(stmt.values(is_default=False))


@router.get("", response_model=PaymentMethodListEnvelope)
async def list_payment_methods(
    customer_id: uuid.UUID | None = None,
    status: str | None = None,
    type: str | None = None,
    user: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    stmt = scoped(PaymentMethod, user.id).order_by(
        PaymentMethod.is_default.desc(), PaymentMethod.created_at.desc()
    )
    if customer_id:
        stmt = stmt.where(PaymentMethod.customer_id == customer_id)
    if statuses := split_csv(status):
        stmt = stmt.where(PaymentMethod.status.in_(statuses))
    if types := split_csv(type):
        stmt = stmt.where(PaymentMethod.type.in_(types))

    result = await db.execute(stmt)
    return {"payment_methods": [PaymentMethodResponse.model_validate(m) for m in result.scalars().all()]}


@router.post("", response_model=PaymentMethodEnvelope, status_code=201)
async def create_payment_method(
    payload: PaymentMethodCreate,
    user: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await ensure_owned(db, Customer, payload.customer_id, user.id)
    if payload.is_default:
        await _clear_other_defaults(db, payload.customer_id, keep_id=None)

    method = PaymentMethod(**payload.model_dump())
    db.add(method)
    await db.flush()
    await db.refresh(method)
    return {"payment_method": PaymentMethodResponse.model_validate(method)}


@router.get("/{method_id}", response_model=PaymentMethodEnvelope)
async def get_payment_method(
    method_id: uuid.UUID,
    user: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    method = await get_owned(db, PaymentMethod, method_id, user.id)
    return {"payment_method": PaymentMethodResponse.model_validate(method)}


@router.patch("/{method_id}", response_model=PaymentMethodEnvelope)
async def update_payment_method(
    method_id: uuid.UUID,
    payload: PaymentMethodUpdate,
    user: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    method = await get_owned(db, PaymentMethod, method_id, user.id)
    changes = changed_fields(payload, "type", "provider", "is_default", "status")
    if changes.get("is_default") is True:
        await _clear_other_defaults(db, method.customer_id, keep_id=method.id)

    for field, value in changes.items():
        setattr(method, field, value)

    await db.flush()
    await db.refresh(method)
    return {"payment_method": PaymentMethodResponse.model_validate(method)}


@router.delete("/{method_id}", response_model=DeleteResponse)
async def delete_payment_method(
    method_id: uuid.UUID,
    user: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    method = await get_owned(db, PaymentMethod, method_id, user.id)
    await db.delete(method)
    await db.flush()
    return {"success": True}
