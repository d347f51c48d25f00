import logging
import uuid
from datetime import date, datetime, time, timedelta, timezone

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import or_
from sqlalchemy.ext.asyncio import AsyncSession

from stowpilot.core.database import get_db
from stowpilot.core.deps import get_current_user
from stowpilot.models.billing import Invoice, Payment
from stowpilot.models.customer import Customer, PaymentMethod
from stowpilot.models.profile import Profile
from stowpilot.schemas.common import DeleteResponse, changed_fields, split_csv
from stowpilot.schemas.payment import (
    PaymentCreate,
    PaymentEnvelope,
    PaymentListEnvelope,
    PaymentResponse,
    PaymentUpdate,
)
from stowpilot.services.invoicing import recompute_invoice
from stowpilot.services.ownership import ensure_owned, get_owned, scoped

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/payments", tags=["payments"])

# Changing any of these moves money between invoices
_TOTAL_FIELDS = {"status", "amount", "invoice_id"}


def _start_of(day: date) -> datetime:
    return datetime.combine(day, time.min, tzinfo=timezone.utc)


@router.get("", response_model=PaymentListEnvelope)
async def list_payments(
    status: str | None = None,
    customer_id: uuid.UUID | None = None,
    invoice_id: uuid.UUID | None = None,
    date_from: date | None = None,
    date_to: date | None = None,
    search: str | None = None,
    user: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    stmt = scoped(Payment, user.id).order_by(Payment.created_at.desc())
    if statuses := split_csv(status):
        stmt = stmt.where(Payment.status.in_(statuses))
    if customer_id:
        stmt = stmt.where(Payment.customer_id == customer_id)
    if invoice_id:
        stmt = stmt.where(Payment.invoice_id == invoice_id)
    if date_from:
        stmt = stmt.where(Payment.created_at >= _start_of(date_from))
    if date_to:
        stmt = stmt.where(Payment.created_at < _start_of(date_to + timedelta(days=1)))
    if search:
        pattern = f"%{search}%"
        stmt = stmt.where(or_(Payment.transaction_id.ilike(pattern), Payment.notes.ilike(pattern)))

    result = await db.execute(stmt)
    return {"payments": [PaymentResponse.model_validate(p) for p in result.scalars().all()]}


@router.post("", response_model=PaymentEnvelope, status_code=201)
async def create_payment(
    payload: PaymentCreate,
    user: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    invoice = await get_owned(db, Invoice, payload.invoice_id, user.id)
    await ensure_owned(db, Customer, payload.customer_id, user.id)
    await ensure_owned(db, PaymentMethod, payload.payment_method_id, user.id)
    if invoice.customer_id != payload.customer_id:
        raise HTTPException(status_code=400, detail="Payment customer does not match invoice")

    payment = Payment(**payload.model_dump())
    if payment.status == "completed":
        payment.processed_at = datetime.now(timezone.utc)
    db.add(payment)
    await db.flush()

    await recompute_invoice(db, payment.invoice_id)
    await db.refresh(payment)
    logger.info("Recorded %s payment %s on invoice %s", payment.status, payment.id, payment.invoice_id)
    return {"payment": PaymentResponse.model_validate(payment)}


@router.get("/{payment_id}", response_model=PaymentEnvelope)
async def get_payment(
    payment_id: uuid.UUID,
    user: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    payment = await get_owned(db, Payment, payment_id, user.id)
    return {"payment": PaymentResponse.model_validate(payment)}


@router.patch("/{payment_id}", response_model=PaymentEnvelope)
async def update_payment(
    payment_id: uuid.UUID,
    payload: PaymentUpdate,
    user: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    payment = await get_owned(db, Payment, payment_id, user.id)
    changes = changed_fields(payload, "invoice_id", "amount", "status")

    if "invoice_id" in changes:
        target = await get_owned(db, Invoice, changes["invoice_id"], user.id)
        if target.customer_id != payment.customer_id:
            raise HTTPException(status_code=400, detail="Payment customer does not match invoice")
    if "payment_method_id" in changes:
        await ensure_owned(db, PaymentMethod, changes["payment_method_id"], user.id)

    previous_invoice = payment.invoice_id
    for field, value in changes.items():
        setattr(payment, field, value)
    if payment.status == "completed" and payment.processed_at is None:
        payment.processed_at = datetime.now(timezone.utc)
    await db.flush()

    if _TOTAL_FIELDS & changes.keys():
        # fixed lock order so two moves in opposite directions cannot deadlock
        for invoice_id in sorted({payment.invoice_id, previous_invoice}, key=str):
            await recompute_invoice(db, invoice_id)

    await db.refresh(payment)
    return {"payment": PaymentResponse.model_validate(payment)}


@router.delete("/{payment_id}", response_model=DeleteResponse)
async def delete_payment(
    payment_id: uuid.UUID,
    user: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    payment = await get_owned(db, Payment, payment_id, user.id)
    invoice_id = payment.invoice_id
    await db.delete(payment)
    await db.flush()
    await recompute_invoice(db, invoice_id)
    return {"success": True}
