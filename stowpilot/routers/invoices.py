import uuid
from datetime import date, datetime, timezone
from decimal import Decimal

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession

from stowpilot.core.database import get_db
from stowpilot.core.deps import get_current_user
from stowpilot.models.billing import Invoice, Payment
from stowpilot.models.customer import Customer, PaymentMethod
from stowpilot.models.profile import Profile
from stowpilot.models.rental import Rental
from stowpilot.schemas.common import DeleteResponse, changed_fields, split_csv
from stowpilot.schemas.invoice import (
    InvoiceCreate,
    InvoiceEnvelope,
    InvoiceListEnvelope,
    InvoiceResponse,
    InvoiceUpdate,
)
from stowpilot.services.invoicing import settle
from stowpilot.services.ownership import ensure_owned, get_owned, scoped

router = APIRouter(prefix="/invoices", tags=["invoices"])

_REQUIRED = (
    "invoice_number", "period_start", "period_end", "amount_due",
    "amount_paid", "status", "due_date",
)


@router.get("", response_model=InvoiceListEnvelope)
async def list_invoices(
    status: str | None = None,
    customer_id: uuid.UUID | None = None,
    rental_id: uuid.UUID | None = None,
    due_date_from: date | None = None,
    due_date_to: date | None = None,
    search: str | None = None,
    user: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    stmt = scoped(Invoice, user.id).order_by(Invoice.due_date.desc())
    if statuses := split_csv(status):
        stmt = stmt.where(Invoice.status.in_(statuses))
    if customer_id:
        stmt = stmt.where(Invoice.customer_id == customer_id)
    if rental_id:
        stmt = stmt.where(Invoice.rental_id == rental_id)
    if due_date_from:
        stmt = stmt.where(Invoice.due_date >= due_date_from)
    if due_date_to:
        stmt = stmt.where(Invoice.due_date <= due_date_to)
    if search:
        stmt = stmt.where(Invoice.invoice_number.ilike(f"%{search}%"))

    result = await db.execute(stmt)
    return {"invoices": [InvoiceResponse.model_validate(i) for i in result.scalars().all()]}


@router.post("", response_model=InvoiceEnvelope, status_code=201)
async def create_invoice(
    payload: InvoiceCreate,
    user: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await ensure_owned(db, Customer, payload.customer_id, user.id)
    await ensure_owned(db, Rental, payload.rental_id, user.id)
    await ensure_owned(db, PaymentMethod, payload.payment_method_id, user.id)

    invoice = Invoice(amount_paid=Decimal("0"), **payload.model_dump())
    db.add(invoice)
    await db.flush()
    await db.refresh(invoice)
    return {"invoice": InvoiceResponse.model_validate(invoice)}


@router.get("/{invoice_id}", response_model=InvoiceEnvelope)
async def get_invoice(
    invoice_id: uuid.UUID,
    user: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    invoice = await get_owned(db, Invoice, invoice_id, user.id)
    return {"invoice": InvoiceResponse.model_validate(invoice)}


@router.patch("/{invoice_id}", response_model=InvoiceEnvelope)
async def update_invoice(
    invoice_id: uuid.UUID,
    payload: InvoiceUpdate,
    user: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    invoice = await get_owned(db, Invoice, invoice_id, user.id)
    changes = changed_fields(payload, *_REQUIRED)

    if "rental_id" in changes:
        await ensure_owned(db, Rental, changes["rental_id"], user.id)
    if "payment_method_id" in changes:
        await ensure_owned(db, PaymentMethod, changes["payment_method_id"], user.id)

    period_start = changes.get("period_start", invoice.period_start)
    period_end = changes.get("period_end", invoice.period_end)
    if period_end < period_start:
        raise HTTPException(status_code=400, detail="Invalid input data")

    for field, value in changes.items():
        setattr(invoice, field, value)

    # Amount edits without an explicit status keep status/paid_at consistent with the totals
    if ({"amount_due", "amount_paid"} & changes.keys()) and "status" not in changes:
        invoice.status, invoice.paid_at = settle(
            invoice.status,
            Decimal(invoice.amount_due),
            Decimal(invoice.amount_paid),
            invoice.paid_at,
            datetime.now(timezone.utc),
        )

    await db.flush()
    await db.refresh(invoice)
    return {"invoice": InvoiceResponse.model_validate(invoice)}


@router.delete("/{invoice_id}", response_model=DeleteResponse)
async def delete_invoice(
    invoice_id: uuid.UUID,
    user: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    invoice = await get_owned(db, Invoice, invoice_id, user.id)
    await db.execute(delete(Payment).where(Payment.invoice_id == invoice.id))
    await db.delete(invoice)
    await db.flush()
    return {"success": True}
