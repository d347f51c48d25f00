"""Invoice totals derived from payments.

amount_paid is always recomputed from the completed payment rows while the
invoice row is locked, never incremented from the stored value. Two requests
completing payments on the same invoice therefore serialise on the lock and
the later one sees both payments.
"""
import logging
import uuid
from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from stowpilot.models.billing import Invoice, Payment

logger = logging.getLogger(__name__)

CENTS = Decimal("0.01")


def settle(
    status: str,
    amount_due: Decimal,
    amount_paid: Decimal,
    paid_at: datetime | None,
    now: datetime,
) -> tuple[str, datetime | None]:
    """Return the (status, paid_at) an invoice should carry for a given paid total."""
    if amount_paid >= amount_due:
        return "paid", paid_at or now
    if status == "paid":
        # a refund or failed payment reopened the balance
        return "sent", None
    return status, paid_at


async def completed_total(db: AsyncSession, invoice_id: uuid.UUID) -> Decimal:
    total = await db.scalar(
        select(func.coalesce(func.sum(Payment.amount), 0)).where(
            Payment.invoice_id == invoice_id,
            Payment.status == "completed",
        )
    )
    return Decimal(str(total or 0)).quantize(CENTS)


async def recompute_invoice(db: AsyncSession, invoice_id: uuid.UUID) -> Invoice | None:
    result = await db.execute(
        select(Invoice)
        .where(Invoice.id == invoice_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    invoice = result.scalar_one_or_none()
    if invoice is None:
        return None

    paid = await completed_total(db, invoice_id)
    status, paid_at = settle(
        invoice.status,
        Decimal(invoice.amount_due),
        paid,
        invoice.paid_at,
        datetime.now(timezone.utc),
    )
    if (paid, status) != (invoice.amount_paid, invoice.status):
        logger.info(
            "Invoice %s amount_paid %s -> %s, status %s -> %s",
            invoice_id, invoice.amount_paid, paid, invoice.status, status,
        )
    invoice.amount_paid = paid
    invoice.status = status
    invoice.paid_at = paid_at
    await db.flush()
    return invoice
