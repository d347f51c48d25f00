"""Dashboard aggregates: per-facility occupancy, revenue by day, headline metrics."""
import uuid
from collections import defaultdict
from decimal import Decimal

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from stowpilot.models.billing import Invoice, LedgerEntry
from stowpilot.models.customer import Customer
from stowpilot.models.facility import Facility, Unit
from stowpilot.models.rental import OCCUPYING_STATUS, Rental
from stowpilot.services.invoicing import CENTS
from stowpilot.services.ownership import scoped

ZERO = Decimal("0.00")

# invoices still expecting money
OPEN_INVOICE_STATUSES = ("sent", "overdue")


def _money(value) -> Decimal:
    return Decimal(str(value or 0)).quantize(CENTS)


async def occupancy_data(db: AsyncSession, owner_id: uuid.UUID) -> list[dict]:
    facilities = (
        await db.execute(scoped(Facility, owner_id).order_by(Facility.name))
    ).scalars().all()

    counts: dict[uuid.UUID, dict[str, int]] = defaultdict(lambda: defaultdict(int))
    rows = await db.execute(
        select(Unit.facility_id, Unit.status, func.count(Unit.id))
        .join(Facility, Unit.facility_id == Facility.id)
        .where(Facility.owner_id == owner_id)
        .group_by(Unit.facility_id, Unit.status)
    )
    for facility_id, status, n in rows.all():
        counts[facility_id][status] = n

    data = []
    for facility in facilities:
        by_status = counts[facility.id]
        total = sum(by_status.values())
        occupied = by_status["occupied"]
        data.append({
            "facility_id": facility.id,
            "facility_name": facility.name,
            "total_units": total,
            "occupied_units": occupied,
            "available_units": by_status["available"],
            "reserved_units": by_status["reserved"],
            "maintenance_units": by_status["maintenance"],
            "occupancy_rate": (occupied / total) * 100 if total else 0.0,
        })
    return data


async def revenue_data(db: AsyncSession, owner_id: uuid.UUID) -> list[dict]:
    rows = await db.execute(
        select(LedgerEntry.date, LedgerEntry.type, func.sum(LedgerEntry.amount))
        .where(LedgerEntry.owner_id == owner_id, LedgerEntry.type.in_(("income", "expense")))
        .group_by(LedgerEntry.date, LedgerEntry.type)
    )
    by_day: dict = defaultdict(lambda: {"income": ZERO, "expenses": ZERO})
    for day, entry_type, total in rows.all():
        key = "income" if entry_type == "income" else "expenses"
        by_day[day][key] = _money(total)

    return [
        {
            "date": day,
            "income": totals["income"],
            "expenses": totals["expenses"],
            "net": totals["income"] - totals["expenses"],
        }
        for day, totals in sorted(by_day.items())
    ]


async def _count(db: AsyncSession, stmt) -> int:
    return await db.scalar(select(func.count()).select_from(stmt.subquery())) or 0


async def analytics_metrics(
    db: AsyncSession, owner_id: uuid.UUID, occupancy: list[dict]
) -> dict:
    total_revenue = _money(await db.scalar(
        select(func.sum(LedgerEntry.amount)).where(
            LedgerEntry.owner_id == owner_id, LedgerEntry.type == "income"
        )
    ))
    total_expenses = _money(await db.scalar(
        select(func.sum(LedgerEntry.amount)).where(
            LedgerEntry.owner_id == owner_id, LedgerEntry.type == "expense"
        )
    ))
    outstanding = _money(await db.scalar(
        select(func.sum(Invoice.amount_due - Invoice.amount_paid))
        .join(Customer, Invoice.customer_id == Customer.id)
        .where(Customer.owner_id == owner_id, Invoice.status.in_(OPEN_INVOICE_STATUSES))
    ))

    rates = [row["occupancy_rate"] for row in occupancy]
    return {
        "total_facilities": len(occupancy),
        "total_units": await _count(db, scoped(Unit, owner_id)),
        "total_customers": await _count(db, scoped(Customer, owner_id)),
        "active_rentals": await _count(
            db, scoped(Rental, owner_id).where(Rental.status == OCCUPYING_STATUS)
        ),
        "total_revenue": total_revenue,
        "total_expenses": total_expenses,
        "net_profit": total_revenue - total_expenses,
        "average_occupancy_rate": sum(rates) / len(rates) if rates else 0.0,
        "outstanding_balance": outstanding,
    }


async def build_report(db: AsyncSession, owner_id: uuid.UUID) -> dict:
    occupancy = await occupancy_data(db, owner_id)
    return {
        "occupancy_data": occupancy,
        "revenue_data": await revenue_data(db, owner_id),
        "analytics_metrics": await analytics_metrics(db, owner_id, occupancy),
    }
