"""Unit status and facility unit counts, kept in step with rentals and units.

A unit is `occupied` exactly when an active rental references it. These
helpers run inside the request transaction, after the rental or unit change
has been added to the session.
"""
import logging
import uuid
from datetime import datetime, timezone

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from stowpilot.models.facility import Facility, Unit
from stowpilot.models.rental import OCCUPYING_STATUS, RELEASING_STATUSES, Rental

logger = logging.getLogger(__name__)


def next_unit_status(current: str, has_active_rental: bool, rental_status: str | None) -> str:
    """Decide a unit's status after a rental change.

    rental_status is the status of the rental that triggered the sync, or None
    when the rental was deleted or moved to another unit.
    """
    if has_active_rental:
        return "occupied"
    if rental_status in RELEASING_STATUSES:
        return "available"
    if current == "occupied":
        return "available"
    # reserved / maintenance / out_of_service are managed by hand
    return current


async def sync_unit_status(
    db: AsyncSession,
    unit_id: uuid.UUID,
    rental_status: str | None = None,
) -> Unit | None:
    unit = await db.get(Unit, unit_id)
    if unit is None:
        return None

    active_count = await db.scalar(
        select(func.count(Rental.id)).where(
            Rental.unit_id == unit_id,
            Rental.status == OCCUPYING_STATUS,
        )
    )
    new_status = next_unit_status(unit.status, bool(active_count), rental_status)
    if new_status != unit.status:
        logger.info("Unit %s status %s -> %s", unit_id, unit.status, new_status)
        unit.status = new_status
        await db.flush()
    return unit


def stamp_rental_transition(rental: Rental, previous_status: str | None) -> None:
    """Record signed_at / terminated_at the first time a rental reaches those states."""
    if rental.status == previous_status:
        return
    now = datetime.now(timezone.utc)
    if rental.status == OCCUPYING_STATUS and rental.signed_at is None:
        rental.signed_at = now
    elif rental.status == "terminated" and rental.terminated_at is None:
        rental.terminated_at = now


async def refresh_facility_unit_count(db: AsyncSession, facility_id: uuid.UUID) -> int:
    count = await db.scalar(
        select(func.count(Unit.id)).where(Unit.facility_id == facility_id)
    ) or 0
    facility = await db.get(Facility, facility_id)
    if facility is not None and facility.total_units != count:
        facility.total_units = count
        await db.flush()
    return count
