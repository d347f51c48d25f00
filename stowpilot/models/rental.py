import uuid
from datetime import date, datetime, timezone
from decimal import Decimal

from sqlalchemy import Boolean, Date, DateTime, ForeignKey, Numeric, String, Text, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column

from stowpilot.core.database import Base

# Statuses that hold a unit; anything else releases it.
OCCUPYING_STATUS = "active"
RELEASING_STATUSES = frozenset({"terminated", "expired"})


class Rental(Base):
    """Rental agreement tying one customer to one unit."""
    __tablename__ = "rentals"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    owner_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("profiles.id", ondelete="CASCADE"), index=True
    )
    customer_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("customers.id"), index=True
    )
    unit_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("units.id"), index=True)
    start_date: Mapped[date] = mapped_column(Date)
    end_date: Mapped[date | None] = mapped_column(Date)  # NULL = month-to-month
    monthly_rate: Mapped[Decimal] = mapped_column(Numeric(10, 2))
    security_deposit: Mapped[Decimal] = mapped_column(Numeric(10, 2), default=Decimal("0"))
    late_fee_rate: Mapped[Decimal] = mapped_column(Numeric(10, 2), default=Decimal("0"))
    auto_renew: Mapped[bool] = mapped_column(Boolean, default=True)
    insurance_required: Mapped[bool] = mapped_column(Boolean, default=False)
    insurance_provider: Mapped[str | None] = mapped_column(String(255))
    insurance_policy_number: Mapped[str | None] = mapped_column(String(255))
    special_terms: Mapped[str | None] = mapped_column(Text)
    status: Mapped[str] = mapped_column(
        String(20), default="draft", index=True
    )  # draft | pending_signature | active | terminated | expired
    signed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    terminated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=lambda: datetime.now(timezone.utc),
    )
