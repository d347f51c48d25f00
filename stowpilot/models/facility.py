import uuid
from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import JSON, DateTime, ForeignKey, Integer, Numeric, String, Text, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column

from stowpilot.core.database import Base


class Facility(Base):
    __tablename__ = "facilities"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    owner_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("profiles.id", ondelete="CASCADE"), index=True
    )
    name: Mapped[str] = mapped_column(String(255))
    address: Mapped[dict] = mapped_column(JSON)  # street, city, state, zip, country, coordinates
    total_units: Mapped[int] = mapped_column(Integer, default=0)  # denormalised COUNT(units)
    amenities: Mapped[list] = mapped_column(JSON, default=list)
    contact_info: Mapped[dict | None] = mapped_column(JSON)
    operating_hours: Mapped[dict | None] = mapped_column(JSON)
    photos: Mapped[list] = mapped_column(JSON, default=list)
    notes: Mapped[str | None] = mapped_column(Text)
    status: Mapped[str] = mapped_column(String(20), default="active")  # active | inactive | maintenance
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=lambda: datetime.now(timezone.utc),
    )


class Unit(Base):
    """A rentable storage unit inside a facility."""
    __tablename__ = "units"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    facility_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("facilities.id", ondelete="CASCADE"), index=True
    )
    unit_number: Mapped[str] = mapped_column(String(50))
    size: Mapped[dict] = mapped_column(JSON)  # width, length, square_feet
    type: Mapped[str] = mapped_column(
        String(30), default="standard"
    )  # standard | climate_controlled | outdoor | vehicle
    floor_level: Mapped[int] = mapped_column(Integer, default=1)
    features: Mapped[list] = mapped_column(JSON, default=list)
    monthly_rate: Mapped[Decimal] = mapped_column(Numeric(10, 2))
    status: Mapped[str] = mapped_column(
        String(20), default="available", index=True
    )  # available | occupied | reserved | maintenance | out_of_service
    photos: Mapped[list] = mapped_column(JSON, default=list)
    notes: Mapped[str | None] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=lambda: datetime.now(timezone.utc),
    )
