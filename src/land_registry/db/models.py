"""SQLAlchemy ORM models for the parcel tables."""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from land_registry.db.base import Base
from land_registry.registry.validation import MAX_PARTY_LENGTH

# Upper bound of the 32-bit INTEGER id columns
MAX_PARCEL_ID = 2**31 - 1


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ParcelRow(Base):
    __tablename__ = "parcels"

    # Assigned by the repository, never by the database sequence
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    location: Mapped[str] = mapped_column(Text)
    size: Mapped[float] = mapped_column(Float)
    owner: Mapped[str] = mapped_column(String(MAX_PARTY_LENGTH))
    registered_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)

    transfers: Mapped[list[OwnershipTransferRow]] = relationship(
        back_populates="parcel",
        order_by="OwnershipTransferRow.id",
    )

    __table_args__ = (
        Index("ix_parcels_owner", "owner"),
        CheckConstraint("size > 0", name="ck_parcels_size_positive"),
        CheckConstraint("owner <> ''", name="ck_parcels_owner_not_empty"),
    )


class OwnershipTransferRow(Base):
    __tablename__ = "ownership_transfers"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    parcel_id: Mapped[int] = mapped_column(Integer, ForeignKey("parcels.id"))
    from_owner: Mapped[str | None] = mapped_column(String(MAX_PARTY_LENGTH), nullable=True)
    to_owner: Mapped[str] = mapped_column(String(MAX_PARTY_LENGTH))
    transferred_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)

    parcel: Mapped[ParcelRow] = relationship(back_populates="transfers")

    __table_args__ = (
        Index("ix_ownership_transfers_parcel_id", "parcel_id"),
    )
