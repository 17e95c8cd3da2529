"""Parcel registry data models."""

from __future__ import annotations

from datetime import datetime, timezone

from pydantic import BaseModel, Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Parcel(BaseModel):
    """A registered land parcel. Only ``owner`` changes after registration."""

    id: int = Field(gt=0)
    location: str = Field(min_length=1)
    size: float = Field(gt=0)
    owner: str = Field(min_length=1)
    registered_at: datetime = Field(default_factory=_utcnow)


class OwnershipTransfer(BaseModel):
    """One link in a parcel's chain of title.

    Registration is the first link, with ``from_owner`` unset.
    """

    parcel_id: int
    from_owner: str | None = None
    to_owner: str
    transferred_at: datetime = Field(default_factory=_utcnow)
