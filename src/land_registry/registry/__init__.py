"""Parcel registry: records, ownership history, and write rules."""

from land_registry.registry.models import OwnershipTransfer, Parcel
from land_registry.registry.store import ParcelRegistry

__all__ = ["OwnershipTransfer", "Parcel", "ParcelRegistry"]
