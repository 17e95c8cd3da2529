"""Protocol definitions for parcel repositories.

The protocol mirrors the public methods of the in-memory ParcelRegistry
exactly, so both the sync (in-memory) and async (Postgres) implementations
satisfy the same interface.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from land_registry.ledger.chain import RegistryLedger
from land_registry.registry.models import OwnershipTransfer, Parcel


@runtime_checkable
class ParcelRepository(Protocol):
    """Protocol for parcel storage."""

    def register_land(self, location: str, size: float, requester: str) -> int: ...

    def transfer_land(self, parcel_id: int, new_owner: str, requester: str) -> None: ...

    def lands(self, parcel_id: int) -> Parcel: ...

    def list_parcels(self) -> list[Parcel]: ...

    def list_by_owner(self, owner: str) -> list[Parcel]: ...

    def history(self, parcel_id: int) -> list[OwnershipTransfer]: ...

    @property
    def parcel_count(self) -> int: ...

    @property
    def ledger(self) -> RegistryLedger | None: ...
