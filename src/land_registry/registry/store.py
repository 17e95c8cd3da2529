"""In-memory parcel registry."""

from __future__ import annotations

import logging
import threading
from datetime import datetime, timezone

from pydantic import ValidationError

from land_registry.core.exceptions import (
    LedgerIntegrityError,
    ParcelNotFoundError,
    UnauthorizedTransferError,
)
from land_registry.ledger.chain import RegistryLedger
from land_registry.ledger.models import LedgerAction, LedgerTransaction
from land_registry.registry.models import OwnershipTransfer, Parcel
from land_registry.registry.validation import (
    validate_location,
    validate_party,
    validate_size,
)

logger = logging.getLogger(__name__)


class ParcelRegistry:
    """Parcel records keyed by sequential id, with ownership history.

    Writes are serialized by a lock so id allocation and owner checks see
    the latest completed write. Successful writes are appended to the
    ledger when one is attached.

    A ledger that already holds transactions can only be attached through
    :meth:`from_ledger`, so new ids always continue the recorded sequence.
    """

    def __init__(self, ledger: RegistryLedger | None = None) -> None:
        if ledger is not None and ledger.length > 0:
            raise LedgerIntegrityError(
                "Ledger already holds transactions; rebuild with ParcelRegistry.from_ledger",
                details={"path": str(ledger.log_path), "length": ledger.length},
            )
        self._parcels: dict[int, Parcel] = {}
        self._history: dict[int, list[OwnershipTransfer]] = {}
        self._next_id = 1
        self._lock = threading.Lock()
        self._ledger = ledger

    @classmethod
    def from_ledger(cls, ledger: RegistryLedger) -> ParcelRegistry:
        """Rebuild a registry by replaying every transaction on the ledger."""
        if not ledger.verify_chain():
            raise LedgerIntegrityError(
                "Ledger hash chain is broken", details={"path": str(ledger.log_path)}
            )

        registry = cls()
        transactions = ledger.transactions()
        for transaction in transactions:
            try:
                registry._replay(transaction)
            except (KeyError, ValidationError) as exc:
                raise LedgerIntegrityError(
                    "Malformed transaction on ledger",
                    details={"sequence": transaction.sequence, "error": str(exc)},
                ) from exc
        registry._ledger = ledger
        logger.info(
            "Replayed %d transactions, %d parcels", len(transactions), registry.parcel_count
        )
        return registry

    def _replay(self, transaction: LedgerTransaction) -> None:
        details = transaction.details
        if transaction.action == LedgerAction.REGISTER:
            if transaction.parcel_id != self._next_id:
                raise LedgerIntegrityError(
                    "Out-of-order registration on ledger",
                    details={
                        "sequence": transaction.sequence,
                        "parcel_id": transaction.parcel_id,
                        "expected": self._next_id,
                    },
                )
            self._store_new(
                details["location"],
                details["size"],
                details["owner"],
                transaction.timestamp,
            )
        else:
            if transaction.parcel_id not in self._parcels:
                raise LedgerIntegrityError(
                    "Transfer of unregistered parcel on ledger",
                    details={
                        "sequence": transaction.sequence,
                        "parcel_id": transaction.parcel_id,
                    },
                )
            self._store_owner(
                transaction.parcel_id, details["to_owner"], transaction.timestamp
            )

    def _store_new(self, location: str, size: float, owner: str, at: datetime) -> Parcel:
        parcel_id = self._next_id
        parcel = Parcel(
            id=parcel_id, location=location, size=size, owner=owner, registered_at=at
        )
        self._parcels[parcel_id] = parcel
        self._history[parcel_id] = [
            OwnershipTransfer(parcel_id=parcel_id, to_owner=owner, transferred_at=at)
        ]
        self._next_id += 1
        return parcel

    def _store_owner(self, parcel_id: int, new_owner: str, at: datetime) -> None:
        parcel = self._parcels[parcel_id]
        self._history[parcel_id].append(
            OwnershipTransfer(
                parcel_id=parcel_id,
                from_owner=parcel.owner,
                to_owner=new_owner,
                transferred_at=at,
            )
        )
        self._parcels[parcel_id] = parcel.model_copy(update={"owner": new_owner})

    # -- Writes --

    def register_land(self, location: str, size: float, requester: str) -> int:
        """Register a parcel owned by ``requester`` and return its new id.

        Raises:
            InvalidInputError: Empty location, non-positive size, or empty
                requester. No id is allocated.
        """
        location = validate_location(location)
        size = validate_size(size)
        requester = validate_party(requester, "requester")

        with self._lock:
            # Ledger first: a failed append must leave the registry untouched
            at = datetime.now(timezone.utc)
            if self._ledger is not None:
                entry = self._ledger.append(
                    LedgerAction.REGISTER,
                    self._next_id,
                    requester,
                    {"location": location, "size": size, "owner": requester},
                )
                at = entry.transaction.timestamp
            parcel = self._store_new(location, size, requester, at)

        logger.info("Registered parcel %d for %s", parcel.id, requester)
        return parcel.id

    def transfer_land(self, parcel_id: int, new_owner: str, requester: str) -> None:
        """Transfer a parcel from its current owner to ``new_owner``.

        Raises:
            InvalidInputError: Empty new owner or requester.
            ParcelNotFoundError: Unknown parcel id.
            UnauthorizedTransferError: ``requester`` is not the current owner.
        """
        new_owner = validate_party(new_owner, "new_owner")
        requester = validate_party(requester, "requester")

        with self._lock:
            parcel = self._parcels.get(parcel_id)
            if parcel is None:
                raise ParcelNotFoundError(parcel_id)
            if parcel.owner != requester:
                logger.warning(
                    "Rejected transfer of parcel %d by non-owner %s", parcel_id, requester
                )
                raise UnauthorizedTransferError(parcel_id, requester)

            at = datetime.now(timezone.utc)
            if self._ledger is not None:
                entry = self._ledger.append(
                    LedgerAction.TRANSFER,
                    parcel_id,
                    requester,
                    {"from_owner": parcel.owner, "to_owner": new_owner},
                )
                at = entry.transaction.timestamp
            self._store_owner(parcel_id, new_owner, at)

        logger.info("Transferred parcel %d from %s to %s", parcel_id, parcel.owner, new_owner)

    # -- Reads --

    def lands(self, parcel_id: int) -> Parcel:
        """Look up a parcel by id.

        Raises:
            ParcelNotFoundError: Unknown parcel id.
        """
        parcel = self._parcels.get(parcel_id)
        if parcel is None:
            raise ParcelNotFoundError(parcel_id)
        return parcel.model_copy()

    def list_parcels(self) -> list[Parcel]:
        with self._lock:
            parcels = sorted(self._parcels.values(), key=lambda p: p.id)
        return [p.model_copy() for p in parcels]

    def list_by_owner(self, owner: str) -> list[Parcel]:
        return [p for p in self.list_parcels() if p.owner == owner]

    def history(self, parcel_id: int) -> list[OwnershipTransfer]:
        """Chain of title for a parcel, oldest first."""
        if parcel_id not in self._history:
            raise ParcelNotFoundError(parcel_id)
        return [link.model_copy() for link in self._history[parcel_id]]

    @property
    def parcel_count(self) -> int:
        return len(self._parcels)

    @property
    def ledger(self) -> RegistryLedger | None:
        return self._ledger
