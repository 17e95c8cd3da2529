"""PostgreSQL parcel repository."""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import func, select

from land_registry.core.exceptions import ParcelNotFoundError, UnauthorizedTransferError
from land_registry.db.engine import DatabaseManager
from land_registry.db.models import MAX_PARCEL_ID, OwnershipTransferRow, ParcelRow
from land_registry.ledger.chain import RegistryLedger
from land_registry.ledger.models import LedgerAction
from land_registry.registry.models import OwnershipTransfer, Parcel
from land_registry.registry.validation import (
    validate_location,
    validate_party,
    validate_size,
)

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _aware(value: datetime) -> datetime:
    # SQLite drops tzinfo on the way back
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _check_id(parcel_id: int) -> None:
    # Ids outside the column range can never have been allocated
    if not 1 <= parcel_id <= MAX_PARCEL_ID:
        raise ParcelNotFoundError(parcel_id)


class PostgresParcelRepository:
    """Postgres-backed parcel storage.

    Ids are allocated as ``max(id) + 1`` inside the write transaction rather
    than from a database sequence, so a rolled-back insert never leaves a
    gap. Writes from this instance are serialized by an asyncio lock and the
    parcel row is locked ``FOR UPDATE`` during a transfer.
    """

    def __init__(self, db: DatabaseManager, ledger: RegistryLedger | None = None) -> None:
        self._db = db
        self._ledger = ledger
        self._write_lock = asyncio.Lock()

    async def register_land(self, location: str, size: float, requester: str) -> int:
        location = validate_location(location)
        size = validate_size(size)
        requester = validate_party(requester, "requester")

        async with self._write_lock:
            async with self._db.session() as db:
                result = await db.execute(select(func.coalesce(func.max(ParcelRow.id), 0)))
                parcel_id = result.scalar_one() + 1
                now = _utcnow()
                db.add(
                    ParcelRow(
                        id=parcel_id,
                        location=location,
                        size=size,
                        owner=requester,
                        registered_at=now,
                    )
                )
                db.add(
                    OwnershipTransferRow(
                        parcel_id=parcel_id, to_owner=requester, transferred_at=now
                    )
                )
                await db.commit()

            if self._ledger is not None:
                self._ledger.append(
                    LedgerAction.REGISTER,
                    parcel_id,
                    requester,
                    {"location": location, "size": size, "owner": requester},
                )

        logger.info("Registered parcel %d for %s", parcel_id, requester)
        return parcel_id

    async def transfer_land(self, parcel_id: int, new_owner: str, requester: str) -> None:
        new_owner = validate_party(new_owner, "new_owner")
        requester = validate_party(requester, "requester")
        _check_id(parcel_id)

        async with self._write_lock:
            async with self._db.session() as db:
                row = await db.get(ParcelRow, parcel_id, with_for_update=True)
                if row is None:
                    raise ParcelNotFoundError(parcel_id)
                if row.owner != requester:
                    logger.warning(
                        "Rejected transfer of parcel %d by non-owner %s", parcel_id, requester
                    )
                    raise UnauthorizedTransferError(parcel_id, requester)

                previous_owner = row.owner
                row.owner = new_owner
                db.add(
                    OwnershipTransferRow(
                        parcel_id=parcel_id,
                        from_owner=previous_owner,
                        to_owner=new_owner,
                        transferred_at=_utcnow(),
                    )
                )
                await db.commit()

            if self._ledger is not None:
                self._ledger.append(
                    LedgerAction.TRANSFER,
                    parcel_id,
                    requester,
                    {"from_owner": previous_owner, "to_owner": new_owner},
                )

        logger.info("Transferred parcel %d from %s to %s", parcel_id, previous_owner, new_owner)

    async def lands(self, parcel_id: int) -> Parcel:
        _check_id(parcel_id)
        async with self._db.session() as db:
            row = await db.get(ParcelRow, parcel_id)
            if row is None:
                raise ParcelNotFoundError(parcel_id)
            return self._row_to_parcel(row)

    async def list_parcels(self) -> list[Parcel]:
        async with self._db.session() as db:
            result = await db.execute(select(ParcelRow).order_by(ParcelRow.id))
            return [self._row_to_parcel(r) for r in result.scalars().all()]

    async def list_by_owner(self, owner: str) -> list[Parcel]:
        async with self._db.session() as db:
            result = await db.execute(
                select(ParcelRow).where(ParcelRow.owner == owner).order_by(ParcelRow.id)
            )
            return [self._row_to_parcel(r) for r in result.scalars().all()]

    async def history(self, parcel_id: int) -> list[OwnershipTransfer]:
        _check_id(parcel_id)
        async with self._db.session() as db:
            if await db.get(ParcelRow, parcel_id) is None:
                raise ParcelNotFoundError(parcel_id)
            result = await db.execute(
                select(OwnershipTransferRow)
                .where(OwnershipTransferRow.parcel_id == parcel_id)
                .order_by(OwnershipTransferRow.id)
            )
            return [
                OwnershipTransfer(
                    parcel_id=r.parcel_id,
                    from_owner=r.from_owner,
                    to_owner=r.to_owner,
                    transferred_at=_aware(r.transferred_at),
                )
                for r in result.scalars().all()
            ]

    @property
    def parcel_count(self) -> Any:
        async def _inner():
            async with self._db.session() as db:
                result = await db.execute(select(func.count()).select_from(ParcelRow))
                return result.scalar_one()

        return _inner()

    @property
    def ledger(self) -> RegistryLedger | None:
        return self._ledger

    @staticmethod
    def _row_to_parcel(row: ParcelRow) -> Parcel:
        return Parcel(
            id=row.id,
            location=row.location,
            size=row.size,
            owner=row.owner,
            registered_at=_aware(row.registered_at),
        )
