"""Ledger transaction models."""

from __future__ import annotations

import json
import uuid
from datetime import datetime, timezone
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, Field


class LedgerAction(StrEnum):
    REGISTER = "register"
    TRANSFER = "transfer"


class LedgerTransaction(BaseModel):
    """A successful registry write as recorded on the ledger."""

    tx_id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    sequence: int
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    action: LedgerAction
    parcel_id: int
    actor: str
    details: dict[str, Any] = Field(default_factory=dict)


class LedgerEntry:
    """Wrapper around a LedgerTransaction with chain hash metadata."""

    def __init__(
        self, transaction: LedgerTransaction, previous_hash: str, entry_hash: str
    ) -> None:
        self.transaction = transaction
        self.previous_hash = previous_hash
        self.entry_hash = entry_hash

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a dict suitable for JSONL output."""
        return {
            "previous_hash": self.previous_hash,
            "entry_hash": self.entry_hash,
            "transaction": json.loads(self.transaction.model_dump_json()),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> LedgerEntry:
        return cls(
            transaction=LedgerTransaction(**data["transaction"]),
            previous_hash=data["previous_hash"],
            entry_hash=data["entry_hash"],
        )
