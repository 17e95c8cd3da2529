"""Hash-chained transaction ledger for the land registry.

Every successful registration and transfer is appended to a JSONL file as
one line. Each entry's SHA-256 hash covers the previous entry's hash, so
altering or dropping any line breaks verification for everything after it.
The ledger is the durable record the in-memory registry is rebuilt from.
"""

from __future__ import annotations

import hashlib
import json
import logging
import threading
from collections.abc import Iterator
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from land_registry.core.config import LedgerConfig
from land_registry.core.exceptions import LedgerIntegrityError
from land_registry.ledger.models import LedgerAction, LedgerEntry, LedgerTransaction

logger = logging.getLogger(__name__)

_GENESIS_SEED = b"land-registry-genesis"


class RegistryLedger:
    """Append-only, hash-chained ledger of registry transactions.

    Args:
        config: LedgerConfig instance. Defaults to LedgerConfig() which reads
            from environment variables.
        log_file: Override the ledger file name from the config.
    """

    def __init__(
        self,
        config: LedgerConfig | None = None,
        log_file: str | None = None,
    ) -> None:
        self._config = config or LedgerConfig()
        self._log_dir = Path(self._config.log_dir)
        self._log_dir.mkdir(parents=True, exist_ok=True)
        self._log_path = self._log_dir / (log_file or self._config.log_file)
        self._lock = threading.Lock()
        self._last_hash: str = self.genesis_hash()
        self._length = 0

        if self._log_path.exists():
            self._recover_tail()

    @staticmethod
    def genesis_hash() -> str:
        """Return the seed hash the first entry chains from."""
        return hashlib.sha256(_GENESIS_SEED).hexdigest()

    @staticmethod
    def _compute_hash(previous_hash: str, transaction_json: str) -> str:
        payload = (previous_hash + transaction_json).encode("utf-8")
        return hashlib.sha256(payload).hexdigest()

    def _iter_raw(self) -> Iterator[tuple[int, dict[str, Any]]]:
        """Yield (line number, decoded entry) for every non-blank line."""
        if not self._log_path.exists():
            return
        with open(self._log_path) as fh:
            for line_no, line in enumerate(fh, start=1):
                stripped = line.strip()
                if not stripped:
                    continue
                try:
                    data = json.loads(stripped)
                except json.JSONDecodeError as exc:
                    raise self._malformed(line_no, str(exc)) from exc
                if not isinstance(data, dict):
                    raise self._malformed(line_no, "entry is not an object")
                yield line_no, data

    def _malformed(self, line_no: int, reason: str) -> LedgerIntegrityError:
        return LedgerIntegrityError(
            f"Malformed ledger entry at line {line_no}",
            details={"path": str(self._log_path), "line": line_no, "reason": reason},
        )

    def _recover_tail(self) -> None:
        """Recover the last hash and sequence number from an existing file.

        Raises:
            LedgerIntegrityError: A line cannot be decoded, or the last
                entry lacks its hash or sequence number.
        """
        last: tuple[int, dict[str, Any]] | None = None
        for line_no, data in self._iter_raw():
            last = (line_no, data)
        if last is None:
            return

        line_no, data = last
        try:
            self._last_hash = str(data["entry_hash"])
            self._length = int(data["transaction"]["sequence"])
        except (KeyError, TypeError, ValueError) as exc:
            raise self._malformed(line_no, f"missing or invalid field: {exc}") from exc
        logger.info("Opened ledger %s at sequence %d", self._log_path, self._length)

    def append(
        self,
        action: LedgerAction,
        parcel_id: int,
        actor: str,
        details: dict[str, Any] | None = None,
    ) -> LedgerEntry:
        """Append a transaction and return it with its chain hashes."""
        with self._lock:
            transaction = LedgerTransaction(
                sequence=self._length + 1,
                action=action,
                parcel_id=parcel_id,
                actor=actor,
                details=details or {},
            )
            entry_hash = self._compute_hash(
                self._last_hash, transaction.model_dump_json()
            )
            entry = LedgerEntry(
                transaction=transaction,
                previous_hash=self._last_hash,
                entry_hash=entry_hash,
            )

            with open(self._log_path, "a") as fh:
                fh.write(json.dumps(entry.to_dict()) + "\n")

            self._last_hash = entry_hash
            self._length = transaction.sequence
            return entry

    def verify_chain(self) -> bool:
        """Recompute every link. A missing or empty ledger is valid.

        Undecodable lines and entries with missing or invalid fields make
        the chain invalid.
        """
        previous_hash = self.genesis_hash()
        expected_sequence = 1

        try:
            for _, data in self._iter_raw():
                if data["previous_hash"] != previous_hash:
                    return False

                transaction = LedgerTransaction(**data["transaction"])
                if transaction.sequence != expected_sequence:
                    return False

                expected_hash = self._compute_hash(
                    previous_hash, transaction.model_dump_json()
                )
                if data["entry_hash"] != expected_hash:
                    return False

                previous_hash = data["entry_hash"]
                expected_sequence += 1
        except (LedgerIntegrityError, KeyError, TypeError, ValidationError) as exc:
            logger.warning("Ledger %s failed verification: %s", self._log_path, exc)
            return False

        return True

    def entries(self) -> list[LedgerEntry]:
        entries: list[LedgerEntry] = []
        for line_no, data in self._iter_raw():
            try:
                entries.append(LedgerEntry.from_dict(data))
            except (KeyError, TypeError, ValidationError) as exc:
                raise self._malformed(line_no, str(exc)) from exc
        return entries

    def transactions(self) -> list[LedgerTransaction]:
        """All transactions in chain order."""
        return [entry.transaction for entry in self.entries()]

    def query(self, filters: dict[str, Any] | None = None) -> list[LedgerTransaction]:
        """Query transactions with optional filters.

        Supported filter keys:
            - ``action``: exact match on the transaction action
            - ``actor``: exact match on the requester
            - ``parcel_id``: exact match on the parcel id
            - ``after``: ISO datetime string; only transactions after this time
            - ``before``: ISO datetime string; only transactions before this time
        """
        filters = filters or {}
        after_dt = _parse_bound(filters.get("after"))
        before_dt = _parse_bound(filters.get("before"))

        results: list[LedgerTransaction] = []
        for transaction in self.transactions():
            if "action" in filters and transaction.action != filters["action"]:
                continue
            if "actor" in filters and transaction.actor != filters["actor"]:
                continue
            if "parcel_id" in filters and transaction.parcel_id != int(filters["parcel_id"]):
                continue
            if after_dt and transaction.timestamp <= after_dt:
                continue
            if before_dt and transaction.timestamp >= before_dt:
                continue
            results.append(transaction)
        return results

    @property
    def log_path(self) -> Path:
        return self._log_path

    @property
    def last_hash(self) -> str:
        """Hash of the most recent entry, or the genesis hash if empty."""
        return self._last_hash

    @property
    def length(self) -> int:
        return self._length


def _parse_bound(value: str | None) -> datetime | None:
    if value is None:
        return None
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed
