"""Tests for the hash-chained ledger and registry replay."""

from __future__ import annotations

import json
from datetime import datetime, timedelta, timezone

import pytest

from land_registry.core.config import LedgerConfig
from land_registry.core.exceptions import LedgerIntegrityError, UnauthorizedTransferError
from land_registry.ledger.chain import RegistryLedger
from land_registry.ledger.models import LedgerAction
from land_registry.registry.store import ParcelRegistry
from tests.conftest import ALICE, BOB, CAROL


def _rewrite_line(ledger: RegistryLedger, index: int, mutate) -> None:
    lines = ledger.log_path.read_text().splitlines()
    data = json.loads(lines[index])
    mutate(data)
    lines[index] = json.dumps(data)
    ledger.log_path.write_text("\n".join(lines) + "\n")


class TestRegistryLedger:
    def test_empty_ledger_is_valid(self, ledger: RegistryLedger) -> None:
        assert ledger.verify_chain()
        assert ledger.length == 0
        assert ledger.last_hash == RegistryLedger.genesis_hash()
        assert ledger.transactions() == []

    def test_append_chains_hashes(self, ledger: RegistryLedger) -> None:
        first = ledger.append(LedgerAction.REGISTER, 1, ALICE, {"location": "A"})
        second = ledger.append(LedgerAction.TRANSFER, 1, ALICE, {"to_owner": BOB})

        assert first.previous_hash == RegistryLedger.genesis_hash()
        assert second.previous_hash == first.entry_hash
        assert ledger.last_hash == second.entry_hash
        assert first.transaction.sequence == 1
        assert second.transaction.sequence == 2
        assert ledger.length == 2
        assert ledger.verify_chain()

    def test_one_jsonl_line_per_entry(self, ledger: RegistryLedger) -> None:
        ledger.append(LedgerAction.REGISTER, 1, ALICE)
        ledger.append(LedgerAction.REGISTER, 2, BOB)
        lines = ledger.log_path.read_text().strip().splitlines()
        assert len(lines) == 2
        assert json.loads(lines[1])["transaction"]["actor"] == BOB

    def test_tampered_details_break_chain(self, ledger: RegistryLedger) -> None:
        ledger.append(LedgerAction.REGISTER, 1, ALICE, {"owner": ALICE})
        ledger.append(LedgerAction.REGISTER, 2, BOB, {"owner": BOB})

        def steal(data):
            data["transaction"]["details"]["owner"] = CAROL

        _rewrite_line(ledger, 0, steal)
        assert not ledger.verify_chain()

    def test_dropped_entry_breaks_chain(self, ledger: RegistryLedger) -> None:
        for parcel_id in (1, 2, 3):
            ledger.append(LedgerAction.REGISTER, parcel_id, ALICE)
        lines = ledger.log_path.read_text().splitlines()
        ledger.log_path.write_text("\n".join([lines[0], lines[2]]) + "\n")
        assert not ledger.verify_chain()

    def test_reopen_recovers_tail(self, ledger_config: LedgerConfig) -> None:
        ledger = RegistryLedger(config=ledger_config)
        ledger.append(LedgerAction.REGISTER, 1, ALICE)
        ledger.append(LedgerAction.TRANSFER, 1, ALICE)

        reopened = RegistryLedger(config=ledger_config)
        assert reopened.last_hash == ledger.last_hash
        assert reopened.length == 2

        entry = reopened.append(LedgerAction.REGISTER, 2, BOB)
        assert entry.transaction.sequence == 3
        assert reopened.verify_chain()

    def test_query_filters(self, ledger: RegistryLedger) -> None:
        ledger.append(LedgerAction.REGISTER, 1, ALICE)
        ledger.append(LedgerAction.REGISTER, 2, BOB)
        ledger.append(LedgerAction.TRANSFER, 2, BOB)

        assert len(ledger.query()) == 3
        assert [t.parcel_id for t in ledger.query({"action": "register"})] == [1, 2]
        assert [t.sequence for t in ledger.query({"actor": BOB})] == [2, 3]
        assert len(ledger.query({"parcel_id": 2, "action": "transfer"})) == 1

    def test_query_time_bounds(self, ledger: RegistryLedger) -> None:
        ledger.append(LedgerAction.REGISTER, 1, ALICE)
        past = (datetime.now(timezone.utc) - timedelta(hours=1)).isoformat()
        future = (datetime.now(timezone.utc) + timedelta(hours=1)).isoformat()

        assert len(ledger.query({"after": past})) == 1
        assert ledger.query({"after": future}) == []
        assert ledger.query({"before": past}) == []


class TestRegistryWithLedger:
    def test_writes_are_recorded(self, ledger: RegistryLedger) -> None:
        registry = ParcelRegistry(ledger=ledger)
        registry.register_land("Location A", 100, requester=ALICE)
        registry.transfer_land(1, BOB, requester=ALICE)

        transactions = ledger.transactions()
        assert [t.action for t in transactions] == [
            LedgerAction.REGISTER,
            LedgerAction.TRANSFER,
        ]
        assert transactions[0].details == {
            "location": "Location A",
            "size": 100.0,
            "owner": ALICE,
        }
        assert transactions[1].details == {"from_owner": ALICE, "to_owner": BOB}
        assert ledger.verify_chain()

    def test_rejected_writes_are_not_recorded(self, ledger: RegistryLedger) -> None:
        registry = ParcelRegistry(ledger=ledger)
        registry.register_land("Location A", 100, requester=ALICE)
        with pytest.raises(UnauthorizedTransferError):
            registry.transfer_land(1, CAROL, requester=BOB)
        with pytest.raises(ValueError):
            registry.register_land("", 100, requester=ALICE)
        assert ledger.length == 1

    def test_record_timestamps_match_ledger(self, ledger: RegistryLedger) -> None:
        registry = ParcelRegistry(ledger=ledger)
        registry.register_land("Location A", 100, requester=ALICE)
        assert registry.lands(1).registered_at == ledger.transactions()[0].timestamp

    def test_replay_rebuilds_state(self, ledger_config: LedgerConfig) -> None:
        original = ParcelRegistry(ledger=RegistryLedger(config=ledger_config))
        original.register_land("Location A", 100, requester=ALICE)
        original.register_land("Location B", 200, requester=BOB)
        original.transfer_land(2, CAROL, requester=BOB)

        rebuilt = ParcelRegistry.from_ledger(RegistryLedger(config=ledger_config))

        assert rebuilt.list_parcels() == original.list_parcels()
        assert rebuilt.history(2) == original.history(2)
        # Counter continues where the ledger left off
        assert rebuilt.register_land("Location C", 300, requester=ALICE) == 3
        assert rebuilt.ledger is not None
        assert rebuilt.ledger.verify_chain()

    def test_replay_of_tampered_ledger_fails(self, ledger: RegistryLedger) -> None:
        registry = ParcelRegistry(ledger=ledger)
        registry.register_land("Location A", 100, requester=ALICE)

        def steal(data):
            data["transaction"]["details"]["owner"] = CAROL

        _rewrite_line(ledger, 0, steal)
        with pytest.raises(LedgerIntegrityError, match="broken"):
            ParcelRegistry.from_ledger(ledger)

    def test_replay_rejects_transfer_of_unknown_parcel(self, ledger: RegistryLedger) -> None:
        # Chain is intact, but the history is not a valid registry history
        ledger.append(LedgerAction.TRANSFER, 5, ALICE, {"from_owner": ALICE, "to_owner": BOB})
        with pytest.raises(LedgerIntegrityError, match="unregistered"):
            ParcelRegistry.from_ledger(ledger)

    def test_fresh_registry_refuses_recorded_ledger(self, ledger: RegistryLedger) -> None:
        ParcelRegistry(ledger=ledger).register_land("Location A", 100, requester=ALICE)

        with pytest.raises(LedgerIntegrityError, match="from_ledger"):
            ParcelRegistry(ledger=ledger)
        assert ledger.length == 1

    def test_replay_rejects_registration_without_details(self, ledger: RegistryLedger) -> None:
        ledger.append(LedgerAction.REGISTER, 1, ALICE, {"location": "Location A"})
        with pytest.raises(LedgerIntegrityError, match="Malformed transaction"):
            ParcelRegistry.from_ledger(ledger)


class TestMalformedLedger:
    def _truncate_tail(self, ledger: RegistryLedger) -> None:
        with open(ledger.log_path, "a") as fh:
            fh.write('{"previous_hash": "x", "entry_ha')

    def test_reopen_with_truncated_line_raises(self, ledger_config: LedgerConfig) -> None:
        ledger = RegistryLedger(config=ledger_config)
        ledger.append(LedgerAction.REGISTER, 1, ALICE)
        ledger.append(LedgerAction.REGISTER, 2, BOB)
        self._truncate_tail(ledger)

        with pytest.raises(LedgerIntegrityError, match="line 3"):
            RegistryLedger(config=ledger_config)

    def test_truncated_line_fails_verification(self, ledger: RegistryLedger) -> None:
        registry = ParcelRegistry(ledger=ledger)
        registry.register_land("Location A", 100, requester=ALICE)
        self._truncate_tail(ledger)

        assert not ledger.verify_chain()
        with pytest.raises(LedgerIntegrityError, match="broken"):
            ParcelRegistry.from_ledger(ledger)

    def test_missing_fields_fail_verification(self, ledger: RegistryLedger) -> None:
        ledger.append(LedgerAction.REGISTER, 1, ALICE)

        def drop_hash(data):
            del data["entry_hash"]

        _rewrite_line(ledger, 0, drop_hash)
        assert not ledger.verify_chain()

    def test_unknown_action_fails_verification(self, ledger: RegistryLedger) -> None:
        ledger.append(LedgerAction.REGISTER, 1, ALICE)

        def mint(data):
            data["transaction"]["action"] = "mint"

        _rewrite_line(ledger, 0, mint)
        assert not ledger.verify_chain()
        with pytest.raises(LedgerIntegrityError):
            ledger.transactions()

    def test_tail_without_sequence_raises_on_reopen(
        self, ledger_config: LedgerConfig
    ) -> None:
        ledger = RegistryLedger(config=ledger_config)
        ledger.append(LedgerAction.REGISTER, 1, ALICE)

        def drop_sequence(data):
            del data["transaction"]["sequence"]

        _rewrite_line(ledger, 0, drop_sequence)
        with pytest.raises(LedgerIntegrityError, match="line 1"):
            RegistryLedger(config=ledger_config)
