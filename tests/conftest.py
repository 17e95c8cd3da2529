"""Shared test fixtures and helpers."""

from __future__ import annotations

from pathlib import Path

import pytest

from land_registry.core.config import LedgerConfig, Settings
from land_registry.ledger.chain import RegistryLedger

ALICE = "0x5B38Da6a701c568545dCfcB03FcB875f56beddC4"
BOB = "0xAb8483F64d9C6d1EcF9b849Ae677dD3315835cb2"
CAROL = "0x4B20993Bc481177ec7E8f571ceCaE8A9e22C02db"


@pytest.fixture
def ledger_config(tmp_path: Path) -> LedgerConfig:
    return LedgerConfig(log_dir=str(tmp_path / "ledger"))


@pytest.fixture
def ledger(ledger_config: LedgerConfig) -> RegistryLedger:
    return RegistryLedger(config=ledger_config)


@pytest.fixture
def settings(ledger_config: LedgerConfig) -> Settings:
    return Settings(ledger=ledger_config)


def auth_header(app, party_id: str) -> dict[str, str]:
    """Issue a token for ``party_id`` on the app's auth provider.

    Returns headers for use with TestClient requests.
    """
    token = app.state.auth_provider.issue_token(party_id)
    return {"Authorization": f"Bearer {token}"}
