"""Hash-chained transaction ledger."""

from land_registry.ledger.chain import RegistryLedger
from land_registry.ledger.models import LedgerAction, LedgerEntry, LedgerTransaction

__all__ = ["LedgerAction", "LedgerEntry", "LedgerTransaction", "RegistryLedger"]
