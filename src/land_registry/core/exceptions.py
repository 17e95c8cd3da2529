"""Exception hierarchy for the land registry.

Input and lookup errors also derive from ValueError and KeyError so
generic handlers keep working.
"""

from __future__ import annotations

from typing import Any


class RegistryError(Exception):
    """Base exception for all registry errors."""

    def __init__(self, message: str, *, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            details_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{self.message} ({details_str})"
        return self.message

    def to_dict(self) -> dict[str, Any]:
        """Convert to a dict suitable for an API error body."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "details": self.details,
        }


class InvalidInputError(RegistryError, ValueError):
    """Rejected input: empty location, bad size, or empty party identity."""


class ParcelNotFoundError(RegistryError, KeyError):
    """Lookup or transfer referencing an unknown parcel id."""

    def __init__(self, parcel_id: int) -> None:
        super().__init__(
            f"Parcel {parcel_id} not found", details={"parcel_id": parcel_id}
        )
        self.parcel_id = parcel_id


class UnauthorizedTransferError(RegistryError):
    """Transfer attempted by a party that does not own the parcel."""

    def __init__(self, parcel_id: int, requester: str) -> None:
        super().__init__(
            f"{requester!r} is not the owner of parcel {parcel_id}",
            details={"parcel_id": parcel_id, "requester": requester},
        )
        self.parcel_id = parcel_id
        self.requester = requester


class LedgerIntegrityError(RegistryError):
    """The ledger cannot be read, verified or replayed into a registry."""
