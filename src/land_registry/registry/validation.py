"""Input checks shared by every parcel repository."""

from __future__ import annotations

import math
from numbers import Real
from typing import Any

from land_registry.core.exceptions import InvalidInputError

# Matches the width of the owner columns
MAX_PARTY_LENGTH = 128


def validate_location(location: Any) -> str:
    if not isinstance(location, str) or not location.strip():
        raise InvalidInputError(
            "Location must be a non-empty string", details={"location": location}
        )
    return location


def validate_size(size: Any) -> float:
    # bool is a Real subclass
    if isinstance(size, bool) or not isinstance(size, Real):
        raise InvalidInputError("Size must be a number", details={"size": size})
    if not math.isfinite(size) or size <= 0:
        raise InvalidInputError(
            "Size must be greater than 0", details={"size": size}
        )
    return float(size)


def validate_party(party: Any, field: str = "party") -> str:
    """Return a party identity, rejecting empty, overlong or non-string values."""
    if not isinstance(party, str) or not party.strip():
        raise InvalidInputError(
            f"{field} must be a non-empty identity", details={field: party}
        )
    if len(party) > MAX_PARTY_LENGTH:
        raise InvalidInputError(
            f"{field} must be at most {MAX_PARTY_LENGTH} characters",
            details={"length": len(party)},
        )
    return party
