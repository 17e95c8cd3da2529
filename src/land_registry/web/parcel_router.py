"""FastAPI router for parcel registration, transfer, and ledger endpoints."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, HTTPException, Request
from pydantic import BaseModel, Field

from land_registry.auth.middleware import require_party
from land_registry.core.exceptions import (
    InvalidInputError,
    ParcelNotFoundError,
    RegistryError,
    UnauthorizedTransferError,
)
from land_registry.repositories import call

router = APIRouter()


# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------


class ParcelRegistrationRequest(BaseModel):
    """Request body for registering a parcel. The caller becomes the owner."""

    location: str
    size: float = Field(strict=True, allow_inf_nan=False)


class ParcelTransferRequest(BaseModel):
    """Request body for transferring a parcel to another party."""

    new_owner: str


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


_STATUS_BY_ERROR: dict[type[RegistryError], int] = {
    InvalidInputError: 400,
    UnauthorizedTransferError: 403,
    ParcelNotFoundError: 404,
}


def _http_error(exc: RegistryError) -> HTTPException:
    status = next(
        (code for cls, code in _STATUS_BY_ERROR.items() if isinstance(exc, cls)), 500
    )
    return HTTPException(status_code=status, detail=exc.to_dict())


def _get_registry(request: Request):
    registry = getattr(request.app.state, "registry", None)
    if registry is None:
        raise HTTPException(status_code=503, detail="Parcel registry not available")
    return registry


def _get_ledger(request: Request):
    ledger = getattr(request.app.state, "ledger", None)
    if ledger is None:
        raise HTTPException(status_code=503, detail="Ledger not available")
    return ledger


# ---------------------------------------------------------------------------
# Parcel routes
# ---------------------------------------------------------------------------


@router.post("/api/parcels", status_code=201)
async def register_parcel(
    body: ParcelRegistrationRequest,
    request: Request,
    party_id: str = require_party(),
) -> dict[str, Any]:
    """Register a parcel owned by the calling party."""
    registry = _get_registry(request)
    try:
        parcel_id = await call(
            registry.register_land, body.location, body.size, requester=party_id
        )
        parcel = await call(registry.lands, parcel_id)
    except RegistryError as exc:
        raise _http_error(exc)
    return parcel.model_dump(mode="json")


@router.get("/api/parcels")
async def list_parcels(request: Request, owner: str | None = None) -> list[dict[str, Any]]:
    """List parcels, optionally only those held by ``owner``."""
    registry = _get_registry(request)
    if owner:
        parcels = await call(registry.list_by_owner, owner)
    else:
        parcels = await call(registry.list_parcels)
    return [p.model_dump(mode="json") for p in parcels]


@router.get("/api/parcels/{parcel_id}")
async def get_parcel(parcel_id: int, request: Request) -> dict[str, Any]:
    """Look up a parcel by id."""
    registry = _get_registry(request)
    try:
        parcel = await call(registry.lands, parcel_id)
    except RegistryError as exc:
        raise _http_error(exc)
    return parcel.model_dump(mode="json")


@router.post("/api/parcels/{parcel_id}/transfer")
async def transfer_parcel(
    parcel_id: int,
    body: ParcelTransferRequest,
    request: Request,
    party_id: str = require_party(),
) -> dict[str, Any]:
    """Transfer a parcel owned by the calling party to ``new_owner``."""
    registry = _get_registry(request)
    try:
        await call(
            registry.transfer_land, parcel_id, body.new_owner, requester=party_id
        )
        parcel = await call(registry.lands, parcel_id)
    except RegistryError as exc:
        raise _http_error(exc)
    return parcel.model_dump(mode="json")


@router.get("/api/parcels/{parcel_id}/history")
async def get_parcel_history(parcel_id: int, request: Request) -> list[dict[str, Any]]:
    """Chain of title for a parcel, oldest first."""
    registry = _get_registry(request)
    try:
        links = await call(registry.history, parcel_id)
    except RegistryError as exc:
        raise _http_error(exc)
    return [link.model_dump(mode="json") for link in links]


# ---------------------------------------------------------------------------
# Ledger routes
# ---------------------------------------------------------------------------


@router.get("/api/ledger/transactions")
async def list_ledger_transactions(
    request: Request,
    action: str | None = None,
    actor: str | None = None,
    parcel_id: int | None = None,
) -> list[dict[str, Any]]:
    """Query ledger transactions."""
    ledger = _get_ledger(request)
    filters: dict[str, Any] = {}
    if action:
        filters["action"] = action
    if actor:
        filters["actor"] = actor
    if parcel_id is not None:
        filters["parcel_id"] = parcel_id
    transactions = await call(ledger.query, filters)
    return [tx.model_dump(mode="json") for tx in transactions]


@router.get("/api/ledger/verify")
async def verify_ledger(request: Request) -> dict[str, Any]:
    """Verify the ledger hash chain."""
    ledger = _get_ledger(request)
    valid = await call(ledger.verify_chain)
    return {
        "valid": valid,
        "length": ledger.length,
        "last_hash": ledger.last_hash,
    }
