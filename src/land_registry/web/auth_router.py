"""FastAPI router for token login, validation, refresh and logout."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, HTTPException, Request
from pydantic import BaseModel

from land_registry.auth.models import AuthCredentials

router = APIRouter()


class AuthLoginRequest(BaseModel):
    username: str
    code: str


class AuthTokenRequest(BaseModel):
    token: str


def _get_provider(request: Request):
    provider = getattr(request.app.state, "auth_provider", None)
    if provider is None:
        raise HTTPException(status_code=503, detail="Auth provider not available")
    return provider


@router.post("/api/auth/login")
async def auth_login(body: AuthLoginRequest, request: Request) -> dict[str, Any]:
    """Authenticate and get a token."""
    provider = _get_provider(request)
    result = provider.authenticate(AuthCredentials(username=body.username, code=body.code))
    if not result.success:
        raise HTTPException(status_code=401, detail=result.error)
    return result.model_dump(exclude_none=False)


@router.post("/api/auth/validate")
async def auth_validate(body: AuthTokenRequest, request: Request) -> dict[str, Any]:
    provider = _get_provider(request)
    return provider.validate_token(body.token).model_dump(mode="json")


@router.post("/api/auth/refresh")
async def auth_refresh(body: AuthTokenRequest, request: Request) -> dict[str, Any]:
    provider = _get_provider(request)
    result = provider.refresh_token(body.token)
    if not result.success:
        raise HTTPException(status_code=401, detail=result.error)
    return result.model_dump(exclude_none=False)


@router.post("/api/auth/logout")
async def auth_logout(body: AuthTokenRequest, request: Request) -> dict[str, Any]:
    provider = _get_provider(request)
    return {"revoked": provider.revoke_token(body.token)}
