"""Authentication middleware and dependencies."""

from __future__ import annotations

from fastapi import Depends, HTTPException, Request
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response


class AuthMiddleware(BaseHTTPMiddleware):
    """Middleware that resolves a Bearer token to ``request.state.party_id``."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        request.state.party_id = None

        auth_header = request.headers.get("Authorization", "")
        if auth_header.startswith("Bearer "):
            token = auth_header[7:]
            provider = getattr(request.app.state, "auth_provider", None)
            if provider is not None:
                validation = provider.validate_token(token)
                if validation.valid:
                    request.state.party_id = validation.party_id

        return await call_next(request)


def require_party():
    """FastAPI dependency returning the authenticated caller's party id."""

    def dependency(request: Request) -> str:
        party_id = getattr(request.state, "party_id", None)
        if not party_id:
            raise HTTPException(
                status_code=401,
                detail="A valid bearer token is required",
                headers={"WWW-Authenticate": "Bearer"},
            )
        return party_id

    return Depends(dependency)
