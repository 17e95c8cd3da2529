"""FastAPI application for the land registry.

Provides REST endpoints for parcel registration and transfer, the ledger,
token authentication, and health checks.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from land_registry import __version__
from land_registry.auth.middleware import AuthMiddleware
from land_registry.auth.provider import AuthProvider, MockAuthProvider
from land_registry.core.config import Settings
from land_registry.db.engine import DatabaseManager
from land_registry.ledger.chain import RegistryLedger
from land_registry.registry.store import ParcelRegistry
from land_registry.repositories import resolve
from land_registry.repositories.postgres.parcels import PostgresParcelRepository
from land_registry.repositories.protocols import ParcelRepository
from land_registry.web.auth_router import router as auth_router
from land_registry.web.parcel_router import router as parcel_router

logger = logging.getLogger(__name__)


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    service: str
    version: str = __version__
    parcel_count: int
    ledger_length: int | None = None


def create_app(
    settings: Settings | None = None,
    registry: ParcelRepository | None = None,
    ledger: RegistryLedger | None = None,
    auth_provider: AuthProvider | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Uses the factory pattern so tests can create isolated app instances
    with their own registry and ledger.

    Args:
        settings: Application settings. Defaults to Settings().
        registry: Optional pre-built parcel repository. When omitted, a
            Postgres repository is used if ``settings.db.database_url`` is
            set, otherwise an in-memory registry replayed from the ledger.
        ledger: Optional pre-built ledger. Defaults to the registry's ledger,
            or a new one at ``settings.ledger``.
        auth_provider: Optional pre-built auth provider.

    Returns:
        A configured FastAPI instance.
    """
    if settings is None:
        settings = Settings()

    logging.getLogger("land_registry").setLevel(settings.log_level.upper())

    app = FastAPI(
        title="Land Registry",
        description="Parcel registration and ownership transfer",
        version=__version__,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    if registry is not None:
        ledger = ledger or registry.ledger
    else:
        ledger = ledger or RegistryLedger(config=settings.ledger)
        if settings.db.database_url:
            db_manager = DatabaseManager.from_config(settings.db)
            app.state.db_manager = db_manager
            registry = PostgresParcelRepository(db_manager, ledger=ledger)
            logger.info("Using Postgres parcel repository")
        elif settings.ledger.replay_on_startup:
            registry = ParcelRegistry.from_ledger(ledger)
        else:
            registry = ParcelRegistry(ledger=ledger)

    if auth_provider is None:
        auth_provider = MockAuthProvider(
            fixtures_path=settings.auth.fixtures_path,
            token_expiry_minutes=settings.auth.token_expiry_minutes,
        )

    app.state.settings = settings
    app.state.registry = registry
    app.state.ledger = ledger
    app.state.auth_provider = auth_provider

    app.add_middleware(AuthMiddleware)

    app.include_router(auth_router)
    app.include_router(parcel_router)

    @app.get("/api/health", response_model=HealthResponse)
    async def health_check() -> HealthResponse:
        """Health check endpoint."""
        return HealthResponse(
            status="healthy",
            service="land-registry",
            parcel_count=await resolve(registry.parcel_count),
            ledger_length=ledger.length if ledger is not None else None,
        )

    return app
