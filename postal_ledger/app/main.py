"""
FastAPI Application Entry Point.

This is the main application file for the Postal Ledger Service.
"""

import logging
from contextlib import asynccontextmanager
from fastapi import Depends, FastAPI
from starlette.exceptions import HTTPException
from fastapi.exceptions import RequestValidationError
from postal_ledger.app.core.config import settings
from postal_ledger.app.core.redis_client import get_redis, ping_redis
from postal_ledger.app.core.observability import ObservabilityMiddleware, configure_logging
from postal_ledger.app.api.v1.router import router as api_v1_router
from postal_ledger.app.db.session import engine, Base, AsyncSessionLocal
from postal_ledger.app.core.exceptions import (
    AppException,
    app_exception_handler,
    http_exception_handler,
    validation_exception_handler,
    generic_exception_handler
)
from postal_ledger.app.services.event_hub import ChaincodeEvent, event_hub
from postal_ledger.app.services.identity_service import ensure_admin

# Import models to ensure they are registered with Base
from postal_ledger.app.models.identity import Identity
from postal_ledger.app.models.audit_log import AuditLog
from postal_ledger.app.models.world_state import WorldStateEntry
from postal_ledger.app.models.ledger_event import LedgerEvent

logger = logging.getLogger("postal_ledger")


def log_distribution(event: ChaincodeEvent) -> None:
    """Built-in listener: log every delivered parcel."""
    if event.event_name == "Distribution":
        data = event.json()
        logger.info("DISTRIBUTION EVENT: parcel %s: %s", data.get("id"), data.get("msg"))


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for application startup/shutdown.

    1. Creates database tables and the bootstrap admin on startup.
    2. Waits for in-flight event deliveries on shutdown.
    """
    configure_logging(settings.log_level)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    async with AsyncSessionLocal() as db:
        await ensure_admin(db)
    unsubscribe = event_hub.subscribe(log_distribution)
    logger.info("%s started with %s world state", settings.app_name, settings.state_backend)
    yield
    unsubscribe()
    await event_hub.drain()


# Initialize FastAPI application
app = FastAPI(
    title=settings.app_name,
    version=settings.api_version,
    debug=settings.debug,
    description="Parcel tracking ledger: create, transport, change status and query parcels",
    lifespan=lifespan,
)

app.add_middleware(ObservabilityMiddleware)

# Register global exception handlers
app.add_exception_handler(AppException, app_exception_handler)
app.add_exception_handler(HTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(Exception, generic_exception_handler)


@app.get("/health", tags=["Health"])
async def health_check(redis=Depends(get_redis)):
    """
    Health check endpoint.

    With the redis world state, also reports whether redis answers.

    Returns:
        dict: Status and application information
    """
    health = {
        "status": "healthy",
        "app_name": settings.app_name,
        "version": settings.api_version,
        "state_backend": settings.state_backend,
    }
    if settings.state_backend == "redis":
        health["redis"] = await ping_redis(redis)
        if not health["redis"]:
            health["status"] = "degraded"
    return health


# Include API v1 router
app.include_router(api_v1_router, prefix=f"/{settings.api_version}")


@app.get("/", tags=["Root"])
async def root():
    """
    Root endpoint.

    Returns:
        dict: Welcome message and API documentation links
    """
    return {
        "message": "Welcome to the Postal Ledger Service API",
        "docs": "/docs",
        "health": "/health",
    }
