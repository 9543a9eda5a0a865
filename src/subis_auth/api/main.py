"""
FastAPI application factory and configuration.

This module creates the FastAPI application instance,
configures exception handlers and lifespan events.
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from psycopg_pool import ConnectionPool

from subis_auth.adapters.repository import (
    InMemoryAccountRepository,
    PostgresAccountRepository,
    run_migrations,
)
from subis_auth.api.auth import router as auth_router
from subis_auth.api.models import ErrorResponse
from subis_auth.config.settings import get_settings
from subis_auth.domain.exceptions import StoreUnavailable

logger = logging.getLogger(__name__)

# OpenAPI tags for documentation grouping
tags_metadata = [
    {
        "name": "auth",
        "description": "Register, verify the email with a one-time code, and sign in",
    },
]


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    FastAPI lifespan context manager.

    Manages application startup and shutdown:
    - Loads settings, failing fast when JWT_SECRET is not set
    - Creates the account store (PostgreSQL pool or in-memory)
    - Runs migrations on startup
    - Closes connection pool on shutdown
    """
    settings = get_settings()

    logger.info("Starting application...")

    pool: ConnectionPool | None = None
    if settings.storage_backend == "postgres":
        logger.info("Connecting to database...")
        pool = ConnectionPool(
            conninfo=settings.database_url,
            min_size=settings.pool_min_size,
            max_size=settings.pool_max_size,
        )

        logger.info("Running database migrations...")
        run_migrations(pool)
        app.state.repository = PostgresAccountRepository(pool)
    else:
        logger.warning("Using in-memory account store; accounts are lost on restart")
        app.state.repository = InMemoryAccountRepository()

    logger.info("Application startup complete")

    yield

    # Shutdown
    logger.info("Shutting down application...")
    if pool is not None:
        pool.close()
        logger.info("Database connection pool closed")


async def store_unavailable_handler(request: Request, exc: StoreUnavailable) -> JSONResponse:
    """Report store faults as a generic 503 without internal details."""
    logger.error("Store fault on %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content=ErrorResponse(message="Service unavailable").model_dump(),
    )


app = FastAPI(
    title="subis-auth",
    description="OTP-gated registration and sign-in API",
    version="0.1.0",
    openapi_tags=tags_metadata,
    lifespan=lifespan,
)

app.add_exception_handler(StoreUnavailable, store_unavailable_handler)

# Include auth routes
app.include_router(auth_router, prefix="/auth")


@app.get("/health")
async def health_check(request: Request) -> dict[str, str]:
    """
    Health check endpoint with store validation.

    Returns 200 OK if application and account store are healthy,
    503 if the store cannot be reached.
    """
    request.app.state.repository.ping()
    return {"status": "healthy"}
