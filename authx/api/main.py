"""
FastAPI application factory and configuration.

This module creates the FastAPI application instance,
configures middleware and lifespan events.
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from authx.adapters.repository.bootstrap import connect_with_retries
from authx.adapters.repository.migrator import run_migrations
from authx.api.v1 import router as v1_router
from authx.config.logs import setup_logging
from authx.config.settings import get_settings

logger = logging.getLogger(__name__)

# OpenAPI tags for documentation grouping
tags_metadata = [
    {
        "name": "user",
        "description": "User account API v1 - Register, log in and fetch profiles",
    },
]


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    FastAPI lifespan context manager.

    Manages application startup and shutdown:
    - Connects to the database with retries (startup fails if it cannot)
    - Runs migrations on startup
    - Closes connection pool on shutdown
    """
    settings = get_settings()
    setup_logging(settings.env, settings.log_level)

    logger.info("Starting application...")
    logger.info("Connecting to database...")

    pool = connect_with_retries(settings)

    if settings.run_migrations_on_startup:
        logger.info("Running database migrations...")
        run_migrations(pool)

    # Store pool in app state for dependency injection
    app.state.pool = pool

    logger.info("Application startup complete")

    yield

    # Shutdown
    logger.info("Shutting down application...")
    pool.close()
    logger.info("Database connection pool closed")


app = FastAPI(
    title="authx",
    description="User account service - registration, login and profile lookup",
    version="0.1.0",
    openapi_tags=tags_metadata,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=get_settings().cors_allowed_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PATCH", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
)

# Include v1 API routes
app.include_router(v1_router, prefix="/v1")


@app.get("/health")
def health_check(request: Request) -> dict[str, str]:
    """
    Health check endpoint with database validation.

    Returns 200 OK if application and database are healthy.
    Raises exception if database connection fails.
    """
    pool = request.app.state.pool
    with pool.connection() as conn:
        conn.execute("SELECT 1")

    return {"status": "healthy"}
