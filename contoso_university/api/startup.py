"""
Startup work that runs once, inside the application lifespan, before the server
accepts requests: optional Alembic migrations, then schema creation and seeding
within a dedicated service scope.
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI

from contoso_university.db import seed
from contoso_university.db.run_migrations import main as run_alembic
from contoso_university.services.registry import ServiceRegistry

logger = logging.getLogger(__name__)

SEED_POLICY_LOG = "log"
SEED_POLICY_RAISE = "raise"


# PUBLIC_INTERFACE
async def create_db_if_not_exists(services: ServiceRegistry, *, policy: str = SEED_POLICY_LOG) -> bool:
    """
    Ensure the database exists and is seeded, using a short-lived service scope.

    Parameters:
      services: the application service registry
      policy: "log" to log failures and continue, "raise" to propagate them

    Returns:
      True when the database is ready, False when a failure was logged.
    """
    async with services.create_scope() as scope:
        try:
            if services.settings.RUN_MIGRATIONS_ON_STARTUP:
                logger.info("Running Alembic migrations: upgrade head")
                # env.py runs its own event loop, so keep it off this one.
                await asyncio.to_thread(
                    run_alembic, ["upgrade", "head"], services.settings.connection_string
                )
                logger.info("Migrations completed.")
            await seed.initialize(scope.school_context)
        except Exception:
            if policy == SEED_POLICY_RAISE:
                raise
            logger.exception("An error occurred creating the DB.")
            return False
    return True


# PUBLIC_INTERFACE
@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """
    Prepare the database before serving and release the engine on shutdown.

    Under the "raise" seeding policy a failure here aborts startup.
    """
    services: ServiceRegistry = app.state.services
    settings = services.settings
    if settings.SEED_ON_STARTUP:
        await create_db_if_not_exists(services, policy=settings.SEED_FAILURE_POLICY)
    logger.info(
        "Application started. Hosting environment: %s; Content root path: %s",
        settings.ENVIRONMENT,
        settings.CONTENT_ROOT,
    )
    try:
        yield
    finally:
        await services.dispose()
        logger.info("Application stopped.")
