from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy import text
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from .config import async_database_url

logger = logging.getLogger(__name__)


class DatabaseContextFactory:
    """
    Factory for SchoolContext sessions bound to one relational backend.

    Construction performs no I/O: the AsyncEngine and session maker are created
    lazily on first use.
    """

    def __init__(self, connection_string: str, *, echo: bool = False) -> None:
        self.url = async_database_url(connection_string)
        self.echo = echo
        self._engine: Optional[AsyncEngine] = None
        self._session_maker: Optional[async_sessionmaker[AsyncSession]] = None

    def _ensure_engine_initialized(self) -> None:
        """
        Lazily initialize the AsyncEngine and session maker.
        """
        if self._engine is None:
            self._engine = create_async_engine(self.url, echo=self.echo, pool_pre_ping=True)
        if self._session_maker is None:
            self._session_maker = async_sessionmaker(
                bind=self._engine, expire_on_commit=False, autoflush=False, autocommit=False
            )

    @property
    def safe_url(self) -> str:
        """Database URL with the password masked, for logs."""
        return make_url(self.url).render_as_string(hide_password=True)

    @property
    def engine(self) -> AsyncEngine:
        """Return the AsyncEngine, creating it if needed."""
        self._ensure_engine_initialized()
        assert self._engine is not None
        return self._engine

    # PUBLIC_INTERFACE
    def create_context(self) -> AsyncSession:
        """Return a new AsyncSession. The caller owns it and must close it."""
        self._ensure_engine_initialized()
        assert self._session_maker is not None
        return self._session_maker()

    # PUBLIC_INTERFACE
    async def can_connect(self) -> bool:
        """Return True if a trivial query succeeds against the database."""
        try:
            async with self.engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
        except Exception:
            logger.warning("Database connectivity check failed", exc_info=True)
            return False
        return True

    async def dispose(self) -> None:
        """Dispose the engine's connection pool if it was created."""
        if self._engine is not None:
            await self._engine.dispose()
            self._engine = None
            self._session_maker = None
