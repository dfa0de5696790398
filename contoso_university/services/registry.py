from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Iterable, Optional, Type

from fastapi.templating import Jinja2Templates
from sqlalchemy.ext.asyncio import AsyncSession

from contoso_university.core.settings import AppSettings
from contoso_university.db.session import DatabaseContextFactory
from contoso_university.web.controllers.base import Controller, ControllerRegistry
from contoso_university.web.routing import RouteTable
from contoso_university.web.views import create_view_engine

logger = logging.getLogger(__name__)


class ServiceNotRegisteredError(LookupError):
    """Raised when resolving a service that was never registered."""


class ServiceScope:
    """
    Short-lived unit of service resolution (one request, or the startup seeding run).

    The SchoolContext session is opened on first access and closed by close().
    """

    def __init__(self, services: "ServiceRegistry") -> None:
        self.services = services
        self._school_context: Optional[AsyncSession] = None

    @property
    def school_context(self) -> AsyncSession:
        if self._school_context is None:
            self._school_context = self.services.db.create_context()
        return self._school_context

    async def close(self) -> None:
        if self._school_context is not None:
            session, self._school_context = self._school_context, None
            await session.close()


class ServiceRegistry:
    """
    Explicit application service registry.

    Holds the settings, the SchoolContext factory, the controller registry, the
    route table and the view engine. It lives on ``app.state.services`` and is
    passed to whatever needs it.
    """

    def __init__(self, settings: AppSettings) -> None:
        self.settings = settings
        self._db: Optional[DatabaseContextFactory] = None
        self._route_table: Optional[RouteTable] = None
        self._templates: Optional[Jinja2Templates] = None

    # Registration

    # PUBLIC_INTERFACE
    def add_db_context(self) -> DatabaseContextFactory:
        """
        Register the SchoolContext factory for the configured connection string.

        No connection is opened here.

        Raises:
            ConfigurationError: when the connection string is missing.
        """
        self._db = DatabaseContextFactory(
            self.settings.connection_string, echo=self.settings.SQL_ECHO
        )
        logger.debug("Registered SchoolContext for %s", self._db.safe_url)
        return self._db

    # PUBLIC_INTERFACE
    def add_controllers_with_views(self, controllers: Iterable[Type[Controller]]) -> ControllerRegistry:
        """Register controllers, the route table over them and the Jinja2 view engine."""
        registry = ControllerRegistry(controllers)
        self._route_table = RouteTable(registry)
        self._templates = create_view_engine(self._route_table, app_name=self.settings.APP_NAME)
        return registry

    # PUBLIC_INTERFACE
    def map_controller_route(self, name: str, template: str) -> None:
        """Add a conventional route to the route table."""
        self.route_table.map(name, template)

    # Resolution

    @property
    def db(self) -> DatabaseContextFactory:
        if self._db is None:
            raise ServiceNotRegisteredError("No service for type 'SchoolContext' has been registered.")
        return self._db

    @property
    def route_table(self) -> RouteTable:
        if self._route_table is None:
            raise ServiceNotRegisteredError("Controllers have not been registered.")
        return self._route_table

    @property
    def templates(self) -> Jinja2Templates:
        if self._templates is None:
            raise ServiceNotRegisteredError("Views have not been registered.")
        return self._templates

    # Lifetime

    # PUBLIC_INTERFACE
    @asynccontextmanager
    async def create_scope(self) -> AsyncGenerator[ServiceScope, None]:
        """
        Yield a ServiceScope and close it on exit, including when the body raises.

        Usage:
            async with services.create_scope() as scope:
                await do_work(scope.school_context)
        """
        scope = ServiceScope(self)
        try:
            yield scope
        finally:
            await scope.close()

    async def dispose(self) -> None:
        """Release the database engine on shutdown."""
        if self._db is not None:
            await self._db.dispose()
