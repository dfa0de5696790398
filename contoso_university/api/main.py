from __future__ import annotations

import logging
from typing import Iterable, Optional, Type

from fastapi import APIRouter, FastAPI

from contoso_university.api.routes.health import router as health_router
from contoso_university.api.startup import lifespan
from contoso_university.core.logging import configure_logging
from contoso_university.core.settings import AppSettings, load_settings
from contoso_university.services.registry import ServiceRegistry
from contoso_university.web.controllers import Controller, HomeController, StudentsController
from contoso_university.web.endpoint import router as controller_router
from contoso_university.web.pipeline import configure_pipeline

logger = logging.getLogger(__name__)

DEFAULT_ROUTE_NAME = "default"
DEFAULT_ROUTE_TEMPLATE = "{controller=Home}/{action=Index}/{id?}"
DEFAULT_CONTROLLERS: tuple[Type[Controller], ...] = (HomeController, StudentsController)

openapi_tags = [
    {"name": "Health", "description": "Liveness and readiness probes."},
]


# PUBLIC_INTERFACE
def create_app(
    settings: Optional[AppSettings] = None,
    *,
    controllers: Optional[Iterable[Type[Controller]]] = None,
) -> FastAPI:
    """
    Build the Contoso University application.

    Steps, in order:
      1. load configuration (appsettings.json + environment)
      2. register the SchoolContext factory (no I/O)
      3. register controllers and views
      4. create the app, install the pipeline and map the default route

    Database creation and seeding run in the lifespan, before requests are served.

    Raises:
      ConfigurationError: when configuration is missing or malformed.
    """
    settings = settings or load_settings()
    configure_logging(settings.log_level)

    services = ServiceRegistry(settings)
    services.add_db_context()
    services.add_controllers_with_views(controllers or DEFAULT_CONTROLLERS)

    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        debug=settings.is_development,
        openapi_tags=openapi_tags,
        lifespan=lifespan,
    )
    app.state.services = services

    configure_pipeline(app, settings)

    api_v1 = APIRouter(prefix="/api/v1")
    api_v1.include_router(health_router)
    app.include_router(api_v1)

    services.map_controller_route(DEFAULT_ROUTE_NAME, DEFAULT_ROUTE_TEMPLATE)
    # Catch-all; must stay the last router.
    app.include_router(controller_router)

    logger.debug("Application built for environment %s", settings.ENVIRONMENT)
    return app
