from __future__ import annotations

from pathlib import Path

from fastapi.templating import Jinja2Templates

from contoso_university.web.routing import RouteTable

TEMPLATES_DIR = Path(__file__).resolve().parent / "templates"
WWWROOT_DIR = Path(__file__).resolve().parent / "wwwroot"


def _static_url(path: str) -> str:
    return "/" + path.lstrip("/")


# PUBLIC_INTERFACE
def create_view_engine(route_table: RouteTable, *, app_name: str = "Contoso University") -> Jinja2Templates:
    """
    Return the Jinja2 view engine used by controllers.

    Templates get ``url_action(action, controller, **values)`` for links,
    ``static_url(path)`` for files under the web root and ``app_name``.
    """
    templates = Jinja2Templates(directory=str(TEMPLATES_DIR))
    templates.env.globals["url_action"] = route_table.url_for
    templates.env.globals["static_url"] = _static_url
    templates.env.globals["app_name"] = app_name
    return templates
