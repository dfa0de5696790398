from __future__ import annotations

import logging

from fastapi.responses import Response

from contoso_university.repositories.students import StudentRepository
from contoso_university.schemas.common import ErrorViewModel
from .base import Controller, action

logger = logging.getLogger(__name__)


class HomeController(Controller):
    """Landing, about, privacy and error pages."""

    @action()
    async def index(self) -> Response:
        return self.view("index")

    @action()
    async def about(self) -> Response:
        groups = await StudentRepository(self.db).enrollment_date_groups()
        return self.view("about", groups)

    @action()
    async def privacy(self) -> Response:
        return self.view("privacy")

    @action()
    async def error(self) -> Response:
        model = ErrorViewModel(
            request_id=getattr(self.request.state, "correlation_id", None),
            original_path=getattr(self.request.state, "original_path", None),
        )
        response = self.view("shared/error.html", model)
        response.headers["Cache-Control"] = "no-store"
        return response
