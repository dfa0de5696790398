from __future__ import annotations

from datetime import date
from typing import Optional

from fastapi.responses import JSONResponse
from fastapi.testclient import TestClient

from contoso_university.api.main import DEFAULT_CONTROLLERS
from contoso_university.web.controllers import Controller, action
from contoso_university.web.endpoint import bind_arguments


class CalendarController(Controller):
    @action()
    async def since(self, when: Optional[date] = None, credits: Optional[float] = None):
        return JSONResponse(
            {
                "when": when.isoformat() if when else None,
                "when_type": type(when).__name__,
                "credits": credits,
                "credits_type": type(credits).__name__,
                "errors": self.model_errors,
            }
        )

    @action()
    async def flagged(self, id: Optional[int] = None, flag: bool = False):
        return JSONResponse({"id": id, "flag": flag, "errors": self.model_errors})


async def _handler(when: Optional[date] = None, credits: Optional[float] = None, flag: bool = False):
    return None


def test_bind_arguments_validates_annotations():
    kwargs, errors = bind_arguments(_handler, {}, {"when": "2024-09-01", "credits": "3.5", "flag": "on"})
    assert kwargs == {"when": date(2024, 9, 1), "credits": 3.5, "flag": True}
    assert errors == {}


def test_bind_arguments_prefers_route_values():
    kwargs, _ = bind_arguments(_handler, {"When": "2020-01-02"}, {"when": "2024-09-01"})
    assert kwargs["when"] == date(2020, 1, 2)


def test_bind_arguments_reports_invalid_values():
    kwargs, errors = bind_arguments(_handler, {}, {"flag": "maybe", "when": "not-a-date"})
    # Invalid values keep the declared defaults.
    assert "flag" not in kwargs
    assert "when" not in kwargs
    assert set(errors) == {"flag", "when"}
    assert "'maybe'" in errors["flag"][0]


def _client(make_app) -> TestClient:
    return TestClient(make_app(controllers=DEFAULT_CONTROLLERS + (CalendarController,)))


def test_query_values_bind_to_typed_parameters(make_app):
    with _client(make_app) as client:
        body = client.get("/Calendar/Since", params={"when": "2024-09-01", "credits": "3.5"}).json()
    assert body["when"] == "2024-09-01"
    assert body["when_type"] == "date"
    assert body["credits"] == 3.5
    assert body["credits_type"] == "float"
    assert body["errors"] == {}


def test_invalid_values_become_model_errors(make_app):
    with _client(make_app) as client:
        body = client.get("/Calendar/Flagged/abc", params={"flag": "maybe"}).json()
    assert body["id"] is None
    assert body["flag"] is False
    assert set(body["errors"]) == {"id", "flag"}
