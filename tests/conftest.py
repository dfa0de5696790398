from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Callable, Dict, Iterator

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from contoso_university.api.main import DEFAULT_CONTROLLERS, create_app
from contoso_university.core.settings import AppSettings, load_settings

# Environment variables that would leak into load_settings() from the shell.
_SETTINGS_ENV = (
    "ENVIRONMENT",
    "CONTENT_ROOT",
    "ConnectionStrings__DefaultConnection",
    "SEED_ON_STARTUP",
    "SEED_FAILURE_POLICY",
    "RUN_MIGRATIONS_ON_STARTUP",
    "HTTPS_PORT",
    "HSTS_MAX_AGE",
    "ALLOWED_HOSTS",
    "LOG_LEVEL",
    "WEB_ROOT",
    "SQL_ECHO",
)


def write_json(path: Path, data: Dict[str, Any]) -> Path:
    path.write_text(json.dumps(data), encoding="utf-8")
    return path


@pytest.fixture(autouse=True)
def _isolated_environment(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    for name in _SETTINGS_ENV:
        monkeypatch.delenv(name, raising=False)
    # Relative paths (the default sqlite URL, CONTENT_ROOT fallback) stay inside tmp_path.
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def database_url(tmp_path: Path) -> str:
    return f"sqlite:///{tmp_path / 'school.db'}"


@pytest.fixture
def content_root(tmp_path: Path, database_url: str) -> Path:
    write_json(
        tmp_path / "appsettings.json",
        {
            "ConnectionStrings": {"DefaultConnection": database_url},
            "Logging": {"LogLevel": {"Default": "Information"}},
            "AllowedHosts": "*",
        },
    )
    return tmp_path


@pytest.fixture
def make_settings(content_root: Path) -> Callable[..., AppSettings]:
    def _make(environment: str = "Development", **overrides: Any) -> AppSettings:
        settings = load_settings(content_root, environment=environment)
        return settings.model_copy(update=overrides) if overrides else settings

    return _make


@pytest.fixture
def make_app(make_settings: Callable[..., AppSettings]) -> Callable[..., FastAPI]:
    def _make(environment: str = "Development", controllers=None, **overrides: Any) -> FastAPI:
        settings = make_settings(environment, **overrides)
        return create_app(settings, controllers=controllers or DEFAULT_CONTROLLERS)

    return _make


@pytest.fixture
def client(make_app: Callable[..., FastAPI]) -> Iterator[TestClient]:
    with TestClient(make_app()) as c:
        yield c
