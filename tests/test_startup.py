from __future__ import annotations

import logging

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from contoso_university.api.startup import create_db_if_not_exists
from contoso_university.db import seed
from contoso_university.repositories.students import StudentRepository
from contoso_university.services.registry import ServiceNotRegisteredError, ServiceRegistry, ServiceScope

DB_ERROR_MESSAGE = "An error occurred creating the DB."


async def test_create_db_if_not_exists_is_idempotent(make_settings):
    services = ServiceRegistry(make_settings())
    services.add_db_context()
    try:
        assert await create_db_if_not_exists(services) is True
        assert await create_db_if_not_exists(services) is True
        async with services.create_scope() as scope:
            assert await StudentRepository(scope.school_context).count() == len(seed.STUDENTS)
    finally:
        await services.dispose()


def test_restart_does_not_duplicate_seed_data(make_app):
    for _ in range(2):
        with TestClient(make_app()) as client:
            response = client.get("/Students")
    assert response.text.count("/Students/Details/") == len(seed.STUDENTS)


def test_seeding_failure_is_logged_and_startup_continues(make_app, monkeypatch, caplog):
    async def broken_initialize(session):
        raise RuntimeError("database unavailable")

    monkeypatch.setattr(seed, "initialize", broken_initialize)
    caplog.set_level(logging.INFO)

    with TestClient(make_app()) as client:
        assert client.get("/Home/Privacy").status_code == 200

    errors = [r for r in caplog.records if r.levelno == logging.ERROR and r.getMessage() == DB_ERROR_MESSAGE]
    assert len(errors) == 1
    assert errors[0].exc_info is not None


def test_seeding_failure_aborts_startup_under_raise_policy(make_app, monkeypatch):
    async def broken_initialize(session):
        raise RuntimeError("database unavailable")

    monkeypatch.setattr(seed, "initialize", broken_initialize)

    with pytest.raises(RuntimeError, match="database unavailable"):
        with TestClient(make_app(SEED_FAILURE_POLICY="raise")):
            pass


def test_seeding_can_be_disabled(make_app, monkeypatch):
    calls = []

    async def recording_initialize(session):
        calls.append(session)

    monkeypatch.setattr(seed, "initialize", recording_initialize)

    with TestClient(make_app(SEED_ON_STARTUP=False)) as client:
        client.get("/Home/Privacy")
    assert calls == []


def test_migrations_run_before_seeding(make_app):
    with TestClient(make_app(RUN_MIGRATIONS_ON_STARTUP=True)) as client:
        response = client.get("/Students/Details/1")
    assert response.status_code == 200
    assert "Chemistry" in response.text


def test_startup_logs_environment(make_app, caplog):
    caplog.set_level(logging.INFO)
    with TestClient(make_app("Production")):
        pass
    assert any("Hosting environment: Production" in r.getMessage() for r in caplog.records)


def test_unregistered_services_raise(make_settings):
    services = ServiceRegistry(make_settings())
    with pytest.raises(ServiceNotRegisteredError):
        services.db
    with pytest.raises(ServiceNotRegisteredError):
        services.route_table


@pytest.mark.parametrize("policy", ["log", "raise"])
async def test_seeding_scope_is_released_when_seeding_fails(make_settings, monkeypatch, policy):
    opened = []
    closed = []
    scope_closes = []

    async def failing_initialize(session):
        await session.execute(text("SELECT 1"))
        raise RuntimeError("seeding failed")

    original_close = AsyncSession.close
    original_scope_close = ServiceScope.close

    async def tracking_close(self):
        closed.append(self)
        await original_close(self)

    async def tracking_scope_close(self):
        scope_closes.append(self)
        await original_scope_close(self)

    monkeypatch.setattr(seed, "initialize", failing_initialize)
    monkeypatch.setattr(AsyncSession, "close", tracking_close)
    monkeypatch.setattr(ServiceScope, "close", tracking_scope_close)

    services = ServiceRegistry(make_settings())
    factory = services.add_db_context()
    original_create_context = factory.create_context

    def tracking_create_context():
        session = original_create_context()
        opened.append(session)
        return session

    monkeypatch.setattr(factory, "create_context", tracking_create_context)

    try:
        if policy == "raise":
            with pytest.raises(RuntimeError, match="seeding failed"):
                await create_db_if_not_exists(services, policy=policy)
        else:
            assert await create_db_if_not_exists(services, policy=policy) is False
    finally:
        await services.dispose()

    assert len(opened) == 1
    assert closed == opened
    assert len(scope_closes) == 1
    assert scope_closes[0]._school_context is None
