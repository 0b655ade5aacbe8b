"""Functional test bootstrap.

Apps are built from explicit ``AppConfig`` objects so tests never depend on
the caller's environment. SQL-backed tests use a private in-memory SQLite
engine with migrations applied per test.
"""

from __future__ import annotations

from typing import Callable, Iterator

import pytest
from fastapi.testclient import TestClient

from survey_stepper.config import AppConfig
from survey_stepper.db.base import build_engine
from survey_stepper.db.migrations_runner import apply_migrations
from survey_stepper.logic.events import get_buffered_events
from survey_stepper.logic.repository_sessions import SqlSessionStore
from survey_stepper.logic.session_service import SurveySessionService
from survey_stepper.logic.storage import InMemorySessionStore
from survey_stepper.main import create_app


@pytest.fixture(autouse=True)
def clear_events() -> Iterator[None]:
    get_buffered_events(clear=True)
    yield
    get_buffered_events(clear=True)


@pytest.fixture
def app_client_factory() -> Callable[..., TestClient]:
    def factory(config: AppConfig | None = None, store=None) -> TestClient:
        return TestClient(create_app(config or AppConfig(), store=store))

    return factory


@pytest.fixture
def client(app_client_factory) -> TestClient:
    return app_client_factory()


@pytest.fixture
def service() -> SurveySessionService:
    return SurveySessionService(InMemorySessionStore())


@pytest.fixture
def sql_engine():
    engine = build_engine("sqlite+pysqlite:///:memory:")
    apply_migrations(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def sql_store(sql_engine) -> SqlSessionStore:
    return SqlSessionStore(sql_engine)
