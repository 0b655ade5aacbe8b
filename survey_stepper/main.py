from __future__ import annotations

import logging

from fastapi import FastAPI
from starlette.exceptions import HTTPException as StarletteHTTPException
from fastapi.exceptions import RequestValidationError

from survey_stepper.config import STORE_SQL, AppConfig, load_config
from survey_stepper.db.base import get_engine
from survey_stepper.db.migrations_runner import apply_migrations
from survey_stepper.http.problem import (
    handle_http_exception,
    handle_request_validation_error,
    handle_survey_session_error,
    handle_unexpected_error,
)
from survey_stepper.http.request_id import RequestIdMiddleware
from survey_stepper.logging_setup import configure_logging
from survey_stepper.logic.errors import SurveySessionError
from survey_stepper.logic.repository_sessions import SqlSessionStore
from survey_stepper.logic.session_service import SurveySessionService
from survey_stepper.logic.storage import InMemorySessionStore, SessionStore
from survey_stepper.middleware.cors import apply_cors
from survey_stepper.routes import api_router

logger = logging.getLogger(__name__)

APP_TITLE = "Survey Stepper API"
APP_VERSION = "1.0.0"


def build_session_store(config: AppConfig) -> SessionStore:
    """Build the configured session store, migrating the SQL schema if asked."""
    if config.storage.backend == STORE_SQL:
        engine = get_engine(config.database.dsn)
        if config.database.auto_migrate:
            applied = apply_migrations(engine)
            logger.info("session_store.migrations applied=%s", applied)
        return SqlSessionStore(engine)
    return InMemorySessionStore()


def create_app(config: AppConfig | None = None, store: SessionStore | None = None) -> FastAPI:
    configure_logging()
    cfg = config or load_config()
    session_store = store if store is not None else build_session_store(cfg)

    app = FastAPI(title=APP_TITLE, version=APP_VERSION)
    app.state.config = cfg
    app.state.session_store = session_store
    app.state.session_service = SurveySessionService(
        session_store,
        reset_scope=cfg.answers.reset_scope,
        enforce_step_validation=cfg.navigation.enforce_step_validation,
    )

    app.add_exception_handler(SurveySessionError, handle_survey_session_error)
    app.add_exception_handler(StarletteHTTPException, handle_http_exception)
    app.add_exception_handler(RequestValidationError, handle_request_validation_error)
    app.add_exception_handler(Exception, handle_unexpected_error)

    apply_cors(app, origins=cfg.cors.allowed_origins)
    app.add_middleware(RequestIdMiddleware)

    app.include_router(api_router)
    app.include_router(api_router, prefix="/api/v1", include_in_schema=False)

    @app.get("/health")
    def health():  # pragma: no cover - trivial
        return {"status": "ok", "store": getattr(session_store, "name", type(session_store).__name__)}

    logger.info(
        "app.created store=%s reset_scope=%s enforce_step_validation=%s require_if_match=%s",
        getattr(session_store, "name", type(session_store).__name__),
        cfg.answers.reset_scope,
        cfg.navigation.enforce_step_validation,
        cfg.concurrency.require_if_match,
    )
    return app


if __name__ == "__main__":  # pragma: no cover - manual run
    import uvicorn

    uvicorn.run("survey_stepper.main:create_app", factory=True, host="0.0.0.0", port=8000)
