from __future__ import annotations

import logging
import os

from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from sqlalchemy import text as sql_text

from quizflow.config import AppConfig, load_config
from quizflow.db.base import get_engine
from quizflow.db.migrations_runner import apply_migrations
from quizflow.errors import ValidationFailure
from quizflow.http.problem import (
    handle_http_exception,
    handle_request_validation_error,
    handle_unexpected_error,
    handle_validation_failure,
)
from quizflow.http.request_id import REQUEST_ID_HEADER, SESSION_HEADER, RequestIdMiddleware
from quizflow.logging_setup import configure_logging
from quizflow.logic.seed import seed_reference_data
from quizflow.routes import api_router
from quizflow.routes.questions import build_reference_cache

logger = logging.getLogger(__name__)

_TRUTHY = {"1", "true", "yes", "on"}


def _flag(name: str) -> bool:
    return os.getenv(name, "").strip().lower() in _TRUTHY


def _health() -> dict:
    try:
        with get_engine().connect() as conn:
            conn.execute(sql_text("SELECT 1"))
        return {"status": "ok", "db": True}
    except Exception as e:
        logger.error("health_db_check_failed", exc_info=True)
        return {"status": "degraded", "db": False, "reason": str(e)}


def create_app(config: AppConfig | None = None) -> FastAPI:
    configure_logging()
    cfg = config or load_config()

    app = FastAPI(title="Quizflow")
    app.state.config = cfg
    app.state.reference_cache = build_reference_cache()

    app.add_exception_handler(HTTPException, handle_http_exception)
    app.add_exception_handler(ValidationFailure, handle_validation_failure)
    app.add_exception_handler(RequestValidationError, handle_request_validation_error)
    app.add_exception_handler(Exception, handle_unexpected_error)

    app.add_middleware(RequestIdMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["Content-Type", REQUEST_ID_HEADER, SESSION_HEADER],
        expose_headers=["X-Cache", REQUEST_ID_HEADER, SESSION_HEADER],
    )

    # Apply migrations and seed reference data on startup when enabled
    @app.on_event("startup")
    def _bootstrap_database() -> None:
        if not _flag("AUTO_APPLY_MIGRATIONS"):
            logger.info("AUTO_APPLY_MIGRATIONS disabled; skipping migrations at startup")
            return
        engine = get_engine()
        try:
            applied = apply_migrations(engine)
        except Exception:
            logger.error("Failed to apply migrations at startup", exc_info=True)
            raise
        logger.info("startup_migrations_applied count=%s", len(applied))
        if _flag("AUTO_SEED"):
            seed_reference_data(engine)

    app.include_router(api_router, prefix="/api")
    app.mount(
        cfg.uploads.url_prefix.rstrip("/"),
        StaticFiles(directory=cfg.uploads.directory, check_dir=False),
        name="uploads",
    )

    @app.get("/health")
    def health():  # pragma: no cover - trivial
        return _health()

    return app


# Intentionally do not instantiate the app at import time to prevent side effects.
