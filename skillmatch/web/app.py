"""FastAPI application factory."""

import logging
import os
from typing import Callable, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import HTTPException
from fastapi.responses import FileResponse, JSONResponse
from sqlalchemy.orm import Session
from starlette.middleware.sessions import SessionMiddleware

from skillmatch.config import AppConfig, load_config
from skillmatch.errors import ProfileEngineError, ValidationFailed
from skillmatch.models.base import build_engine, build_session_factory
from skillmatch.services.entries import EntriesService
from skillmatch.services.profile_service import ProfileService
from skillmatch.storage.artifacts import ArtifactStore, LocalArtifactStore, create_artifact_store
from skillmatch.utils.logging_config import setup_logging

from .auth import router as auth_router
from .entries import router as entries_router
from .profile import router as profile_router

logger = logging.getLogger("skillmatch.web")


def _error_body(message: str, errors: Optional[list] = None) -> dict:
    body = {"success": False, "error": message}
    if errors:
        body["errors"] = errors
    return body


def _config_from_environment() -> AppConfig:
    """Config for the server process: SKILLMATCH_CONFIG or ./config.yaml, else defaults."""
    path = os.environ.get("SKILLMATCH_CONFIG", "config.yaml")
    try:
        config = load_config(path)
        missing = False
    except FileNotFoundError:
        config = AppConfig()
        missing = True

    setup_logging(config.log_dir, config.log_level)
    if missing:
        logger.warning("Config file %s not found, using defaults", path)
    return config


def create_app(
    config: Optional[AppConfig] = None,
    session_factory: Optional[Callable[[], Session]] = None,
    store: Optional[ArtifactStore] = None,
) -> FastAPI:
    config = config or _config_from_environment()
    if session_factory is None:
        session_factory = build_session_factory(build_engine(config.database.url, config.database.echo))
    store = store or create_artifact_store(config.storage)

    app = FastAPI(title="SkillMatch Profiles")

    # Session middleware for cookie-based auth
    app.add_middleware(SessionMiddleware, secret_key=config.session_secret)

    app.state.config = config
    app.state.session_factory = session_factory
    app.state.store = store
    app.state.profile_service = ProfileService(session_factory, store, config.storage.limits)
    app.state.entries_service = EntriesService(session_factory)

    # Uploaded artifacts are served straight from the local store
    if isinstance(store, LocalArtifactStore):
        def download(name: str):
            path = store.path_for(f"{store.url_prefix}/{name}")
            if path is None:
                raise HTTPException(status_code=404, detail="File not found")
            return FileResponse(path)

        app.add_api_route(f"{store.url_prefix}/{{name}}", download, methods=["GET"], include_in_schema=False)

    @app.exception_handler(ProfileEngineError)
    async def profile_error_handler(request: Request, exc: ProfileEngineError):
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        errors = exc.errors if isinstance(exc, ValidationFailed) else None
        return JSONResponse(_error_body(exc.message, errors), status_code=exc.status_code)

    @app.exception_handler(HTTPException)
    async def http_error_handler(request: Request, exc: HTTPException):
        return JSONResponse(_error_body(str(exc.detail)), status_code=exc.status_code)

    app.include_router(auth_router)
    app.include_router(profile_router)
    app.include_router(entries_router)

    @app.get("/api/health")
    def health():
        return {"success": True, "data": {"status": "ok"}}

    return app
