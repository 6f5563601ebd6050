from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from logging.handlers import RotatingFileHandler
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, RedirectResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.responses import Response

from sparkmindz_core import __version__
from sparkmindz_core.api.models import fail
from sparkmindz_core.api.router import router as api_router
from sparkmindz_core.auth import PROTECTED_PAGE, LoginRequired, SessionGate, is_api_path
from sparkmindz_core.config import (
    CoreConfig,
    apply_env_overrides,
    ensure_session_secret,
    load_core_config,
    resolve_configured_paths,
)
from sparkmindz_core.home import ensure_sparkmindz_layout, resolve_sparkmindz_home
from sparkmindz_core.sessions import Clock, InMemorySessionStore, SessionStore, SessionStoreError
from sparkmindz_core.ui.router import STATIC_DIR as UI_STATIC_DIR
from sparkmindz_core.ui.router import render_not_found
from sparkmindz_core.ui.router import router as ui_router
from sparkmindz_core.ui.static_files import CachingStaticFiles

logger = logging.getLogger(__name__)

LOGIN_PATH = "/api/login"


def _configure_file_logging(config: CoreConfig, log_path: Path) -> None:
    file_handler = RotatingFileHandler(
        log_path,
        maxBytes=config.logging.max_size_mb * 1024 * 1024,
        backupCount=config.logging.backup_count,
        encoding="utf-8",
    )
    formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    file_handler.setFormatter(formatter)

    root = logging.getLogger()
    root.setLevel(logging.INFO)
    # Avoid adding duplicate handlers if reloaded
    if not any(isinstance(h, RotatingFileHandler) for h in root.handlers):
        root.addHandler(file_handler)


def create_app(
    *,
    session_store: SessionStore | None = None,
    clock: Clock | None = None,
    config: CoreConfig | None = None,
) -> FastAPI:
    """Build the application.

    Home and config are resolved once, here. ``config`` bypasses core.json and the
    environment entirely (callers supply a complete config, including the session
    secret). The store defaults to an in-memory one sharing ``clock``.
    """

    home = resolve_sparkmindz_home()
    paths = ensure_sparkmindz_layout(home)
    if config is None:
        cfg = apply_env_overrides(load_core_config(paths))
        paths = resolve_configured_paths(paths, cfg)
        cfg = ensure_session_secret(paths, cfg)
    else:
        cfg = config
        paths = resolve_configured_paths(paths, cfg)

    @asynccontextmanager
    async def _lifespan(app: FastAPI):
        _configure_file_logging(cfg, paths.logs_dir / "core.log")

        logger.info("SparkMindz Core starting up (%s)", cfg.environment)
        logger.info(f"Logs directory: {paths.logs_dir}")
        logger.info(f"Public directory: {paths.public_dir}")

        store = session_store if session_store is not None else InMemorySessionStore(clock)

        app.state.sparkmindz_home = home
        app.state.sparkmindz_paths = paths
        app.state.sparkmindz_config = cfg
        app.state.session_store = store
        app.state.session_gate = SessionGate.from_config(cfg, store, clock=clock)

        try:
            yield
        finally:
            logger.info("SparkMindz Core shutting down")

    app = FastAPI(title="SparkMindz Core", version=__version__, lifespan=_lifespan)

    @app.middleware("http")
    async def session_middleware(request: Request, call_next) -> Response:
        gate: SessionGate | None = getattr(request.app.state, "session_gate", None)
        if gate is None:
            return await call_next(request)

        try:
            gate.load(request)
        except SessionStoreError:
            logger.exception("Session store failed while loading session")
            return JSONResponse(status_code=500, content=fail("Session store unavailable"))

        response = await call_next(request)
        gate.commit(request, response)
        return response

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        response = await call_next(request)
        logger.info(f"{request.method} {request.url.path} - {response.status_code}")
        return response

    @app.exception_handler(LoginRequired)
    async def _login_required_handler(request: Request, exc: LoginRequired) -> Response:
        return RedirectResponse(url=exc.location, status_code=302)

    @app.exception_handler(SessionStoreError)
    async def _session_store_error_handler(
        request: Request, exc: SessionStoreError
    ) -> JSONResponse:
        logger.error("Session store failure on %s: %s", request.url.path, exc)
        return JSONResponse(status_code=500, content=fail("Session store unavailable"))

    @app.exception_handler(RequestValidationError)
    async def _validation_error_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        # A malformed login body is just another wrong password.
        if request.url.path == LOGIN_PATH:
            return JSONResponse(status_code=401, content=fail("Invalid credentials"))
        return JSONResponse(
            status_code=422,
            content=fail("Request validation failed", details=jsonable_encoder(exc.errors())),
        )

    @app.exception_handler(StarletteHTTPException)
    async def _http_exception_handler(
        request: Request, exc: StarletteHTTPException
    ) -> Response:
        if exc.status_code == 404:
            logger.info("404 - Route not found: %s", request.url.path)
            if not is_api_path(request.url.path):
                return render_not_found(request)
            return JSONResponse(status_code=404, content=fail("Not found"))

        message = exc.detail if isinstance(exc.detail, str) else "HTTP error"
        return JSONResponse(
            status_code=exc.status_code,
            content=fail(message),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def _unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
        # Avoid leaking internals to the client.
        logger.exception("Server error on %s %s", request.method, request.url.path)
        return JSONResponse(status_code=500, content=fail("Internal server error"))

    if cfg.cors.allow_origins:
        _install_cors(app, cfg.cors.allow_origins)

    app.include_router(api_router)

    if UI_STATIC_DIR.is_dir():
        app.mount(
            "/static",
            CachingStaticFiles(directory=str(UI_STATIC_DIR)),
            name="ui-static",
        )
    else:
        logger.warning(
            "UI static directory is missing (%s); /static will not be served",
            UI_STATIC_DIR,
        )
    app.include_router(ui_router)

    @app.get("/healthz")
    async def healthz() -> dict[str, str]:
        return {"status": "ok"}

    # Site content is served last so API and page routes always win.
    app.mount(
        "/",
        CachingStaticFiles(directory=str(paths.public_dir), html=True, exclude=(PROTECTED_PAGE,)),
        name="public",
    )

    return app


def _install_cors(app: FastAPI, origins: list[str]) -> None:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Origin", "X-Requested-With", "Content-Type", "Accept"],
    )
