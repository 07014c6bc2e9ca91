"""
FastAPI Application Entry Point.

This is the main entry point for the notes web client. It serves the
HTML screens, the JSON API, and the health probes, and talks to the
managed backend on behalf of each browser.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from notebookweb.backend.api import health
from notebookweb.backend.api.pages import router as pages_router
from notebookweb.backend.api.v1 import router as api_v1_router
from notebookweb.backend.core.config import get_app_config
from notebookweb.backend.core.exception_handlers import register_exception_handlers
from notebookweb.backend.core.logging import get_logger, setup_logging
from notebookweb.backend.core.middleware import BrowserContextMiddleware, RequestContextMiddleware
from notebookweb.backend.core.startup_checks import run_startup_checks
from notebookweb.backend.services.browser import BrowserRegistry
from notebookweb.backend.supabase.client import SupabaseClient, create_supabase_client

logger = get_logger(__name__)

_app: FastAPI | None = None


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Logging and startup checks on the way up; browser contexts and the backend client on the way down."""
    app_config = get_app_config()
    setup_logging(level=app_config.logging.level)

    if app_config.features.security_startup_checks_enabled:
        run_startup_checks()

    logger.info(
        "Application starting",
        extra={
            "app_name": app_config.application.name,
            "env": app_config.application.environment,
            "backend_url": app_config.supabase.url,
        },
    )
    yield
    logger.info(
        "Application shutting down",
        extra={"browser_contexts": len(app.state.browsers)},
    )
    app.state.browsers.close()
    await app.state.backend.close()


def create_app(backend: SupabaseClient | None = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        backend: Backend client to use. Built from configuration when omitted.
    """
    app_config = get_app_config()
    app_settings = app_config.application
    docs_enabled = app_settings.docs_enabled

    app = FastAPI(
        title=app_settings.name,
        description=app_settings.description,
        version=app_settings.version,
        docs_url="/docs" if docs_enabled else None,
        redoc_url="/redoc" if docs_enabled else None,
        openapi_url="/openapi.json" if docs_enabled else None,
        lifespan=lifespan,
    )

    if backend is None:
        backend = create_supabase_client()

    app.state.backend = backend
    app.state.browsers = BrowserRegistry(
        backend,
        notes_table=app_config.supabase.notes_table,
        refresh_margin_seconds=app_config.supabase.auth.refresh_margin_seconds,
        idle_ttl_seconds=app_config.security.browser_context.idle_ttl_seconds,
        max_contexts=app_config.security.browser_context.max_contexts,
    )

    # Added last runs first: request context wraps the browser lookup
    app.add_middleware(BrowserContextMiddleware)
    app.add_middleware(RequestContextMiddleware)

    cors_origins = app_settings.cors.origins
    if cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=cors_origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    register_exception_handlers(app)

    app.include_router(health.router, tags=["health"])
    app.include_router(pages_router)

    if app_config.features.api_enabled:
        app.include_router(api_v1_router, prefix="/api/v1")

    return app


def get_app() -> FastAPI:
    """Application built on first use, so importing this module reads no configuration."""
    global _app
    if _app is None:
        _app = create_app()
    return _app


# For uvicorn: `uvicorn notebookweb.backend.main:app`
def __getattr__(name: str) -> FastAPI:
    """Support lazy access to `app` for uvicorn compatibility."""
    if name == "app":
        return get_app()
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
