"""
Playback FastAPI application.

Entry point for the API server.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import HTMLResponse, JSONResponse

from backend import db
from backend.config import settings, validate_settings
from backend.routes import auth_routes
from backend.routes import editor as editor_routes
from backend.routes import public as public_routes
from backend.services.editor import EditorSessionRegistry
from backend.services.r2 import r2_service
from engine.kernel.errors import EPKError, NotFound
from engine.kernel.postgres_store import PostgresDocumentStore
from engine.kernel.renderer import render_error_page, render_not_found
from engine.kernel.store import DocumentStore, MemoryDocumentStore

logger = logging.getLogger(__name__)

_JSON_PREFIXES = ("/api/", "/auth/")


async def build_store() -> DocumentStore:
    """
    Construct the configured document store.

    Raises:
        StoreUnavailable: misconfiguration
        OSError / asyncpg errors: the database could not be reached
    """
    validate_settings()
    if settings.STORE_BACKEND == "postgres":
        return PostgresDocumentStore(await db.init_pool())
    return MemoryDocumentStore()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for FastAPI application.

    Handles startup and shutdown logic:
    - Build the document store (a failure leaves it unset; requests then get 503)
    - Create the editor session registry
    - Close the database pool on shutdown
    """
    # Startup
    try:
        app.state.store = await build_store()
        logger.info("document store ready (%s)", settings.STORE_BACKEND)
    except Exception:
        logger.exception("document store unavailable")
        app.state.store = None

    app.state.binary_store = r2_service
    app.state.editor_sessions = EditorSessionRegistry(r2_service, settings.MAX_UPLOAD_BYTES)

    yield

    # Shutdown
    await db.close_pool()


app = FastAPI(
    title="Playback",
    docs_url=None,
    redoc_url=None,
    lifespan=lifespan,
)


@app.exception_handler(EPKError)
async def epk_error_handler(request: Request, exc: EPKError):
    """
    JSON for the editor and auth APIs; full HTML pages for public URLs.
    """
    if request.url.path.startswith(_JSON_PREFIXES):
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})

    if isinstance(exc, NotFound):
        public_id = request.path_params.get("public_id", "")
        return HTMLResponse(render_not_found(public_id), status_code=exc.status_code)
    return HTMLResponse(render_error_page(exc.message), status_code=exc.status_code)


@app.get("/health")
async def health(request: Request):
    """Health check endpoint for uptime monitoring."""
    store_ok = getattr(request.app.state, "store", None) is not None
    return {"status": "ok" if store_ok else "degraded", "store": settings.STORE_BACKEND}


# Register routes. Public profile URLs are a catch-all and go last.
app.include_router(auth_routes.router)
app.include_router(editor_routes.router)
app.include_router(public_routes.router)
