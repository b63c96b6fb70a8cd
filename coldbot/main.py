"""
FastAPI application bootstrap with: \n
- Lifespan-managed table creation (when CREATE_TABLES is set) \n
- Shared services on `app.state`: settings, admin allow-list, session provider, rate limiter, prediction client \n
- Request gate in front of every page route \n
- CORS configured for the frontend \n
- Static file serving for the built frontend \n
- Catch-all route to support client-side routing \n

Run with ``uvicorn coldbot.main:app``.

Environment contract (from `settings`): \n
- FRONTEND_URL: allowed CORS origin. \n
- FRONTEND_DIST: directory of the built frontend (index.html + assets/). \n
- ADMIN_EMAILS: admin allow-list, parsed once here. \n
"""

import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, RedirectResponse
from fastapi.staticfiles import StaticFiles

from coldbot.api.fast_api import router
from coldbot.api.gate import GatePolicy, RequestGateMiddleware
from coldbot.api.prediction_client import PredictionClient
from coldbot.api.rate_limit import InMemoryRateLimiter
from coldbot.auth.admin import parse_admin_emails
from coldbot.auth.session_provider import SessionProvider
from coldbot.database.config.config import Settings, settings
from coldbot.database.config.connection_engine import connection_engine, metadata
import coldbot.database.entities  # noqa: F401  registers the tables on `metadata`

logger = logging.getLogger("uvicorn")
"""Logger instance for capturing and emitting Uvicorn server logs."""


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    App lifespan manager.

    Notes
    -----
    - On startup: creates missing tables when CREATE_TABLES is set
      (development; production schemas are managed by migrations).
    - On shutdown: disposes of the connection pool.
    """
    if app.state.settings.CREATE_TABLES:
        logger.info("Creating missing database tables")
        metadata.create_all(connection_engine)
    try:
        yield
    finally:
        connection_engine.dispose()
        logger.info("App shutting down")


def create_app(app_settings: Settings = settings) -> FastAPI:
    """
    Build the FastAPI application.

    Parameters
    ----------
    app_settings : Settings
        Configuration; defaults to the environment-loaded singleton.

    Returns
    -------
    FastAPI
        The configured application.
    """
    logger.setLevel(app_settings.LOG_LEVEL.upper())

    app = FastAPI(title="ColdBot", lifespan=lifespan)
    app.state.settings = app_settings
    app.state.admin_emails = parse_admin_emails(app_settings.ADMIN_EMAILS)
    app.state.session_provider = SessionProvider(
        cache_seconds=app_settings.SESSION_CACHE_SECONDS,
        app_settings=app_settings,
    )
    app.state.rate_limiter = InMemoryRateLimiter(
        limit=app_settings.RATE_LIMIT_REQUESTS,
        window_seconds=app_settings.RATE_LIMIT_INTERVAL,
    )
    app.state.prediction_client = PredictionClient.from_settings(app_settings)

    # -----------------------
    # Request gate, then CORS (outermost)
    # -----------------------
    app.add_middleware(
        RequestGateMiddleware,
        policy=GatePolicy(admin_emails=app.state.admin_emails),
        session_provider=app.state.session_provider,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[app_settings.FRONTEND_URL],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # -----------------------
    # API routes
    # -----------------------
    app.include_router(router)

    # -----------------------
    # Static assets (built frontend)
    # -----------------------
    dist = app_settings.FRONTEND_DIST
    assets = os.path.join(dist, "assets")
    if os.path.isdir(assets):
        app.mount("/assets", StaticFiles(directory=assets), name="static")
    else:
        logger.warning(f"Frontend assets not found at {assets}; static files are not served")

    @app.get("/home", include_in_schema=False)
    async def home_redirect():
        return RedirectResponse("/", status_code=308)

    # Catch-all route for client-side routing (must come after mounting static)
    @app.get("/", include_in_schema=False)
    @app.get("/{full_path:path}", include_in_schema=False)
    async def serve_frontend(full_path: str = ""):
        """
        Serve the frontend's index.html for all non-API routes to support client-side routing.
        """
        index = os.path.join(dist, "index.html")
        if full_path.startswith("api/") or not os.path.isfile(index):
            raise HTTPException(status_code=404, detail="Not Found")
        return FileResponse(index)

    return app


app = create_app()
"""ASGI application served by uvicorn."""
