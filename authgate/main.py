"""authgate: FastAPI application entry point."""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager

import aiosqlite
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from authgate.auth.middleware import AuthMiddleware, error_response
from authgate.auth.sessions import SessionStore, get_session_store
from authgate.config import settings
from authgate.db import database
from authgate.errors import AuthError

logging.basicConfig(level=getattr(logging, settings.log_level.upper(), logging.INFO))
logger = logging.getLogger(__name__)


async def _session_cleanup_loop(sessions: SessionStore, interval: float):
    """Background task: purge expired sessions every ``interval`` seconds."""
    while True:
        await asyncio.sleep(interval)
        try:
            deleted = await sessions.cleanup_expired()
            if deleted:
                logger.info("Session cleanup: removed %d expired sessions", deleted)
        except Exception:
            logger.exception("Session cleanup failed")


def create_app(
    db: aiosqlite.Connection | None = None,
    sessions: SessionStore | None = None,
) -> FastAPI:
    """Build the application.

    ``db`` and ``sessions`` may be injected (tests); otherwise the lifespan
    opens ``settings.database_path`` and builds the configured session store.
    Injected handles are left open on shutdown.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Starting authgate server...")
        owns_db = db is None
        app.state.db = db if db is not None else await database.connect(settings.database_path)
        app.state.sessions = sessions if sessions is not None else get_session_store(app.state.db)

        cleanup_task = asyncio.create_task(
            _session_cleanup_loop(app.state.sessions, settings.session_cleanup_interval_seconds)
        )
        logger.info("authgate server ready")
        yield

        cleanup_task.cancel()
        if owns_db:
            await database.close(app.state.db)
        logger.info("authgate server stopped")

    app = FastAPI(
        title="authgate",
        description="Email/password and GitHub login with server-side sessions",
        version="0.1.0",
        lifespan=lifespan,
    )
    # Lifespan is not run by every ASGI transport; expose injected handles immediately.
    app.state.db = db
    app.state.sessions = sessions

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origin_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(AuthMiddleware)

    @app.exception_handler(AuthError)
    async def handle_auth_error(request: Request, exc: AuthError):
        return error_response(exc)

    @app.exception_handler(Exception)
    async def handle_unexpected(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=500,
            content={"error": {"code": "INTERNAL_ERROR", "message": "Internal server error"}},
        )

    from authgate.api.auth import router as auth_router
    from authgate.api.protected import router as protected_router
    from authgate.auth.github_oauth import router as github_router

    app.include_router(auth_router)
    app.include_router(github_router)
    app.include_router(protected_router)

    @app.get("/health")
    async def health():
        return {"status": "ok", "service": "authgate", "version": "0.1.0"}

    return app


app = create_app()
