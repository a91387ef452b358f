import logging
from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from blog.config import Settings, settings
from blog.database import Database
from blog.exception_handlers import register_exception_handlers
from blog.middleware.admin_gate import AdminGateMiddleware
from blog.middleware.logging import StructuredLoggingMiddleware, setup_structured_logging
from blog.routes import admin, auth, categories, comments, posts, users
from blog.services.user_service import ensure_default_roles
from blog.utils.session import SessionManager, create_session_manager

logger = logging.getLogger(__name__)


def create_app(
    app_settings: Settings = settings,
    database: Optional[Database] = None,
    sessions: Optional[SessionManager] = None,
) -> FastAPI:
    """
    Create the FastAPI application.

    A `database` or `sessions` passed in is used as-is and left open on
    shutdown; otherwise both are built from `app_settings` at startup.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Starting up the application...")
        if database is None:
            app.state.database = Database.from_settings(app_settings)
        if sessions is None:
            app.state.sessions = await create_session_manager(app_settings)

        if app_settings.debug:
            await app.state.database.create_all()
            logger.info("Database tables created (if not existing).")
        async with app.state.database.session_factory() as db:
            await ensure_default_roles(db)

        yield

        logger.info("Shutting down the application...")
        if sessions is None:
            await app.state.sessions.disconnect()
        if database is None:
            await app.state.database.dispose()

    app = FastAPI(
        title=app_settings.app_name,
        description="Blog platform API",
        debug=app_settings.debug,
        version=app_settings.app_version,
        lifespan=lifespan,
    )
    if database is not None:
        app.state.database = database
    if sessions is not None:
        app.state.sessions = sessions

    # Middleware; the last one added runs first
    app.add_middleware(AdminGateMiddleware, cookie_name=app_settings.session_cookie_name)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=app_settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(StructuredLoggingMiddleware)

    register_exception_handlers(app)

    # Include routers
    app.include_router(auth.router, prefix="/api/auth")
    app.include_router(posts.router, prefix="/api", tags=["Posts"])
    app.include_router(comments.router, prefix="/api")
    app.include_router(categories.router, prefix="/api")
    app.include_router(users.router, prefix="/api")
    app.include_router(admin.router, prefix="/api/admin")

    @app.get("/health", tags=["Root"])
    async def health():
        return {"status": "ok", "version": app_settings.app_version}

    if app_settings.debug:
        logger.info(f"Running in {app_settings.environment} mode")
        logging.getLogger("sqlalchemy.engine").setLevel(logging.INFO)  # Logs SQL statements
        logging.getLogger("sqlalchemy.pool").setLevel(logging.INFO)  # Logs connection pool checkouts

    return app


setup_structured_logging(log_level=settings.log_level, json_format=settings.log_json)
app = create_app()


if __name__ == "__main__":
    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=settings.debug)
