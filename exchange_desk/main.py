"""
FastAPI application factory and entry point.

create_app() builds and configures the application:
  1. Logging — one console handler at LOG_LEVEL
  2. Database — engine and session factory from the given Settings, kept on
     app.state (get_db reads the session factory from there)
  3. Lifespan — upgrades the schema to the Alembic head at startup, disposes the
     engine at shutdown
  4. CORS middleware — allows the browser front end's origins
  5. Exception handlers — maps domain errors to HTTP responses
  6. Router registration — mounts all API endpoint groups

Running locally:
    uvicorn exchange_desk.main:app --reload
"""

import logging
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from alembic.util import CommandError
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from exchange_desk.config import Settings, get_settings
from exchange_desk.database import build_engine, build_session_factory, get_db
from exchange_desk.exceptions import register_exception_handlers
from exchange_desk.logging_config import configure_logging
from exchange_desk.migrations import run_migrations
from exchange_desk.routers import (
    analysis,
    auth,
    currencies,
    custody,
    debts,
    notifications,
    transactions,
    users,
    wallets,
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Startup: bring the schema up to date. A database that can't be reached
    is logged and left to /health to report; the process still starts.

    Shutdown: dispose of the engine, closing all connections cleanly.
    """
    engine = app.state.engine
    try:
        applied = await run_migrations(engine)
        if applied:
            logger.info("Schema migrated: %s", ", ".join(applied))
    except (SQLAlchemyError, CommandError, OSError):
        logger.exception("Database unavailable at startup; migrations not applied")
    yield
    await engine.dispose()


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or get_settings()
    configure_logging(settings)

    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        description="Currency exchange desk: wallets, custody, trades, debts and notifications",
        lifespan=lifespan,
    )

    engine = build_engine(settings)
    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = build_session_factory(engine)

    # -----------------------------------------------------------------------
    # Middleware
    # -----------------------------------------------------------------------

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # -----------------------------------------------------------------------
    # Exception handlers
    # -----------------------------------------------------------------------

    register_exception_handlers(app)

    # -----------------------------------------------------------------------
    # Routers
    # -----------------------------------------------------------------------

    app.include_router(auth.router, prefix="/auth", tags=["Auth"])
    app.include_router(users.router, prefix="/users", tags=["Users"])
    app.include_router(users.roles_router, prefix="/roles", tags=["Roles"])
    app.include_router(wallets.router, prefix="/wallets", tags=["Wallets"])
    app.include_router(currencies.router, prefix="/currencies", tags=["Currencies"])
    app.include_router(currencies.rates_router, prefix="/exchange-rates", tags=["Exchange rates"])
    app.include_router(currencies.prices_router, prefix="/manager-prices", tags=["Manager prices"])
    app.include_router(custody.router, prefix="/custody", tags=["Custody"])
    app.include_router(notifications.router, prefix="/notifications", tags=["Notifications"])
    app.include_router(debts.router, prefix="/debts", tags=["Debts"])
    app.include_router(transactions.router, prefix="/transactions", tags=["Transactions"])
    app.include_router(analysis.router, prefix="/analysis", tags=["Analysis"])

    # -----------------------------------------------------------------------
    # Health check
    # -----------------------------------------------------------------------

    @app.get("/health", tags=["Health"])
    async def health_check(db: AsyncSession = Depends(get_db)):
        """
        Liveness plus database reachability. Answers 503 with
        ``database: unavailable`` when the database can't be queried, so
        the front end can show its connection-error screen.
        """
        try:
            await db.execute(text("SELECT 1"))
        except (SQLAlchemyError, OSError):
            logger.warning("Health check: database unavailable")
            await db.rollback()
            return JSONResponse(
                status_code=503,
                content={
                    "status": "degraded",
                    "database": "unavailable",
                    "version": settings.APP_VERSION,
                },
            )
        return {"status": "ok", "database": "ok", "version": settings.APP_VERSION}

    return app


app = create_app()
