"""
Database engine, session management, and base model class.

This module sets up SQLAlchemy 2.0 with async support. Key components:

  - build_engine(): creates the async engine for a given Settings
  - build_session_factory(): factory for AsyncSession instances
  - Base: declarative base class that all ORM models inherit from
  - get_db(): FastAPI dependency that provides a session per request

Nothing here is created at import time. The application factory builds the
engine from the Settings it is given and stores the session factory on
``app.state``, which is where get_db() finds it.

Session lifecycle:
  Each API request gets its own session via get_db() and therefore runs as
  ONE database transaction. A custody hand-off (balance decrement + custody
  row + notification) either commits as a whole or rolls back as a whole.
"""

import logging
from pathlib import Path

from fastapi import Request
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from exchange_desk.config import Settings

logger = logging.getLogger(__name__)


def build_engine(settings: Settings) -> AsyncEngine:
    """Create the async engine. echo=True in debug mode logs all SQL statements."""
    url = make_url(settings.DATABASE_URL)
    if url.get_backend_name() == "sqlite" and url.database not in (None, "", ":memory:"):
        # SQLite creates the file but not its directory
        Path(url.database).parent.mkdir(parents=True, exist_ok=True)
    return create_async_engine(settings.DATABASE_URL, echo=settings.DEBUG)


def build_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    # expire_on_commit=False prevents lazy-load errors after commit: without it,
    # touching an attribute on a committed object triggers a synchronous load.
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy ORM models."""
    pass


async def get_db(request: Request):
    """
    FastAPI dependency that provides a database session.

    Usage in a route:
        @router.get("/wallets")
        async def list_wallets(db: AsyncSession = Depends(get_db)):
            ...

    The session is committed when the request handler returns and rolled
    back on any exception, domain errors included, so a rejected operation
    never leaves half of its writes behind.
    """
    session_factory = request.app.state.session_factory
    async with session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            logger.debug("Rolling back request transaction")
            await session.rollback()
            raise
