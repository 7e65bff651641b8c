"""
Schema migrations, managed by Alembic.

Revision scripts live in ``migrations/versions`` beside ``alembic.ini`` at
the project root. A schema change is a new revision:

    alembic revision --autogenerate -m "add custody reference to debts"
    alembic upgrade head

Startup and the test fixtures call run_migrations(), which upgrades to head
over the application's own engine. The upgrade runs on a connection handed
to migrations/env.py, so an in-memory test database is migrated on the very
connection the tests then use.
"""

import logging
from pathlib import Path

from alembic import command
from alembic.config import Config
from alembic.runtime.migration import MigrationContext
from alembic.script import ScriptDirectory
from sqlalchemy.engine import Connection
from sqlalchemy.ext.asyncio import AsyncEngine

logger = logging.getLogger(__name__)

PROJECT_ROOT = Path(__file__).resolve().parent.parent


def alembic_config(connection: Connection | None = None) -> Config:
    """The project's Alembic config, optionally bound to an open connection."""
    config = Config(str(PROJECT_ROOT / "alembic.ini"))
    config.set_main_option("script_location", str(PROJECT_ROOT / "migrations"))
    if connection is not None:
        config.attributes["connection"] = connection
    return config


def _pending(connection: Connection) -> list[str]:
    script = ScriptDirectory.from_config(alembic_config())
    current = set(MigrationContext.configure(connection).get_current_heads())
    pending = []
    # Newest first, down to what the database already has
    for revision in script.walk_revisions():
        if revision.revision in current:
            break
        pending.append(revision.revision)
    pending.reverse()
    return pending


def _upgrade(connection: Connection) -> list[str]:
    pending = _pending(connection)
    if pending:
        command.upgrade(alembic_config(connection), "head")
    return pending


async def pending_migrations(engine: AsyncEngine) -> list[str]:
    """Revisions run_migrations would apply, oldest first."""
    async with engine.connect() as conn:
        return await conn.run_sync(_pending)


async def run_migrations(engine: AsyncEngine) -> list[str]:
    """Upgrade the database to head in one transaction and return the revisions applied."""
    async with engine.begin() as conn:
        applied = await conn.run_sync(_upgrade)

    for revision in applied:
        logger.info("Applied migration %s", revision)
    if not applied:
        logger.debug("Schema is up to date")
    return applied
