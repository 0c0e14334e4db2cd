"""
BingoBook Backend — Database Session Management
=================================================

What:  Owned async engine + session factory, and the FastAPI session dependency.
How:   A `Database` instance is created in the application lifespan, stored on
       `app.state.database`, and disposed at shutdown. Each request gets its
       own session. Services commit their own writes before the response is
       built; the dependency rolls back whatever an error left open.
Who:   Route handlers via `Depends(get_db_session)`; tests build their own
       `Database` against a temporary SQLite file.

Engine Configuration:
    SQLite (default):   foreign keys switched on for every new connection,
                        required for ON DELETE CASCADE on timesheets.
    PostgreSQL:         pool_size / max_overflow / pre-ping from settings.
"""

import logging
from typing import AsyncGenerator, Optional

from fastapi import Request
from sqlalchemy import event, text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from bingobook.config import settings

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy ORM models (shared metadata for Alembic)."""
    pass


# Inserts the row-zero timesheet for entries created before the triggers existed
BACKFILL_ROW_ZERO_SQL = text(
    """
    INSERT INTO timesheets (entry_id, timesheet_row, room_number, sign_in, sign_out)
    SELECT id, 0, NULL, NULL, NULL FROM entries
    WHERE NOT EXISTS (
        SELECT 1 FROM timesheets
        WHERE timesheets.entry_id = entries.id AND timesheets.timesheet_row = 0
    )
    """
)


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class Database:
    """
    Persistence handle: one engine, one session factory.

    Lifecycle:
        database = Database(settings.database_url)   # startup
        await database.create_schema()               # tables, triggers, backfill
        async with database.session_factory() as s:  # per request
            ...
        await database.dispose()                     # shutdown
    """

    def __init__(self, url: Optional[str] = None, echo: Optional[bool] = None):
        self.url = url or settings.database_url
        self.is_sqlite = self.url.startswith("sqlite")

        engine_kwargs = {
            "echo": settings.log_level == "DEBUG" if echo is None else echo,
        }
        if not self.is_sqlite:
            engine_kwargs.update(
                pool_size=settings.db_pool_size,
                max_overflow=settings.db_max_overflow,
                pool_pre_ping=settings.db_pool_pre_ping,
                pool_recycle=3600,
            )

        self.engine: AsyncEngine = create_async_engine(self.url, **engine_kwargs)
        if self.is_sqlite:
            event.listen(self.engine.sync_engine, "connect", _enable_sqlite_foreign_keys)

        # expire_on_commit=False: response building reads attributes after commit
        self.session_factory = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

    async def create_schema(self) -> int:
        """
        Create missing tables and triggers, then backfill row-zero timesheets.

        Runs on every startup: create_all skips existing tables, the trigger
        DDL is idempotent (see bingobook.models.timesheet.install_triggers),
        and the backfill only touches entries without a row zero.

        Returns:
            Number of row-zero timesheets inserted by the backfill.
        """
        # Also registers both models with Base.metadata
        from bingobook.models.timesheet import install_triggers

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
            await conn.run_sync(install_triggers)
            result = await conn.execute(BACKFILL_ROW_ZERO_SQL)
            inserted = result.rowcount or 0

        if inserted:
            logger.info("Backfilled %d row-zero timesheet(s)", inserted)
        return inserted

    async def ping(self) -> None:
        async with self.engine.connect() as conn:
            await conn.execute(text("SELECT 1"))

    async def dispose(self) -> None:
        """Close all pooled connections (application shutdown)."""
        await self.engine.dispose()


# ── Session Dependency ────────────────────────────────────────────────────
async def get_db_session(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency that provides a database session per request.

    How it works:
        1. Creates a new session from the app's Database
        2. Yields it to the route handler
        3. On error: rolls back and re-raises for the global handlers
        4. Always: closes the session (returns connection to pool)

    No commit here: FastAPI may run this teardown after the response has
    been sent, so a failing commit could not change the status code.
    Write operations in the services commit themselves.
    """
    database: Database = request.app.state.database
    async with database.session_factory() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()
