# =============================================================================
# Persistence handle: one per application, built explicitly and injected
# =============================================================================

from __future__ import annotations

import logging
from pathlib import Path
from typing import AsyncGenerator, List, Set, Tuple

from fastapi import Request
from sqlalchemy import event, inspect, text
from sqlalchemy.exc import DBAPIError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from .models import Base
from .seed import seed_public_exercises

log = logging.getLogger("gymlog.database")

# Columns added after the first release: (table, column, DDL)
_COLUMN_MIGRATIONS: List[Tuple[str, str, str]] = [
    ("exercises", "exercise_type", "ALTER TABLE exercises ADD COLUMN exercise_type VARCHAR DEFAULT 'strength'"),
    ("workout_logs", "weight_per_set", "ALTER TABLE workout_logs ADD COLUMN weight_per_set TEXT"),
    ("workout_logs", "rest_time", "ALTER TABLE workout_logs ADD COLUMN rest_time INTEGER"),
    ("workout_logs", "lap_times", "ALTER TABLE workout_logs ADD COLUMN lap_times TEXT"),
    ("users", "recovery_uuid", "ALTER TABLE users ADD COLUMN recovery_uuid VARCHAR"),
    ("users", "recovery_secret_hash", "ALTER TABLE users ADD COLUMN recovery_secret_hash VARCHAR"),
]

# SQLite cannot add a UNIQUE column, so uniqueness comes back as an index
_POST_MIGRATION_DDL = {
    ("users", "recovery_uuid"): (
        "CREATE UNIQUE INDEX IF NOT EXISTS idx_users_recovery_uuid ON users (recovery_uuid)"
    ),
}


def _enable_sqlite_foreign_keys(dbapi_conn, _record) -> None:
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def _column_names(sync_conn, table: str) -> Set[str]:
    return {c["name"] for c in inspect(sync_conn).get_columns(table)}


class Database:
    """Engine plus session factory for one running application."""

    def __init__(self, url: str, echo: bool = False):
        options = {"pool_pre_ping": True} if url.startswith("postgresql") else {}
        self.engine = create_async_engine(url, echo=echo, **options)
        if self.engine.dialect.name == "sqlite":
            event.listen(self.engine.sync_engine, "connect", _enable_sqlite_foreign_keys)
        self.async_session = async_sessionmaker(
            self.engine, class_=AsyncSession, expire_on_commit=False
        )

    @property
    def db_type(self) -> str:
        """Safe description of the backend (no credentials)."""
        if self.engine.dialect.name == "sqlite":
            return "SQLite"
        return f"PostgreSQL ({self.engine.url.database})"

    async def init(self) -> None:
        """Create missing tables, add columns older databases lack, seed the catalog."""
        url = self.engine.url
        if url.get_backend_name() == "sqlite" and url.database not in (None, "", ":memory:"):
            Path(url.database).parent.mkdir(parents=True, exist_ok=True)
            log.info(f"Using SQLite (async): {url.database}")
        else:
            log.info(f"Using {self.db_type}")

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        await self._migrate_columns()
        async with self.async_session() as s:
            await seed_public_exercises(s)

    async def _migrate_columns(self) -> None:
        for table, column, ddl in _COLUMN_MIGRATIONS:
            async with self.engine.begin() as conn:
                existing = await conn.run_sync(_column_names, table)
                if column in existing:
                    continue
                try:
                    await conn.execute(text(ddl))
                    follow_up = _POST_MIGRATION_DDL.get((table, column))
                    if follow_up:
                        await conn.execute(text(follow_up))
                    log.info(f"Added {column} column to {table} table")
                except DBAPIError as e:
                    log.warning(f"Migration for {column} ({table}): {e}")
                    raise

    async def ping(self) -> bool:
        try:
            async with self.async_session() as s:
                await s.execute(text("SELECT 1"))
            return True
        except (DBAPIError, OSError) as e:
            log.error(f"Health check DB query failed: {e}")
            return False

    async def dispose(self) -> None:
        await self.engine.dispose()


async def get_session(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """Per-request unit of work. Callers commit; anything uncommitted rolls back."""
    db: Database = request.app.state.db
    async with db.async_session() as s:
        yield s
