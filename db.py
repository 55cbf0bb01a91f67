from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, AsyncIterator
import logging

from sqlalchemy import event, Engine, Result, CursorResult, inspect
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession, AsyncEngine

import config
from models import Base

logger = logging.getLogger(__name__)


def build_engine(url: str, echo: bool = False) -> AsyncEngine:
    """
    Create the async engine for a SQLAlchemy URL.

    File-backed SQLite databases get their parent directory created, the
    same way the data/ folder used to be prepared on startup.
    """
    parsed = make_url(url)
    if parsed.get_backend_name() == "sqlite" and parsed.database and parsed.database != ":memory:":
        Path(parsed.database).parent.mkdir(parents=True, exist_ok=True)
    return create_async_engine(url, echo=echo)


engine = build_engine(config.DB_URL, echo=config.DB_ECHO)
session_maker = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@asynccontextmanager
async def get_db_session() -> AsyncIterator[AsyncSession]:
    async with session_maker() as session:
        try:
            yield session
        finally:
            await session.close()


async def session_execute(stmt, session: AsyncSession) -> Result[Any] | CursorResult[Any]:
    query_result = await session.execute(stmt)
    return query_result


async def session_flush(session: AsyncSession) -> None:
    await session.flush()


async def session_commit(session: AsyncSession) -> None:
    await session.commit()


async def session_rollback(session: AsyncSession) -> None:
    await session.rollback()


async def session_refresh(obj, session: AsyncSession) -> None:
    await session.refresh(obj)


@event.listens_for(Engine, "connect")
def set_sqlite_pragma(dbapi_connection, connection_record):
    # Only SQLite needs foreign keys switched on per connection
    if type(dbapi_connection).__module__.startswith(("sqlite3", "aiosqlite", "sqlalchemy.dialects.sqlite")):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


def _missing_tables(sync_conn) -> list[str]:
    existing = set(inspect(sync_conn).get_table_names())
    return [name for name in Base.metadata.tables if name not in existing]


async def create_db_and_tables(db_engine: AsyncEngine | None = None):
    """Create any missing tables. Existing tables and their data are left alone."""
    db_engine = db_engine or engine
    async with db_engine.begin() as conn:
        missing = await conn.run_sync(_missing_tables)
        if missing:
            logger.info(f"[DB] Creating tables: {', '.join(missing)}")
            await conn.run_sync(Base.metadata.create_all)
