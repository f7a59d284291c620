"""Database engine creation with SQLite WAL mode and PRAGMA configuration."""

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

from greenpulse.models import Base

# Concurrent ingestion calls wait this long for the write lock
BUSY_TIMEOUT_SEC = 30


def _set_pragmas(dbapi_conn, connection_record):
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA journal_mode = WAL")
    cursor.execute("PRAGMA foreign_keys = ON")
    cursor.execute("PRAGMA synchronous = NORMAL")
    cursor.execute(f"PRAGMA busy_timeout = {BUSY_TIMEOUT_SEC * 1000}")
    cursor.close()


def create_engine_from_url(url: str) -> AsyncEngine:
    """Async engine whose connections enforce foreign keys.

    ON DELETE CASCADE from sensors to readings, thresholds and alerts
    depends on the foreign_keys pragma being set on every connection.
    """
    engine = create_async_engine(
        url,
        connect_args={"timeout": BUSY_TIMEOUT_SEC},
    )
    event.listen(engine.sync_engine, "connect", _set_pragmas)
    return engine


async def init_db(engine: AsyncEngine) -> None:
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
