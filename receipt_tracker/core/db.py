from typing import AsyncGenerator
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker, declarative_base
from receipt_tracker.core.config import DATABASE_URL, DB_TYPE, SQL_ECHO

Base = declarative_base()

engine_options = {"echo": SQL_ECHO, "future": True}
if DB_TYPE == "postgres":
    engine_options.update(
        pool_size=5,
        max_overflow=10,
        pool_pre_ping=True,
        # Disable prepared statements (PgBouncer)
        connect_args={"statement_cache_size": 0, "prepared_statement_cache_size": 0},
    )

engine = create_async_engine(DATABASE_URL, **engine_options)

AsyncSessionLocal = sessionmaker(
    bind=engine,
    class_=AsyncSession,
    autoflush=False,
    autocommit=False,
    expire_on_commit=False,
)


def enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


if DB_TYPE == "sqlite":
    event.listen(engine.sync_engine, "connect", enable_sqlite_foreign_keys)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    async with AsyncSessionLocal() as session:
        yield session


def get_session_factory():
    """Session factory used by work that must own its transactions (recalculation)."""
    return AsyncSessionLocal


import receipt_tracker.models  # noqa: E402,F401


async def init_models():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
