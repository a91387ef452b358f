"""
Database handle.

One `Database` is built by the application factory and stored on
`app.state.database`; request handlers receive sessions from it through the
`get_db` dependency instead of reaching for a module-level engine.
"""

import logging
from collections.abc import AsyncGenerator

from fastapi import Request
from sqlalchemy import event
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base

logger = logging.getLogger(__name__)

Base = declarative_base()


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    # ON DELETE CASCADE is ignored by SQLite unless enabled per connection
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class Database:
    """Owns the async engine and the session factory for one process."""

    def __init__(self, url: str, echo: bool = False, **engine_options):
        self.url = url
        if url.startswith("sqlite"):
            # SQLite does not take pool sizing arguments
            engine_options.pop("pool_size", None)
            engine_options.pop("max_overflow", None)
            engine_options.pop("pool_timeout", None)
            engine_options.pop("pool_recycle", None)
        self.engine: AsyncEngine = create_async_engine(url, echo=echo, **engine_options)
        if url.startswith("sqlite"):
            event.listen(self.engine.sync_engine, "connect", _enable_sqlite_foreign_keys)
        self.session_factory = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            autoflush=False,
            expire_on_commit=False,
        )

    @classmethod
    def from_settings(cls, settings) -> "Database":
        if settings.environment == "production":
            return cls(
                settings.database_url,
                pool_size=20,
                max_overflow=50,
                pool_timeout=60,
                pool_recycle=1800,
            )
        return cls(
            settings.database_url,
            echo=settings.debug,
            pool_size=10,
            max_overflow=20,
            pool_timeout=30,
        )

    async def create_all(self) -> None:
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def drop_all(self) -> None:
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)

    async def dispose(self) -> None:
        await self.engine.dispose()
        logger.info("Database engine disposed.")


async def get_db(request: Request) -> AsyncGenerator[AsyncSession, None]:
    database: Database = request.app.state.database
    async with database.session_factory() as db:
        try:
            yield db
        except SQLAlchemyError as e:
            logger.error(f"Database session error: {e}")
            await db.rollback()
            raise
