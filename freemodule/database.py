"""
freemodule/database.py
Async engine and session pool

One Database object is built per application from Settings and stored on
app.state; routes obtain sessions through the get_db dependency.
"""
import ssl
import logging
from typing import AsyncIterator

from fastapi import Request
from sqlalchemy import event
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker

from freemodule.config.settings import Settings
from freemodule.orm.base import Base
import freemodule.orm  # noqa: F401  registers every table on Base.metadata

logger = logging.getLogger(__name__)


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class Database:
    """Owns the engine, the bounded connection pool and the session factory."""

    def __init__(self, settings: Settings):
        url = settings.database_url
        self.is_sqlite = url.lower().startswith("sqlite")

        if self.is_sqlite:
            # A single file shared by every connection; the pool limits are
            # still applied so exhaustion behaves the same as on PostgreSQL.
            self.engine = create_async_engine(
                url,
                echo=False,
                pool_pre_ping=True,
                pool_size=settings.db_pool_size,
                max_overflow=settings.db_max_overflow,
                pool_timeout=settings.db_pool_timeout,
                connect_args={"timeout": 30.0},
            )
            event.listen(self.engine.sync_engine, "connect", _enable_sqlite_foreign_keys)
        else:
            connect_args = {}
            if settings.db_ssl:
                connect_args["ssl"] = ssl.create_default_context()
            self.engine = create_async_engine(
                url,
                echo=False,
                pool_pre_ping=True,
                pool_size=settings.db_pool_size,
                max_overflow=settings.db_max_overflow,
                pool_timeout=settings.db_pool_timeout,
                pool_recycle=3600,
                connect_args=connect_args,
            )

        self.session_factory = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )

    @property
    def dialect(self) -> str:
        return self.engine.url.get_backend_name()

    async def create_all(self) -> None:
        """Create missing tables."""
        logger.info(f"Database dialect: {self.dialect}")
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Database initialization complete")

    async def drop_all(self) -> None:
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)

    async def dispose(self) -> None:
        await self.engine.dispose()
        logger.info("Database connection closed")

    def session(self) -> AsyncSession:
        return self.session_factory()


async def get_db(request: Request) -> AsyncIterator[AsyncSession]:
    """Dependency for getting async database session"""
    database: Database = request.app.state.db
    async with database.session() as session:
        yield session
