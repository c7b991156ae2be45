"""Async SQLAlchemy engine and session management for the settings store."""

from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
import structlog

from .config import get_global_settings

logger = structlog.get_logger(__name__)


class DatabaseManager:
    """Lazily creates the async engine on first use.

    Importing the package never opens a connection pool, so tests and tools
    that only touch the in-memory settings view do not need a database.
    """

    def __init__(self, database_url: Optional[str] = None):
        self._database_url = database_url
        self._engine: Optional[AsyncEngine] = None
        self._session_factory: Optional[async_sessionmaker[AsyncSession]] = None

    @property
    def database_url(self) -> str:
        """Configured database URL (falls back to application settings)."""
        return self._database_url or get_global_settings().database_url

    @property
    def engine(self) -> AsyncEngine:
        """Get the async engine, creating it on first access."""
        if self._engine is None:
            settings = get_global_settings()
            self._engine = create_async_engine(
                self.database_url,
                echo=settings.debug,  # Enable SQL logging in debug mode
                future=True,
            )
            logger.info("database_engine_created")
        return self._engine

    @property
    def session_factory(self) -> async_sessionmaker[AsyncSession]:
        """Get the session factory bound to the engine."""
        if self._session_factory is None:
            self._session_factory = async_sessionmaker(
                self.engine,
                class_=AsyncSession,
                expire_on_commit=False,
                autoflush=False,
            )
        return self._session_factory

    @asynccontextmanager
    async def get_session(self) -> AsyncGenerator[AsyncSession, None]:
        """Get a database session, rolling back on error."""
        async with self.session_factory() as session:
            try:
                yield session
            except Exception:
                await session.rollback()
                raise

    async def close(self) -> None:
        """Dispose the engine if it was ever created."""
        if self._engine is not None:
            await self._engine.dispose()
            self._engine = None
            self._session_factory = None
            logger.info("database_engine_disposed")


# Global database manager instance
db_manager = DatabaseManager()


# Dependency for FastAPI routes
async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency for getting a database session."""
    async with db_manager.get_session() as session:
        yield session


# Context manager for non-FastAPI callers (startup cache load, scripts)
def get_session():
    """Open a database session as an async context manager."""
    return db_manager.get_session()
