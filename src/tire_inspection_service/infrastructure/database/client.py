"""
Database Client

Async SQLAlchemy database connection and session management.

The client is a process-wide handle: created once, initialized at startup
(or on first use), and reused by every request.
"""

import asyncio
import logging
from typing import AsyncGenerator, Optional

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import NullPool

from tire_inspection_service.config.settings import settings
from tire_inspection_service.infrastructure.database.models import Base

logger = logging.getLogger(__name__)


class DatabaseClient:
    """Database client for managing async connections"""

    def __init__(self):
        self.engine = None
        self.session_maker = None
        self._init_lock: Optional[asyncio.Lock] = None

    @property
    def initialized(self) -> bool:
        return self.session_maker is not None

    async def verify_connection(self):
        """Verify database connection before creating tables."""
        if not self.engine:
            raise RuntimeError("Engine not initialized. Call initialize() first.")

        async with self.engine.begin() as conn:
            await conn.execute(text("SELECT 1"))
        logger.info("Database connection verified")

    async def initialize(self, database_url: Optional[str] = None):
        """Initialize database engine and create tables

        Raises:
            RuntimeError: If no connection URL is configured
        """
        url = database_url or settings.database_url
        if not url:
            raise RuntimeError("DATABASE_URL is not configured")

        logger.info(f"Initializing database: {url}")

        # Create async engine
        self.engine = create_async_engine(
            url,
            echo=False,
            poolclass=NullPool if url.startswith("sqlite") else None,
        )

        # Create session maker
        self.session_maker = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

        await self.verify_connection()

        # Alembic migrations are the primary schema path; create_all covers local runs
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

        logger.info("Database initialized successfully")

    async def ensure_initialized(self):
        """Initialize on first use; concurrent callers wait for a single init."""
        if self.initialized:
            return
        if self._init_lock is None:
            self._init_lock = asyncio.Lock()
        async with self._init_lock:
            if not self.initialized:
                await self.initialize()

    async def close(self):
        """Close database connections"""
        if self.engine:
            await self.engine.dispose()
            logger.info("Database connections closed")
        self.engine = None
        self.session_maker = None
        self._init_lock = None

    def get_session(self) -> AsyncSession:
        """Get database session"""
        if not self.session_maker:
            raise RuntimeError("Database not initialized. Call initialize() first.")
        return self.session_maker()

    async def health_check(self) -> bool:
        """Check database health"""
        try:
            async with self.get_session() as session:
                await session.execute(text("SELECT 1"))
            return True
        except Exception as e:
            logger.error(f"Database health check failed: {e}")
            return False


# Global database client instance
db_client = DatabaseClient()


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Dependency for getting database session"""
    await db_client.ensure_initialized()
    async with db_client.get_session() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()
