from typing import Dict, AsyncGenerator
from contextlib import asynccontextmanager
import asyncio
import logging
from pkg.db_util.types import DatabaseConfig
from pkg.db_util.sql_alchemy.declarative_base import Base
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, AsyncEngine, async_sessionmaker
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.pool import StaticPool
from sqlalchemy import text
from pkg.log.logger import get_logger


# Module-level singleton: one engine per database URL
_engine_cache: Dict[str, AsyncEngine] = {}
_sessionmaker_cache: Dict[str, async_sessionmaker] = {}


def normalize_database_url(url: str) -> str:
    """Map plain postgres URLs onto the asyncpg driver."""
    if url.startswith("postgres://"):
        return url.replace("postgres://", "postgresql+asyncpg://", 1)
    if url.startswith("postgresql://"):
        return url.replace("postgresql://", "postgresql+asyncpg://", 1)
    return url


class DatabaseConnection:

    def __init__(self, db_config: DatabaseConfig, logger: logging.Logger | None = None):
        self.db_config = db_config
        self.logger = logger or get_logger(__name__)
        self._db_url = normalize_database_url(db_config.url)

    def get_db_url(self) -> str:
        return self._db_url

    def _engine_options(self) -> dict:
        if self.db_config.is_sqlite:
            # in-memory sqlite must share one connection across sessions
            return {"poolclass": StaticPool, "connect_args": {"check_same_thread": False}}
        return {
            "pool_size": self.db_config.pool_size,
            "max_overflow": self.db_config.max_overflow,
            "pool_timeout": self.db_config.pool_timeout,
            "pool_recycle": self.db_config.pool_recycle,
            "pool_pre_ping": True,  # health check connections before use
        }

    async def get_engine(self, max_retries: int | None = None, initial_delay: float | None = None) -> AsyncEngine:
        """Get or create engine using module-level singleton pattern with retry logic."""
        if self._db_url in _engine_cache:
            return _engine_cache[self._db_url]

        max_retries = max_retries or self.db_config.connect_retries
        initial_delay = self.db_config.retry_delay if initial_delay is None else initial_delay

        self.logger.info(f"Creating async engine for {self.db_config.masked_url}")
        last_error = None
        for attempt in range(max_retries):
            engine = create_async_engine(self._db_url, echo=False, **self._engine_options())
            try:
                self.logger.info(f"Testing database connection (attempt {attempt + 1}/{max_retries})...")
                async with engine.connect() as conn:
                    await conn.execute(text("SELECT 1"))

                _engine_cache[self._db_url] = engine
                _sessionmaker_cache[self._db_url] = async_sessionmaker(
                    bind=engine,
                    class_=AsyncSession,
                    expire_on_commit=False,
                    autoflush=False,
                )
                self.logger.info("Async engine and sessionmaker created successfully and cached.")
                return engine

            except (SQLAlchemyError, OSError, ConnectionError) as e:
                last_error = e
                await engine.dispose()
                delay = initial_delay * (2 ** attempt)  # Exponential backoff
                if attempt < max_retries - 1:
                    self.logger.warning(
                        f"Database connection attempt {attempt + 1}/{max_retries} failed: {e}. "
                        f"Retrying in {delay:.1f}s..."
                    )
                    await asyncio.sleep(delay)
                else:
                    self.logger.error(f"Failed to create database engine after {max_retries} attempts: {e}")

        raise ConnectionError(f"Could not create database engine after {max_retries} attempts: {last_error}") from last_error

    async def create_tables(self) -> None:
        """Create any missing tables registered on Base.metadata."""
        engine = await self.get_engine()
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        self.logger.info(f"Tables ready: {', '.join(sorted(Base.metadata.tables))}")

    async def ping(self) -> bool:
        engine = _engine_cache.get(self._db_url)
        if engine is None:
            return False
        try:
            async with engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            return True
        except (SQLAlchemyError, OSError) as e:
            self.logger.warning(f"Database ping failed: {e}")
            return False

    @asynccontextmanager
    async def get_session(self) -> AsyncGenerator[AsyncSession, None]:
        """Provides an asynchronous SQLAlchemy session, committed on success and rolled back on error."""
        await self.get_engine()

        sessionmaker = _sessionmaker_cache.get(self._db_url)
        if sessionmaker is None:
            raise ConnectionError("Database engine/sessionmaker not initialized.")

        session: AsyncSession = sessionmaker()
        try:
            yield session
            if session.in_transaction():
                await session.commit()
        except Exception as e:
            self.logger.error(f"Error in database session: {e}. Rolling back.")
            if session.in_transaction():
                await session.rollback()
            raise
        finally:
            await session.close()

    async def close_engine(self):
        """Close engine and remove from module-level cache."""
        engine = _engine_cache.pop(self._db_url, None)
        _sessionmaker_cache.pop(self._db_url, None)
        if engine is not None:
            self.logger.info("Closing database engine and connection pool...")
            await engine.dispose()
        else:
            self.logger.info("Database engine was not initialized, no need to close.")
