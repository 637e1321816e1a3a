"""
PostgreSQL async connection management using SQLAlchemy 2.0.

The account store is a hosted PostgreSQL instance reached through a
connection URL. Provider URLs (``postgres://`` or ``postgresql://``) are
rewritten to the asyncpg driver.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings
from sqlalchemy import text
from sqlalchemy.engine import make_url
from sqlalchemy.exc import ArgumentError
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    AsyncEngine,
    create_async_engine,
    async_sessionmaker,
)

from src.constants import (
    DEFAULT_DB_MAX_OVERFLOW,
    DEFAULT_DB_POOL_RECYCLE,
    DEFAULT_DB_POOL_SIZE,
    DEFAULT_DB_POOL_TIMEOUT,
)
from src.utils.env_utils import parse_bool_env, parse_int_env, parse_str_env

load_dotenv()

logger = logging.getLogger(__name__)

ASYNC_DRIVER = "postgresql+asyncpg"


def to_async_url(url: str) -> str:
    """Rewrite a plain PostgreSQL URL to use the asyncpg driver."""
    for prefix in ("postgres://", "postgresql://"):
        if url.startswith(prefix):
            return f"{ASYNC_DRIVER}://{url[len(prefix):]}"
    return url


class DatabaseConfig(BaseSettings):
    """Account store connection settings."""

    enabled: bool = Field(default=True, description="Set false to run without a datastore")
    database_url: str = Field(
        default=f"{ASYNC_DRIVER}://postgres@localhost:5432/owaiken",
        description="SQLAlchemy URL of the account store",
    )

    # Connection pool
    pool_size: int = Field(default=DEFAULT_DB_POOL_SIZE)
    max_overflow: int = Field(default=DEFAULT_DB_MAX_OVERFLOW)
    pool_timeout: int = Field(default=DEFAULT_DB_POOL_TIMEOUT)
    pool_recycle: int = Field(default=DEFAULT_DB_POOL_RECYCLE)

    echo_sql: bool = Field(default=False, description="Log every SQL statement")

    class Config:
        case_sensitive = False

    @classmethod
    def from_env(cls) -> "DatabaseConfig":
        """
        Create config from environment variables.

        DATABASE_URL wins; otherwise the URL is assembled from
        DATABASE_HOST, DATABASE_PORT, DATABASE_NAME, DATABASE_USER and
        DATABASE_PASSWORD.
        """
        url = parse_str_env("DATABASE_URL")
        if url is None:
            user = parse_str_env("DATABASE_USER", "postgres")
            password = parse_str_env("DATABASE_PASSWORD", "")
            host = parse_str_env("DATABASE_HOST", "localhost")
            port = parse_str_env("DATABASE_PORT", "5432")
            name = parse_str_env("DATABASE_NAME", "owaiken")
            credentials = f"{user}:{password}" if password else user
            url = f"{ASYNC_DRIVER}://{credentials}@{host}:{port}/{name}"

        return cls(
            enabled=parse_bool_env("DATABASE_ENABLED", True),
            database_url=to_async_url(url),
            pool_size=parse_int_env("DB_POOL_SIZE", DEFAULT_DB_POOL_SIZE),
            max_overflow=parse_int_env("DB_MAX_OVERFLOW", DEFAULT_DB_MAX_OVERFLOW),
            pool_timeout=parse_int_env("DB_POOL_TIMEOUT", DEFAULT_DB_POOL_TIMEOUT),
            pool_recycle=parse_int_env("DB_POOL_RECYCLE", DEFAULT_DB_POOL_RECYCLE),
            echo_sql=parse_bool_env("DB_ECHO", False),
        )

    @property
    def masked_url(self) -> str:
        """Database URL with the password hidden, for logging."""
        try:
            return make_url(self.database_url).render_as_string(hide_password=True)
        except ArgumentError:
            return "[unparseable URL]"


class DatabaseManager:
    """
    Owns the process-wide async engine and session factory.

    Singleton; the engine is created on first use so importing the module
    never opens a connection.
    """

    _instance: Optional["DatabaseManager"] = None
    _initialized: bool = False

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self):
        if self._initialized:
            return

        self.config = DatabaseConfig.from_env()
        self._engine: Optional[AsyncEngine] = None
        self._session_factory: Optional[async_sessionmaker] = None
        self._initialized = True

    def _setup_engine(self) -> None:
        if not self.config.enabled or self._engine is not None:
            return

        logger.info(f"Connecting to account store: {self.config.masked_url}")
        self._engine = create_async_engine(
            self.config.database_url,
            pool_size=self.config.pool_size,
            max_overflow=self.config.max_overflow,
            pool_timeout=self.config.pool_timeout,
            pool_recycle=self.config.pool_recycle,
            pool_pre_ping=True,
            echo=self.config.echo_sql,
        )
        self._session_factory = async_sessionmaker(
            bind=self._engine,
            expire_on_commit=False,
            autoflush=False,
        )
        logger.info(
            f"Account store engine ready: pool_size={self.config.pool_size}, "
            f"max_overflow={self.config.max_overflow}"
        )

    async def get_engine_async(self) -> Optional[AsyncEngine]:
        """Get the async engine, creating it if necessary. None when disabled."""
        if not self.config.enabled:
            return None
        self._setup_engine()
        return self._engine

    async def test_connection(self, timeout: float = 15.0) -> bool:
        """
        Run ``SELECT 1`` against the account store.

        Args:
            timeout: Maximum time to wait (seconds)

        Returns:
            True when the query succeeded (or the datastore is disabled)
        """
        if not self.config.enabled:
            logger.info("Database disabled - skipping connection test")
            return True

        engine = await self.get_engine_async()
        try:
            async with asyncio.timeout(timeout):
                async with engine.connect() as conn:
                    await conn.execute(text("SELECT 1"))
            return True
        except TimeoutError:
            logger.error(f"Account store connection test timed out after {timeout}s")
            return False
        except Exception as e:
            logger.error(f"Account store connection test failed: {type(e).__name__}: {e}")
            return False

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[Optional[AsyncSession], None]:
        """
        One unit of work: commits on success, rolls back on error.

        Yields None when the datastore is disabled.
        """
        if not self.config.enabled:
            yield None
            return

        self._setup_engine()
        async with self._session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    async def create_tables(self) -> None:
        """Create the users and usage_events tables if missing."""
        from .models import Base

        engine = await self.get_engine_async()
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Database tables created")

    async def drop_tables(self) -> None:
        """Drop the users and usage_events tables."""
        from .models import Base

        engine = await self.get_engine_async()
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)
        logger.info("Database tables dropped")

    async def close_all(self) -> None:
        """Dispose the engine and its pool. Called at application shutdown."""
        if self._engine is not None:
            await self._engine.dispose()
        self._engine = None
        self._session_factory = None
        logger.info("Account store connections closed")


# Global database manager instance
db = DatabaseManager()


async def get_session() -> AsyncGenerator[Optional[AsyncSession], None]:
    """FastAPI dependency yielding a unit-of-work session."""
    async with db.session() as session:
        yield session
