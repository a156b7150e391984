"""
asyncpg pool wrapper shared by the API, the schema loader and the seeder.

The pool opens lazily on first query when the application lifespan has not
already opened it.
"""

import time
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, List, Optional

import asyncpg
from asyncpg import Pool

from .config import settings
from .exceptions import DatabaseError
from .logging_config import get_logger

logger = get_logger(__name__)


class DatabaseManager:
    """
    Owns one asyncpg pool and runs queries on pooled connections.

    Every query method logs its duration and row count at debug level.
    """

    def __init__(self, dsn: Optional[str] = None) -> None:
        self.dsn = dsn or settings.DATABASE_URL
        self.pool: Optional[Pool] = None

    async def connect(self) -> None:
        """
        Open the pool if it is not open yet.

        Pool size is capped by DATABASE_POOL_SIZE; idle connections are
        closed after DATABASE_IDLE_TIMEOUT seconds.
        """
        if self.pool is not None:
            return

        logger.info("Opening database pool")
        try:
            self.pool = await asyncpg.create_pool(
                self.dsn,
                min_size=settings.DATABASE_POOL_MIN_SIZE,
                max_size=settings.DATABASE_POOL_SIZE,
                timeout=settings.DATABASE_CONNECT_TIMEOUT,
                command_timeout=settings.DATABASE_COMMAND_TIMEOUT,
                max_inactive_connection_lifetime=settings.DATABASE_IDLE_TIMEOUT,
            )
            logger.info(
                "Database connection pool created",
                min_size=settings.DATABASE_POOL_MIN_SIZE,
                max_size=settings.DATABASE_POOL_SIZE,
            )
        except (OSError, asyncpg.PostgresError) as e:
            logger.error("Failed to connect to database", error=str(e))
            raise

    async def disconnect(self) -> None:
        """Close the pool; safe to call when it was never opened."""
        if self.pool:
            await self.pool.close()
            self.pool = None
            logger.info("Database connection pool closed")

    async def _get_pool(self) -> Pool:
        if self.pool is None:
            try:
                await self.connect()
            except (OSError, asyncpg.PostgresError) as e:
                raise DatabaseError("Database connection unavailable") from e
        return self.pool

    def _log_query(self, query: str, started: float, rows: Any) -> None:
        logger.debug(
            "Executed query",
            query=" ".join(query.split())[:100],
            duration_ms=round((time.perf_counter() - started) * 1000, 1),
            rows=rows,
        )

    async def execute(self, query: str, *args) -> str:
        """Run a statement and return its status tag, e.g. ``DELETE 1``."""
        pool = await self._get_pool()
        started = time.perf_counter()
        async with pool.acquire() as conn:
            result = await conn.execute(query, *args)
        self._log_query(query, started, result)
        return result

    async def fetch(self, query: str, *args) -> List[asyncpg.Record]:
        pool = await self._get_pool()
        started = time.perf_counter()
        async with pool.acquire() as conn:
            rows = await conn.fetch(query, *args)
        self._log_query(query, started, len(rows))
        return rows

    async def fetchrow(self, query: str, *args) -> Optional[asyncpg.Record]:
        pool = await self._get_pool()
        started = time.perf_counter()
        async with pool.acquire() as conn:
            row = await conn.fetchrow(query, *args)
        self._log_query(query, started, 0 if row is None else 1)
        return row

    async def fetchval(self, query: str, *args) -> Any:
        pool = await self._get_pool()
        started = time.perf_counter()
        async with pool.acquire() as conn:
            value = await conn.fetchval(query, *args)
        self._log_query(query, started, 1)
        return value

    @asynccontextmanager
    async def transaction(self) -> AsyncGenerator[asyncpg.Connection, None]:
        """
        Run statements on one connection inside a transaction.

        Commits when the block exits normally and rolls back on error.

        Yields:
            asyncpg.Connection bound to the open transaction
        """
        pool = await self._get_pool()
        async with pool.acquire() as conn:
            async with conn.transaction():
                yield conn


db_manager = DatabaseManager()


async def get_db() -> AsyncGenerator[DatabaseManager, None]:
    """Dependency yielding the process-wide manager."""
    yield db_manager
