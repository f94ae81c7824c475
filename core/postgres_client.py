"""
PostgreSQL Client Wrapper

Thin async wrapper around an asyncpg connection pool giving repositories a
consistent query/query_row/execute interface plus scoped transactions.

Usage:
    from core.postgres_client import AsyncPostgresClient

    db = AsyncPostgresClient(service_name="dashboard_approval_service")
    await db.initialize()

    rows = await db.query("SELECT * FROM dashboard.approvals WHERE status = $1", ["pending"])

    async with db.transaction() as tx:
        await tx.execute("UPDATE ...", [...])
"""

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, List, Optional

import asyncpg

from core.config import InfraConfig

logger = logging.getLogger(__name__)


class PostgresConnection:
    """Query helpers bound to a single asyncpg connection"""

    def __init__(self, conn: asyncpg.Connection):
        self._conn = conn

    async def query(self, sql: str, params: Optional[List[Any]] = None) -> List[Dict[str, Any]]:
        """Execute query and return results"""
        rows = await self._conn.fetch(sql, *(params or []))
        return [dict(row) for row in rows]

    async def query_row(self, sql: str, params: Optional[List[Any]] = None) -> Optional[Dict[str, Any]]:
        """Execute query and return single row"""
        row = await self._conn.fetchrow(sql, *(params or []))
        return dict(row) if row else None

    async def execute(self, sql: str, params: Optional[List[Any]] = None) -> str:
        """Execute SQL statement, returning the command status tag"""
        return await self._conn.execute(sql, *(params or []))


class AsyncPostgresClient:
    """
    PostgreSQL client backed by an asyncpg pool.

    Provides:
    - Lazy pool creation from InfraConfig
    - Single-statement helpers that borrow a pooled connection
    - transaction() for multi-statement atomic work
    """

    def __init__(
        self,
        service_name: str,
        config: Optional[InfraConfig] = None,
    ):
        self.service_name = service_name
        self.config = config or InfraConfig.from_env()
        self._pool: Optional[asyncpg.Pool] = None

    async def initialize(self) -> None:
        """Create the connection pool"""
        if self._pool is not None:
            return

        logger.info(
            f"Connecting to PostgreSQL at {self.config.postgres_host}:{self.config.postgres_port}"
            f"/{self.config.postgres_db} for {self.service_name}"
        )
        self._pool = await asyncpg.create_pool(
            host=self.config.postgres_host,
            port=self.config.postgres_port,
            user=self.config.postgres_user,
            password=self.config.postgres_password,
            database=self.config.postgres_db,
            min_size=self.config.postgres_min_pool_size,
            max_size=self.config.postgres_max_pool_size,
            command_timeout=self.config.postgres_command_timeout,
        )

    async def close(self) -> None:
        """Close the connection pool"""
        if self._pool is not None:
            await self._pool.close()
            self._pool = None
            logger.info(f"PostgreSQL pool closed for {self.service_name}")

    @property
    def pool(self) -> asyncpg.Pool:
        if self._pool is None:
            raise RuntimeError("PostgreSQL client not initialized. Call initialize() first.")
        return self._pool

    async def query(self, sql: str, params: Optional[List[Any]] = None) -> List[Dict[str, Any]]:
        """Execute query and return results"""
        async with self.pool.acquire() as conn:
            return await PostgresConnection(conn).query(sql, params)

    async def query_row(self, sql: str, params: Optional[List[Any]] = None) -> Optional[Dict[str, Any]]:
        """Execute query and return single row"""
        async with self.pool.acquire() as conn:
            return await PostgresConnection(conn).query_row(sql, params)

    async def execute(self, sql: str, params: Optional[List[Any]] = None) -> str:
        """Execute SQL statement"""
        async with self.pool.acquire() as conn:
            return await PostgresConnection(conn).execute(sql, params)

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[PostgresConnection]:
        """Run the enclosed statements on one connection inside a transaction"""
        async with self.pool.acquire() as conn:
            async with conn.transaction():
                yield PostgresConnection(conn)

    async def health_check(self) -> bool:
        """Check database health"""
        try:
            result = await self.query_row("SELECT 1 as healthy")
            return result is not None
        except Exception as e:
            logger.error(f"PostgreSQL health check failed: {e}")
            return False


__all__ = ["AsyncPostgresClient", "PostgresConnection"]
