"""
Database connection pools for the Postgres-backed todo lists.

The "postgres" and "neon" todo lists each get their own pool, created from
their DSN at startup. All queries go through transaction(pool).
Never use pool.acquire() directly outside this module.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

import asyncpg

logger = logging.getLogger(__name__)


async def init_pool(dsn: str) -> asyncpg.Pool:
    """
    Create a connection pool for one DSN.
    Called once per Postgres backend at application startup.
    """
    pool = await asyncpg.create_pool(
        dsn=dsn,
        min_size=1,
        max_size=10,
        command_timeout=60,
    )
    logger.info("db: pool created (max_size=%d)", 10)
    return pool


async def close_pool(pool: asyncpg.Pool | None) -> None:
    """
    Close a connection pool.
    Called at application shutdown.
    """
    if pool is not None:
        await pool.close()
        logger.info("db: pool closed")


@asynccontextmanager
async def transaction(pool: asyncpg.Pool | None):
    """
    Acquire a connection and open a transaction on it.

    Usage:
        async with transaction(pool) as conn:
            rows = await conn.fetch("SELECT * FROM todos WHERE created_by = $1", email)

    Yields:
        asyncpg.Connection inside a transaction
    """
    if pool is None:
        raise RuntimeError("Database pool not initialized. Call init_pool() first.")

    async with pool.acquire() as conn:
        async with conn.transaction():
            yield conn
