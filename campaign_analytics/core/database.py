"""
Async PostgreSQL connection pool module.

This module owns the asyncpg connection pool used by the PostgreSQL data source
(campaign_analytics.services.datasource.PostgresDataSource). It follows a module-level
singleton so the pool is created once at application startup and shared across
requests.

Key Components:
- Global connection pool singleton (_pool)
- init_db(): Initialize the connection pool at application startup
- close_db(): Gracefully close the pool at application shutdown

Connection Pool Configuration (from Settings):
- db_pool_min_size: minimum idle connections kept in pool (default 2)
- db_pool_max_size: maximum connections in pool (default 10)
- db_command_timeout: per-query timeout in seconds (default 60)

Usage:
    # At application startup (in FastAPI lifespan)
    pool = await init_db()

    # In data sources
    async with pool.acquire() as conn:
        rows = await conn.fetch(sql, *params)

    # At application shutdown
    await close_db()

Environment Variables:
    DATABASE_URL: PostgreSQL connection string (required for the postgres source)
"""

import logging
from typing import Optional

import asyncpg
from asyncpg import Pool

from campaign_analytics.core.config import get_settings

logger = logging.getLogger(__name__)


# =============================================================================
# Global Pool Singleton
# =============================================================================

# None until init_db() is called
_pool: Optional[Pool] = None


# =============================================================================
# Pool Lifecycle Functions
# =============================================================================

async def init_db() -> Pool:
    """
    Initialize the database connection pool.

    If the pool is already initialized, the existing pool is returned without
    creating a new one.

    Returns:
        Pool: The asyncpg connection pool instance.

    Raises:
        RuntimeError: If DATABASE_URL is not configured.
        asyncpg.PostgresError: If connection to the database fails.
        OSError: If the database host is unreachable.
    """
    global _pool

    if _pool is None:
        settings = get_settings()
        if not settings.database_url:
            raise RuntimeError("DATABASE_URL is not configured")

        _pool = await asyncpg.create_pool(
            dsn=settings.database_url,
            min_size=settings.db_pool_min_size,
            max_size=settings.db_pool_max_size,
            command_timeout=settings.db_command_timeout,
        )
        logger.info(
            f"Connection pool created (min={settings.db_pool_min_size}, "
            f"max={settings.db_pool_max_size})"
        )

    return _pool


async def close_db() -> None:
    """
    Close the database connection pool gracefully.

    Idempotent: calling it when the pool is not initialized has no effect.
    A later init_db() creates a new pool.
    """
    global _pool
    if _pool is not None:
        await _pool.close()
        _pool = None
