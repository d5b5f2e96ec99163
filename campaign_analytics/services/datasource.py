"""
Tabular Data Source Service

Adapters between a TableQuery and the store that answers it. The pipelines only
ever see the TabularDataSource interface: fetch one page, or count matches.

Implementations:
- PostgresDataSource: compiles the query to parameterized SQL and runs it on the
  asyncpg pool (campaign_analytics.core.database).
- SupabaseDataSource: replays the query onto the supabase-py PostgREST builder.
  The client is synchronous, so each request runs in a worker thread.

build_data_source() picks the implementation from Settings.data_source.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from datetime import date, datetime
from typing import Any, Dict, List

from asyncpg import Pool
from supabase import create_client

from campaign_analytics.core.config import Settings
from campaign_analytics.core.database import init_db
from campaign_analytics.models.enums import DataSourceKind, FilterOperator
from campaign_analytics.sql.select_queries import get_count_query, get_select_query
from campaign_analytics.sql.table_query import TableQuery

logger = logging.getLogger(__name__)

RawRow = Dict[str, Any]


class DataSourceError(RuntimeError):
    """Raised when a data source is misconfigured or returns an unusable response."""


# =============================================================================
# Interface
# =============================================================================


class TabularDataSource(ABC):
    """A store that can answer a TableQuery one page at a time."""

    @abstractmethod
    async def fetch_page(self, query: TableQuery, offset: int, limit: int) -> List[RawRow]:
        """Return at most `limit` rows starting at zero-based `offset`."""

    @abstractmethod
    async def count(self, query: TableQuery) -> int:
        """Return the number of rows the query matches."""


# =============================================================================
# PostgreSQL (asyncpg)
# =============================================================================


class PostgresDataSource(TabularDataSource):
    """Data source backed by an asyncpg connection pool."""

    def __init__(self, pool: Pool) -> None:
        self._pool = pool

    async def fetch_page(self, query: TableQuery, offset: int, limit: int) -> List[RawRow]:
        sql, params = get_select_query(query, offset, limit)
        async with self._pool.acquire() as conn:
            records = await conn.fetch(sql, *params)
        return [dict(record) for record in records]

    async def count(self, query: TableQuery) -> int:
        sql, params = get_count_query(query)
        async with self._pool.acquire() as conn:
            value = await conn.fetchval(sql, *params)
        return int(value or 0)


# =============================================================================
# Supabase (PostgREST)
# =============================================================================


def _to_wire(value: Any) -> Any:
    """PostgREST filters are sent as text; dates go over as ISO 8601."""
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return value


class SupabaseDataSource(TabularDataSource):
    """
    Data source backed by a supabase-py client.

    Args:
        client: A client from supabase.create_client(url, key).
    """

    def __init__(self, client: Any) -> None:
        self._client = client

    def _build(self, query: TableQuery, count: bool = False) -> Any:
        columns = ','.join(query.columns)
        if count:
            builder = self._client.table(query.table).select(columns, count='exact')
        else:
            builder = self._client.table(query.table).select(columns)

        for condition in query.conditions:
            value = _to_wire(condition.value)
            if condition.operator == FilterOperator.EQ:
                builder = builder.eq(condition.column, value)
            elif condition.operator == FilterOperator.GTE:
                builder = builder.gte(condition.column, value)
            elif condition.operator == FilterOperator.LT:
                builder = builder.lt(condition.column, value)
            elif condition.operator == FilterOperator.LTE:
                builder = builder.lte(condition.column, value)
            elif condition.operator == FilterOperator.IN:
                builder = builder.in_(condition.column, [_to_wire(v) for v in condition.value])
            elif condition.operator == FilterOperator.NOT_ILIKE:
                builder = builder.not_.ilike(condition.column, value)
            else:
                raise DataSourceError(f"Unsupported filter operator: {condition.operator}")

        return builder

    async def fetch_page(self, query: TableQuery, offset: int, limit: int) -> List[RawRow]:
        builder = self._build(query)
        if query.order_by:
            builder = builder.order(query.order_by, desc=query.descending)
        builder = builder.range(offset, offset + limit - 1)

        response = await asyncio.to_thread(builder.execute)
        return list(response.data or [])

    async def count(self, query: TableQuery) -> int:
        builder = self._build(query, count=True).limit(1)
        response = await asyncio.to_thread(builder.execute)
        if response.count is None:
            raise DataSourceError(f"Count not returned for table {query.table}")
        return int(response.count)


# =============================================================================
# Factory
# =============================================================================


async def build_data_source(settings: Settings) -> TabularDataSource:
    """
    Build the data source selected by settings.data_source.

    Raises:
        DataSourceError: If the selected source is missing its credentials.
    """
    if settings.data_source == DataSourceKind.SUPABASE:
        if not settings.supabase_url or not settings.supabase_key:
            raise DataSourceError("SUPABASE_URL and SUPABASE_KEY are required for the supabase source")

        logger.info("Using Supabase data source")
        return SupabaseDataSource(create_client(settings.supabase_url, settings.supabase_key))

    if not settings.database_url:
        raise DataSourceError("DATABASE_URL is required for the postgres source")

    logger.info("Using PostgreSQL data source")
    return PostgresDataSource(await init_db())
