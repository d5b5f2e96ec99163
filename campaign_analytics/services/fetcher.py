"""
Paginated Fetcher Service

Retrieves the complete result set of a TableQuery from a TabularDataSource,
paging past the store's per-request row cap (1000 rows on the hosted store).

Algorithm:
1. Order the query by a stable column so page boundaries are deterministic.
2. Request rows [offset, offset + page_size).
3. Append the page; stop as soon as a page comes back shorter than page_size.
4. Otherwise advance offset by page_size and repeat.

Pages are requested strictly one after another. An empty first page is a normal
empty result. A failure on any page propagates to the caller unchanged: no retry
and no partial result.

Also provides:
- fetch_records(): fetch_all_rows + per-row pydantic validation
- count_rows(): delegate to the source's count
- apply_report_filter(): apply a ReportFilter's window and scope to a query
"""

import logging
from datetime import datetime, time, timedelta, timezone
from typing import List, Optional, Tuple, Type, TypeVar

from pydantic import BaseModel

from campaign_analytics.core.config import get_settings
from campaign_analytics.models.schemas import ReportFilter
from campaign_analytics.services.datasource import RawRow, TabularDataSource
from campaign_analytics.sql.table_query import TableQuery

logger = logging.getLogger(__name__)

RowModel = TypeVar('RowModel', bound=BaseModel)


# =============================================================================
# Paging
# =============================================================================


async def fetch_all_rows(
    source: TabularDataSource,
    query: TableQuery,
    page_size: Optional[int] = None,
) -> List[RawRow]:
    """
    Fetch every row matching a query, one page at a time.

    Args:
        source: Store to read from.
        query: Table, projection and filters. If it has no ordering, the
            configured default_order_column is used.
        page_size: Rows per request. Defaults to Settings.fetch_page_size.

    Returns:
        All matching rows in page order.

    Raises:
        ValueError: If page_size is not positive.
        Exception: Whatever the data source raises for a failed page.

    Example:
        >>> rows = await fetch_all_rows(source, TableQuery('replies').eq('client', 'Acme'))
        >>> # 2500 matching rows -> 3 requests of 1000, 1000 and 500
    """
    settings = get_settings()
    size = page_size if page_size is not None else settings.fetch_page_size
    if size <= 0:
        raise ValueError(f"page_size must be positive, got {size}")

    if query.order_by is None:
        query = query.order(settings.default_order_column)

    rows: List[RawRow] = []
    offset = 0
    while True:
        page = await source.fetch_page(query, offset, size)
        logger.debug(f"{query.table}: fetched {len(page)} rows at offset {offset}")
        rows.extend(page)
        if len(page) < size:
            break
        offset += size

    logger.info(f"{query.table}: fetched {len(rows)} rows")
    return rows


async def fetch_records(
    source: TabularDataSource,
    query: TableQuery,
    model: Type[RowModel],
    page_size: Optional[int] = None,
) -> List[RowModel]:
    """
    Fetch every matching row and validate it into `model`.

    Raises:
        pydantic.ValidationError: If any row does not fit the model. The whole
            fetch fails; rows are never silently dropped.
    """
    rows = await fetch_all_rows(source, query, page_size)
    return [model.model_validate(row) for row in rows]


async def count_rows(source: TabularDataSource, query: TableQuery) -> int:
    """Number of rows a query matches, without fetching them."""
    return await source.count(query)


# =============================================================================
# Report Filter
# =============================================================================


def day_bounds(report_filter: ReportFilter) -> Tuple[datetime, datetime]:
    """
    Timestamp window for a filter: start-of-day of start_date (inclusive) to
    start-of-day after end_date (exclusive), in UTC.
    """
    start = datetime.combine(report_filter.start_date, time.min, tzinfo=timezone.utc)
    end = datetime.combine(report_filter.end_date + timedelta(days=1), time.min, tzinfo=timezone.utc)
    return start, end


def apply_report_filter(
    query: TableQuery,
    report_filter: ReportFilter,
    date_column: Optional[str] = None,
    timestamp: bool = False,
    client_column: Optional[str] = 'client',
    campaign_column: Optional[str] = None,
) -> TableQuery:
    """
    Narrow a query to a filter's window and scope.

    Args:
        query: Base query.
        report_filter: Window, client and campaign scope.
        date_column: Column holding the row's day or timestamp. None skips the window.
        timestamp: True for timestamp columns (half-open day bounds), False for
            DATE columns (inclusive start/end days).
        client_column: Column matched against report_filter.client. None skips it.
        campaign_column: Column matched against report_filter.campaign_ids. None skips it.

    Returns:
        The narrowed query.
    """
    if date_column:
        if timestamp:
            start, end = day_bounds(report_filter)
            query = query.gte(date_column, start).lt(date_column, end)
        else:
            query = query.gte(date_column, report_filter.start_date).lte(date_column, report_filter.end_date)

    if client_column and report_filter.client:
        query = query.eq(client_column, report_filter.client)

    if campaign_column and report_filter.campaign_ids:
        query = query.in_(campaign_column, report_filter.campaign_ids)

    return query
