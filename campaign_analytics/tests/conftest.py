"""
Pytest Configuration and Shared Fixtures for Campaign Analytics Tests.

This module provides fixtures for all tests, supporting:
- Async test execution with pytest-asyncio (tests opt in with @pytest.mark.asyncio)
- FakeDataSource: an in-memory TabularDataSource that evaluates TableQuery
  conditions, projections and ordering, and records every page request
- Mock asyncpg pool fixture for the PostgreSQL data source
- Settings cache isolation so environment overrides apply per test
- Sample rows for the reporting tables
"""

import re
from datetime import date, datetime, timezone
from typing import Any, Dict, Iterable, List, Optional, Tuple
from unittest.mock import AsyncMock, Mock

import pytest

from campaign_analytics.core.config import get_settings
from campaign_analytics.models.enums import FilterOperator
from campaign_analytics.models.schemas import ReportFilter
from campaign_analytics.services.datasource import RawRow, TabularDataSource
from campaign_analytics.sql.table_query import Condition, TableQuery


# ============================================================
# IN-MEMORY DATA SOURCE
# ============================================================


def _parse_datetime(value: Any) -> Optional[datetime]:
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime(value.year, value.month, value.day)
    elif isinstance(value, str) and value:
        parsed = datetime.fromisoformat(value.replace('Z', '+00:00'))
    else:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _parse_date(value: Any) -> Optional[date]:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str) and value:
        return date.fromisoformat(value[:10])
    return None


def _comparable(row_value: Any, target: Any) -> Tuple[Any, Any]:
    """Coerce a stored value to the type of the filter value."""
    if isinstance(target, datetime):
        return _parse_datetime(row_value), target
    if isinstance(target, date):
        return _parse_date(row_value), target
    return row_value, target


def _like_to_regex(pattern: str) -> re.Pattern:
    parts = [re.escape(part) for part in pattern.split('%')]
    return re.compile('^' + '.*'.join(parts) + '$', re.IGNORECASE | re.DOTALL)


def _matches(row: RawRow, condition: Condition) -> bool:
    raw = row.get(condition.column)
    op = condition.operator

    if op == FilterOperator.NOT_ILIKE:
        # NULL never satisfies NOT ILIKE in PostgreSQL
        if raw is None:
            return False
        return _like_to_regex(condition.value).match(str(raw)) is None
    if op == FilterOperator.IN:
        return raw is not None and str(raw) in {str(v) for v in condition.value}

    value, target = _comparable(raw, condition.value)
    if value is None:
        return False
    if op == FilterOperator.EQ:
        if isinstance(target, str):
            return str(value) == target
        return value == target
    if op == FilterOperator.GTE:
        return value >= target
    if op == FilterOperator.LT:
        return value < target
    if op == FilterOperator.LTE:
        return value <= target
    raise AssertionError(f"Unhandled operator {op}")


class FakeDataSource(TabularDataSource):
    """
    In-memory TabularDataSource.

    Tables are lists of dict rows. Rows without an 'id' get one in insertion
    order so the default ordering is stable. Every fetch_page call is recorded
    in `calls` as (table, offset, limit) and every query in `queries`.

    Args:
        tables: Table name -> rows.
        fail_on: Table names whose requests raise RuntimeError.
    """

    def __init__(self, tables: Optional[Dict[str, List[RawRow]]] = None, fail_on: Iterable[str] = ()):
        self.tables: Dict[str, List[RawRow]] = {}
        for name, rows in (tables or {}).items():
            self.add_rows(name, rows)
        self.fail_on = set(fail_on)
        self.calls: List[Tuple[str, int, int]] = []
        self.queries: List[TableQuery] = []
        self.count_calls: List[TableQuery] = []

    def add_rows(self, table: str, rows: List[RawRow]) -> None:
        existing = self.tables.setdefault(table, [])
        for row in rows:
            stored = dict(row)
            stored.setdefault('id', len(existing) + 1)
            existing.append(stored)

    def _select(self, query: TableQuery) -> List[RawRow]:
        if query.table in self.fail_on:
            raise RuntimeError(f"relation \"{query.table}\" failed")
        rows = [
            row for row in self.tables.get(query.table, [])
            if all(_matches(row, condition) for condition in query.conditions)
        ]
        if query.order_by:
            column = query.order_by
            rows.sort(
                key=lambda row: (row.get(column) is None, row.get(column) if row.get(column) is not None else 0),
                reverse=query.descending,
            )
        return rows

    async def fetch_page(self, query: TableQuery, offset: int, limit: int) -> List[RawRow]:
        self.calls.append((query.table, offset, limit))
        self.queries.append(query)
        rows = self._select(query)[offset:offset + limit]
        if query.columns != ('*',):
            rows = [{column: row.get(column) for column in query.columns} for row in rows]
        return rows

    async def count(self, query: TableQuery) -> int:
        self.count_calls.append(query)
        return len(self._select(query))

    def calls_for(self, table: str) -> List[Tuple[str, int, int]]:
        return [call for call in self.calls if call[0] == table]


# ============================================================
# SETTINGS ISOLATION
# ============================================================


@pytest.fixture(autouse=True)
def clear_settings_cache():
    """
    Clear the cached Settings before and after every test so monkeypatched
    environment variables take effect and never leak between tests.
    """
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


# ============================================================
# DATABASE MOCK FIXTURES
# ============================================================


@pytest.fixture
def mock_db_pool() -> Mock:
    """
    Mock asyncpg pool whose acquire() works as an async context manager.

    Usage:
        conn = mock_db_pool.acquire.return_value.__aenter__.return_value
        conn.fetch.return_value = [{'id': 1}]
    """
    pool = Mock()

    conn = AsyncMock()
    conn.fetch = AsyncMock(return_value=[])
    conn.fetchval = AsyncMock(return_value=None)

    acquire_context = AsyncMock()
    acquire_context.__aenter__ = AsyncMock(return_value=conn)
    acquire_context.__aexit__ = AsyncMock(return_value=None)
    pool.acquire = Mock(return_value=acquire_context)
    pool.close = AsyncMock(return_value=None)

    return pool


# ============================================================
# SAMPLE DATA FIXTURES
# ============================================================


@pytest.fixture
def january_filter() -> ReportFilter:
    """First week of January 2026 for client Acme."""
    return ReportFilter(start_date=date(2026, 1, 1), end_date=date(2026, 1, 7), client='Acme')


@pytest.fixture
def sample_reporting_rows() -> List[RawRow]:
    """
    campaign_reporting rows for two Acme campaigns and one Globex campaign that
    shares campaign id '5' with Acme.
    """
    return [
        {'campaign_id': '5', 'campaign_name': 'Fintech Outbound', 'client': 'Acme', 'date': '2026-01-01',
         'emails_sent': 300, 'total_leads_contacted': 250, 'bounced': 3, 'interested': 1},
        {'campaign_id': '5', 'campaign_name': 'Fintech Outbound', 'client': 'Acme', 'date': '2026-01-02',
         'emails_sent': 200, 'total_leads_contacted': 150, 'bounced': 1, 'interested': 1},
        {'campaign_id': '6', 'campaign_name': 'Healthcare Push', 'client': 'Acme', 'date': '2026-01-03',
         'emails_sent': 100, 'total_leads_contacted': 100, 'bounced': None, 'interested': 0},
        {'campaign_id': '5', 'campaign_name': 'Globex Retail', 'client': 'Globex', 'date': '2026-01-02',
         'emails_sent': 80, 'total_leads_contacted': 80, 'bounced': 0, 'interested': 0},
    ]


@pytest.fixture
def sample_reply_rows() -> List[RawRow]:
    """Three replies to Acme campaign 5 (one out-of-office) and one to Globex campaign 5."""
    return [
        {'reply_id': 'r1', 'lead_id': 'ann@bank.com', 'campaign_id': '5', 'client': 'Acme',
         'category': 'Interested', 'date_received': '2026-01-02T10:00:00+00:00',
         'from_email': 'Ann@Bank.com', 'primary_to_email': 'ann@bank.com', 'subject': 'Re: intro'},
        {'reply_id': 'r2', 'lead_id': 'bob@bank.com', 'campaign_id': '5', 'client': 'Acme',
         'category': 'Out Of Office', 'date_received': '2026-01-02T11:00:00+00:00',
         'from_email': 'bob@bank.com', 'primary_to_email': 'bob@bank.com', 'subject': 'Away'},
        {'reply_id': 'r3', 'lead_id': 'cat@bank.com', 'campaign_id': '5', 'client': 'Acme',
         'category': 'interested', 'date_received': '2026-01-03T09:30:00+00:00',
         'from_email': 'cat@bank.com', 'primary_to_email': 'cat@bank.com', 'subject': 'Re: intro'},
        {'reply_id': 'r4', 'lead_id': 'dan@shop.com', 'campaign_id': '5', 'client': 'Globex',
         'category': 'Not Interested', 'date_received': '2026-01-02T12:00:00+00:00',
         'from_email': 'dan@shop.com', 'primary_to_email': 'dan@shop.com', 'subject': 'No'},
    ]


@pytest.fixture
def sample_meeting_rows() -> List[RawRow]:
    """One meeting for Acme campaign 5."""
    return [
        {'campaign_id': '5', 'campaign_name': 'Fintech Outbound', 'client': 'Acme',
         'created_time': '2026-01-04T15:00:00+00:00', 'email': 'ANN@bank.com', 'title': 'CFO',
         'industry': 'Banking', 'annual_revenue': '25M', 'company_size': '51-200',
         'company_hq_state': 'NY', 'company_hq_country': 'US', 'year_founded': '2015'},
    ]
