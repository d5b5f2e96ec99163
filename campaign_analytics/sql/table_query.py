"""
Backend-neutral description of a single-table read.

A TableQuery names a table, a column projection, a list of filter conditions and
an ordering. It is built with chained calls in the same shape as the PostgREST
query builder the dashboard used:

    query = (
        TableQuery('replies', ['campaign_id', 'client', 'category'])
        .gte('date_received', start)
        .lt('date_received', end)
        .eq('client', 'Acme')
        .order('id')
    )

The same TableQuery is compiled to SQL for the asyncpg source
(campaign_analytics.sql.select_queries) or replayed onto the supabase-py builder
(campaign_analytics.services.datasource.SupabaseDataSource). Pagination is not
part of the query; the fetcher supplies offset/limit per page.
"""

from dataclasses import dataclass, replace
from typing import Any, Optional, Sequence, Tuple

from campaign_analytics.models.enums import FilterOperator


@dataclass(frozen=True)
class Condition:
    """One `column <op> value` predicate."""
    column: str
    operator: FilterOperator
    value: Any


@dataclass(frozen=True)
class TableQuery:
    """
    Immutable select description. Every builder call returns a new query, so a
    base query can be shared between pipeline steps without aliasing.
    """
    table: str
    columns: Tuple[str, ...] = ('*',)
    conditions: Tuple[Condition, ...] = ()
    order_by: Optional[str] = None
    descending: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(self, 'columns', tuple(self.columns) or ('*',))
        object.__setattr__(self, 'conditions', tuple(self.conditions))

    def _where(self, column: str, operator: FilterOperator, value: Any) -> 'TableQuery':
        return replace(self, conditions=self.conditions + (Condition(column, operator, value),))

    def eq(self, column: str, value: Any) -> 'TableQuery':
        return self._where(column, FilterOperator.EQ, value)

    def gte(self, column: str, value: Any) -> 'TableQuery':
        return self._where(column, FilterOperator.GTE, value)

    def lt(self, column: str, value: Any) -> 'TableQuery':
        return self._where(column, FilterOperator.LT, value)

    def lte(self, column: str, value: Any) -> 'TableQuery':
        return self._where(column, FilterOperator.LTE, value)

    def in_(self, column: str, values: Sequence[Any]) -> 'TableQuery':
        return self._where(column, FilterOperator.IN, tuple(values))

    def not_ilike(self, column: str, pattern: str) -> 'TableQuery':
        return self._where(column, FilterOperator.NOT_ILIKE, pattern)

    def order(self, column: str, desc: bool = False) -> 'TableQuery':
        return replace(self, order_by=column, descending=desc)
