"""
Select Queries Module for Campaign Analytics.

Compiles a TableQuery into parameterized PostgreSQL for the asyncpg data source.
Values are always bound as $n parameters; identifiers (table and column names)
cannot be bound, so they are checked against a strict pattern and double-quoted.
Quoting keeps the mixed-case tables ("Campaigns", "Clients") and columns
("Business") addressable.

Operator mapping:
- eq        -> "col" = $n
- gte/lt/lte -> "col" >= $n / < $n / <= $n
- in        -> "col" = ANY($n)        (empty list matches nothing)
- not_ilike -> "col" NOT ILIKE $n     (NULL values do not match, as in PostgREST)

This module follows the Repository Pattern for clean separation between
business logic and data access.
"""

import re
from typing import Any, List, Tuple

from campaign_analytics.models.enums import FilterOperator
from campaign_analytics.sql.table_query import Condition, TableQuery


# =============================================================================
# CONSTANTS
# =============================================================================

# Letters, digits and underscores; must not start with a digit
IDENTIFIER_PATTERN = re.compile(r'^[A-Za-z_][A-Za-z0-9_]*$')

_COMPARISONS = {
    FilterOperator.EQ: '=',
    FilterOperator.GTE: '>=',
    FilterOperator.LT: '<',
    FilterOperator.LTE: '<=',
}


# =============================================================================
# IDENTIFIERS
# =============================================================================

def quote_identifier(name: str) -> str:
    """
    Validate and double-quote a table or column name.

    Raises:
        ValueError: If the name is not a plain SQL identifier.
    """
    if not IDENTIFIER_PATTERN.match(name or ''):
        raise ValueError(f"Invalid SQL identifier: {name!r}")
    return f'"{name}"'


def _projection(query: TableQuery) -> str:
    if query.columns == ('*',):
        return '*'
    return ', '.join(quote_identifier(column) for column in query.columns)


def _where_clause(conditions: Tuple[Condition, ...], params: List[Any]) -> str:
    clauses = []
    for condition in conditions:
        column = quote_identifier(condition.column)
        params.append(condition.value)
        placeholder = f'${len(params)}'

        if condition.operator in _COMPARISONS:
            clauses.append(f'{column} {_COMPARISONS[condition.operator]} {placeholder}')
        elif condition.operator == FilterOperator.IN:
            params[-1] = list(condition.value)
            clauses.append(f'{column} = ANY({placeholder})')
        elif condition.operator == FilterOperator.NOT_ILIKE:
            clauses.append(f'{column} NOT ILIKE {placeholder}')
        else:
            raise ValueError(f"Unsupported filter operator: {condition.operator}")

    if not clauses:
        return ''
    return 'WHERE ' + ' AND '.join(clauses)


# =============================================================================
# SELECT / COUNT
# =============================================================================

def get_select_query(query: TableQuery, offset: int, limit: int) -> Tuple[str, List[Any]]:
    """
    Generate a paged SELECT for one TableQuery.

    Args:
        query: Table, projection, conditions and ordering.
        offset: Zero-based index of the first row of the page.
        limit: Maximum rows in the page.

    Returns:
        Tuple of (SQL text, positional parameters) for asyncpg's conn.fetch().

    Example:
        >>> sql, params = get_select_query(
        ...     TableQuery('replies', ['category']).eq('client', 'Acme').order('id'), 0, 1000
        ... )
        >>> sql
        'SELECT "category" FROM "replies" WHERE "client" = $1 ORDER BY "id" ASC LIMIT $2 OFFSET $3'
    """
    params: List[Any] = []
    parts = [f'SELECT {_projection(query)} FROM {quote_identifier(query.table)}']

    where = _where_clause(query.conditions, params)
    if where:
        parts.append(where)

    if query.order_by:
        direction = 'DESC' if query.descending else 'ASC'
        parts.append(f'ORDER BY {quote_identifier(query.order_by)} {direction}')

    params.append(limit)
    parts.append(f'LIMIT ${len(params)}')
    params.append(offset)
    parts.append(f'OFFSET ${len(params)}')

    return ' '.join(parts), params


def get_count_query(query: TableQuery) -> Tuple[str, List[Any]]:
    """
    Generate a COUNT(*) over the rows a TableQuery matches.

    Projection and ordering are ignored.
    """
    params: List[Any] = []
    sql = f'SELECT COUNT(*) FROM {quote_identifier(query.table)}'
    where = _where_clause(query.conditions, params)
    if where:
        sql = f'{sql} {where}'
    return sql, params
