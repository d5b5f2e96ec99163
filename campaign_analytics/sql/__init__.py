"""
SQL Query Module.

Provides the backend-neutral TableQuery builder and its compilation to
parameterized PostgreSQL for the asyncpg data source.

Submodules:
    table_query: Immutable single-table read description (projection,
                 filter conditions, ordering).
    select_queries: Compile a TableQuery page or count into SQL text plus
                    positional parameters ($1, $2, ...).

Example usage:
    from campaign_analytics.sql import TableQuery, get_select_query

    query = TableQuery('replies', ['campaign_id', 'category']).eq('client', 'Acme').order('id')
    sql, params = get_select_query(query, offset=0, limit=1000)
"""

# =============================================================================
# TABLE QUERY - Backend-neutral read description
# =============================================================================

from campaign_analytics.sql.table_query import (
    Condition,
    TableQuery,
)

# =============================================================================
# SELECT QUERIES - SQL compilation for asyncpg
# =============================================================================

from campaign_analytics.sql.select_queries import (
    IDENTIFIER_PATTERN,
    quote_identifier,
    get_select_query,
    get_count_query,
)

__all__ = [
    # Table query
    'Condition',
    'TableQuery',
    # Select queries
    'IDENTIFIER_PATTERN',
    'quote_identifier',
    'get_select_query',
    'get_count_query',
]
