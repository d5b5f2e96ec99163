"""
Campaign Analytics Package.

Aggregation service for B2B outbound campaign reporting: pages rows out of the
reporting store, joins them per campaign, derives rates and buckets results by
date and firmographic dimension.

Subpackages:
    - api: FastAPI route handlers
    - core: Configuration, database pool, and dependencies
    - models: Pydantic schemas and enums
    - services: Fetching, joining, metrics, bucketing and pipelines
    - sql: Table query builder and SQL compilation
"""

__version__ = "1.0.0"
