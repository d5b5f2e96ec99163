'''
Campaign Analytics Test Suite

Test Modules:
-------------
- test_fetcher.py: Paginated fetcher
  - Page arithmetic (2500 rows -> 1000 + 1000 + 500)
  - Empty and exact-multiple result sets
  - Failure propagation with no partial result
  - ReportFilter windows (DATE inclusive, timestamps half-open)

- test_select_queries.py: TableQuery builder and SQL compilation

- test_datasource.py: PostgreSQL and Supabase data sources, factory errors

- test_joiner.py: Multi-source joiner
  - Composite keys keep same-id campaigns of different clients apart
  - Late binding, skipped rows, ranking and pagination
  - Contact grouping and first-occurrence dedup

- test_metrics.py: Zero-guarded rates, reply classification, won/lost, funnel

- test_bucketer.py: Coverage threshold, ranking, positional tiers, date
  buckets, firmographic normalizers

- test_runs.py: Error capture and stale-run detection

- test_pipelines.py: Every pipeline end to end on the in-memory data source

- test_api.py: Endpoint contracts and error mapping

- test_response_parsing.py: JSON payload extraction

Running Tests:
--------------
    pip install -e ".[test]"
    pytest campaign_analytics/tests -v

Configuration:
--------------
See conftest.py for shared fixtures and the in-memory FakeDataSource.
'''

__all__ = []
