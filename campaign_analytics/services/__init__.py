"""
Campaign Analytics Services Module

Business logic for the campaign reporting aggregations. Building blocks are
stateless functions over validated rows; pipelines compose them for one
ReportFilter and one TabularDataSource.

Building blocks:
- datasource: TabularDataSource interface with asyncpg and supabase-py backends
- fetcher: Paginated fetch of a complete result set
- joiner: Composite-key join of reporting, replies and meetings
- metrics: Zero-guarded rates, reply classification, funnel building
- bucketer: Dimension and date buckets, ranking tiers, normalizers
- runs: Run generations and all-or-nothing pipeline outcomes
- response_parsing: JSON payload extraction from free text

Pipelines:
- campaign_stats, quick_view, sales, firmographics, funnel, deep_insights,
  scorecards, client_performance

All pipelines are consumed by the API layer (campaign_analytics/api/).
"""

# =============================================================================
# Data Source Exports
# TableQuery execution against PostgreSQL (asyncpg) or Supabase (PostgREST)
# =============================================================================

from campaign_analytics.services.datasource import (
    RawRow,
    DataSourceError,
    TabularDataSource,
    PostgresDataSource,
    SupabaseDataSource,
    build_data_source,
)

# =============================================================================
# Paginated Fetcher Exports
# Page-by-page retrieval past the store's per-request row cap
# =============================================================================

from campaign_analytics.services.fetcher import (
    fetch_all_rows,
    fetch_records,
    count_rows,
    day_bounds,
    apply_report_filter,
)

# =============================================================================
# Metric Calculator Exports
# =============================================================================

from campaign_analytics.services.metrics import (
    OUT_OF_OFFICE_PATTERN,
    safe_ratio,
    safe_rate,
    is_out_of_office,
    is_positive_reply,
    categorize_reply,
    is_truthy,
    reply_rate,
    real_reply_rate,
    positive_rate,
    bounce_rate,
    meeting_conversion,
    to_campaign_stat,
    is_won,
    is_lost,
    win_rate,
    summarize_closed_deals,
    build_funnel,
)

# =============================================================================
# Multi-Source Joiner Exports
# =============================================================================

from campaign_analytics.services.joiner import (
    CampaignAggregate,
    make_composite_key,
    build_status_lookup,
    join_campaign_sources,
    rank_campaigns,
    paginate,
    normalize_email,
    reply_contact_email,
    group_by_contact,
    first_occurrence_by_contact,
)

# =============================================================================
# Dimensional Bucketer Exports
# =============================================================================

from campaign_analytics.services.bucketer import (
    REVENUE_BANDS,
    EMPLOYEE_BANDS,
    COMPANY_AGE_BANDS,
    UNKNOWN_LABEL,
    is_valid_value,
    normalize_revenue,
    normalize_company_size,
    company_age_band,
    is_low_coverage,
    bucket_dimension,
    rank_buckets,
    tier_for_position,
    classify_tiers,
    count_breakdown,
    calendar_days,
    format_date_label,
    DateBuckets,
)

# =============================================================================
# Run Control Exports
# =============================================================================

from campaign_analytics.services.runs import (
    RunToken,
    RunTracker,
    PipelineContext,
    run_key,
    run_pipeline,
)

# =============================================================================
# Response Parsing Exports
# =============================================================================

from campaign_analytics.services.response_parsing import (
    ResponseParseError,
    parse_json_payload,
)

# =============================================================================
# Pipeline Exports
# =============================================================================

from campaign_analytics.services.campaign_stats import (
    compute_campaign_stats,
    fetch_interested_replies,
)
from campaign_analytics.services.quick_view import compute_quick_view
from campaign_analytics.services.sales import (
    compute_sales_metrics,
    compute_opportunity_pipeline,
)
from campaign_analytics.services.firmographics import compute_firmographic_insights
from campaign_analytics.services.funnel import compute_funnel
from campaign_analytics.services.deep_insights import compute_deep_insights
from campaign_analytics.services.scorecards import compute_campaign_scorecards
from campaign_analytics.services.client_performance import compute_client_performance


__all__ = [
    # Data source
    'RawRow',
    'DataSourceError',
    'TabularDataSource',
    'PostgresDataSource',
    'SupabaseDataSource',
    'build_data_source',
    # Fetcher
    'fetch_all_rows',
    'fetch_records',
    'count_rows',
    'day_bounds',
    'apply_report_filter',
    # Metrics
    'OUT_OF_OFFICE_PATTERN',
    'safe_ratio',
    'safe_rate',
    'is_out_of_office',
    'is_positive_reply',
    'categorize_reply',
    'is_truthy',
    'reply_rate',
    'real_reply_rate',
    'positive_rate',
    'bounce_rate',
    'meeting_conversion',
    'to_campaign_stat',
    'is_won',
    'is_lost',
    'win_rate',
    'summarize_closed_deals',
    'build_funnel',
    # Joiner
    'CampaignAggregate',
    'make_composite_key',
    'build_status_lookup',
    'join_campaign_sources',
    'rank_campaigns',
    'paginate',
    'normalize_email',
    'reply_contact_email',
    'group_by_contact',
    'first_occurrence_by_contact',
    # Bucketer
    'REVENUE_BANDS',
    'EMPLOYEE_BANDS',
    'COMPANY_AGE_BANDS',
    'UNKNOWN_LABEL',
    'is_valid_value',
    'normalize_revenue',
    'normalize_company_size',
    'company_age_band',
    'is_low_coverage',
    'bucket_dimension',
    'rank_buckets',
    'tier_for_position',
    'classify_tiers',
    'count_breakdown',
    'calendar_days',
    'format_date_label',
    'DateBuckets',
    # Run control
    'RunToken',
    'RunTracker',
    'PipelineContext',
    'run_key',
    'run_pipeline',
    # Response parsing
    'ResponseParseError',
    'parse_json_payload',
    # Pipelines
    'compute_campaign_stats',
    'fetch_interested_replies',
    'compute_quick_view',
    'compute_sales_metrics',
    'compute_opportunity_pipeline',
    'compute_firmographic_insights',
    'compute_funnel',
    'compute_deep_insights',
    'compute_campaign_scorecards',
    'compute_client_performance',
]
