"""
Enumeration definitions for the Campaign Analytics service.

All enums inherit from both `str` and `Enum` to ensure JSON serialization compatibility
with Pydantic models, enabling automatic serialization/deserialization in API responses.

Groups:
- Data source plumbing: DataSourceKind, SourceTable, FilterOperator
- Reply classification: ReplyCategory
- Bucketing and ranking: Dimension, RankMetric, BucketTier
- Campaign lifecycle: CampaignStatus
"""

from enum import Enum


class DataSourceKind(str, Enum):
    """
    Backing store for the paginated fetcher.

    - postgres: direct connection through the asyncpg pool
    - supabase: hosted PostgREST API through supabase-py
    """
    POSTGRES = "postgres"
    SUPABASE = "supabase"


class SourceTable(str, Enum):
    """
    Tables read by the aggregation pipelines.

    Names match the reporting schema exactly, including the two capitalized
    tables created by the dashboard's first migration.
    """
    CAMPAIGN_REPORTING = "campaign_reporting"
    REPLIES = "replies"
    MEETINGS_BOOKED = "meetings_booked"
    CLIENT_OPPORTUNITIES = "client_opportunities"
    ALL_LEADS = "all_leads"
    ENGAGED_LEADS = "engaged_leads"
    FUNNEL_FORECASTS = "funnel_forecasts"
    CLIENT_TARGETS = "client_targets"
    CAMPAIGNS = "Campaigns"
    CLIENTS = "Clients"


class FilterOperator(str, Enum):
    """Comparison operators supported by TableQuery conditions."""
    EQ = "eq"
    GTE = "gte"
    LT = "lt"
    LTE = "lte"
    IN = "in"
    NOT_ILIKE = "not_ilike"


class ReplyCategory(str, Enum):
    """
    Coarse reply categories used in the deep-insights breakdown.

    Raw categories are free text assigned by the mailbox platform
    ("Interested", "Out Of Office", "Not Interested", ...).
    """
    INTERESTED = "interested"
    NOT_INTERESTED = "not_interested"
    OUT_OF_OFFICE = "out_of_office"
    OTHER = "other"


class Dimension(str, Enum):
    """Firmographic dimensions available to the bucketer."""
    INDUSTRY = "industry"
    REVENUE = "revenue"
    EMPLOYEES = "employees"
    GEOGRAPHY = "geography"
    SIGNALS = "signals"
    JOB_TITLE = "jobTitle"


class RankMetric(str, Enum):
    """
    Bucket metric used to order dimension buckets.

    BOOKED (raw booking count) is the default; BOOKING_RATE ranks by
    booked / leadsIn instead.
    """
    BOOKED = "booked"
    BOOKING_RATE = "booking_rate"
    LEADS_IN = "leads_in"
    ENGAGED = "engaged"
    POSITIVE = "positive"
    ENGAGEMENT_RATE = "engagement_rate"


class BucketTier(str, Enum):
    """
    Position-based tier of a bucket within a ranked list.

    top: first 25% of positions, bottom: last 25%, middle: everything else.
    """
    TOP = "top"
    MIDDLE = "middle"
    BOTTOM = "bottom"


class CampaignStatus(str, Enum):
    """
    Scorecard status derived from days since the last activity.

    - active: activity within the active window (default 7 days)
    - paused: last activity between the active and completed windows
    - completed: no activity for more than the completed window, or never
    """
    ACTIVE = "active"
    PAUSED = "paused"
    COMPLETED = "completed"
