"""
Package initialization file for campaign_analytics models.

Exports all Pydantic schemas and enumerations from schemas.py and enums.py so
other modules can import them from campaign_analytics.models directly.

Usage:
    from campaign_analytics.models import (
        ReportFilter,
        CampaignReportingRow,
        CampaignStat,
        Dimension,
        # ... etc
    )
"""

# =============================================================================
# Enums - Import and re-export all enumerations from enums.py
# =============================================================================

from campaign_analytics.models.enums import (
    # Data source plumbing
    DataSourceKind,
    SourceTable,
    FilterOperator,
    # Reply classification
    ReplyCategory,
    # Bucketing and ranking
    Dimension,
    RankMetric,
    BucketTier,
    # Campaign lifecycle
    CampaignStatus,
)


# =============================================================================
# Schemas - Import and re-export all Pydantic models from schemas.py
# =============================================================================

from campaign_analytics.models.schemas import (
    # -------------------------------------------------------------------------
    # Source Rows
    # -------------------------------------------------------------------------
    SourceRow,
    CampaignReportingRow,
    ReplyRow,
    MeetingRow,
    OpportunityRow,
    LeadRow,
    EngagedLeadRow,
    CampaignStatusRow,
    FunnelForecastRow,
    ClientTargetRow,
    ClientRow,

    # -------------------------------------------------------------------------
    # Request Models
    # -------------------------------------------------------------------------
    ReportFilter,

    # -------------------------------------------------------------------------
    # Campaign Stats and Quick View
    # -------------------------------------------------------------------------
    CampaignStat,
    CampaignStatsPage,
    QuickViewMetrics,
    ChartDataPoint,
    QuickViewResult,

    # -------------------------------------------------------------------------
    # Sales
    # -------------------------------------------------------------------------
    SalesSummary,
    SalesMetric,
    SalesMetricsResult,
    OpportunityStage,

    # -------------------------------------------------------------------------
    # Firmographics and Funnel
    # -------------------------------------------------------------------------
    DimensionBucket,
    DimensionInsight,
    FirmographicInsights,
    FunnelStage,
    FunnelForecastLine,
    FunnelResult,

    # -------------------------------------------------------------------------
    # Deep Insights
    # -------------------------------------------------------------------------
    CountBreakdown,
    ReplyCategoryBreakdown,
    DailyCount,
    CampaignPerformance,
    DeepInsights,

    # -------------------------------------------------------------------------
    # Scorecards, Client Performance, Drill-down
    # -------------------------------------------------------------------------
    ScorecardDay,
    CampaignScorecard,
    ClientPerformance,
    InterestedReply,

    # -------------------------------------------------------------------------
    # Pipeline Envelope
    # -------------------------------------------------------------------------
    PipelineOutcome,
    PipelineResponse,
)


__all__ = [
    # =========================================================================
    # Enums
    # =========================================================================
    "DataSourceKind",
    "SourceTable",
    "FilterOperator",
    "ReplyCategory",
    "Dimension",
    "RankMetric",
    "BucketTier",
    "CampaignStatus",

    # =========================================================================
    # Schemas - Source Rows
    # =========================================================================
    "SourceRow",
    "CampaignReportingRow",
    "ReplyRow",
    "MeetingRow",
    "OpportunityRow",
    "LeadRow",
    "EngagedLeadRow",
    "CampaignStatusRow",
    "FunnelForecastRow",
    "ClientTargetRow",
    "ClientRow",

    # =========================================================================
    # Schemas - Request
    # =========================================================================
    "ReportFilter",

    # =========================================================================
    # Schemas - Outputs
    # =========================================================================
    "CampaignStat",
    "CampaignStatsPage",
    "QuickViewMetrics",
    "ChartDataPoint",
    "QuickViewResult",
    "SalesSummary",
    "SalesMetric",
    "SalesMetricsResult",
    "OpportunityStage",
    "DimensionBucket",
    "DimensionInsight",
    "FirmographicInsights",
    "FunnelStage",
    "FunnelForecastLine",
    "FunnelResult",
    "CountBreakdown",
    "ReplyCategoryBreakdown",
    "DailyCount",
    "CampaignPerformance",
    "DeepInsights",
    "ScorecardDay",
    "CampaignScorecard",
    "ClientPerformance",
    "InterestedReply",

    # =========================================================================
    # Schemas - Pipeline Envelope
    # =========================================================================
    "PipelineOutcome",
    "PipelineResponse",
]
