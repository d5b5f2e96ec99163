"""
Pydantic models for the Campaign Analytics service.

This module provides type-safe validation for every row read from the tabular
store and for every aggregate returned by the pipelines.

Sections:
- Source rows: one model per table, validated at the fetch boundary. Null counts
  coerce to 0, numeric identifiers coerce to strings, unknown columns are ignored.
- Request models: ReportFilter, the immutable window/scope of a pipeline run.
- Output models: campaign stats, quick view, sales, firmographics, funnel, deep
  insights, scorecards, client performance and pipeline envelopes.

Output models use camelCase attribute names so the JSON contract matches the
dashboard's existing TypeScript interfaces field for field.

All models use Pydantic v2 syntax.
"""

from datetime import datetime, date as DateType
from typing import Annotated, Any, List, Optional

import numpy as np
from pydantic import (
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    computed_field,
    model_validator,
)

from campaign_analytics.models.enums import CampaignStatus, Dimension


# =============================================================================
# Field Coercion Helpers
# =============================================================================


def _none_to_zero(value: Any) -> Any:
    """Null or blank counters read from the store count as zero."""
    if value is None or value == '':
        return 0
    return value


def _to_optional_str(value: Any) -> Any:
    """Identifiers may arrive as integers (serial ids) or strings."""
    if value is None:
        return None
    return str(value)


def _to_optional_int(value: Any) -> Optional[int]:
    """Loose integer parse for free-text numeric columns such as year_founded."""
    if value is None or value == '':
        return None
    try:
        return int(float(str(value).strip()))
    except (ValueError, OverflowError):
        return None


def _percent(numerator: float, denominator: float) -> float:
    """Percentage clamped to [0, 100]; 0.0 on a zero denominator."""
    if not denominator:
        return 0.0
    return float(np.clip(numerator / denominator * 100.0, 0.0, 100.0))


Count = Annotated[int, BeforeValidator(_none_to_zero)]
Identifier = Annotated[Optional[str], BeforeValidator(_to_optional_str)]
LooseInt = Annotated[Optional[int], BeforeValidator(_to_optional_int)]


# =============================================================================
# Source Rows (validated at the fetch boundary)
# =============================================================================


class SourceRow(BaseModel):
    """Base class for rows read from the tabular store."""
    model_config = ConfigDict(extra='ignore')


class CampaignReportingRow(SourceRow):
    """
    campaign_reporting row: daily per-campaign send statistics.

    Grain: date + campaign_id + client
    """
    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "campaign_id": "5",
                "campaign_name": "Q1 Fintech Outbound",
                "client": "Acme",
                "date": "2026-01-15",
                "emails_sent": 50,
                "total_leads_contacted": 40,
                "bounced": 1,
                "interested": 2,
            }
        }
    )

    campaign_id: Identifier = Field(default=None, description="Campaign identifier (unique per client only)")
    campaign_name: Optional[str] = Field(default=None, description="Display name of the campaign")
    client: Optional[str] = Field(default=None, description="Client the campaign runs for")
    date: Optional[DateType] = Field(default=None, description="Reporting day")
    emails_sent: Count = Field(default=0, ge=0)
    total_leads_contacted: Count = Field(default=0, ge=0)
    bounced: Count = Field(default=0, ge=0)
    interested: Count = Field(default=0, ge=0, description="Positive replies tallied by the platform")


class ReplyRow(SourceRow):
    """replies row: one inbound reply with its platform-assigned category."""
    reply_id: Identifier = None
    lead_id: Identifier = None
    campaign_id: Identifier = None
    client: Optional[str] = None
    category: Optional[str] = Field(default=None, description="Free-text category, e.g. 'Interested', 'Out Of Office'")
    date_received: Optional[datetime] = None
    from_email: Optional[str] = None
    primary_to_email: Optional[str] = None
    subject: Optional[str] = None
    text_body: Optional[str] = None


class MeetingRow(SourceRow):
    """meetings_booked row: one booked meeting with the prospect's firmographics."""
    campaign_id: Identifier = None
    campaign_name: Optional[str] = None
    client: Optional[str] = None
    created_time: Optional[datetime] = None
    email: Optional[str] = None
    full_name: Optional[str] = None
    title: Optional[str] = None
    company: Optional[str] = None
    industry: Optional[str] = None
    annual_revenue: Identifier = None
    company_size: Identifier = None
    company_hq_state: Optional[str] = None
    company_hq_country: Optional[str] = None
    year_founded: LooseInt = None


class OpportunityRow(SourceRow):
    """client_opportunities row: one sales opportunity and its current stage."""
    client: Optional[str] = None
    opportunity_name: Optional[str] = None
    stage: Optional[str] = None
    value: Optional[float] = Field(default=None, description="Deal value; 0 or missing means lost")
    contact_email: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class LeadRow(SourceRow):
    """all_leads row: one prospect with firmographic enrichment."""
    email: Optional[str] = None
    industry: Optional[str] = None
    annual_revenue: Identifier = None
    company_size: Identifier = None
    company_hq_state: Optional[str] = None
    company_hq_country: Optional[str] = None
    specialty_signal_a: Optional[str] = None
    specialty_signal_b: Optional[str] = None
    specialty_signal_c: Optional[str] = None
    job_title: Optional[str] = None
    campaign_id: Identifier = None
    client: Optional[str] = None
    created_time: Optional[datetime] = None


class EngagedLeadRow(SourceRow):
    """
    engaged_leads row: sales-stage progression flags for one lead.

    Stage flags are kept untyped because the sheet sync writes booleans,
    integers and 'yes'/'no' strings interchangeably; metrics.is_truthy reads them.
    """
    client: Optional[str] = None
    email: Optional[str] = None
    date_created: Optional[DateType] = None
    showed_up_to_disco: Any = None
    qualified: Any = None
    demo_booked: Any = None
    showed_up_to_demo: Any = None
    proposal_sent: Any = None
    pilot_accepted: Any = None
    closed: Any = None


class CampaignStatusRow(SourceRow):
    """Campaigns row: campaign metadata keyed by campaign_id + client."""
    campaign_id: Identifier = None
    campaign_name: Optional[str] = None
    client: Optional[str] = None
    status: Optional[str] = None


class FunnelForecastRow(SourceRow):
    """funnel_forecasts row: monthly estimate/actual for one funnel metric."""
    metric_key: str
    month: int = Field(..., ge=1, le=12)
    year: int
    client: Optional[str] = None
    estimate_low: float = 0.0
    estimate_avg: float = 0.0
    estimate_high: float = 0.0
    estimate_1: float = 0.0
    estimate_2: float = 0.0
    actual: float = 0.0
    projected: float = 0.0

    @model_validator(mode='before')
    @classmethod
    def _null_numbers_to_zero(cls, data: Any) -> Any:
        if isinstance(data, dict):
            numeric = (
                'estimate_low', 'estimate_avg', 'estimate_high',
                'estimate_1', 'estimate_2', 'actual', 'projected',
            )
            return {k: (0.0 if k in numeric and v is None else v) for k, v in data.items()}
        return data


class ClientTargetRow(SourceRow):
    """client_targets row: daily KPI targets for one client."""
    client: str
    emails_per_day: Count = 0
    prospects_per_day: Count = 0
    replies_per_day: Count = 0
    bounces_per_day: Count = 0
    meetings_per_day: Count = 0


class ClientRow(SourceRow):
    """Clients row. The client name lives in the 'Business' column."""
    model_config = ConfigDict(extra='ignore', populate_by_name=True)

    name: Optional[str] = Field(default=None, alias='Business')


# =============================================================================
# Request Models
# =============================================================================


class ReportFilter(BaseModel):
    """
    Window and scope of a pipeline run.

    Immutable for the duration of a run. start_date and end_date are inclusive
    calendar days; timestamp columns are matched from start-of-day of start_date
    up to (not including) the day after end_date.
    """
    model_config = ConfigDict(frozen=True)

    start_date: DateType = Field(..., description="First day of the window (inclusive)")
    end_date: DateType = Field(..., description="Last day of the window (inclusive)")
    client: Optional[str] = Field(default=None, description="Restrict every source to one client")
    campaign_ids: Optional[List[str]] = Field(
        default=None,
        description="Restrict campaign-bearing sources to these campaign identifiers",
    )

    @model_validator(mode='after')
    def _check_window(self) -> 'ReportFilter':
        if self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self

    @property
    def day_count(self) -> int:
        """Number of calendar days in the window, both ends included."""
        return (self.end_date - self.start_date).days + 1


# =============================================================================
# Campaign Stats
# =============================================================================


class CampaignStat(BaseModel):
    """
    Joined per-campaign totals with derived rates.

    Keyed by campaign_id + client; the same campaignId may appear once per client.
    """
    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "campaignId": "5",
                "campaignName": "Q1 Fintech Outbound",
                "client": "Acme",
                "status": "active",
                "totalSent": 500,
                "uniqueProspects": 400,
                "totalReplies": 3,
                "realReplies": 2,
                "positiveReplies": 2,
                "bounces": 4,
                "meetingsBooked": 1,
                "replyRate": 0.75,
                "realReplyRate": 0.5,
                "positiveRate": 100.0,
                "bounceRate": 0.8,
                "meetingConversion": 50.0,
            }
        }
    )

    campaignId: str
    campaignName: str
    client: str
    status: str = 'unknown'
    totalSent: int = Field(default=0, ge=0)
    uniqueProspects: int = Field(default=0, ge=0)
    totalReplies: int = Field(default=0, ge=0)
    realReplies: int = Field(default=0, ge=0)
    positiveReplies: int = Field(default=0, ge=0)
    bounces: int = Field(default=0, ge=0)
    meetingsBooked: int = Field(default=0, ge=0)
    replyRate: float = Field(default=0.0, ge=0.0, le=100.0, description="totalReplies / uniqueProspects, percent")
    realReplyRate: float = Field(default=0.0, ge=0.0, le=100.0, description="realReplies / uniqueProspects, percent")
    positiveRate: float = Field(default=0.0, ge=0.0, le=100.0, description="positiveReplies / realReplies, percent")
    bounceRate: float = Field(default=0.0, ge=0.0, le=100.0, description="bounces / totalSent, percent")
    meetingConversion: float = Field(default=0.0, ge=0.0, le=100.0, description="meetingsBooked / positiveReplies, percent")


class CampaignStatsPage(BaseModel):
    """One page of the campaign stats listing, sorted by totalSent descending."""
    campaigns: List[CampaignStat]
    totalCount: int = Field(..., ge=0, description="Campaigns across all pages")
    page: int = Field(..., ge=1)
    pageSize: int = Field(..., ge=1)


# =============================================================================
# Quick View
# =============================================================================


class QuickViewMetrics(BaseModel):
    """Headline totals for the selected window."""
    totalEmailsSent: int = 0
    uniqueProspects: int = 0
    totalReplies: int = 0
    realReplies: int = 0
    positiveReplies: int = 0
    bounces: int = 0
    meetingsBooked: int = 0


class ChartDataPoint(BaseModel):
    """One day of the quick view chart."""
    date: str = Field(..., description="Display label, e.g. 'Jan 15'")
    day: DateType
    sent: int = 0
    prospects: int = 0
    replied: int = 0
    positiveReplies: int = 0
    meetings: int = 0


class QuickViewResult(BaseModel):
    metrics: QuickViewMetrics
    chartData: List[ChartDataPoint]


# =============================================================================
# Sales
# =============================================================================


class SalesSummary(BaseModel):
    """Closed-deal summary. winRate is a percentage of decided deals."""
    totalRevenue: float = 0.0
    avgDealValue: float = 0.0
    winRate: float = Field(default=0.0, ge=0.0, le=100.0)
    totalClosedWon: int = 0
    totalClosedLost: int = 0
    totalDeals: int = 0


class SalesMetric(BaseModel):
    """Closed-deal activity for one day."""
    date: str
    day: DateType
    revenue: float = 0.0
    dealCount: int = 0
    avgValue: float = 0.0
    winRate: float = Field(default=0.0, ge=0.0, le=100.0)
    closedWonCount: int = 0
    closedLostCount: int = 0


class SalesMetricsResult(BaseModel):
    summary: SalesSummary
    dailyMetrics: List[SalesMetric]


class OpportunityStage(BaseModel):
    """Open value and count of opportunities sitting in one pipeline stage."""
    stage: str
    value: float = 0.0
    count: int = 0


# =============================================================================
# Firmographics
# =============================================================================


class DimensionBucket(BaseModel):
    """
    Counts for one value of a dimension.

    Rates are derived on the fly and never stored: engagementRate = engaged /
    leadsIn, positiveRate = positive / leadsIn, conversionRate = booked / leadsIn,
    all as zero-guarded percentages.
    """
    value: str
    leadsIn: int = Field(default=0, ge=0)
    engaged: int = Field(default=0, ge=0)
    positive: int = Field(default=0, ge=0)
    booked: int = Field(default=0, ge=0)

    @computed_field
    @property
    def engagementRate(self) -> float:
        return _percent(self.engaged, self.leadsIn)

    @computed_field
    @property
    def positiveRate(self) -> float:
        return _percent(self.positive, self.leadsIn)

    @computed_field
    @property
    def conversionRate(self) -> float:
        return _percent(self.booked, self.leadsIn)


class DimensionInsight(BaseModel):
    """Buckets for one dimension plus how much of the population carries it."""
    dimension: Dimension
    coverage: float = Field(..., ge=0.0, le=1.0, description="Share of leads with a usable value")
    totalLeads: int = Field(..., ge=0)
    totalLeadsWithData: int = Field(..., ge=0)
    lowCoverage: bool = Field(..., description="Advisory flag: coverage below the configured threshold")
    items: List[DimensionBucket]


class FirmographicInsights(BaseModel):
    industry: DimensionInsight
    revenue: DimensionInsight
    employees: DimensionInsight
    geography: DimensionInsight
    signals: DimensionInsight
    jobTitle: DimensionInsight


# =============================================================================
# Funnel
# =============================================================================


class FunnelStage(BaseModel):
    """One ordered funnel step. percentage is relative to the previous step."""
    name: str
    value: float = Field(..., ge=0)
    percentage: Optional[float] = Field(default=None, ge=0.0, le=100.0)


class FunnelForecastLine(BaseModel):
    """Forecast spreadsheet row with the computed actual merged in."""
    metric_key: str
    month: int
    year: int
    estimate_low: float = 0.0
    estimate_avg: float = 0.0
    estimate_high: float = 0.0
    estimate_1: float = 0.0
    estimate_2: float = 0.0
    actual: float = 0.0
    projected: float = 0.0


class FunnelResult(BaseModel):
    stages: List[FunnelStage]
    spreadsheet: List[FunnelForecastLine]


# =============================================================================
# Deep Insights
# =============================================================================


class CountBreakdown(BaseModel):
    """A labelled count with its share of the breakdown total."""
    label: str
    count: int = 0
    percentage: float = Field(default=0.0, ge=0.0, le=100.0)


class ReplyCategoryBreakdown(BaseModel):
    interested: int = 0
    notInterested: int = 0
    outOfOffice: int = 0
    other: int = 0
    total: int = 0


class DailyCount(BaseModel):
    date: str
    day: DateType
    count: int = 0


class CampaignPerformance(BaseModel):
    campaignId: str
    campaignName: str
    client: str
    replies: int = 0
    positiveReplies: int = 0
    positiveRate: float = Field(default=0.0, ge=0.0, le=100.0)


class DeepInsights(BaseModel):
    replyCategories: ReplyCategoryBreakdown
    repliesByDay: List[DailyCount]
    avgRepliesPerDay: float = 0.0
    bestDay: Optional[DailyCount] = None
    campaignPerformance: List[CampaignPerformance]
    engagedLeadsByClient: List[CountBreakdown]
    meetingsByIndustry: List[CountBreakdown]
    meetingsByState: List[CountBreakdown]
    meetingsByRevenue: List[CountBreakdown]
    meetingsByCompanyAge: List[CountBreakdown]
    meetingsByDay: List[DailyCount]
    totalMeetings: int = 0


# =============================================================================
# Scorecards and Client Performance
# =============================================================================


class ScorecardDay(BaseModel):
    date: str
    day: DateType
    sent: int = 0
    prospects: int = 0
    replies: int = 0
    meetings: int = 0


class CampaignScorecard(BaseModel):
    """Per-campaign scorecard for a single client."""
    campaignId: str
    campaignName: str
    client: str
    totalEmailsSent: int = 0
    uniqueProspects: int = 0
    totalReplies: int = Field(default=0, description="Unique contacts that replied")
    realReplies: int = Field(default=0, description="Unique contacts with a non out-of-office reply")
    positiveReplies: int = 0
    bounces: int = 0
    meetingsBooked: int = 0
    replyRate: float = 0.0
    positiveRate: float = 0.0
    lastActivityDate: Optional[DateType] = None
    status: CampaignStatus = CampaignStatus.COMPLETED
    chartData: List[ScorecardDay] = Field(default_factory=list)


class ClientPerformance(BaseModel):
    """A client's actuals against daily targets scaled to the window length."""
    client: str
    emailsSent: int = 0
    emailsTarget: int = 0
    prospects: int = 0
    prospectsTarget: int = 0
    realReplies: int = 0
    repliesTarget: int = 0
    meetings: int = 0
    meetingsTarget: int = 0


# =============================================================================
# Interested Replies Drill-down
# =============================================================================


class InterestedReply(BaseModel):
    """First interested reply from one sender."""
    fromEmail: str
    campaignId: Optional[str] = None
    campaignName: Optional[str] = None
    client: Optional[str] = None
    category: Optional[str] = None
    subject: Optional[str] = None
    dateReceived: Optional[datetime] = None


# =============================================================================
# Pipeline Envelope
# =============================================================================


class PipelineOutcome(BaseModel):
    """
    Result of one pipeline run.

    Exactly one of data/error is set. stale is True when a newer run of the
    same pipeline began before this one finished; callers drop stale outcomes.
    """
    pipeline: str
    generation: int = Field(..., ge=1)
    data: Optional[Any] = None
    error: Optional[str] = None
    stale: bool = False

    @property
    def succeeded(self) -> bool:
        return self.error is None


class PipelineResponse(BaseModel):
    """API envelope around a successful pipeline outcome."""
    pipeline: str
    generation: int
    stale: bool
    data: Any
