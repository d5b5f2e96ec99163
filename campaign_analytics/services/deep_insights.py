"""
Deep Insights Pipeline

Reply, engaged-lead and meeting breakdowns for one window.

Replies:
- category breakdown (interested / not interested / out-of-office / other)
- replies per day for every day of the window, the window's average and the
  best day (earliest day with the highest count)
- campaign performance: campaigns with at least `campaign_performance_min_replies`
  replies, top `breakdown_top_n` by positive rate (interested / all replies)

Engaged leads are counted per client over all time; only the client scope applies.

Meetings are broken down by industry and HQ state (top N, unknown values left
out of the list but kept in the percentage denominator), by revenue band and
company age band (fixed band order, Unknown last) and by day.
"""

import logging
from datetime import date
from typing import Dict, List, Optional

from campaign_analytics.core.config import get_settings
from campaign_analytics.models.enums import ReplyCategory
from campaign_analytics.models.schemas import (
    CampaignPerformance,
    CampaignStatusRow,
    DailyCount,
    DeepInsights,
    EngagedLeadRow,
    MeetingRow,
    ReplyCategoryBreakdown,
    ReplyRow,
    ReportFilter,
)
from campaign_analytics.services.bucketer import (
    COMPANY_AGE_BANDS,
    REVENUE_BANDS,
    UNKNOWN_LABEL,
    DateBuckets,
    company_age_band,
    count_breakdown,
    format_date_label,
    is_valid_value,
    normalize_revenue,
)
from campaign_analytics.services.datasource import TabularDataSource
from campaign_analytics.services.fetcher import fetch_records
from campaign_analytics.services.joiner import make_composite_key
from campaign_analytics.services.metrics import categorize_reply, is_positive_reply, safe_rate, safe_ratio
from campaign_analytics.services.source_queries import (
    campaign_status_query,
    engaged_leads_query,
    meetings_query,
    replies_query,
)

logger = logging.getLogger(__name__)

MEETING_INSIGHT_COLUMNS = (
    'created_time', 'industry', 'company_hq_state', 'annual_revenue',
    'year_founded', 'client', 'campaign_name',
)


def label_or_unknown(value: Optional[str]) -> str:
    return str(value).strip() if is_valid_value(value) else UNKNOWN_LABEL


def daily_counts(report_filter: ReportFilter, days) -> List[DailyCount]:
    """Count timestamps per day over the whole window, empty days included."""
    buckets = DateBuckets(
        report_filter.start_date,
        report_filter.end_date,
        lambda day: DailyCount(date=format_date_label(day), day=day),
    )
    for value in days:
        bucket = buckets.get(value)
        if bucket is not None:
            bucket.count += 1
    return [bucket for _, bucket in buckets.ordered()]


def best_day(days: List[DailyCount]) -> Optional[DailyCount]:
    """Earliest day with the highest count; None when every day is empty."""
    best = None
    for day in days:
        if day.count > 0 and (best is None or day.count > best.count):
            best = day
    return best


def summarize_categories(replies: List[ReplyRow]) -> ReplyCategoryBreakdown:
    breakdown = ReplyCategoryBreakdown(total=len(replies))
    for reply in replies:
        category = categorize_reply(reply.category)
        if category == ReplyCategory.INTERESTED:
            breakdown.interested += 1
        elif category == ReplyCategory.NOT_INTERESTED:
            breakdown.notInterested += 1
        elif category == ReplyCategory.OUT_OF_OFFICE:
            breakdown.outOfOffice += 1
        else:
            breakdown.other += 1
    return breakdown


def rank_campaign_performance(
    replies: List[ReplyRow],
    names: Dict[str, str],
    min_replies: int,
    top_n: int,
) -> List[CampaignPerformance]:
    """
    Positive rate per campaign, keyed by campaign id + client.

    Campaigns below min_replies are left out; the rest are sorted by positive
    rate descending (stable) and cut to top_n.
    """
    performance: Dict[str, CampaignPerformance] = {}
    for reply in replies:
        key = make_composite_key(reply.campaign_id, reply.client)
        if key is None:
            continue
        entry = performance.get(key)
        if entry is None:
            entry = CampaignPerformance(
                campaignId=reply.campaign_id,
                campaignName=names.get(key, reply.campaign_id),
                client=reply.client,
            )
            performance[key] = entry
        entry.replies += 1
        if is_positive_reply(reply.category):
            entry.positiveReplies += 1

    eligible = [entry for entry in performance.values() if entry.replies >= min_replies]
    for entry in eligible:
        entry.positiveRate = safe_rate(entry.positiveReplies, entry.replies)
    eligible.sort(key=lambda entry: entry.positiveRate, reverse=True)
    return eligible[:top_n]


async def compute_deep_insights(
    source: TabularDataSource,
    report_filter: ReportFilter,
    as_of: Optional[date] = None,
) -> DeepInsights:
    """
    Compute reply, engaged-lead and meeting breakdowns.

    Args:
        source: Data source to read from.
        report_filter: Window and scope.
        as_of: Reference day for company age bands. Defaults to today.

    Returns:
        DeepInsights
    """
    settings = get_settings()
    as_of = as_of or date.today()

    replies = await fetch_records(
        source,
        replies_query(report_filter, ('category', 'date_received', 'campaign_id', 'client')),
        ReplyRow,
    )
    campaigns = await fetch_records(source, campaign_status_query(report_filter), CampaignStatusRow)
    engaged = await fetch_records(source, engaged_leads_query(report_filter, windowed=False), EngagedLeadRow)
    meetings = await fetch_records(source, meetings_query(report_filter, MEETING_INSIGHT_COLUMNS), MeetingRow)

    names: Dict[str, str] = {}
    for campaign in campaigns:
        key = make_composite_key(campaign.campaign_id, campaign.client)
        if key and campaign.campaign_name:
            names[key] = campaign.campaign_name

    replies_by_day = daily_counts(report_filter, (reply.date_received for reply in replies))
    total_meetings = len(meetings)

    insights = DeepInsights(
        replyCategories=summarize_categories(replies),
        repliesByDay=replies_by_day,
        avgRepliesPerDay=safe_ratio(len(replies), report_filter.day_count),
        bestDay=best_day(replies_by_day),
        campaignPerformance=rank_campaign_performance(
            replies,
            names,
            min_replies=settings.campaign_performance_min_replies,
            top_n=settings.breakdown_top_n,
        ),
        engagedLeadsByClient=count_breakdown(label_or_unknown(lead.client) for lead in engaged),
        meetingsByIndustry=count_breakdown(
            (label_or_unknown(meeting.industry) for meeting in meetings),
            total=total_meetings,
            exclude=(UNKNOWN_LABEL,),
            limit=settings.breakdown_top_n,
        ),
        meetingsByState=count_breakdown(
            (label_or_unknown(meeting.company_hq_state) for meeting in meetings),
            total=total_meetings,
            exclude=(UNKNOWN_LABEL,),
            limit=settings.breakdown_top_n,
        ),
        meetingsByRevenue=count_breakdown(
            (normalize_revenue(meeting.annual_revenue) or UNKNOWN_LABEL for meeting in meetings),
            total=total_meetings,
            order=REVENUE_BANDS + (UNKNOWN_LABEL,),
        ),
        meetingsByCompanyAge=count_breakdown(
            (company_age_band(meeting.year_founded, as_of) for meeting in meetings),
            total=total_meetings,
            order=COMPANY_AGE_BANDS + (UNKNOWN_LABEL,),
        ),
        meetingsByDay=daily_counts(report_filter, (meeting.created_time for meeting in meetings)),
        totalMeetings=total_meetings,
    )

    logger.info(
        f"Deep insights: {len(replies)} replies, {len(engaged)} engaged leads, {total_meetings} meetings"
    )
    return insights
