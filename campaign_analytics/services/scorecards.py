"""
Campaign Scorecards Pipeline

Per-campaign scorecards for a single client.

Replies are counted as unique contacts (lead_id, else from_email) per campaign,
once over all replies and once over non out-of-office replies. The daily chart
counts unique real-reply contacts per day.

Status comes from days between the last reporting day and as_of:
- active: fewer than `scorecard_active_days`
- paused: up to `scorecard_completed_days`
- completed: anything older, or no reporting day at all
"""

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Dict, List, Optional, Set

from campaign_analytics.core.config import get_settings
from campaign_analytics.models.enums import CampaignStatus
from campaign_analytics.models.schemas import (
    CampaignReportingRow,
    CampaignScorecard,
    MeetingRow,
    ReplyRow,
    ReportFilter,
    ScorecardDay,
)
from campaign_analytics.services.bucketer import DateBuckets, day_of, format_date_label
from campaign_analytics.services.datasource import TabularDataSource
from campaign_analytics.services.fetcher import fetch_records
from campaign_analytics.services.joiner import make_composite_key
from campaign_analytics.services.metrics import is_out_of_office, positive_rate, real_reply_rate
from campaign_analytics.services.source_queries import meetings_query, replies_query, reporting_query

logger = logging.getLogger(__name__)


@dataclass
class _ScorecardBuilder:
    campaign_id: str
    campaign_name: str
    client: str
    chart: DateBuckets
    emails_sent: int = 0
    prospects: int = 0
    positive: int = 0
    bounces: int = 0
    meetings: int = 0
    last_activity: Optional[date] = None
    repliers: Set[str] = field(default_factory=set)
    real_repliers: Set[str] = field(default_factory=set)
    daily_repliers: Dict[date, Set[str]] = field(default_factory=dict)


def campaign_status(last_activity: Optional[date], as_of: date) -> CampaignStatus:
    settings = get_settings()
    if last_activity is None:
        return CampaignStatus.COMPLETED
    idle_days = (as_of - last_activity).days
    if idle_days < settings.scorecard_active_days:
        return CampaignStatus.ACTIVE
    if idle_days <= settings.scorecard_completed_days:
        return CampaignStatus.PAUSED
    return CampaignStatus.COMPLETED


def reply_contact_key(reply: ReplyRow) -> Optional[str]:
    return reply.lead_id or reply.from_email or None


async def compute_campaign_scorecards(
    source: TabularDataSource,
    report_filter: ReportFilter,
    as_of: Optional[date] = None,
) -> List[CampaignScorecard]:
    """
    Build one scorecard per campaign of the filter's client.

    Args:
        source: Data source to read from.
        report_filter: Window and scope. client is required.
        as_of: Reference day for status. Defaults to today.

    Returns:
        Scorecards sorted by totalEmailsSent descending.

    Raises:
        ValueError: If report_filter has no client.
    """
    if not report_filter.client:
        raise ValueError("Campaign scorecards require a client")
    as_of = as_of or date.today()

    reporting = await fetch_records(source, reporting_query(report_filter), CampaignReportingRow)
    replies = await fetch_records(
        source,
        replies_query(report_filter, ('campaign_id', 'client', 'category', 'date_received', 'lead_id', 'from_email')),
        ReplyRow,
    )
    meetings = await fetch_records(
        source,
        meetings_query(report_filter, ('campaign_id', 'client', 'created_time')),
        MeetingRow,
    )

    builders: Dict[str, _ScorecardBuilder] = {}
    for row in reporting:
        key = make_composite_key(row.campaign_id, row.client)
        if key is None or not row.campaign_name:
            continue
        builder = builders.get(key)
        if builder is None:
            builder = _ScorecardBuilder(
                campaign_id=row.campaign_id,
                campaign_name=row.campaign_name,
                client=row.client,
                chart=DateBuckets(
                    report_filter.start_date,
                    report_filter.end_date,
                    lambda day: ScorecardDay(date=format_date_label(day), day=day),
                ),
            )
            builders[key] = builder

        builder.emails_sent += row.emails_sent
        builder.prospects += row.total_leads_contacted
        builder.positive += row.interested
        builder.bounces += row.bounced
        if row.date and (builder.last_activity is None or row.date > builder.last_activity):
            builder.last_activity = row.date

        point = builder.chart.get(row.date)
        if point is not None:
            point.sent += row.emails_sent
            point.prospects += row.total_leads_contacted

    for reply in replies:
        builder = builders.get(make_composite_key(reply.campaign_id, reply.client) or '')
        contact = reply_contact_key(reply)
        if builder is None or contact is None:
            continue
        builder.repliers.add(contact)
        if not is_out_of_office(reply.category):
            builder.real_repliers.add(contact)
            day = day_of(reply.date_received)
            if builder.chart.get(day) is not None:
                builder.daily_repliers.setdefault(day, set()).add(contact)

    for meeting in meetings:
        builder = builders.get(make_composite_key(meeting.campaign_id, meeting.client) or '')
        if builder is None:
            continue
        builder.meetings += 1
        point = builder.chart.get(meeting.created_time)
        if point is not None:
            point.meetings += 1

    scorecards = []
    for builder in builders.values():
        for day, contacts in builder.daily_repliers.items():
            builder.chart.get(day).replies = len(contacts)
        real_replies = len(builder.real_repliers)
        scorecards.append(CampaignScorecard(
            campaignId=builder.campaign_id,
            campaignName=builder.campaign_name,
            client=builder.client,
            totalEmailsSent=builder.emails_sent,
            uniqueProspects=builder.prospects,
            totalReplies=len(builder.repliers),
            realReplies=real_replies,
            positiveReplies=builder.positive,
            bounces=builder.bounces,
            meetingsBooked=builder.meetings,
            replyRate=real_reply_rate(real_replies, builder.prospects),
            positiveRate=positive_rate(builder.positive, real_replies),
            lastActivityDate=builder.last_activity,
            status=campaign_status(builder.last_activity, as_of),
            chartData=[point for _, point in builder.chart.ordered()],
        ))

    scorecards.sort(key=lambda card: card.totalEmailsSent, reverse=True)
    logger.info(f"Scorecards for {report_filter.client}: {len(scorecards)} campaigns")
    return scorecards
