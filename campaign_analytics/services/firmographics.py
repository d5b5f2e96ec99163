"""
Firmographic Insights Pipeline

Which kinds of companies engage and book. Sources, in order:
1. campaign_reporting: campaigns active in the window
2. all_leads: leads of those campaigns (every lead in the filter's scope when
   no campaign was active)
3. replies: non out-of-office replies in the window
4. meetings_booked: meetings in the window

Leads, replies and meetings are joined by lowercased email. A reply belongs to
the lead in primary_to_email, or in lead_id when that is an email address.

Dimensions: industry, revenue band, employee band, geography (HQ state, else
country), specialty signals (a lead can carry up to three) and job title.
Except for signals, a meeting only counts toward a bucket when the meeting's
own value for the dimension matches the bucket.
"""

import logging
from typing import List, Optional

from campaign_analytics.models.enums import Dimension, RankMetric, SourceTable
from campaign_analytics.models.schemas import (
    CampaignReportingRow,
    DimensionInsight,
    FirmographicInsights,
    LeadRow,
    MeetingRow,
    ReplyRow,
    ReportFilter,
)
from campaign_analytics.services.bucketer import (
    bucket_dimension,
    is_valid_value,
    normalize_company_size,
    normalize_revenue,
)
from campaign_analytics.services.datasource import TabularDataSource
from campaign_analytics.services.fetcher import apply_report_filter, fetch_records
from campaign_analytics.services.joiner import group_by_contact, normalize_email, reply_contact_email
from campaign_analytics.services.metrics import is_positive_reply
from campaign_analytics.services.source_queries import (
    LEAD_COLUMNS,
    meetings_query,
    replies_query,
    reporting_query,
)
from campaign_analytics.sql.table_query import TableQuery

logger = logging.getLogger(__name__)

OUT_OF_OFFICE_PATTERNS = ('%out of office%', '%ooo%')


def lead_geography(lead: LeadRow) -> Optional[str]:
    if is_valid_value(lead.company_hq_state):
        return lead.company_hq_state
    if is_valid_value(lead.company_hq_country):
        return lead.company_hq_country
    return None


def lead_signals(lead: LeadRow) -> List[Optional[str]]:
    return [lead.specialty_signal_a, lead.specialty_signal_b, lead.specialty_signal_c]


async def compute_firmographic_insights(
    source: TabularDataSource,
    report_filter: ReportFilter,
    rank_by: RankMetric = RankMetric.BOOKED,
) -> FirmographicInsights:
    """
    Bucket the window's leads by every firmographic dimension.

    Args:
        source: Data source to read from.
        report_filter: Window and scope.
        rank_by: Bucket ordering metric; booking count by default.

    Returns:
        FirmographicInsights with one DimensionInsight per dimension.
    """
    active = await fetch_records(source, reporting_query(report_filter, ('campaign_id',)), CampaignReportingRow)
    campaign_ids = sorted({row.campaign_id for row in active if row.campaign_id})

    lead_query = apply_report_filter(
        TableQuery(SourceTable.ALL_LEADS.value, LEAD_COLUMNS),
        report_filter,
        campaign_column='campaign_id',
    )
    if campaign_ids:
        lead_query = lead_query.in_('campaign_id', campaign_ids)
    leads = await fetch_records(source, lead_query, LeadRow)

    reply_query = replies_query(
        report_filter,
        ('lead_id', 'from_email', 'primary_to_email', 'category', 'date_received', 'client'),
    )
    for pattern in OUT_OF_OFFICE_PATTERNS:
        reply_query = reply_query.not_ilike('category', pattern)
    replies = await fetch_records(source, reply_query, ReplyRow)

    meetings = await fetch_records(source, meetings_query(report_filter), MeetingRow)

    logger.info(
        f"Firmographics: {len(campaign_ids)} active campaigns, {len(leads)} leads, "
        f"{len(replies)} replies, {len(meetings)} meetings"
    )

    replies_by_contact = group_by_contact(replies, reply_contact_email)
    meetings_by_contact = group_by_contact(meetings, lambda meeting: normalize_email(meeting.email))

    def bucket(dimension, lead_values, meeting_value=None) -> DimensionInsight:
        return bucket_dimension(
            dimension,
            leads,
            lead_values=lead_values,
            lead_contact=lambda lead: normalize_email(lead.email),
            replies_by_contact=replies_by_contact,
            meetings_by_contact=meetings_by_contact,
            is_positive=lambda reply: is_positive_reply(reply.category),
            meeting_value=meeting_value,
            rank_by=rank_by,
        )

    return FirmographicInsights(
        industry=bucket(
            Dimension.INDUSTRY,
            lambda lead: [lead.industry],
            lambda meeting: meeting.industry,
        ),
        revenue=bucket(
            Dimension.REVENUE,
            lambda lead: [normalize_revenue(lead.annual_revenue)],
            lambda meeting: normalize_revenue(meeting.annual_revenue),
        ),
        employees=bucket(
            Dimension.EMPLOYEES,
            lambda lead: [normalize_company_size(lead.company_size)],
            lambda meeting: normalize_company_size(meeting.company_size),
        ),
        geography=bucket(
            Dimension.GEOGRAPHY,
            lambda lead: [lead_geography(lead)],
            lambda meeting: meeting.company_hq_state,
        ),
        signals=bucket(Dimension.SIGNALS, lead_signals),
        jobTitle=bucket(
            Dimension.JOB_TITLE,
            lambda lead: [lead.job_title],
            lambda meeting: meeting.title,
        ),
    )
