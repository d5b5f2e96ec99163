"""
Campaign Stats Pipeline

Per-campaign totals for a window: campaign_reporting, Campaigns (status),
replies and meetings_booked are fetched one after another, joined by composite
key, ranked by emails sent and paged.

Also hosts the interested-replies drill-down, which resolves campaign names by
composite key and keeps only the first interested reply per sender.
"""

import logging
from typing import Dict, List, Optional

from campaign_analytics.core.config import get_settings
from campaign_analytics.models.schemas import (
    CampaignReportingRow,
    CampaignStatsPage,
    CampaignStatusRow,
    InterestedReply,
    MeetingRow,
    ReplyRow,
    ReportFilter,
)
from campaign_analytics.services.datasource import TabularDataSource
from campaign_analytics.services.fetcher import fetch_records
from campaign_analytics.services.joiner import (
    build_status_lookup,
    first_occurrence_by_contact,
    join_campaign_sources,
    make_composite_key,
    normalize_email,
    paginate,
    rank_campaigns,
)
from campaign_analytics.services.metrics import to_campaign_stat
from campaign_analytics.services.source_queries import (
    campaign_status_query,
    meetings_query,
    replies_query,
    reporting_query,
)

logger = logging.getLogger(__name__)

INTERESTED_CATEGORY = 'Interested'

REPLY_DRILLDOWN_COLUMNS = (
    'reply_id', 'from_email', 'subject', 'campaign_id', 'client', 'category', 'date_received',
)


async def compute_campaign_stats(
    source: TabularDataSource,
    report_filter: ReportFilter,
    page: int = 1,
    page_size: Optional[int] = None,
    include_unsent: bool = False,
) -> CampaignStatsPage:
    """
    Compute one page of per-campaign stats.

    Args:
        source: Data source to read from.
        report_filter: Window and scope.
        page: 1-based page number.
        page_size: Campaigns per page. Defaults to Settings.default_campaign_page_size.
        include_unsent: Keep campaigns with no emails sent in the window.

    Returns:
        CampaignStatsPage sorted by totalSent descending, with the total number
        of campaigns across all pages.
    """
    size = page_size or get_settings().default_campaign_page_size

    reporting = await fetch_records(source, reporting_query(report_filter), CampaignReportingRow)
    statuses = await fetch_records(source, campaign_status_query(report_filter), CampaignStatusRow)
    replies = await fetch_records(
        source,
        replies_query(report_filter, ('campaign_id', 'client', 'category')),
        ReplyRow,
    )
    meetings = await fetch_records(
        source,
        meetings_query(report_filter, ('campaign_id', 'campaign_name', 'client')),
        MeetingRow,
    )

    aggregates = join_campaign_sources(
        reporting,
        replies,
        meetings,
        statuses=build_status_lookup(statuses),
    )
    ranked = rank_campaigns(aggregates.values(), include_unsent=include_unsent)
    logger.info(f"Campaign stats: {len(aggregates)} campaigns joined, {len(ranked)} listed")

    return CampaignStatsPage(
        campaigns=[to_campaign_stat(aggregate) for aggregate in paginate(ranked, page, size)],
        totalCount=len(ranked),
        page=page,
        pageSize=size,
    )


async def fetch_interested_replies(
    source: TabularDataSource,
    report_filter: ReportFilter,
) -> List[InterestedReply]:
    """
    First interested reply per sender within the window, newest first.

    Senders are compared case-insensitively. Campaign names come from the
    Campaigns table by composite key; unmatched campaigns read 'Unknown Campaign'.
    """
    query = replies_query(report_filter, REPLY_DRILLDOWN_COLUMNS).eq('category', INTERESTED_CATEGORY)
    replies = await fetch_records(source, query, ReplyRow)
    campaigns = await fetch_records(source, campaign_status_query(report_filter), CampaignStatusRow)

    names: Dict[str, str] = {}
    for campaign in campaigns:
        key = make_composite_key(campaign.campaign_id, campaign.client)
        if key and campaign.campaign_name:
            names[key] = campaign.campaign_name

    earliest = first_occurrence_by_contact(
        replies,
        contact=lambda reply: normalize_email(reply.from_email),
        timestamp=lambda reply: reply.date_received,
    )

    drilldown = [
        InterestedReply(
            fromEmail=reply.from_email,
            campaignId=reply.campaign_id,
            campaignName=names.get(make_composite_key(reply.campaign_id, reply.client) or '', 'Unknown Campaign'),
            client=reply.client,
            category=reply.category,
            subject=reply.subject,
            dateReceived=reply.date_received,
        )
        for reply in earliest
    ]
    drilldown.reverse()
    return drilldown

