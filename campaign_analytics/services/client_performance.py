"""
Client Performance Pipeline

Actuals per client against daily targets scaled to the window length.
Clients come from the Clients table and are returned sorted by name. Both
lookup tables are paged in id order. A client without a
client_targets row has zero targets.
"""

import logging
from typing import Dict, List

from campaign_analytics.models.enums import SourceTable
from campaign_analytics.models.schemas import (
    CampaignReportingRow,
    ClientPerformance,
    ClientRow,
    ClientTargetRow,
    MeetingRow,
    ReplyRow,
    ReportFilter,
)
from campaign_analytics.services.datasource import TabularDataSource
from campaign_analytics.services.fetcher import fetch_records
from campaign_analytics.services.metrics import is_out_of_office
from campaign_analytics.services.source_queries import meetings_query, replies_query, reporting_query
from campaign_analytics.sql.table_query import TableQuery

logger = logging.getLogger(__name__)


async def compute_client_performance(
    source: TabularDataSource,
    report_filter: ReportFilter,
) -> List[ClientPerformance]:
    """
    Emails, prospects, real replies and meetings per client with targets.

    Targets are the client's per-day targets multiplied by the number of days
    in the window.
    """
    clients_query = TableQuery(SourceTable.CLIENTS.value, ('Business',))
    if report_filter.client:
        clients_query = clients_query.eq('Business', report_filter.client)
    clients = await fetch_records(source, clients_query, ClientRow)

    reporting = await fetch_records(source, reporting_query(report_filter), CampaignReportingRow)
    replies = await fetch_records(source, replies_query(report_filter, ('client', 'category')), ReplyRow)
    meetings = await fetch_records(source, meetings_query(report_filter, ('client', 'created_time')), MeetingRow)
    targets = await fetch_records(
        source,
        TableQuery(SourceTable.CLIENT_TARGETS.value),
        ClientTargetRow,
    )

    by_client: Dict[str, ClientPerformance] = {}
    for client in clients:
        if client.name and client.name not in by_client:
            by_client[client.name] = ClientPerformance(client=client.name)

    for row in reporting:
        performance = by_client.get(row.client or '')
        if performance is not None:
            performance.emailsSent += row.emails_sent
            performance.prospects += row.total_leads_contacted

    for reply in replies:
        performance = by_client.get(reply.client or '')
        if performance is not None and not is_out_of_office(reply.category):
            performance.realReplies += 1

    for meeting in meetings:
        performance = by_client.get(meeting.client or '')
        if performance is not None:
            performance.meetings += 1

    days = report_filter.day_count
    for target in targets:
        performance = by_client.get(target.client)
        if performance is None:
            continue
        performance.emailsTarget = target.emails_per_day * days
        performance.prospectsTarget = target.prospects_per_day * days
        performance.repliesTarget = target.replies_per_day * days
        performance.meetingsTarget = target.meetings_per_day * days

    logger.info(f"Client performance: {len(by_client)} clients over {days} days")
    return sorted(by_client.values(), key=lambda performance: performance.client)
