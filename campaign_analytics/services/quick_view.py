"""
Quick View Pipeline

Headline totals and a daily chart for the selected window.

Totals:
- emails sent, unique prospects, bounces and positive replies come from
  campaign_reporting (rows without a campaign name are ignored)
- total replies is a server-side count; real replies exclude out-of-office
- meetings is the number of meetings booked in the window

The chart has one point per calendar day of the window, empty days included.
"""

import logging

from campaign_analytics.models.schemas import (
    CampaignReportingRow,
    ChartDataPoint,
    MeetingRow,
    QuickViewMetrics,
    QuickViewResult,
    ReplyRow,
    ReportFilter,
)
from campaign_analytics.services.bucketer import DateBuckets, format_date_label
from campaign_analytics.services.datasource import TabularDataSource
from campaign_analytics.services.fetcher import count_rows, fetch_records
from campaign_analytics.services.metrics import is_out_of_office
from campaign_analytics.services.source_queries import meetings_query, replies_query, reporting_query

logger = logging.getLogger(__name__)


async def compute_quick_view(source: TabularDataSource, report_filter: ReportFilter) -> QuickViewResult:
    """
    Compute quick view totals and the daily chart series.

    Args:
        source: Data source to read from.
        report_filter: Window and scope.

    Returns:
        QuickViewResult with metrics and one ChartDataPoint per day.
    """
    reporting = await fetch_records(source, reporting_query(report_filter), CampaignReportingRow)
    reporting = [row for row in reporting if row.campaign_name and row.campaign_name.strip()]

    reply_query = replies_query(report_filter, ('category', 'date_received'))
    total_replies = await count_rows(source, reply_query)
    replies = await fetch_records(source, reply_query, ReplyRow)
    real_replies = [reply for reply in replies if not is_out_of_office(reply.category)]

    meetings = await fetch_records(source, meetings_query(report_filter, ('created_time',)), MeetingRow)

    metrics = QuickViewMetrics(
        totalEmailsSent=sum(row.emails_sent for row in reporting),
        uniqueProspects=sum(row.total_leads_contacted for row in reporting),
        totalReplies=total_replies,
        realReplies=len(real_replies),
        positiveReplies=sum(row.interested for row in reporting),
        bounces=sum(row.bounced for row in reporting),
        meetingsBooked=len(meetings),
    )

    chart = DateBuckets(
        report_filter.start_date,
        report_filter.end_date,
        lambda day: ChartDataPoint(date=format_date_label(day), day=day),
    )
    for row in reporting:
        point = chart.get(row.date)
        if point is not None:
            point.sent += row.emails_sent
            point.prospects += row.total_leads_contacted
            point.positiveReplies += row.interested
    for reply in real_replies:
        point = chart.get(reply.date_received)
        if point is not None:
            point.replied += 1
    for meeting in meetings:
        point = chart.get(meeting.created_time)
        if point is not None:
            point.meetings += 1

    logger.info(
        f"Quick view: {metrics.totalEmailsSent} sent, {metrics.realReplies} real replies, "
        f"{metrics.meetingsBooked} meetings over {len(chart)} days"
    )
    return QuickViewResult(metrics=metrics, chartData=[point for _, point in chart.ordered()])
