"""
Sales Funnel Pipeline

Builds the eleven-stage funnel for a window and merges the computed actuals
into the month's forecast spreadsheet.

Stage sources:
- Total Sent, Unique Contacts, Interested: campaign_reporting sums
- Real Replies: replies in the window that are not out-of-office
- Meetings Booked: meetings_booked rows in the window
- Showed Up to Disco .. Closed: engaged_leads stage flags, each replaced by the
  forecast's recorded actual when that actual is positive

Each stage's percentage is relative to the stage before it.
"""

import logging
from dataclasses import dataclass
from typing import Dict, List

from campaign_analytics.models.enums import SourceTable
from campaign_analytics.models.schemas import (
    CampaignReportingRow,
    EngagedLeadRow,
    FunnelForecastLine,
    FunnelForecastRow,
    FunnelResult,
    MeetingRow,
    ReplyRow,
    ReportFilter,
)
from campaign_analytics.services.datasource import TabularDataSource
from campaign_analytics.services.fetcher import fetch_records
from campaign_analytics.services.metrics import build_funnel, is_out_of_office, is_truthy, safe_rate
from campaign_analytics.services.source_queries import (
    engaged_leads_query,
    meetings_query,
    replies_query,
    reporting_query,
)
from campaign_analytics.sql.table_query import TableQuery

logger = logging.getLogger(__name__)


# Forecast metric key that overrides each engaged-lead stage
STAGE_OVERRIDE_KEYS = {
    'showed_up_to_disco': 'total_show_up_to_disco',
    'qualified': 'total_qualified',
    'demo_booked': 'total_booked',
    'showed_up_to_demo': 'total_show_up_to_demo',
    'proposal_sent': 'total_PILOT_accepted',
    'closed': 'total_deals_closed',
}


@dataclass
class SalesStageCounts:
    """Counts of engaged leads that reached each sales stage."""
    showed_up_to_disco: float = 0
    qualified: float = 0
    demo_booked: float = 0
    showed_up_to_demo: float = 0
    proposal_sent: float = 0
    closed: float = 0

    @classmethod
    def from_engaged_leads(cls, leads: List[EngagedLeadRow]) -> 'SalesStageCounts':
        return cls(
            showed_up_to_disco=sum(1 for lead in leads if is_truthy(lead.showed_up_to_disco)),
            qualified=sum(1 for lead in leads if is_truthy(lead.qualified)),
            demo_booked=sum(1 for lead in leads if is_truthy(lead.demo_booked)),
            showed_up_to_demo=sum(1 for lead in leads if is_truthy(lead.showed_up_to_demo)),
            proposal_sent=sum(
                1 for lead in leads
                if is_truthy(lead.proposal_sent) or is_truthy(lead.pilot_accepted)
            ),
            closed=sum(1 for lead in leads if is_truthy(lead.closed)),
        )

    def apply_forecast_actuals(self, forecasts: Dict[str, FunnelForecastRow]) -> None:
        """Replace a stage count with the forecast's actual when that actual is positive."""
        for attribute, metric_key in STAGE_OVERRIDE_KEYS.items():
            forecast = forecasts.get(metric_key)
            if forecast is not None and forecast.actual > 0:
                setattr(self, attribute, forecast.actual)


def forecast_query(report_filter: ReportFilter, month: int, year: int) -> TableQuery:
    query = TableQuery(SourceTable.FUNNEL_FORECASTS.value).eq('month', month).eq('year', year)
    if report_filter.client:
        query = query.eq('client', report_filter.client)
    return query


def actual_values(
    total_sent: float,
    unique_contacts: float,
    real_replies: float,
    positive_replies: float,
    meetings_booked: float,
    stages: SalesStageCounts,
) -> Dict[str, float]:
    """Computed actual for every forecast metric key."""
    return {
        'total_messages_sent': total_sent,
        'total_leads_contacted': unique_contacts,
        'response_rate': safe_rate(real_replies, unique_contacts),
        'total_responses': real_replies,
        'positive_response_rate': safe_rate(positive_replies, real_replies),
        'total_pos_response': positive_replies,
        'booked_rate': safe_rate(meetings_booked, positive_replies),
        'total_booked': meetings_booked,
        'meetings_passed': meetings_booked,
        'show_up_to_disco_rate': safe_rate(stages.showed_up_to_disco, meetings_booked),
        'total_show_up_to_disco': stages.showed_up_to_disco,
        'qualified_rate': safe_rate(stages.qualified, stages.showed_up_to_disco),
        'total_qualified': stages.qualified,
        'close_rate': safe_rate(stages.closed, stages.qualified),
        'total_PILOT_accepted': stages.proposal_sent,
        'LM_converted_to_close': safe_rate(stages.closed, stages.proposal_sent),
        'total_deals_closed': stages.closed,
    }


def merge_spreadsheet(
    forecasts: List[FunnelForecastRow],
    actuals: Dict[str, float],
    month: int,
    year: int,
) -> List[FunnelForecastLine]:
    """
    Forecast rows with their actual replaced by the computed value where one
    exists. Without forecast rows, one zero-estimate line per computed metric.
    """
    if not forecasts:
        return [
            FunnelForecastLine(metric_key=key, month=month, year=year, actual=value)
            for key, value in actuals.items()
        ]

    lines = []
    for row in forecasts:
        line = FunnelForecastLine(**row.model_dump(exclude={'client'}))
        if row.metric_key in actuals:
            line.actual = actuals[row.metric_key]
        lines.append(line)
    return lines


async def compute_funnel(
    source: TabularDataSource,
    report_filter: ReportFilter,
    month: int,
    year: int,
) -> FunnelResult:
    """
    Compute funnel stages and the merged forecast spreadsheet.

    Args:
        source: Data source to read from.
        report_filter: Window and scope. The client, when set, also selects
            the forecast rows.
        month: Forecast month (1-12).
        year: Forecast year.

    Returns:
        FunnelResult with eleven ordered stages and spreadsheet lines.

    Raises:
        ValueError: If month is not between 1 and 12.
    """
    if not 1 <= month <= 12:
        raise ValueError(f"month must be between 1 and 12, got {month}")

    reporting = await fetch_records(source, reporting_query(report_filter), CampaignReportingRow)
    replies = await fetch_records(source, replies_query(report_filter, ('category', 'date_received')), ReplyRow)
    meetings = await fetch_records(source, meetings_query(report_filter, ('created_time',)), MeetingRow)
    engaged = await fetch_records(source, engaged_leads_query(report_filter), EngagedLeadRow)
    forecasts = await fetch_records(source, forecast_query(report_filter, month, year), FunnelForecastRow)

    total_sent = sum(row.emails_sent for row in reporting)
    unique_contacts = sum(row.total_leads_contacted for row in reporting)
    positive_replies = sum(row.interested for row in reporting)
    real_replies = sum(1 for reply in replies if not is_out_of_office(reply.category))
    meetings_booked = len(meetings)

    stages = SalesStageCounts.from_engaged_leads(engaged)
    stages.apply_forecast_actuals({row.metric_key: row for row in forecasts})

    funnel = build_funnel([
        ('Total Sent', total_sent),
        ('Unique Contacts', unique_contacts),
        ('Real Replies', real_replies),
        ('Interested', positive_replies),
        ('Meetings Booked', meetings_booked),
        ('Showed Up to Disco', stages.showed_up_to_disco),
        ('Qualified', stages.qualified),
        ('Demo Booked', stages.demo_booked),
        ('Showed Up to Demo', stages.showed_up_to_demo),
        ('Proposal Sent', stages.proposal_sent),
        ('Closed', stages.closed),
    ])

    actuals = actual_values(total_sent, unique_contacts, real_replies, positive_replies, meetings_booked, stages)
    logger.info(
        f"Funnel {year}-{month:02d}: {len(engaged)} engaged leads, {len(forecasts)} forecast rows"
    )
    return FunnelResult(stages=funnel, spreadsheet=merge_spreadsheet(forecasts, actuals, month, year))
