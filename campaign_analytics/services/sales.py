"""
Sales Pipeline

Closed-deal metrics from client_opportunities and the open pipeline by stage.

A closed opportunity's close day is updated_at, falling back to created_at. The
store cannot coalesce the two in a filter, so closed opportunities are fetched
for the client and narrowed to the window afterwards.

Won/lost rule: value > 0 is won; value 0 or missing is lost.
"""

import logging
from dataclasses import dataclass
from datetime import date
from typing import Dict, List, Optional

from campaign_analytics.models.enums import SourceTable
from campaign_analytics.models.schemas import (
    OpportunityRow,
    OpportunityStage,
    ReportFilter,
    SalesMetric,
    SalesMetricsResult,
    SalesSummary,
)
from campaign_analytics.services.bucketer import DateBuckets, day_of, format_date_label
from campaign_analytics.services.datasource import TabularDataSource
from campaign_analytics.services.fetcher import fetch_records
from campaign_analytics.services.metrics import is_lost, is_won, safe_ratio, summarize_closed_deals, win_rate
from campaign_analytics.services.source_queries import OPPORTUNITY_COLUMNS
from campaign_analytics.sql.table_query import TableQuery

logger = logging.getLogger(__name__)

CLOSED_STAGE = 'Closed'

# Every stage is always reported, in this order
PIPELINE_STAGES = (
    'Showed Up to Disco',
    'Qualified',
    'Demo Booked',
    'Showed Up to Demo',
    'Proposal Sent',
    'Closed',
)


@dataclass
class _DayTotals:
    revenue: float = 0.0
    won: int = 0
    lost: int = 0


def close_day(opportunity: OpportunityRow) -> Optional[date]:
    return day_of(opportunity.updated_at or opportunity.created_at)


def _closed_within(opportunity: OpportunityRow, report_filter: ReportFilter) -> bool:
    day = close_day(opportunity)
    return day is not None and report_filter.start_date <= day <= report_filter.end_date


async def compute_sales_metrics(source: TabularDataSource, report_filter: ReportFilter) -> SalesMetricsResult:
    """
    Summarize deals closed within the window.

    Returns:
        SalesMetricsResult with the window summary and one SalesMetric per day
        of the window, empty days included.
    """
    query = TableQuery(SourceTable.CLIENT_OPPORTUNITIES.value, OPPORTUNITY_COLUMNS).eq('stage', CLOSED_STAGE)
    if report_filter.client:
        query = query.eq('client', report_filter.client)
    opportunities = await fetch_records(source, query, OpportunityRow)

    closed = [opportunity for opportunity in opportunities if _closed_within(opportunity, report_filter)]

    revenue, won, lost = summarize_closed_deals(closed)
    summary = SalesSummary(
        totalRevenue=revenue,
        avgDealValue=safe_ratio(revenue, won),
        winRate=win_rate(won, lost),
        totalClosedWon=won,
        totalClosedLost=lost,
        totalDeals=won + lost,
    )

    days = DateBuckets(report_filter.start_date, report_filter.end_date, lambda day: _DayTotals())
    for opportunity in closed:
        totals = days.get(close_day(opportunity))
        if totals is None:
            continue
        if is_won(opportunity):
            totals.revenue += float(opportunity.value)
            totals.won += 1
        elif is_lost(opportunity):
            totals.lost += 1

    daily = [
        SalesMetric(
            date=format_date_label(day),
            day=day,
            revenue=totals.revenue,
            dealCount=totals.won + totals.lost,
            avgValue=safe_ratio(totals.revenue, totals.won),
            winRate=win_rate(totals.won, totals.lost),
            closedWonCount=totals.won,
            closedLostCount=totals.lost,
        )
        for day, totals in days.ordered()
    ]

    logger.info(f"Sales metrics: {won} won, {lost} lost, revenue {revenue:.2f}")
    return SalesMetricsResult(summary=summary, dailyMetrics=daily)


async def compute_opportunity_pipeline(
    source: TabularDataSource,
    client: Optional[str] = None,
) -> List[OpportunityStage]:
    """
    Total value and count of opportunities per pipeline stage.

    Stages outside PIPELINE_STAGES are ignored; stages without opportunities
    are reported with zeros.
    """
    query = TableQuery(SourceTable.CLIENT_OPPORTUNITIES.value, ('stage', 'value'))
    if client:
        query = query.eq('client', client)
    opportunities = await fetch_records(source, query, OpportunityRow)

    stages: Dict[str, OpportunityStage] = {stage: OpportunityStage(stage=stage) for stage in PIPELINE_STAGES}
    for opportunity in opportunities:
        stage = stages.get(opportunity.stage or '')
        if stage is None:
            continue
        stage.value += opportunity.value or 0.0
        stage.count += 1

    return list(stages.values())
