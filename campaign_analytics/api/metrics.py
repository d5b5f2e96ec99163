"""
FastAPI router module for campaign metrics endpoints.

Every endpoint runs one pipeline through run_pipeline() and returns a
PipelineResponse envelope: {pipeline, generation, stale, data}.

Key Endpoints:
- GET /campaigns: Paged per-campaign stats
- GET /quick-view: Headline totals and daily chart
- GET /sales: Closed-deal summary and daily series
- GET /opportunities/pipeline: Open value per pipeline stage
- GET /firmographics: Dimension buckets for leads, replies and meetings
- GET /funnel: Funnel stages and forecast spreadsheet
- GET /insights: Reply, engaged-lead and meeting breakdowns
- GET /scorecards: Per-campaign scorecards for one client
- GET /clients/performance: Client actuals against targets
- GET /replies/interested: First interested reply per sender

Error mapping:
- Invalid window or scope: HTTPException 400
- Failed pipeline run: HTTPException 502 with the run's error message

Run scope: the optional run_scope parameter names the caller's session. Runs
of one pipeline supersede each other (stale=true) only within a session, or,
without a session, only when the query is resubmitted unchanged.
"""

import logging
from datetime import date
from typing import List, Optional
from urllib.parse import urlencode

from fastapi import APIRouter, Depends, HTTPException, Query, Request

from campaign_analytics.core.dependencies import PipelineContextDep
from campaign_analytics.models.enums import RankMetric
from campaign_analytics.models.schemas import PipelineOutcome, PipelineResponse, ReportFilter
from campaign_analytics.services.campaign_stats import compute_campaign_stats, fetch_interested_replies
from campaign_analytics.services.client_performance import compute_client_performance
from campaign_analytics.services.deep_insights import compute_deep_insights
from campaign_analytics.services.firmographics import compute_firmographic_insights
from campaign_analytics.services.funnel import compute_funnel
from campaign_analytics.services.quick_view import compute_quick_view
from campaign_analytics.services.runs import run_pipeline
from campaign_analytics.services.sales import compute_opportunity_pipeline, compute_sales_metrics
from campaign_analytics.services.scorecards import compute_campaign_scorecards


logger = logging.getLogger(__name__)

router = APIRouter()


# =============================================================================
# Helper Functions
# =============================================================================

def get_report_filter(
    start_date: date = Query(..., description="First day of the window (inclusive)"),
    end_date: date = Query(..., description="Last day of the window (inclusive)"),
    client: Optional[str] = Query(default=None, description="Restrict to one client"),
    campaign_ids: Optional[List[str]] = Query(default=None, description="Restrict to these campaigns"),
) -> ReportFilter:
    """Build the ReportFilter for a request; an inverted window is a 400."""
    try:
        return ReportFilter(
            start_date=start_date,
            end_date=end_date,
            client=client or None,
            campaign_ids=campaign_ids or None,
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=f"Invalid report filter: {e}")


def get_run_scope(
    request: Request,
    run_scope: Optional[str] = Query(
        default=None,
        description="Caller session; a newer run in the same session supersedes older ones",
    ),
) -> str:
    """
    Scope that decides which runs of a pipeline supersede each other.

    With run_scope the caller's runs supersede each other whatever their
    parameters. Without it only a resubmission of the exact same query does.
    """
    if run_scope:
        return f"session={run_scope}"
    params = sorted((k, v) for k, v in request.query_params.multi_items() if k != 'run_scope')
    return f"query={urlencode(params)}"


def _respond(outcome: PipelineOutcome) -> PipelineResponse:
    if not outcome.succeeded:
        raise HTTPException(status_code=502, detail=outcome.error)
    return PipelineResponse(
        pipeline=outcome.pipeline,
        generation=outcome.generation,
        stale=outcome.stale,
        data=outcome.data,
    )


# =============================================================================
# Campaign Endpoints
# =============================================================================

@router.get('/campaigns', response_model=PipelineResponse, summary="Get Campaign Stats")
async def get_campaign_stats(
    context: PipelineContextDep,
    scope: str = Depends(get_run_scope),
    report_filter: ReportFilter = Depends(get_report_filter),
    page: int = Query(default=1, ge=1),
    page_size: Optional[int] = Query(default=None, ge=1, le=500),
    include_unsent: bool = Query(default=False, description="Keep campaigns with nothing sent"),
) -> PipelineResponse:
    """Per-campaign totals and rates, sorted by emails sent, one page at a time."""
    outcome = await run_pipeline(
        context.tracker,
        'campaign_stats',
        lambda: compute_campaign_stats(context.source, report_filter, page, page_size, include_unsent),
        default_message='Failed to fetch campaign stats',
        scope=scope,
    )
    return _respond(outcome)


@router.get('/quick-view', response_model=PipelineResponse, summary="Get Quick View")
async def get_quick_view(
    context: PipelineContextDep,
    scope: str = Depends(get_run_scope),
    report_filter: ReportFilter = Depends(get_report_filter),
) -> PipelineResponse:
    outcome = await run_pipeline(
        context.tracker,
        'quick_view',
        lambda: compute_quick_view(context.source, report_filter),
        scope=scope,
    )
    return _respond(outcome)


@router.get('/scorecards', response_model=PipelineResponse, summary="Get Campaign Scorecards")
async def get_campaign_scorecards(
    context: PipelineContextDep,
    scope: str = Depends(get_run_scope),
    report_filter: ReportFilter = Depends(get_report_filter),
    as_of: Optional[date] = Query(default=None, description="Reference day for status (default today)"),
) -> PipelineResponse:
    """
    Scorecards for every campaign of one client.

    Raises:
        HTTPException 400: If no client is given.
        HTTPException 502: If the pipeline run fails.
    """
    if not report_filter.client:
        raise HTTPException(status_code=400, detail="client is required for scorecards")

    outcome = await run_pipeline(
        context.tracker,
        'campaign_scorecards',
        lambda: compute_campaign_scorecards(context.source, report_filter, as_of),
        scope=scope,
    )
    return _respond(outcome)


@router.get('/replies/interested', response_model=PipelineResponse, summary="Get Interested Replies")
async def get_interested_replies(
    context: PipelineContextDep,
    scope: str = Depends(get_run_scope),
    report_filter: ReportFilter = Depends(get_report_filter),
) -> PipelineResponse:
    outcome = await run_pipeline(
        context.tracker,
        'interested_replies',
        lambda: fetch_interested_replies(context.source, report_filter),
        scope=scope,
    )
    return _respond(outcome)


# =============================================================================
# Sales Endpoints
# =============================================================================

@router.get('/sales', response_model=PipelineResponse, summary="Get Sales Metrics")
async def get_sales_metrics(
    context: PipelineContextDep,
    scope: str = Depends(get_run_scope),
    report_filter: ReportFilter = Depends(get_report_filter),
) -> PipelineResponse:
    outcome = await run_pipeline(
        context.tracker,
        'sales_metrics',
        lambda: compute_sales_metrics(context.source, report_filter),
        default_message='Failed to fetch sales metrics',
        scope=scope,
    )
    return _respond(outcome)


@router.get('/opportunities/pipeline', response_model=PipelineResponse, summary="Get Opportunity Pipeline")
async def get_opportunity_pipeline(
    context: PipelineContextDep,
    scope: str = Depends(get_run_scope),
    client: Optional[str] = Query(default=None, description="Restrict to one client"),
) -> PipelineResponse:
    """Value and count per pipeline stage. Not windowed."""
    outcome = await run_pipeline(
        context.tracker,
        'opportunity_pipeline',
        lambda: compute_opportunity_pipeline(context.source, client or None),
        scope=scope,
    )
    return _respond(outcome)


@router.get('/funnel', response_model=PipelineResponse, summary="Get Sales Funnel")
async def get_funnel(
    context: PipelineContextDep,
    scope: str = Depends(get_run_scope),
    report_filter: ReportFilter = Depends(get_report_filter),
    month: int = Query(..., ge=1, le=12, description="Forecast month"),
    year: int = Query(..., ge=2000, le=2100, description="Forecast year"),
) -> PipelineResponse:
    outcome = await run_pipeline(
        context.tracker,
        'funnel',
        lambda: compute_funnel(context.source, report_filter, month, year),
        scope=scope,
    )
    return _respond(outcome)


# =============================================================================
# Insight Endpoints
# =============================================================================

@router.get('/firmographics', response_model=PipelineResponse, summary="Get Firmographic Insights")
async def get_firmographic_insights(
    context: PipelineContextDep,
    scope: str = Depends(get_run_scope),
    report_filter: ReportFilter = Depends(get_report_filter),
    rank_by: RankMetric = Query(default=RankMetric.BOOKED, description="Bucket ordering metric"),
) -> PipelineResponse:
    outcome = await run_pipeline(
        context.tracker,
        'firmographic_insights',
        lambda: compute_firmographic_insights(context.source, report_filter, rank_by),
        scope=scope,
    )
    return _respond(outcome)


@router.get('/insights', response_model=PipelineResponse, summary="Get Deep Insights")
async def get_deep_insights(
    context: PipelineContextDep,
    scope: str = Depends(get_run_scope),
    report_filter: ReportFilter = Depends(get_report_filter),
    as_of: Optional[date] = Query(default=None, description="Reference day for company age (default today)"),
) -> PipelineResponse:
    outcome = await run_pipeline(
        context.tracker,
        'deep_insights',
        lambda: compute_deep_insights(context.source, report_filter, as_of),
        default_message='Failed to fetch insights data',
        scope=scope,
    )
    return _respond(outcome)


@router.get('/clients/performance', response_model=PipelineResponse, summary="Get Client Performance")
async def get_client_performance(
    context: PipelineContextDep,
    scope: str = Depends(get_run_scope),
    report_filter: ReportFilter = Depends(get_report_filter),
) -> PipelineResponse:
    outcome = await run_pipeline(
        context.tracker,
        'client_performance',
        lambda: compute_client_performance(context.source, report_filter),
        scope=scope,
    )
    return _respond(outcome)
