"""
Test suite for the aggregation pipelines.

Every pipeline runs against the in-memory FakeDataSource seeded with the
sample campaign_reporting, replies and meetings_booked rows from conftest:

- Acme campaign '5' (Fintech Outbound): 500 sent, 400 prospects, 4 bounced,
  3 replies (one out-of-office, two interested), one meeting
- Acme campaign '6' (Healthcare Push): 100 sent, no replies
- Globex campaign '5' (Globex Retail): shares Acme's identifier, 80 sent, one
  'Not Interested' reply

The default window is 2026-01-01 .. 2026-01-07 for client Acme.
"""

from datetime import date

import pytest

from campaign_analytics.core.config import get_settings
from campaign_analytics.models.enums import CampaignStatus
from campaign_analytics.models.schemas import ReportFilter
from campaign_analytics.services.bucketer import COMPANY_AGE_BANDS, EMPLOYEE_BANDS, REVENUE_BANDS
from campaign_analytics.services.campaign_stats import compute_campaign_stats, fetch_interested_replies
from campaign_analytics.services.client_performance import compute_client_performance
from campaign_analytics.services.deep_insights import compute_deep_insights
from campaign_analytics.services.firmographics import compute_firmographic_insights
from campaign_analytics.services.funnel import compute_funnel
from campaign_analytics.services.quick_view import compute_quick_view
from campaign_analytics.services.runs import RunTracker, run_pipeline
from campaign_analytics.services.sales import PIPELINE_STAGES, compute_opportunity_pipeline, compute_sales_metrics
from campaign_analytics.services.scorecards import campaign_status, compute_campaign_scorecards
from campaign_analytics.tests.conftest import FakeDataSource


@pytest.fixture
def source(sample_reporting_rows, sample_reply_rows, sample_meeting_rows) -> FakeDataSource:
    return FakeDataSource({
        'campaign_reporting': sample_reporting_rows,
        'replies': sample_reply_rows,
        'meetings_booked': sample_meeting_rows,
    })


@pytest.fixture
def all_clients_filter() -> ReportFilter:
    return ReportFilter(start_date=date(2026, 1, 1), end_date=date(2026, 1, 7))


# =============================================================================
# TEST CLASS: CAMPAIGN STATS
# =============================================================================


class TestCampaignStats:

    @pytest.mark.asyncio
    async def test_worked_example(self, source, january_filter):
        result = await compute_campaign_stats(source, january_filter)

        assert result.totalCount == 2
        fintech = result.campaigns[0]
        assert (fintech.campaignId, fintech.campaignName, fintech.client) == ('5', 'Fintech Outbound', 'Acme')
        assert fintech.totalSent == 500
        assert fintech.uniqueProspects == 400
        assert (fintech.totalReplies, fintech.realReplies, fintech.positiveReplies) == (3, 2, 2)
        assert fintech.bounces == 4
        assert fintech.meetingsBooked == 1
        assert fintech.replyRate == pytest.approx(0.75)
        assert fintech.realReplyRate == pytest.approx(0.5)
        assert fintech.positiveRate == 100.0
        assert fintech.bounceRate == pytest.approx(0.8)
        assert fintech.meetingConversion == 50.0

    @pytest.mark.asyncio
    async def test_shared_identifier_across_clients(self, source, all_clients_filter):
        result = await compute_campaign_stats(source, all_clients_filter)

        keys = [(c.campaignId, c.client) for c in result.campaigns]
        assert keys == [('5', 'Acme'), ('6', 'Acme'), ('5', 'Globex')]
        globex = result.campaigns[2]
        assert globex.campaignName == 'Globex Retail'
        assert (globex.totalSent, globex.totalReplies, globex.positiveReplies) == (80, 1, 0)
        assert result.campaigns[0].totalReplies == 3

    @pytest.mark.asyncio
    async def test_statuses_by_composite_key(self, source, all_clients_filter):
        source.add_rows('Campaigns', [
            {'campaign_id': '5', 'client': 'Acme', 'campaign_name': 'Fintech Outbound', 'status': 'active'},
            {'campaign_id': '5', 'client': 'Globex', 'campaign_name': 'Globex Retail', 'status': 'paused'},
        ])

        result = await compute_campaign_stats(source, all_clients_filter)

        statuses = {(c.campaignId, c.client): c.status for c in result.campaigns}
        assert statuses == {('5', 'Acme'): 'active', ('6', 'Acme'): 'unknown', ('5', 'Globex'): 'paused'}

    @pytest.mark.asyncio
    async def test_pagination(self, source, all_clients_filter):
        result = await compute_campaign_stats(source, all_clients_filter, page=2, page_size=1)

        assert result.totalCount == 3
        assert (result.page, result.pageSize) == (2, 1)
        assert [c.campaignName for c in result.campaigns] == ['Healthcare Push']

    @pytest.mark.asyncio
    async def test_unsent_campaigns_hidden_by_default(self, source, january_filter):
        source.add_rows('replies', [
            {'campaign_id': '9', 'client': 'Acme', 'category': 'Interested',
             'date_received': '2026-01-05T08:00:00+00:00', 'from_email': 'x@y.com'},
        ])

        hidden = await compute_campaign_stats(source, january_filter)
        shown = await compute_campaign_stats(source, january_filter, include_unsent=True)

        assert hidden.totalCount == 2
        assert shown.totalCount == 3
        assert shown.campaigns[-1].campaignName == '9'

    @pytest.mark.asyncio
    async def test_replies_fetched_across_pages(self, source, january_filter, monkeypatch):
        monkeypatch.setenv('FETCH_PAGE_SIZE', '2')

        result = await compute_campaign_stats(source, january_filter)

        assert result.campaigns[0].totalReplies == 3
        assert len(source.calls_for('replies')) == 2

    @pytest.mark.asyncio
    async def test_campaign_scope(self, source, january_filter):
        scoped = january_filter.model_copy(update={'campaign_ids': ['6']})

        result = await compute_campaign_stats(source, scoped)

        assert [c.campaignId for c in result.campaigns] == ['6']


class TestInterestedReplies:

    @pytest.mark.asyncio
    async def test_first_interested_reply_per_sender(self, source, january_filter):
        source.add_rows('replies', [
            {'campaign_id': '5', 'client': 'Acme', 'category': 'Interested',
             'date_received': '2026-01-05T08:00:00+00:00', 'from_email': 'ann@bank.com', 'subject': 'again'},
            {'campaign_id': '9', 'client': 'Acme', 'category': 'Interested',
             'date_received': '2026-01-06T08:00:00+00:00', 'from_email': 'eve@corp.com', 'subject': 'hi'},
        ])
        source.add_rows('Campaigns', [
            {'campaign_id': '5', 'client': 'Acme', 'campaign_name': 'Fintech Outbound', 'status': 'active'},
            {'campaign_id': '5', 'client': 'Globex', 'campaign_name': 'Globex Retail', 'status': 'active'},
        ])

        replies = await fetch_interested_replies(source, january_filter)

        assert [r.fromEmail for r in replies] == ['eve@corp.com', 'Ann@Bank.com']
        assert replies[0].campaignName == 'Unknown Campaign'
        assert replies[1].campaignName == 'Fintech Outbound'
        assert replies[1].subject == 'Re: intro'


# =============================================================================
# TEST CLASS: QUICK VIEW
# =============================================================================


class TestQuickView:

    @pytest.mark.asyncio
    async def test_totals(self, source, january_filter):
        source.add_rows('campaign_reporting', [
            {'campaign_id': '7', 'campaign_name': None, 'client': 'Acme', 'date': '2026-01-04',
             'emails_sent': 999, 'total_leads_contacted': 999, 'bounced': 9, 'interested': 9},
        ])

        result = await compute_quick_view(source, january_filter)

        metrics = result.metrics
        assert metrics.totalEmailsSent == 600
        assert metrics.uniqueProspects == 500
        assert metrics.totalReplies == 3
        assert metrics.realReplies == 2
        assert metrics.positiveReplies == 2
        assert metrics.bounces == 4
        assert metrics.meetingsBooked == 1
        assert len(source.count_calls) == 1

    @pytest.mark.asyncio
    async def test_chart_covers_every_day(self, source, january_filter):
        result = await compute_quick_view(source, january_filter)

        chart = result.chartData
        assert [p.date for p in chart] == ['Jan 1', 'Jan 2', 'Jan 3', 'Jan 4', 'Jan 5', 'Jan 6', 'Jan 7']
        assert [p.sent for p in chart] == [300, 200, 100, 0, 0, 0, 0]
        assert [p.replied for p in chart] == [0, 1, 1, 0, 0, 0, 0]
        assert [p.positiveReplies for p in chart] == [1, 1, 0, 0, 0, 0, 0]
        assert [p.meetings for p in chart] == [0, 0, 0, 1, 0, 0, 0]

    @pytest.mark.asyncio
    async def test_empty_window(self, source):
        report_filter = ReportFilter(start_date=date(2025, 6, 1), end_date=date(2025, 6, 3), client='Acme')

        result = await compute_quick_view(source, report_filter)

        assert result.metrics.totalEmailsSent == 0
        assert result.metrics.totalReplies == 0
        assert len(result.chartData) == 3

    @pytest.mark.asyncio
    async def test_failed_source_fails_whole_run(self, sample_reporting_rows, january_filter):
        source = FakeDataSource({'campaign_reporting': sample_reporting_rows}, fail_on={'meetings_booked'})

        outcome = await run_pipeline(RunTracker(), 'quick_view', lambda: compute_quick_view(source, january_filter))

        assert outcome.data is None
        assert 'meetings_booked' in outcome.error


# =============================================================================
# TEST CLASS: SALES
# =============================================================================


@pytest.fixture
def opportunity_rows():
    return [
        {'client': 'Acme', 'stage': 'Closed', 'value': 1000, 'updated_at': '2026-01-02T10:00:00+00:00'},
        {'client': 'Acme', 'stage': 'Closed', 'value': 500, 'updated_at': None,
         'created_at': '2026-01-03T10:00:00+00:00'},
        {'client': 'Acme', 'stage': 'Closed', 'value': 0, 'updated_at': '2026-01-03T12:00:00+00:00'},
        {'client': 'Acme', 'stage': 'Closed', 'value': None, 'updated_at': '2026-01-05T12:00:00+00:00'},
        {'client': 'Acme', 'stage': 'Closed', 'value': 700, 'updated_at': '2026-02-10T12:00:00+00:00'},
        {'client': 'Acme', 'stage': 'Qualified', 'value': 300, 'updated_at': '2026-01-02T10:00:00+00:00'},
        {'client': 'Acme', 'stage': 'Negotiation', 'value': 50, 'updated_at': '2026-01-02T10:00:00+00:00'},
        {'client': 'Globex', 'stage': 'Closed', 'value': 9999, 'updated_at': '2026-01-02T10:00:00+00:00'},
    ]


class TestSales:

    @pytest.mark.asyncio
    async def test_summary(self, opportunity_rows, january_filter):
        source = FakeDataSource({'client_opportunities': opportunity_rows})

        result = await compute_sales_metrics(source, january_filter)

        summary = result.summary
        assert summary.totalRevenue == 1500.0
        assert summary.avgDealValue == 750.0
        assert summary.winRate == 50.0
        assert (summary.totalClosedWon, summary.totalClosedLost, summary.totalDeals) == (2, 2, 4)

    @pytest.mark.asyncio
    async def test_daily_metrics(self, opportunity_rows, january_filter):
        source = FakeDataSource({'client_opportunities': opportunity_rows})

        daily = (await compute_sales_metrics(source, january_filter)).dailyMetrics

        assert len(daily) == 7
        by_day = {m.day: m for m in daily}
        assert by_day[date(2026, 1, 1)].dealCount == 0
        assert (by_day[date(2026, 1, 2)].revenue, by_day[date(2026, 1, 2)].winRate) == (1000.0, 100.0)
        jan3 = by_day[date(2026, 1, 3)]
        assert (jan3.closedWonCount, jan3.closedLostCount, jan3.winRate, jan3.avgValue) == (1, 1, 50.0, 500.0)
        assert by_day[date(2026, 1, 5)].winRate == 0.0

    @pytest.mark.asyncio
    async def test_no_deals(self, january_filter):
        result = await compute_sales_metrics(FakeDataSource(), january_filter)

        assert result.summary.winRate == 0.0
        assert result.summary.avgDealValue == 0.0

    @pytest.mark.asyncio
    async def test_opportunity_pipeline(self, opportunity_rows):
        source = FakeDataSource({'client_opportunities': opportunity_rows})

        stages = await compute_opportunity_pipeline(source, client='Acme')

        assert [s.stage for s in stages] == list(PIPELINE_STAGES)
        by_stage = {s.stage: s for s in stages}
        assert (by_stage['Closed'].count, by_stage['Closed'].value) == (5, 2200.0)
        assert (by_stage['Qualified'].count, by_stage['Qualified'].value) == (1, 300.0)
        assert by_stage['Demo Booked'].count == 0


# =============================================================================
# TEST CLASS: FUNNEL
# =============================================================================


@pytest.fixture
def engaged_lead_rows():
    return [
        {'client': 'Acme', 'email': 'ann@bank.com', 'date_created': '2026-01-02',
         'showed_up_to_disco': 'Yes', 'qualified': True, 'demo_booked': 1, 'showed_up_to_demo': 'no',
         'proposal_sent': None, 'pilot_accepted': 'true', 'closed': False},
        {'client': 'Acme', 'email': 'cat@bank.com', 'date_created': '2026-01-03', 'showed_up_to_disco': True},
        {'client': 'Acme', 'email': 'old@bank.com', 'date_created': '2026-02-01',
         'showed_up_to_disco': True, 'qualified': True, 'closed': True},
        {'client': 'Globex', 'email': 'dan@shop.com', 'date_created': '2026-01-02',
         'showed_up_to_disco': True, 'closed': True},
    ]


class TestFunnel:

    @pytest.mark.asyncio
    async def test_stages(self, source, january_filter, engaged_lead_rows):
        source.add_rows('engaged_leads', engaged_lead_rows)

        result = await compute_funnel(source, january_filter, month=1, year=2026)

        stages = [(s.name, s.value) for s in result.stages]
        assert stages == [
            ('Total Sent', 600),
            ('Unique Contacts', 500),
            ('Real Replies', 2),
            ('Interested', 2),
            ('Meetings Booked', 1),
            ('Showed Up to Disco', 2),
            ('Qualified', 1),
            ('Demo Booked', 1),
            ('Showed Up to Demo', 0),
            ('Proposal Sent', 1),
            ('Closed', 0),
        ]
        percentages = [s.percentage for s in result.stages]
        assert percentages[0] is None
        assert percentages[1] == pytest.approx(500 / 600 * 100)
        assert percentages[5] == 100.0
        assert percentages[9] == 0.0

    @pytest.mark.asyncio
    async def test_spreadsheet_without_forecasts(self, source, january_filter):
        result = await compute_funnel(source, january_filter, month=1, year=2026)

        lines = {line.metric_key: line for line in result.spreadsheet}
        assert len(lines) == 17
        assert lines['total_messages_sent'].actual == 600
        assert lines['response_rate'].actual == pytest.approx(0.4)
        assert lines['total_booked'].estimate_avg == 0.0

    @pytest.mark.asyncio
    async def test_forecast_actuals_override_stages(self, source, january_filter, engaged_lead_rows):
        source.add_rows('engaged_leads', engaged_lead_rows)
        source.add_rows('funnel_forecasts', [
            {'metric_key': 'total_deals_closed', 'month': 1, 'year': 2026, 'client': 'Acme',
             'estimate_avg': 5, 'actual': 3},
            {'metric_key': 'total_qualified', 'month': 1, 'year': 2026, 'client': 'Acme', 'actual': 0},
            {'metric_key': 'total_messages_sent', 'month': 1, 'year': 2026, 'client': 'Acme',
             'estimate_low': 500, 'actual': None},
            {'metric_key': 'total_deals_closed', 'month': 2, 'year': 2026, 'client': 'Acme', 'actual': 99},
            {'metric_key': 'total_deals_closed', 'month': 1, 'year': 2026, 'client': 'Globex', 'actual': 50},
        ])

        result = await compute_funnel(source, january_filter, month=1, year=2026)

        by_name = {s.name: s.value for s in result.stages}
        assert by_name['Closed'] == 3
        assert by_name['Qualified'] == 1

        assert [line.metric_key for line in result.spreadsheet] == [
            'total_deals_closed', 'total_qualified', 'total_messages_sent',
        ]
        closed, qualified, sent = result.spreadsheet
        assert (closed.estimate_avg, closed.actual) == (5.0, 3)
        assert qualified.actual == 1
        assert (sent.estimate_low, sent.actual) == (500.0, 600)

    @pytest.mark.asyncio
    async def test_invalid_month(self, source, january_filter):
        with pytest.raises(ValueError):
            await compute_funnel(source, january_filter, month=13, year=2026)
        assert source.calls == []


# =============================================================================
# TEST CLASS: FIRMOGRAPHICS
# =============================================================================


@pytest.fixture
def lead_rows():
    return [
        {'email': 'ann@bank.com', 'industry': 'Banking', 'annual_revenue': '25M', 'company_size': '51-200',
         'company_hq_state': 'NY', 'company_hq_country': 'US', 'specialty_signal_a': 'Hiring',
         'job_title': 'CFO', 'campaign_id': '5', 'client': 'Acme'},
        {'email': 'bob@bank.com', 'industry': 'Banking', 'annual_revenue': '$500K', 'company_size': '11-50',
         'company_hq_state': None, 'company_hq_country': 'US', 'specialty_signal_a': 'Hiring',
         'specialty_signal_b': 'Funding', 'job_title': 'VP Sales', 'campaign_id': '5', 'client': 'Acme'},
        {'email': 'cat@bank.com', 'industry': 'Unknown', 'campaign_id': '6', 'client': 'Acme'},
        {'email': 'zed@other.com', 'industry': 'Retail', 'campaign_id': '7', 'client': 'Acme'},
        {'email': 'dan@shop.com', 'industry': 'Retail', 'campaign_id': '5', 'client': 'Globex'},
    ]


class TestFirmographics:

    @pytest.mark.asyncio
    async def test_industry(self, source, january_filter, lead_rows):
        source.add_rows('all_leads', lead_rows)

        insights = await compute_firmographic_insights(source, january_filter)

        industry = insights.industry
        assert industry.totalLeads == 3
        assert industry.totalLeadsWithData == 2
        assert industry.coverage == pytest.approx(2 / 3)
        assert industry.lowCoverage is False
        banking, = industry.items
        assert (banking.value, banking.leadsIn, banking.engaged, banking.positive, banking.booked) == (
            'Banking', 2, 1, 1, 1,
        )

    @pytest.mark.asyncio
    async def test_leads_limited_to_active_campaigns(self, source, january_filter, lead_rows):
        source.add_rows('all_leads', lead_rows)

        await compute_firmographic_insights(source, january_filter)

        lead_query = next(q for q in source.queries if q.table == 'all_leads')
        in_values = [c.value for c in lead_query.conditions if c.column == 'campaign_id']
        assert in_values == [('5', '6')]

    @pytest.mark.asyncio
    async def test_normalized_dimensions(self, source, january_filter, lead_rows):
        source.add_rows('all_leads', lead_rows)

        insights = await compute_firmographic_insights(source, january_filter)

        assert [(b.value, b.booked) for b in insights.revenue.items] == [
            (REVENUE_BANDS[2], 1), (REVENUE_BANDS[0], 0),
        ]
        assert [(b.value, b.booked) for b in insights.employees.items] == [
            (EMPLOYEE_BANDS[2], 1), (EMPLOYEE_BANDS[1], 0),
        ]
        assert [(b.value, b.booked) for b in insights.geography.items] == [('NY', 1), ('US', 0)]
        assert [(b.value, b.booked) for b in insights.jobTitle.items] == [('CFO', 1), ('VP Sales', 0)]

    @pytest.mark.asyncio
    async def test_signals_are_multi_valued(self, source, january_filter, lead_rows):
        source.add_rows('all_leads', lead_rows)

        signals = (await compute_firmographic_insights(source, january_filter)).signals

        assert [(b.value, b.leadsIn, b.booked) for b in signals.items] == [('Hiring', 2, 1), ('Funding', 1, 0)]
        assert signals.totalLeadsWithData == 2

    @pytest.mark.asyncio
    async def test_out_of_office_replies_excluded(self, source, january_filter, lead_rows):
        source.add_rows('all_leads', lead_rows)

        await compute_firmographic_insights(source, january_filter)

        reply_query = next(q for q in source.queries if q.table == 'replies')
        patterns = [c.value for c in reply_query.conditions if c.column == 'category']
        assert patterns == ['%out of office%', '%ooo%']

    @pytest.mark.asyncio
    async def test_no_active_campaigns_reads_all_client_leads(self, source, lead_rows):
        source.add_rows('all_leads', lead_rows)
        report_filter = ReportFilter(start_date=date(2026, 1, 5), end_date=date(2026, 1, 7), client='Globex')

        insights = await compute_firmographic_insights(source, report_filter)

        lead_query = next(q for q in source.queries if q.table == 'all_leads')
        assert all(c.column != 'campaign_id' for c in lead_query.conditions)
        assert [b.value for b in insights.industry.items] == ['Retail']

    @pytest.mark.asyncio
    async def test_no_active_campaigns_keeps_campaign_scope(self, source, lead_rows):
        source.add_rows('all_leads', lead_rows)
        report_filter = ReportFilter(
            start_date=date(2026, 3, 1), end_date=date(2026, 3, 7), client='Acme', campaign_ids=['6', '7'],
        )

        insights = await compute_firmographic_insights(source, report_filter)

        lead_query = next(q for q in source.queries if q.table == 'all_leads')
        assert [c.value for c in lead_query.conditions if c.column == 'campaign_id'] == [('6', '7')]
        assert insights.industry.totalLeads == 2
        assert [b.value for b in insights.industry.items] == ['Retail']


# =============================================================================
# TEST CLASS: DEEP INSIGHTS
# =============================================================================


class TestDeepInsights:

    @pytest.fixture
    def insight_source(self, source, engaged_lead_rows):
        source.add_rows('meetings_booked', [
            {'campaign_id': '6', 'client': 'Acme', 'created_time': '2026-01-05T09:00:00+00:00',
             'industry': None, 'company_hq_state': 'CA', 'annual_revenue': None, 'year_founded': None},
        ])
        source.add_rows('engaged_leads', engaged_lead_rows)
        source.add_rows('Campaigns', [
            {'campaign_id': '5', 'client': 'Acme', 'campaign_name': 'Fintech Outbound', 'status': 'active'},
        ])
        return source

    @pytest.mark.asyncio
    async def test_replies(self, insight_source, january_filter):
        insights = await compute_deep_insights(insight_source, january_filter, as_of=date(2026, 6, 1))

        categories = insights.replyCategories
        assert (categories.interested, categories.outOfOffice, categories.notInterested, categories.total) == (2, 1, 0, 3)
        assert [d.count for d in insights.repliesByDay] == [0, 2, 1, 0, 0, 0, 0]
        assert insights.avgRepliesPerDay == pytest.approx(3 / 7)
        assert insights.bestDay.day == date(2026, 1, 2)
        assert insights.bestDay.count == 2

    @pytest.mark.asyncio
    async def test_campaign_performance_threshold(self, insight_source, january_filter, monkeypatch):
        assert (await compute_deep_insights(insight_source, january_filter)).campaignPerformance == []

        monkeypatch.setenv('CAMPAIGN_PERFORMANCE_MIN_REPLIES', '2')
        get_settings.cache_clear()

        performance = (await compute_deep_insights(insight_source, january_filter)).campaignPerformance

        entry, = performance
        assert (entry.campaignId, entry.campaignName, entry.client) == ('5', 'Fintech Outbound', 'Acme')
        assert (entry.replies, entry.positiveReplies) == (3, 2)
        assert entry.positiveRate == pytest.approx(200 / 3)

    @pytest.mark.asyncio
    async def test_engaged_leads_ignore_window(self, insight_source, january_filter):
        insights = await compute_deep_insights(insight_source, january_filter)

        assert [(b.label, b.count, b.percentage) for b in insights.engagedLeadsByClient] == [('Acme', 3, 100.0)]

    @pytest.mark.asyncio
    async def test_meeting_breakdowns(self, insight_source, january_filter):
        insights = await compute_deep_insights(insight_source, january_filter, as_of=date(2026, 6, 1))

        assert insights.totalMeetings == 2
        assert [(b.label, b.percentage) for b in insights.meetingsByIndustry] == [('Banking', 50.0)]
        assert [b.label for b in insights.meetingsByState] == ['NY', 'CA']
        assert [b.label for b in insights.meetingsByRevenue] == [REVENUE_BANDS[2], 'Unknown']
        assert [b.label for b in insights.meetingsByCompanyAge] == [COMPANY_AGE_BANDS[1], 'Unknown']
        assert [d.count for d in insights.meetingsByDay] == [0, 0, 0, 1, 1, 0, 0]

    @pytest.mark.asyncio
    async def test_empty_window(self, january_filter):
        insights = await compute_deep_insights(FakeDataSource(), january_filter)

        assert insights.bestDay is None
        assert insights.avgRepliesPerDay == 0.0
        assert len(insights.repliesByDay) == 7
        assert insights.meetingsByRevenue == []


# =============================================================================
# TEST CLASS: SCORECARDS
# =============================================================================


class TestScorecards:

    @pytest.mark.parametrize('idle_days,status', [
        (0, CampaignStatus.ACTIVE),
        (6, CampaignStatus.ACTIVE),
        (7, CampaignStatus.PAUSED),
        (30, CampaignStatus.PAUSED),
        (31, CampaignStatus.COMPLETED),
    ])
    def test_status_windows(self, idle_days, status):
        as_of = date(2026, 3, 1)
        last = date.fromordinal(as_of.toordinal() - idle_days)

        assert campaign_status(last, as_of) == status

    def test_no_activity_is_completed(self):
        assert campaign_status(None, date(2026, 3, 1)) == CampaignStatus.COMPLETED

    @pytest.mark.asyncio
    async def test_scorecards(self, source, january_filter):
        source.add_rows('replies', [
            {'lead_id': 'ann@bank.com', 'campaign_id': '5', 'client': 'Acme', 'category': 'Re: follow up',
             'date_received': '2026-01-03T15:00:00+00:00', 'from_email': 'ann@bank.com'},
        ])

        cards = await compute_campaign_scorecards(source, january_filter, as_of=date(2026, 1, 10))

        assert [c.campaignId for c in cards] == ['5', '6']
        fintech = cards[0]
        assert (fintech.totalReplies, fintech.realReplies, fintech.positiveReplies) == (3, 2, 2)
        assert fintech.replyRate == pytest.approx(0.5)
        assert fintech.positiveRate == 100.0
        assert fintech.meetingsBooked == 1
        assert fintech.lastActivityDate == date(2026, 1, 2)
        assert fintech.status == CampaignStatus.PAUSED
        assert [p.replies for p in fintech.chartData] == [0, 1, 2, 0, 0, 0, 0]
        assert [p.meetings for p in fintech.chartData] == [0, 0, 0, 1, 0, 0, 0]
        assert cards[1].status == CampaignStatus.PAUSED
        assert cards[1].totalReplies == 0

    @pytest.mark.asyncio
    async def test_client_required(self, source, all_clients_filter):
        with pytest.raises(ValueError):
            await compute_campaign_scorecards(source, all_clients_filter)


# =============================================================================
# TEST CLASS: CLIENT PERFORMANCE
# =============================================================================


class TestClientPerformance:

    @pytest.fixture
    def performance_source(self, source):
        source.add_rows('Clients', [{'Business': 'Globex'}, {'Business': 'Acme'}, {'Business': 'Initech'}])
        source.add_rows('client_targets', [
            {'client': 'Acme', 'emails_per_day': 100, 'prospects_per_day': 80,
             'replies_per_day': 2, 'meetings_per_day': 1},
            {'client': 'Globex', 'emails_per_day': 10, 'prospects_per_day': None},
        ])
        return source

    @pytest.mark.asyncio
    async def test_all_clients(self, performance_source, all_clients_filter):
        results = await compute_client_performance(performance_source, all_clients_filter)

        assert [r.client for r in results] == ['Acme', 'Globex', 'Initech']
        acme, globex, initech = results
        assert (acme.emailsSent, acme.prospects, acme.realReplies, acme.meetings) == (600, 500, 2, 1)
        assert (acme.emailsTarget, acme.prospectsTarget, acme.repliesTarget, acme.meetingsTarget) == (700, 560, 14, 7)
        assert (globex.emailsSent, globex.realReplies, globex.emailsTarget, globex.prospectsTarget) == (80, 1, 70, 0)
        assert initech.emailsTarget == 0

    @pytest.mark.asyncio
    async def test_client_filter(self, performance_source, january_filter):
        results = await compute_client_performance(performance_source, january_filter)

        assert [r.client for r in results] == ['Acme']

    @pytest.mark.asyncio
    async def test_lookup_tables_paged_by_id(self, performance_source, all_clients_filter):
        await compute_client_performance(performance_source, all_clients_filter)

        orders = {q.table: q.order_by for q in performance_source.queries if q.table in ('Clients', 'client_targets')}
        assert orders == {'Clients': 'id', 'client_targets': 'id'}
