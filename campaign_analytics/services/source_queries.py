"""
Source table queries shared by the pipelines.

Each builder returns a TableQuery for one table, narrowed to a ReportFilter's
window and scope:
- campaign_reporting is windowed on its DATE column (inclusive days)
- replies, meetings_booked and all_leads are windowed on timestamps
  (start-of-day to start of the day after end_date)
- campaign-bearing tables honour report_filter.campaign_ids
"""

from typing import Sequence

from campaign_analytics.models.enums import SourceTable
from campaign_analytics.models.schemas import ReportFilter
from campaign_analytics.services.fetcher import apply_report_filter
from campaign_analytics.sql.table_query import TableQuery


REPORTING_COLUMNS = (
    'campaign_id', 'campaign_name', 'client', 'date',
    'emails_sent', 'total_leads_contacted', 'bounced', 'interested',
)

REPLY_COLUMNS = (
    'reply_id', 'lead_id', 'campaign_id', 'client', 'category',
    'date_received', 'from_email', 'primary_to_email', 'subject',
)

MEETING_COLUMNS = (
    'campaign_id', 'campaign_name', 'client', 'created_time', 'email', 'title',
    'industry', 'annual_revenue', 'company_size', 'company_hq_state',
    'company_hq_country', 'year_founded',
)

LEAD_COLUMNS = (
    'email', 'industry', 'annual_revenue', 'company_size', 'company_hq_state',
    'company_hq_country', 'specialty_signal_a', 'specialty_signal_b',
    'specialty_signal_c', 'job_title', 'campaign_id', 'client', 'created_time',
)

CAMPAIGN_STATUS_COLUMNS = ('campaign_id', 'campaign_name', 'client', 'status')

OPPORTUNITY_COLUMNS = (
    'client', 'opportunity_name', 'stage', 'value', 'contact_email', 'created_at', 'updated_at',
)

ENGAGED_LEAD_COLUMNS = (
    'client', 'email', 'date_created', 'showed_up_to_disco', 'qualified', 'demo_booked',
    'showed_up_to_demo', 'proposal_sent', 'pilot_accepted', 'closed',
)


def reporting_query(report_filter: ReportFilter, columns: Sequence[str] = REPORTING_COLUMNS) -> TableQuery:
    return apply_report_filter(
        TableQuery(SourceTable.CAMPAIGN_REPORTING.value, columns),
        report_filter,
        date_column='date',
        campaign_column='campaign_id',
    )


def replies_query(report_filter: ReportFilter, columns: Sequence[str] = REPLY_COLUMNS) -> TableQuery:
    return apply_report_filter(
        TableQuery(SourceTable.REPLIES.value, columns),
        report_filter,
        date_column='date_received',
        timestamp=True,
        campaign_column='campaign_id',
    )


def meetings_query(report_filter: ReportFilter, columns: Sequence[str] = MEETING_COLUMNS) -> TableQuery:
    return apply_report_filter(
        TableQuery(SourceTable.MEETINGS_BOOKED.value, columns),
        report_filter,
        date_column='created_time',
        timestamp=True,
        campaign_column='campaign_id',
    )


def campaign_status_query(report_filter: ReportFilter) -> TableQuery:
    """Campaigns metadata is not windowed; only client and campaign scope apply."""
    return apply_report_filter(
        TableQuery(SourceTable.CAMPAIGNS.value, CAMPAIGN_STATUS_COLUMNS),
        report_filter,
        campaign_column='campaign_id',
    )


def engaged_leads_query(report_filter: ReportFilter, windowed: bool = True) -> TableQuery:
    return apply_report_filter(
        TableQuery(SourceTable.ENGAGED_LEADS.value, ENGAGED_LEAD_COLUMNS),
        report_filter,
        date_column='date_created' if windowed else None,
    )
