"""
Multi-Source Joiner Service

Merges independently fetched tables into one aggregate per campaign, keyed by a
composite key of campaign identifier and client. Campaign identifiers are only
unique within a client, so the bare identifier is never used as a map key.

Join procedure:
1. Seed aggregates from campaign_reporting (the authoritative source) and build
   the composite key -> display name lookup in the same pass.
2. Fold in replies and meetings. A key not seen in reporting is late-bound: a new
   aggregate is created, named from the lookup, then the row's own campaign name,
   then the raw identifier.
3. Apply campaign statuses (Campaigns table) by composite key. Statuses never
   create aggregates.

Rows without a campaign identifier or a client cannot form a key and are skipped.

Also provides contact-keyed joins: grouping replies/meetings by lowercased email
and a first-occurrence-wins dedup that keeps the earliest row per contact.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Dict, Hashable, Iterable, List, Mapping, Optional, Sequence, TypeVar

from campaign_analytics.core.config import get_settings
from campaign_analytics.models.schemas import (
    CampaignReportingRow,
    CampaignStatusRow,
    MeetingRow,
    ReplyRow,
)
from campaign_analytics.services.metrics import is_out_of_office, is_positive_reply

logger = logging.getLogger(__name__)

Row = TypeVar('Row')

UNKNOWN_STATUS = 'unknown'


# =============================================================================
# Composite Keys
# =============================================================================


def make_composite_key(
    identifier: Optional[str],
    client: Optional[str],
    separator: Optional[str] = None,
) -> Optional[str]:
    """
    Build the identifier + client join key.

    Returns:
        f"{identifier}{separator}{client}", or None when either part is missing.

    Example:
        >>> make_composite_key('5', 'Acme')
        '5||Acme'
        >>> make_composite_key('5', None) is None
        True
    """
    if identifier is None or client is None:
        return None
    identifier = str(identifier).strip()
    client = client.strip()
    if not identifier or not client:
        return None
    sep = separator if separator is not None else get_settings().composite_key_separator
    return f"{identifier}{sep}{client}"


# =============================================================================
# Campaign Aggregate
# =============================================================================


@dataclass
class CampaignAggregate:
    """
    Mutable per-campaign accumulator.

    Created the first time any source row references its composite key, updated
    in place as rows are folded in, never removed.

    Attributes:
        campaign_id: Campaign identifier (unique per client only).
        campaign_name: Display name.
        client: Client the campaign runs for.
        total_sent: Sum of emails_sent.
        unique_prospects: Sum of total_leads_contacted.
        total_replies: Every reply, out-of-office included.
        real_replies: Replies that are not out-of-office.
        positive_replies: Replies categorized 'interested'.
        bounces: Sum of bounced.
        meetings_booked: Meetings attributed to the campaign.
        status: Campaign status from the Campaigns table.
    """
    campaign_id: str
    campaign_name: str
    client: str
    total_sent: int = 0
    unique_prospects: int = 0
    total_replies: int = 0
    real_replies: int = 0
    positive_replies: int = 0
    bounces: int = 0
    meetings_booked: int = 0
    status: str = UNKNOWN_STATUS

    def add_reporting(self, row: CampaignReportingRow) -> None:
        self.total_sent += row.emails_sent
        self.unique_prospects += row.total_leads_contacted
        self.bounces += row.bounced

    def add_reply(self, row: ReplyRow) -> None:
        self.total_replies += 1
        if not is_out_of_office(row.category):
            self.real_replies += 1
        if is_positive_reply(row.category):
            self.positive_replies += 1

    def add_meeting(self, row: MeetingRow) -> None:
        self.meetings_booked += 1


def build_status_lookup(
    rows: Iterable[CampaignStatusRow],
    separator: Optional[str] = None,
) -> Dict[str, str]:
    """Composite key -> status for every Campaigns row that has one."""
    lookup: Dict[str, str] = {}
    for row in rows:
        key = make_composite_key(row.campaign_id, row.client, separator)
        if key and row.status:
            lookup[key] = row.status
    return lookup


def join_campaign_sources(
    reporting: Iterable[CampaignReportingRow],
    replies: Iterable[ReplyRow] = (),
    meetings: Iterable[MeetingRow] = (),
    statuses: Optional[Mapping[str, str]] = None,
    separator: Optional[str] = None,
) -> Dict[str, CampaignAggregate]:
    """
    Join reporting, replies and meetings into one aggregate per composite key.

    Args:
        reporting: campaign_reporting rows; seeds aggregates and display names.
        replies: replies rows; counted into total/real/positive replies.
        meetings: meetings_booked rows; counted into meetings_booked.
        statuses: Composite key -> status (see build_status_lookup).
        separator: Composite key separator. Defaults to the configured one.

    Returns:
        Composite key -> CampaignAggregate. Every key present in any source
        appears exactly once with all of its contributions summed.

    Example:
        >>> aggregates = join_campaign_sources(reporting_rows, reply_rows)
        >>> aggregates['5||Acme'].real_replies
        2
    """
    aggregates: Dict[str, CampaignAggregate] = {}
    names: Dict[str, str] = {}
    skipped = 0

    def ensure(key: str, campaign_id: str, client: str, fallback_name: Optional[str]) -> CampaignAggregate:
        aggregate = aggregates.get(key)
        if aggregate is None:
            name = names.get(key) or (fallback_name or '').strip() or campaign_id
            aggregate = CampaignAggregate(campaign_id=campaign_id, client=client, campaign_name=name)
            aggregates[key] = aggregate
        return aggregate

    for row in reporting:
        key = make_composite_key(row.campaign_id, row.client, separator)
        if key is None:
            skipped += 1
            continue
        if row.campaign_name and row.campaign_name.strip() and key not in names:
            names[key] = row.campaign_name.strip()
        ensure(key, row.campaign_id, row.client, row.campaign_name).add_reporting(row)

    for reply in replies:
        key = make_composite_key(reply.campaign_id, reply.client, separator)
        if key is None:
            skipped += 1
            continue
        ensure(key, reply.campaign_id, reply.client, None).add_reply(reply)

    for meeting in meetings:
        key = make_composite_key(meeting.campaign_id, meeting.client, separator)
        if key is None:
            skipped += 1
            continue
        ensure(key, meeting.campaign_id, meeting.client, meeting.campaign_name).add_meeting(meeting)

    if statuses:
        for key, aggregate in aggregates.items():
            aggregate.status = statuses.get(key, UNKNOWN_STATUS)

    if skipped:
        logger.warning(f"Skipped {skipped} rows without a campaign id or client")

    return aggregates


def rank_campaigns(
    aggregates: Iterable[CampaignAggregate],
    include_unsent: bool = False,
) -> List[CampaignAggregate]:
    """
    Order campaigns by total_sent descending (stable).

    Campaigns with nothing sent in the window are dropped unless include_unsent.
    """
    campaigns = [a for a in aggregates if include_unsent or a.total_sent > 0]
    return sorted(campaigns, key=lambda a: a.total_sent, reverse=True)


def paginate(items: Sequence[Row], page: int, page_size: int) -> List[Row]:
    """
    Slice one 1-based page out of a sequence.

    Raises:
        ValueError: If page or page_size is below 1.
    """
    if page < 1 or page_size < 1:
        raise ValueError("page and page_size must be at least 1")
    offset = (page - 1) * page_size
    return list(items[offset:offset + page_size])


# =============================================================================
# Contact-keyed Joins
# =============================================================================


def normalize_email(value: Optional[str]) -> Optional[str]:
    if not value:
        return None
    email = value.strip().lower()
    return email or None


def reply_contact_email(reply: ReplyRow) -> Optional[str]:
    """
    Email of the prospect a reply belongs to: primary_to_email, else lead_id
    when the lead id is itself an email address.
    """
    if reply.primary_to_email:
        return normalize_email(reply.primary_to_email)
    if reply.lead_id and '@' in reply.lead_id:
        return normalize_email(reply.lead_id)
    return None


def group_by_contact(
    rows: Iterable[Row],
    contact: Callable[[Row], Optional[Hashable]],
) -> Dict[Hashable, List[Row]]:
    """Group rows by contact key; rows without a contact are dropped."""
    groups: Dict[Hashable, List[Row]] = {}
    for row in rows:
        key = contact(row)
        if key is None:
            continue
        groups.setdefault(key, []).append(row)
    return groups


_LATEST = datetime.max.replace(tzinfo=timezone.utc)


def _sortable(value: Optional[datetime]) -> datetime:
    if value is None:
        return _LATEST
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def first_occurrence_by_contact(
    rows: Iterable[Row],
    contact: Callable[[Row], Optional[Hashable]],
    timestamp: Callable[[Row], Optional[datetime]],
) -> List[Row]:
    """
    Keep only the chronologically earliest row per contact.

    Rows without a timestamp lose to any timestamped row from the same contact.
    Ties keep the row seen first.

    Returns:
        One row per contact, in chronological order.
    """
    earliest: Dict[Hashable, Row] = {}
    for row in rows:
        key = contact(row)
        if key is None:
            continue
        current = earliest.get(key)
        if current is None or _sortable(timestamp(row)) < _sortable(timestamp(current)):
            earliest[key] = row
    return sorted(earliest.values(), key=lambda row: _sortable(timestamp(row)))
