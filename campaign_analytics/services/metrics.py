"""
Metric Calculator Service

Derived rates over joined aggregates. Every division is zero-guarded: a rate
with a zero (or non-finite) denominator is exactly 0, never NaN or Infinity.

Rate definitions (percentages in [0, 100]):
- reply rate        = total_replies / unique_prospects
- real-reply rate   = real_replies / unique_prospects
- positive rate     = positive_replies / real_replies
- bounce rate       = bounces / total_sent
- meeting conversion = meetings_booked / positive_replies
- win rate          = won / (won + lost)

Reply classification:
- Out-of-office: category matches /out of office|ooo/i. These replies are
  excluded from real replies before any rate is computed.
- Positive: category equals 'interested' (case-insensitive, trimmed).

Also provides the funnel builder, where each stage's percentage is relative to
the stage before it.
"""

import re
from typing import Any, Iterable, List, Optional, Sequence, Tuple

import numpy as np

from campaign_analytics.models.enums import ReplyCategory
from campaign_analytics.models.schemas import CampaignStat, FunnelStage, OpportunityRow


# =============================================================================
# Constants
# =============================================================================

OUT_OF_OFFICE_PATTERN = re.compile(r'out of office|ooo', re.IGNORECASE)

POSITIVE_CATEGORY = 'interested'
NEGATIVE_CATEGORY = 'not interested'

TRUTHY_STRINGS = frozenset({'true', 'yes', 'y', '1'})


# =============================================================================
# Zero-guarded Division
# =============================================================================


def safe_ratio(numerator: float, denominator: float) -> float:
    """
    numerator / denominator as a fraction, 0.0 when the denominator is zero
    or the result is not finite.

    Example:
        >>> safe_ratio(10, 20)
        0.5
        >>> safe_ratio(3, 0)
        0.0
    """
    if not denominator:
        return 0.0
    result = float(numerator) / float(denominator)
    if not np.isfinite(result):
        return 0.0
    return result


def safe_rate(numerator: float, denominator: float) -> float:
    """
    numerator / denominator as a percentage clamped to [0, 100], 0.0 when the
    denominator is zero.
    """
    return float(np.clip(safe_ratio(numerator, denominator) * 100.0, 0.0, 100.0))


# =============================================================================
# Reply Classification
# =============================================================================


def is_out_of_office(category: Optional[str]) -> bool:
    """True when a reply category is an out-of-office auto-response."""
    if not category:
        return False
    return OUT_OF_OFFICE_PATTERN.search(category) is not None


def is_positive_reply(category: Optional[str]) -> bool:
    return (category or '').strip().lower() == POSITIVE_CATEGORY


def categorize_reply(category: Optional[str]) -> ReplyCategory:
    """Coarse category used for the reply breakdown."""
    normalized = (category or '').strip().lower()
    if normalized == POSITIVE_CATEGORY:
        return ReplyCategory.INTERESTED
    if normalized == NEGATIVE_CATEGORY:
        return ReplyCategory.NOT_INTERESTED
    if is_out_of_office(normalized):
        return ReplyCategory.OUT_OF_OFFICE
    return ReplyCategory.OTHER


def is_truthy(value: Any) -> bool:
    """
    Read a loosely typed boolean column.

    True for True, non-zero numbers, and the strings 'true', 'yes', 'y', '1'
    in any case. Everything else (None, '', 'no', 'false', 0) is False.
    """
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0
    if isinstance(value, str):
        return value.strip().lower() in TRUTHY_STRINGS
    return bool(value)


# =============================================================================
# Campaign Rates
# =============================================================================


def reply_rate(total_replies: int, unique_prospects: int) -> float:
    return safe_rate(total_replies, unique_prospects)


def real_reply_rate(real_replies: int, unique_prospects: int) -> float:
    return safe_rate(real_replies, unique_prospects)


def positive_rate(positive_replies: int, real_replies: int) -> float:
    return safe_rate(positive_replies, real_replies)


def bounce_rate(bounces: int, total_sent: int) -> float:
    return safe_rate(bounces, total_sent)


def meeting_conversion(meetings_booked: int, positive_replies: int) -> float:
    return safe_rate(meetings_booked, positive_replies)


def to_campaign_stat(aggregate: Any) -> CampaignStat:
    """
    Freeze a CampaignAggregate into its API model with all derived rates.

    Args:
        aggregate: campaign_analytics.services.joiner.CampaignAggregate

    Returns:
        CampaignStat
    """
    return CampaignStat(
        campaignId=aggregate.campaign_id,
        campaignName=aggregate.campaign_name,
        client=aggregate.client,
        status=aggregate.status,
        totalSent=aggregate.total_sent,
        uniqueProspects=aggregate.unique_prospects,
        totalReplies=aggregate.total_replies,
        realReplies=aggregate.real_replies,
        positiveReplies=aggregate.positive_replies,
        bounces=aggregate.bounces,
        meetingsBooked=aggregate.meetings_booked,
        replyRate=reply_rate(aggregate.total_replies, aggregate.unique_prospects),
        realReplyRate=real_reply_rate(aggregate.real_replies, aggregate.unique_prospects),
        positiveRate=positive_rate(aggregate.positive_replies, aggregate.real_replies),
        bounceRate=bounce_rate(aggregate.bounces, aggregate.total_sent),
        meetingConversion=meeting_conversion(aggregate.meetings_booked, aggregate.positive_replies),
    )


# =============================================================================
# Opportunities
# =============================================================================


def is_won(opportunity: OpportunityRow) -> bool:
    """A closed opportunity is won iff it carries a positive value."""
    return opportunity.value is not None and opportunity.value > 0


def is_lost(opportunity: OpportunityRow) -> bool:
    """A closed opportunity is lost iff its value is 0 or missing."""
    return opportunity.value is None or opportunity.value == 0


def win_rate(won: int, lost: int) -> float:
    """won / (won + lost) as a percentage; 0 when nothing was decided."""
    return safe_rate(won, won + lost)


def summarize_closed_deals(opportunities: Iterable[OpportunityRow]) -> Tuple[float, int, int]:
    """
    Revenue and win/loss counts for a set of closed opportunities.

    Returns:
        (total revenue of won deals, won count, lost count)
    """
    revenue = 0.0
    won = 0
    lost = 0
    for opportunity in opportunities:
        if is_won(opportunity):
            won += 1
            revenue += float(opportunity.value)
        elif is_lost(opportunity):
            lost += 1
    return revenue, won, lost


# =============================================================================
# Funnel
# =============================================================================


def build_funnel(stages: Sequence[Tuple[str, float]]) -> List[FunnelStage]:
    """
    Build ordered funnel stages from (name, value) pairs.

    The first stage carries no percentage. Every later stage's percentage is
    value / previous value, zero-guarded.

    Example:
        >>> [s.percentage for s in build_funnel([('Sent', 200), ('Replied', 10), ('Booked', 0)])]
        [None, 5.0, 0.0]
    """
    funnel: List[FunnelStage] = []
    previous: Optional[float] = None
    for name, value in stages:
        percentage = None if previous is None else safe_rate(value, previous)
        funnel.append(FunnelStage(name=name, value=value, percentage=percentage))
        previous = value
    return funnel
