"""
Dimensional Bucketer Service

Groups records by a dimension value and ranks the resulting buckets.

Dimension buckets:
- One DimensionBucket per distinct value. Null, blank and 'unknown' values count
  as missing and only lower coverage.
- coverage = records with a value / total records, in [0, 1]; 0 for no records.
- Coverage strictly below the threshold (default 0.2) is flagged as low. The
  flag is advisory; the buckets are still returned.

Ranking:
- Descending by a chosen metric (booking count by default, or booking rate);
  ties keep encounter order.
- Tiers are assigned by position only: top 25%, middle 50%, bottom 25%.

Date buckets:
- One bucket per calendar day of the window, chronologically, including days
  with no records.

Normalizers turn free-text firmographics into the fixed bands shown on the
dashboard (revenue, employee count, company age).
"""

import re
from datetime import date, datetime
from typing import (
    Any,
    Callable,
    Dict,
    Generic,
    Hashable,
    Iterable,
    List,
    Mapping,
    Optional,
    Sequence,
    Tuple,
    TypeVar,
)

import pandas as pd

from campaign_analytics.core.config import get_settings
from campaign_analytics.models.enums import BucketTier, Dimension, RankMetric
from campaign_analytics.models.schemas import CountBreakdown, DimensionBucket, DimensionInsight
from campaign_analytics.services.metrics import safe_rate, safe_ratio

Record = TypeVar('Record')
Bucket = TypeVar('Bucket')


# =============================================================================
# Band Labels
# =============================================================================

REVENUE_BANDS: Tuple[str, ...] = (
    'Small (<$1M)',
    'Medium ($1M-$10M)',
    'Large ($10M-$100M)',
    'Enterprise ($100M+)',
)

EMPLOYEE_BANDS: Tuple[str, ...] = (
    'Micro (1-9)',
    'Small (10-49)',
    'Medium (50-199)',
    'Large (200-999)',
    'Enterprise (1000+)',
)

COMPANY_AGE_BANDS: Tuple[str, ...] = (
    'Startup (0-5 yrs)',
    'Growth (6-15 yrs)',
    'Mature (16-30 yrs)',
    'Established (30+ yrs)',
)

UNKNOWN_LABEL = 'Unknown'

_NUMBER_PATTERN = re.compile(r'(\d[\d,]*(?:\.\d+)?)\s*([a-zA-Z]*)')

_MAGNITUDES = {
    'k': 1e3, 'thousand': 1e3,
    'm': 1e6, 'mm': 1e6, 'million': 1e6,
    'b': 1e9, 'bn': 1e9, 'billion': 1e9,
}

_MONTH_ABBR = ('Jan', 'Feb', 'Mar', 'Apr', 'May', 'Jun', 'Jul', 'Aug', 'Sep', 'Oct', 'Nov', 'Dec')


# =============================================================================
# Value Validity and Normalizers
# =============================================================================


def is_valid_value(value: Optional[str]) -> bool:
    """False for None, blank, and 'unknown' in any case."""
    if value is None:
        return False
    trimmed = str(value).strip()
    return trimmed != '' and trimmed.lower() != 'unknown'


def _parse_amount(text: str) -> Optional[float]:
    """First number in the text, scaled by a trailing k/m/b style suffix."""
    match = _NUMBER_PATTERN.search(text)
    if match is None:
        return None
    number = float(match.group(1).replace(',', ''))
    return number * _MAGNITUDES.get(match.group(2).lower(), 1.0)


def normalize_revenue(revenue: Optional[str]) -> Optional[str]:
    """
    Map a free-text annual revenue to a revenue band.

    Examples:
        >>> normalize_revenue('$5,000,000')
        'Medium ($1M-$10M)'
        >>> normalize_revenue('25M')
        'Large ($10M-$100M)'
        >>> normalize_revenue('several million')
        'Medium ($1M-$10M)'
        >>> normalize_revenue('') is None
        True
    """
    if not revenue or not str(revenue).strip():
        return None

    text = str(revenue).lower()
    amount = _parse_amount(text)
    if amount is not None:
        if amount < 1_000_000:
            return REVENUE_BANDS[0]
        if amount < 10_000_000:
            return REVENUE_BANDS[1]
        if amount < 100_000_000:
            return REVENUE_BANDS[2]
        return REVENUE_BANDS[3]

    if 'billion' in text:
        return REVENUE_BANDS[3]
    if 'million' in text:
        return REVENUE_BANDS[1]
    return None


def normalize_company_size(size: Optional[str]) -> Optional[str]:
    """
    Map a free-text employee count (or range such as '51-200') to a band,
    using the lower bound of ranges.
    """
    if not size or not str(size).strip():
        return None

    amount = _parse_amount(str(size).lower())
    if amount is None:
        return None
    if amount < 10:
        return EMPLOYEE_BANDS[0]
    if amount < 50:
        return EMPLOYEE_BANDS[1]
    if amount < 200:
        return EMPLOYEE_BANDS[2]
    if amount < 1000:
        return EMPLOYEE_BANDS[3]
    return EMPLOYEE_BANDS[4]


def company_age_band(year_founded: Optional[int], as_of: date) -> str:
    """Age band for a founding year relative to as_of; 'Unknown' without a year."""
    if year_founded is None:
        return UNKNOWN_LABEL
    age = as_of.year - year_founded
    if age <= 5:
        return COMPANY_AGE_BANDS[0]
    if age <= 15:
        return COMPANY_AGE_BANDS[1]
    if age <= 30:
        return COMPANY_AGE_BANDS[2]
    return COMPANY_AGE_BANDS[3]


# =============================================================================
# Dimension Buckets
# =============================================================================


def is_low_coverage(coverage: float, threshold: Optional[float] = None) -> bool:
    """True iff coverage is strictly below the threshold (default 0.2)."""
    limit = threshold if threshold is not None else get_settings().low_coverage_threshold
    return coverage < limit


def bucket_dimension(
    dimension: Dimension,
    leads: Sequence[Record],
    lead_values: Callable[[Record], Iterable[Optional[str]]],
    lead_contact: Callable[[Record], Optional[Hashable]],
    replies_by_contact: Mapping[Hashable, Sequence[Any]],
    meetings_by_contact: Mapping[Hashable, Sequence[Any]],
    is_positive: Callable[[Any], bool],
    meeting_value: Optional[Callable[[Any], Optional[str]]] = None,
    rank_by: RankMetric = RankMetric.BOOKED,
    low_coverage_threshold: Optional[float] = None,
) -> DimensionInsight:
    """
    Bucket leads by a dimension and attach reply/meeting outcomes.

    Args:
        dimension: Which dimension is being bucketed.
        leads: The lead population (every lead counts toward total_leads).
        lead_values: Values of the dimension for a lead. Single-valued
            dimensions return one value; multi-valued ones (signals) several.
        lead_contact: Join key of a lead (lowercased email).
        replies_by_contact: Contact -> replies from that contact.
        meetings_by_contact: Contact -> meetings with that contact.
        is_positive: Whether a reply counts as positive.
        meeting_value: Value of the dimension as recorded on the meeting. When
            given, a meeting only counts toward the bucket whose value it
            matches. When None, every meeting of the contact counts.
        rank_by: Ordering metric for the returned buckets.
        low_coverage_threshold: Override of the configured threshold.

    Returns:
        DimensionInsight with coverage and ranked buckets.
    """
    buckets: Dict[str, DimensionBucket] = {}
    leads_with_data = 0

    for lead in leads:
        values = []
        for value in lead_values(lead):
            if is_valid_value(value):
                normalized = str(value).strip()
                if normalized not in values:
                    values.append(normalized)
        if not values:
            continue
        leads_with_data += 1

        contact = lead_contact(lead)
        replies = replies_by_contact.get(contact, ()) if contact is not None else ()
        meetings = meetings_by_contact.get(contact, ()) if contact is not None else ()

        for value in values:
            bucket = buckets.get(value)
            if bucket is None:
                bucket = DimensionBucket(value=value)
                buckets[value] = bucket
            bucket.leadsIn += 1
            bucket.engaged += len(replies)
            bucket.positive += sum(1 for reply in replies if is_positive(reply))
            if meeting_value is None:
                bucket.booked += len(meetings)
            else:
                bucket.booked += sum(
                    1 for meeting in meetings
                    if is_valid_value(meeting_value(meeting))
                    and str(meeting_value(meeting)).strip() == value
                )

    total = len(leads)
    coverage = safe_ratio(leads_with_data, total)

    return DimensionInsight(
        dimension=dimension,
        coverage=coverage,
        totalLeads=total,
        totalLeadsWithData=leads_with_data,
        lowCoverage=is_low_coverage(coverage, low_coverage_threshold),
        items=rank_buckets(list(buckets.values()), rank_by),
    )


_RANK_KEYS: Dict[RankMetric, Callable[[DimensionBucket], float]] = {
    RankMetric.BOOKED: lambda b: b.booked,
    RankMetric.BOOKING_RATE: lambda b: safe_ratio(b.booked, b.leadsIn),
    RankMetric.LEADS_IN: lambda b: b.leadsIn,
    RankMetric.ENGAGED: lambda b: b.engaged,
    RankMetric.POSITIVE: lambda b: b.positive,
    RankMetric.ENGAGEMENT_RATE: lambda b: safe_ratio(b.engaged, b.leadsIn),
}


def rank_buckets(
    buckets: Sequence[DimensionBucket],
    rank_by: RankMetric = RankMetric.BOOKED,
) -> List[DimensionBucket]:
    """
    Sort buckets descending by the chosen metric. Python's sort is stable, so
    equal buckets keep their encounter order.

    Example:
        >>> tech = DimensionBucket(value='Tech', leadsIn=20, booked=10)
        >>> finance = DimensionBucket(value='Finance', leadsIn=20, booked=1)
        >>> [b.value for b in rank_buckets([finance, tech], RankMetric.BOOKING_RATE)]
        ['Tech', 'Finance']
    """
    return sorted(buckets, key=_RANK_KEYS[rank_by], reverse=True)


def tier_for_position(index: int, total: int) -> BucketTier:
    """
    Tier of the item at zero-based `index` in a ranked list of `total` items.

    Positions in the first quarter are top, positions in the last quarter are
    bottom, the rest are middle. Magnitudes play no part.
    """
    if total <= 0 or index < 0 or index >= total:
        raise ValueError(f"index {index} out of range for {total} items")
    if index < total * 0.25:
        return BucketTier.TOP
    if index >= total * 0.75:
        return BucketTier.BOTTOM
    return BucketTier.MIDDLE


def classify_tiers(ranked: Sequence[Bucket]) -> List[Tuple[Bucket, BucketTier]]:
    """Pair every item of a ranked list with its positional tier."""
    total = len(ranked)
    return [(item, tier_for_position(index, total)) for index, item in enumerate(ranked)]


# =============================================================================
# Count Breakdowns
# =============================================================================


def count_breakdown(
    labels: Iterable[str],
    total: Optional[int] = None,
    exclude: Iterable[str] = (),
    order: Optional[Sequence[str]] = None,
    limit: Optional[int] = None,
) -> List[CountBreakdown]:
    """
    Count occurrences of each label with its share of `total`.

    Args:
        labels: One label per record.
        total: Denominator for percentages. Defaults to the number of labels.
        exclude: Labels dropped from the output (still part of the total).
        order: Fixed label order. Labels not in it sort last. When None, the
            breakdown is sorted by count descending (stable).
        limit: Keep only the first `limit` entries.
    """
    counts: Dict[str, int] = {}
    seen = 0
    for label in labels:
        counts[label] = counts.get(label, 0) + 1
        seen += 1
    denominator = total if total is not None else seen

    excluded = set(exclude)
    items = [
        CountBreakdown(label=label, count=count, percentage=safe_rate(count, denominator))
        for label, count in counts.items()
        if label not in excluded
    ]

    if order is not None:
        rank = {label: position for position, label in enumerate(order)}
        items.sort(key=lambda item: rank.get(item.label, len(rank)))
    else:
        items.sort(key=lambda item: item.count, reverse=True)

    if limit is not None:
        items = items[:limit]
    return items


# =============================================================================
# Date Buckets
# =============================================================================


def calendar_days(start: date, end: date) -> List[date]:
    """Every calendar day from start to end inclusive; empty if end < start."""
    if end < start:
        return []
    return [ts.date() for ts in pd.date_range(start=start, end=end, freq='D')]


def format_date_label(day: date) -> str:
    """Short display label, e.g. 'Jan 5'."""
    return f"{_MONTH_ABBR[day.month - 1]} {day.day}"


def day_of(value: Optional[Any]) -> Optional[date]:
    """Calendar day of a date or timestamp, as recorded (no timezone shift)."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return None


class DateBuckets(Generic[Bucket]):
    """
    One bucket per calendar day of a window, created up front so empty days
    are present.

    Example:
        >>> buckets = DateBuckets(date(2026, 1, 1), date(2026, 1, 7), lambda day: {})
        >>> len(buckets.ordered())
        7
    """

    def __init__(self, start: date, end: date, factory: Callable[[date], Bucket]) -> None:
        self._buckets: Dict[date, Bucket] = {day: factory(day) for day in calendar_days(start, end)}

    def get(self, value: Optional[Any]) -> Optional[Bucket]:
        """Bucket for the day of `value`, or None when it falls outside the window."""
        day = day_of(value)
        if day is None:
            return None
        return self._buckets.get(day)

    def ordered(self) -> List[Tuple[date, Bucket]]:
        return list(self._buckets.items())

    def __len__(self) -> int:
        return len(self._buckets)
