"""
Calendar-aware usage aggregation.

Buckets events at several calendar resolutions in the personalization
timezone, groups them into sessions, and appends provider running totals.
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone, tzinfo
from typing import Callable, Dict, List, Sequence, Tuple

from .results import (
    PersonalizationProfile,
    UsageAggregationMetric,
    UsageAggregationPreset,
    UsageAggregationRow,
)
from .sessions import segment_sessions
from .timestamps import parse_events, resolve_timezone
from usage_analytics.storage.models import ProviderUsageTotal, UsageEvent

logger = logging.getLogger(__name__)

FIVE_HOUR_SPAN = timedelta(hours=5)


@dataclass(frozen=True)
class BucketStrategy:
    """How one preset maps an instant onto the calendar grid.

    ``start_of`` receives the event time in the bucket timezone and returns
    the start of its bucket; ``end_of`` receives that start and returns the
    exclusive end.
    """
    preset: UsageAggregationPreset
    start_of: Callable[[datetime, tzinfo], datetime]
    end_of: Callable[[datetime, tzinfo], datetime]


def _local_midnight(day: date, tz: tzinfo) -> datetime:
    return datetime(day.year, day.month, day.day, tzinfo=tz)


def _five_hour_start(local: datetime, tz: tzinfo) -> datetime:
    return datetime(local.year, local.month, local.day, local.hour // 5 * 5, tzinfo=tz)


def _five_hour_end(start: datetime, tz: tzinfo) -> datetime:
    # Each end equals the next block's wall-clock start, DST days included;
    # the 20:00 block stops at local midnight.
    wall_start = datetime(start.year, start.month, start.day, start.hour)
    next_midnight = datetime(start.year, start.month, start.day) + timedelta(days=1)
    return min(wall_start + FIVE_HOUR_SPAN, next_midnight).replace(tzinfo=tz)


def _day_start(local: datetime, tz: tzinfo) -> datetime:
    return _local_midnight(local.date(), tz)


def _day_end(start: datetime, tz: tzinfo) -> datetime:
    return _local_midnight(start.date() + timedelta(days=1), tz)


def _week_start(local: datetime, tz: tzinfo) -> datetime:
    # Weeks start on Sunday; date.weekday() counts Monday as 0.
    days_since_sunday = (local.weekday() + 1) % 7
    return _local_midnight(local.date() - timedelta(days=days_since_sunday), tz)


def _week_end(start: datetime, tz: tzinfo) -> datetime:
    return _local_midnight(start.date() + timedelta(days=7), tz)


def _month_start(local: datetime, tz: tzinfo) -> datetime:
    return datetime(local.year, local.month, 1, tzinfo=tz)


def _month_end(start: datetime, tz: tzinfo) -> datetime:
    if start.month == 12:
        return datetime(start.year + 1, 1, 1, tzinfo=tz)
    return datetime(start.year, start.month + 1, 1, tzinfo=tz)


GRID_STRATEGIES: Tuple[BucketStrategy, ...] = (
    BucketStrategy(UsageAggregationPreset.FIVE_HOUR_BLOCKS, _five_hour_start, _five_hour_end),
    BucketStrategy(UsageAggregationPreset.DAILY, _day_start, _day_end),
    BucketStrategy(UsageAggregationPreset.WEEKLY, _week_start, _week_end),
    BucketStrategy(UsageAggregationPreset.MONTHLY, _month_start, _month_end),
)


def build_aggregations(
    events: Sequence[UsageEvent],
    provider_totals: Sequence[ProviderUsageTotal],
    personalization: PersonalizationProfile,
    now: datetime,
    fallback_timezone_identifier: str = "UTC",
) -> List[UsageAggregationMetric]:
    """Aggregate usage at every supported resolution.

    Metric order is five-hour blocks, daily, weekly, monthly, sessions, then
    provider totals when any were supplied. Without events only the provider
    totals metric is produced (or nothing at all).

    Args:
        events: Usage events; unparseable timestamps are excluded
        provider_totals: Running totals per provider
        personalization: Resolved profile; its timezone drives the grid
        now: Evaluation instant, used to stamp provider total rows
        fallback_timezone_identifier: Used when the profile timezone is unknown

    Returns:
        List of aggregation metrics
    """
    if not events:
        if not provider_totals:
            return []
        return [_provider_totals_metric(provider_totals, now)]

    tz = resolve_timezone(personalization.timezone_identifier, fallback_timezone_identifier)
    parsed = parse_events(events)
    if len(parsed) < len(events):
        logger.debug("Excluded %d event(s) with unparseable timestamps", len(events) - len(parsed))

    metrics = [_grid_metric(strategy, parsed, tz) for strategy in GRID_STRATEGIES]
    metrics.append(UsageAggregationMetric(
        preset=UsageAggregationPreset.SESSIONS,
        rows=tuple(segment_sessions(parsed)),
    ))

    if provider_totals:
        metrics.append(_provider_totals_metric(provider_totals, now))
    return metrics


def _grid_metric(
    strategy: BucketStrategy,
    parsed: Sequence[Tuple[datetime, UsageEvent]],
    tz: tzinfo,
) -> UsageAggregationMetric:
    """Sum requests and spend per bucket for one grid strategy."""
    # Keyed by the UTC bucket start so ordering never depends on wall time.
    buckets: Dict[datetime, List[int]] = {}
    for timestamp, event in parsed:
        start = strategy.start_of(timestamp.astimezone(tz), tz)
        totals = buckets.setdefault(start.astimezone(timezone.utc), [0, 0])
        totals[0] += event.request_count
        totals[1] += event.cost_cents

    rows = []
    for key in sorted(buckets):
        start = key.astimezone(tz)
        request_count, spend = buckets[key]
        rows.append(UsageAggregationRow(
            preset=strategy.preset,
            start_date=start,
            end_date=strategy.end_of(start, tz),
            request_count=request_count,
            spend_cents=spend,
        ))
    return UsageAggregationMetric(preset=strategy.preset, rows=tuple(rows))


def _provider_totals_metric(
    provider_totals: Sequence[ProviderUsageTotal],
    now: datetime,
) -> UsageAggregationMetric:
    rows = tuple(
        UsageAggregationRow(
            preset=UsageAggregationPreset.PROVIDER_TOTALS,
            start_date=now,
            end_date=now,
            request_count=total.request_count,
            spend_cents=total.spend_cents,
            provider_identifier=total.provider,
        )
        for total in provider_totals
    )
    return UsageAggregationMetric(preset=UsageAggregationPreset.PROVIDER_TOTALS, rows=rows)
