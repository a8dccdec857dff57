"""
Spend forecasting.

Projects monthly spend from the 90th percentile of daily spend and grades
the projection against the notification threshold.
"""

import math
from datetime import date, datetime
from typing import Dict, List, Sequence

from .currency import format_currency
from .results import (
    ForecastSeverity,
    ForecastWarning,
    PersonalizationProfile,
    UsageAggregationPreset,
)
from .timestamps import parse_events, resolve_timezone
from usage_analytics.config.loader import AppSettings
from usage_analytics.storage.models import UsageEvent

FORECAST_PERCENTILE = 90
HOURS_PER_DAY = 24
DAYS_PER_MONTH = 30
CRITICAL_MULTIPLIER = 2


def build_forecasts(
    events: Sequence[UsageEvent],
    personalization: PersonalizationProfile,
    settings: AppSettings,
    now: datetime,
    fallback_timezone_identifier: str = "UTC",
) -> List[ForecastWarning]:
    """Forecast monthly spend from daily spend history.

    Uses the P90 daily spend rather than the mean so a single expensive day
    does not dominate, while a consistently high tail still does.

    Severity:
    - CRITICAL: projected >= 2 * threshold
    - WARNING: projected >= threshold
    - INFO: otherwise

    Args:
        events: Usage events; unparseable timestamps are excluded
        personalization: Resolved profile (timezone for day boundaries,
            currency for the message)
        settings: Application settings providing the threshold inputs
        now: Evaluation instant stamped on the warning
        fallback_timezone_identifier: Used when the profile timezone is unknown

    Returns:
        Exactly one warning when any event has a parseable timestamp,
        otherwise an empty list
    """
    if not events:
        return []

    tz = resolve_timezone(personalization.timezone_identifier, fallback_timezone_identifier)
    daily_spend: Dict[date, int] = {}
    for timestamp, event in parse_events(events):
        day = timestamp.astimezone(tz).date()
        daily_spend[day] = daily_spend.get(day, 0) + event.cost_cents

    if not daily_spend:
        return []

    p90 = nearest_rank_percentile(list(daily_spend.values()), FORECAST_PERCENTILE)
    burn_rate = p90 / HOURS_PER_DAY
    projected = int(burn_rate * HOURS_PER_DAY * DAYS_PER_MONTH)
    threshold = notification_threshold_cents(settings)

    if projected >= threshold * CRITICAL_MULTIPLIER:
        severity = ForecastSeverity.CRITICAL
    elif projected >= threshold:
        severity = ForecastSeverity.WARNING
    else:
        severity = ForecastSeverity.INFO

    message = f"Projected monthly spend {format_currency(projected, personalization.currency_code)}"
    return [ForecastWarning(
        preset=UsageAggregationPreset.MONTHLY,
        projected_at=now,
        message=message,
        severity=severity,
        projected_value_cents=projected,
        threshold_cents=threshold,
    )]


def nearest_rank_percentile(values: List[int], percentile: int) -> int:
    """Select a percentile without interpolation.

    The index is floor((n - 1) * percentile / 100), clamped to the list.

    Raises:
        ValueError: If values is empty or percentile is outside 0-100
    """
    if not values:
        raise ValueError("Values list cannot be empty")

    if percentile < 0 or percentile > 100:
        raise ValueError("Percentile must be between 0 and 100")

    sorted_values = sorted(values)
    index = math.floor((len(sorted_values) - 1) * (percentile / 100.0))
    index = min(max(index, 0), len(sorted_values) - 1)
    return sorted_values[index]


def notification_threshold_cents(settings: AppSettings) -> int:
    """Spend level in cents at which a forecast becomes a warning."""
    return int(
        settings.overview.refresh_interval
        * settings.advanced.notification_threshold_percent
        * 100
    )
