"""
Rolling last-hour burn rate.
"""

from datetime import datetime, timedelta
from typing import Optional, Sequence

from .results import LiveUsageMetrics
from .timestamps import parse_events, sort_chronologically
from usage_analytics.storage.models import UsageEvent

LIVE_WINDOW = timedelta(hours=1)


def build_live_metrics(events: Sequence[UsageEvent], now: datetime) -> Optional[LiveUsageMetrics]:
    """Compute the live burn rate over the last hour.

    Returns None when there are no events at all, and a zeroed record when
    events exist but none fall inside the window. The window is one hour,
    so the summed spend already is a per-hour rate.
    """
    if not events:
        return None

    window_start = now - LIVE_WINDOW
    recent = sort_chronologically(
        (timestamp, event)
        for timestamp, event in parse_events(events)
        if timestamp >= window_start
    )
    if not recent:
        return LiveUsageMetrics(last_updated=now, burn_rate_cents_per_hour=0.0)

    burn = sum(event.cost_cents for _, event in recent)
    return LiveUsageMetrics(
        last_updated=now,
        burn_rate_cents_per_hour=float(burn),
        active_events=tuple(event for _, event in recent),
        sparkline_points=tuple(event.cost_cents / 100.0 for _, event in recent),
    )
