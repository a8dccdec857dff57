"""
Gap-based session segmentation.

A session is a maximal run of events in which consecutive timestamps are
at most SESSION_GAP apart.
"""

from datetime import datetime, timedelta
from typing import Iterable, List, Tuple

from .results import UsageAggregationPreset, UsageAggregationRow
from .timestamps import sort_chronologically
from usage_analytics.storage.models import UsageEvent

SESSION_GAP = timedelta(minutes=30)


def segment_sessions(
    parsed_events: Iterable[Tuple[datetime, UsageEvent]],
    gap: timedelta = SESSION_GAP,
) -> List[UsageAggregationRow]:
    """Group parsed events into session rows.

    Single pass over the events in chronological order. A gap strictly
    greater than ``gap`` closes the current session; a gap of exactly
    ``gap`` extends it.

    Args:
        parsed_events: (timestamp, event) pairs, in any order
        gap: Largest gap tolerated inside one session

    Returns:
        Session rows ordered by start; single-event sessions have
        start_date == end_date
    """
    rows: List[UsageAggregationRow] = []
    current_start = None
    current_end = None
    request_count = 0
    spend = 0

    for timestamp, event in sort_chronologically(parsed_events):
        if current_end is not None and timestamp - current_end > gap:
            rows.append(_session_row(current_start, current_end, request_count, spend))
            current_start = timestamp
            request_count = 0
            spend = 0
        elif current_start is None:
            current_start = timestamp

        current_end = timestamp
        request_count += event.request_count
        spend += event.cost_cents

    if current_start is not None:
        rows.append(_session_row(current_start, current_end, request_count, spend))
    return rows


def _session_row(start: datetime, end: datetime, request_count: int, spend: int) -> UsageAggregationRow:
    return UsageAggregationRow(
        preset=UsageAggregationPreset.SESSIONS,
        start_date=start,
        end_date=end,
        request_count=request_count,
        spend_cents=spend,
    )
