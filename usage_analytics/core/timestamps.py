"""
Timestamp parsing and timezone resolution.

Events carry their occurrence time as a millisecond epoch string. Parsing
returns None for anything malformed so callers can exclude the event
explicitly instead of failing the evaluation.
"""

import logging
import math
from datetime import datetime, timezone, tzinfo
from typing import Iterable, List, Optional, Tuple
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from usage_analytics.storage.models import UsageEvent

logger = logging.getLogger(__name__)


def parse_event_timestamp(raw: Optional[str]) -> Optional[datetime]:
    """Parse a millisecond epoch string into an aware UTC datetime.

    Returns None when the value is empty, not numeric, not finite, or
    outside the range datetime can represent.
    """
    if raw is None:
        return None
    try:
        millis = float(raw)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(millis):
        return None
    try:
        return datetime.fromtimestamp(millis / 1000.0, tz=timezone.utc)
    except (OverflowError, OSError, ValueError):
        return None


def parse_events(events: Iterable[UsageEvent]) -> List[Tuple[datetime, UsageEvent]]:
    """Pair each event with its parsed timestamp, dropping unparseable ones.

    Input order is preserved.
    """
    parsed = []
    for event in events:
        timestamp = parse_event_timestamp(event.occurred_at_ms)
        if timestamp is None:
            logger.debug("Dropping event with unparseable timestamp %r", event.occurred_at_ms)
            continue
        parsed.append((timestamp, event))
    return parsed


def sort_chronologically(parsed: Iterable[Tuple[datetime, UsageEvent]]) -> List[Tuple[datetime, UsageEvent]]:
    """Stable ascending sort by timestamp."""
    return sorted(parsed, key=lambda pair: pair[0])


def resolve_timezone(identifier: str, fallback_identifier: str = "UTC") -> tzinfo:
    """Resolve an IANA timezone identifier.

    Unknown identifiers fall back to fallback_identifier, and to UTC when
    that is unknown too.
    """
    for candidate in (identifier, fallback_identifier):
        if not candidate:
            continue
        try:
            return ZoneInfo(candidate)
        except (ZoneInfoNotFoundError, ValueError, OSError):
            logger.debug("Unknown timezone identifier %r", candidate)
    return timezone.utc
