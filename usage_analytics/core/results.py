"""
Result types produced by the analytics engine.

Every record is immutable; sequences are stored as tuples so a result can
be shared between threads without copying.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional, Tuple

from usage_analytics.config.loader import Appearance
from usage_analytics.storage.models import UsageEvent


class UsageAggregationPreset(Enum):
    """Resolution an aggregation metric is computed at."""
    FIVE_HOUR_BLOCKS = "fiveHourBlocks"
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    SESSIONS = "sessions"
    PROVIDER_TOTALS = "providerTotals"


class ForecastSeverity(Enum):
    """Severity of a forecast warning."""
    INFO = "info"
    WARNING = "warning"
    CRITICAL = "critical"


@dataclass(frozen=True)
class PersonalizationProfile:
    """Locale, timezone and currency context applied to every output."""
    locale_identifier: str
    timezone_identifier: str
    currency_code: str
    appearance: Appearance
    inferred_plan: Optional[str] = None


@dataclass(frozen=True)
class UsageAggregationRow:
    """Requests and spend accumulated over one bucket."""
    preset: UsageAggregationPreset
    start_date: datetime
    end_date: datetime
    request_count: int
    spend_cents: int
    provider_identifier: Optional[str] = None

    def __post_init__(self):
        """Validate the bucket interval is not inverted."""
        if self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")


@dataclass(frozen=True)
class UsageAggregationMetric:
    """Ordered rows of one preset, with totals across them."""
    preset: UsageAggregationPreset
    rows: Tuple[UsageAggregationRow, ...]

    @property
    def total_request_count(self) -> int:
        """Requests summed over every row."""
        return sum(row.request_count for row in self.rows)

    @property
    def total_spend_cents(self) -> int:
        """Spend in cents summed over every row."""
        return sum(row.spend_cents for row in self.rows)


@dataclass(frozen=True)
class ForecastWarning:
    """Projected spend for the period compared against the alert threshold."""
    preset: UsageAggregationPreset
    projected_at: datetime
    message: str
    severity: ForecastSeverity
    projected_value_cents: int
    threshold_cents: int


@dataclass(frozen=True)
class LiveUsageMetrics:
    """Rolling view over the last hour of events."""
    last_updated: datetime
    burn_rate_cents_per_hour: float
    active_events: Tuple[UsageEvent, ...] = ()
    sparkline_points: Tuple[float, ...] = ()


@dataclass(frozen=True)
class DeveloperExport:
    """One-line status text and where an external writer should put it.

    Building an export performs no I/O.
    """
    status_line: str
    export_path: str
    last_written: datetime
    latest_spend_cents: int = 0
    status_text: str = ""


@dataclass(frozen=True)
class UsageAnalyticsResult:
    """Everything derived from one evaluation."""
    aggregations: Tuple[UsageAggregationMetric, ...]
    warnings: Tuple[ForecastWarning, ...]
    live_metrics: Optional[LiveUsageMetrics]
    personalization: PersonalizationProfile
    developer_export: DeveloperExport

    def metric(self, preset: UsageAggregationPreset) -> Optional[UsageAggregationMetric]:
        """Return the aggregation metric for a preset, if it was produced."""
        for metric in self.aggregations:
            if metric.preset == preset:
                return metric
        return None
