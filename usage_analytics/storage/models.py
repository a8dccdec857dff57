"""
Data models for usage input records.

Defines the immutable records handed to the analytics engine by its
collaborators (fetchers, repositories, the dashboard store).
"""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class UsageEvent:
    """Immutable record of a single billable usage event.

    The timestamp is kept exactly as received (milliseconds since the epoch
    encoded as a numeric string); parsing happens inside the engine so a
    malformed value excludes the event instead of failing the whole load.
    """
    occurred_at_ms: str
    request_count: int
    cost_cents: int
    provider: Optional[str] = None
    model: Optional[str] = None

    def __post_init__(self):
        """Validate counters are non-negative."""
        if self.request_count < 0:
            raise ValueError("request_count cannot be negative")
        if self.cost_cents < 0:
            raise ValueError("cost_cents cannot be negative")


@dataclass(frozen=True)
class ProviderUsageTotal:
    """Running totals reported by a provider, independent of event history."""
    provider: str
    request_count: int
    spend_cents: int

    def __post_init__(self):
        if not self.provider:
            raise ValueError("provider cannot be empty")
        if self.request_count < 0:
            raise ValueError("request_count cannot be negative")
        if self.spend_cents < 0:
            raise ValueError("spend_cents cannot be negative")


@dataclass(frozen=True)
class PlanUsage:
    used: int = 0
    limit: int = 0
    remaining: int = 0


@dataclass(frozen=True)
class IndividualUsage:
    plan: PlanUsage = PlanUsage()


@dataclass(frozen=True)
class UsageSummary:
    individual_usage: IndividualUsage = IndividualUsage()


@dataclass(frozen=True)
class DashboardSnapshot:
    """Previously rendered dashboard state.

    Only the plan limit is consulted, as a hint that the account is on a
    paid plan.
    """
    usage_summary: Optional[UsageSummary] = None

    @property
    def plan_limit(self) -> int:
        if self.usage_summary is None:
            return 0
        return self.usage_summary.individual_usage.plan.limit
