"""
Usage analytics evaluation.

This module turns raw usage events into the full analytics bundle shown on
the dashboard. It is designed to be read-only, deterministic, and safe to
call from several threads at once.

Evaluation runs five stages:
1. Personalization - locale, timezone and currency context
2. Aggregation - calendar buckets, sessions and provider totals
3. Forecast - P90 daily spend projected over a month
4. Live metrics - last-hour burn rate and sparkline
5. Export - one-line status for external writers

Stages 2-4 only read the events and the personalization profile, so they
may run on a thread pool; stage 5 waits for all three.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Optional, Sequence

from .aggregation import build_aggregations
from .environment import Environment, system_environment
from .export import build_developer_export
from .forecast import build_forecasts
from .live import build_live_metrics
from .personalization import build_personalization
from .results import UsageAnalyticsResult
from usage_analytics.config.loader import AppSettings
from usage_analytics.storage.models import DashboardSnapshot, ProviderUsageTotal, UsageEvent

logger = logging.getLogger(__name__)


class AnalyticsEngine:
    """Stateless facade over the analytics stages.

    The engine keeps only its environment and worker count, so one instance
    can serve concurrent callers with different inputs.
    """

    def __init__(self, environment: Optional[Environment] = None, max_workers: Optional[int] = None):
        """Initialize the engine.

        Args:
            environment: Source of ambient reads (defaults to the running system)
            max_workers: When set, run aggregation, forecast and live metrics
                on a thread pool of this size
        """
        if max_workers is not None and max_workers < 1:
            raise ValueError("max_workers must be >= 1")
        self.environment = environment or system_environment()
        self.max_workers = max_workers

    def evaluate(
        self,
        events: Sequence[UsageEvent],
        provider_totals: Sequence[ProviderUsageTotal],
        settings: AppSettings,
        existing_snapshot: Optional[DashboardSnapshot] = None,
    ) -> UsageAnalyticsResult:
        """Evaluate usage analytics for one set of inputs.

        Never raises for data problems: malformed timestamps are excluded,
        unknown timezones and currencies fall back to defaults.

        Args:
            events: Usage events, in any order
            provider_totals: Running totals per provider
            settings: Application settings
            existing_snapshot: Previously rendered dashboard state, if any

        Returns:
            UsageAnalyticsResult with every derived output
        """
        events = tuple(events)
        provider_totals = tuple(provider_totals)
        now = self.environment.now()
        system_timezone = self.environment.timezone_identifier()

        personalization = build_personalization(settings, existing_snapshot, self.environment)
        logger.debug(
            "Evaluating %d event(s), %d provider total(s) in %s",
            len(events), len(provider_totals), personalization.timezone_identifier,
        )

        if self.max_workers is None:
            aggregations = build_aggregations(
                events, provider_totals, personalization, now, system_timezone
            )
            warnings = build_forecasts(events, personalization, settings, now, system_timezone)
            live_metrics = build_live_metrics(events, now)
        else:
            with ThreadPoolExecutor(max_workers=self.max_workers) as pool:
                aggregations_future = pool.submit(
                    build_aggregations, events, provider_totals, personalization, now, system_timezone
                )
                warnings_future = pool.submit(
                    build_forecasts, events, personalization, settings, now, system_timezone
                )
                live_future = pool.submit(build_live_metrics, events, now)
                aggregations = aggregations_future.result()
                warnings = warnings_future.result()
                live_metrics = live_future.result()

        developer_export = build_developer_export(
            aggregations=aggregations,
            live_metrics=live_metrics,
            warnings=warnings,
            settings=settings,
            personalization=personalization,
            now=now,
            home_directory=self.environment.home_directory(),
        )

        return UsageAnalyticsResult(
            aggregations=tuple(aggregations),
            warnings=tuple(warnings),
            live_metrics=live_metrics,
            personalization=personalization,
            developer_export=developer_export,
        )
