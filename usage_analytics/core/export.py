"""
Developer status export.

Composes the one-line status an external writer drops on disk for shell
prompts and status bars.
"""

from datetime import datetime
from typing import Optional, Sequence

from .currency import format_currency
from .results import (
    DeveloperExport,
    ForecastWarning,
    LiveUsageMetrics,
    PersonalizationProfile,
    UsageAggregationMetric,
    UsageAggregationPreset,
)
from usage_analytics.config.loader import AppSettings

STABLE_STATUS = "Stable"


def build_developer_export(
    aggregations: Sequence[UsageAggregationMetric],
    live_metrics: Optional[LiveUsageMetrics],
    warnings: Sequence[ForecastWarning],
    settings: AppSettings,
    personalization: PersonalizationProfile,
    now: datetime,
    home_directory: str,
) -> DeveloperExport:
    """Build the status line and resolve where it should be written.

    Latest spend is the last daily bucket; the status is the first warning's
    message, or STABLE_STATUS when there are none. Live metrics are accepted
    for parity with the other stage inputs but do not feed the line.

    Args:
        aggregations: Output of the aggregation stage
        live_metrics: Output of the live-metrics stage
        warnings: Output of the forecast stage
        settings: Application settings holding the export path
        personalization: Resolved profile (currency of the amount)
        now: Evaluation instant, stamped as the write time
        home_directory: Directory substituted for a leading '~'

    Returns:
        DeveloperExport; nothing is written
    """
    latest_spend = 0
    for metric in aggregations:
        if metric.preset == UsageAggregationPreset.DAILY:
            if metric.rows:
                latest_spend = metric.rows[-1].spend_cents
            break

    status_text = warnings[0].message if warnings else STABLE_STATUS
    amount = format_currency(latest_spend, personalization.currency_code)
    status_line = f"Spend: {amount} | Status: {status_text}"

    return DeveloperExport(
        status_line=status_line,
        export_path=expand_home(settings.advanced.status_export_path, home_directory),
        last_written=now,
        latest_spend_cents=latest_spend,
        status_text=status_text,
    )


def expand_home(path: str, home_directory: str) -> str:
    """Expand a leading '~' or '~/'; other forms, '~user' included, are returned as is."""
    if path == "~":
        return home_directory
    if path.startswith("~/"):
        return home_directory.rstrip("/") + path[1:]
    return path
