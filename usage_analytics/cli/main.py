"""
CLI interface for Usage Analytics.

Provides command-line access to the analytics engine.
"""

import logging
import sys
from typing import Optional

import typer
import yaml
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from usage_analytics.config.loader import AppSettings, load_app_settings
from usage_analytics.core.currency import format_currency
from usage_analytics.core.engine import AnalyticsEngine
from usage_analytics.core.environment import system_environment
from usage_analytics.core.personalization import build_personalization
from usage_analytics.core.results import (
    ForecastSeverity,
    UsageAggregationPreset,
    UsageAnalyticsResult,
)
from usage_analytics.storage.repository import UsageRepository, write_status_export

app = typer.Typer()
console = Console()

EXIT_CODE_OK = 0
EXIT_CODE_ERROR = 1

_SEVERITY_STYLES = {
    ForecastSeverity.INFO: "green",
    ForecastSeverity.WARNING: "yellow",
    ForecastSeverity.CRITICAL: "red",
}


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


def _load_settings(settings_path: Optional[str]) -> AppSettings:
    if settings_path is None:
        return AppSettings()
    return load_app_settings(settings_path)


@app.callback(invoke_without_command=True)
def main(ctx: typer.Context):
    """Usage Analytics CLI."""
    if ctx.invoked_subcommand is None:
        console.print("Usage Analytics - Use --help to see available commands")


@app.command()
def status(
    settings_path: Optional[str] = typer.Option(
        None,
        "--settings",
        "-s",
        help="YAML settings file (defaults are used when omitted)"
    ),
):
    """Show the personalization profile the engine would use."""
    try:
        settings = _load_settings(settings_path)
    except (FileNotFoundError, ValueError, yaml.YAMLError) as e:
        console.print(f"[red]Error loading settings:[/] {str(e)}")
        sys.exit(EXIT_CODE_ERROR)

    profile = build_personalization(settings, None, system_environment())
    console.print(f"Locale: {profile.locale_identifier}")
    console.print(f"Timezone: {profile.timezone_identifier}")
    console.print(f"Currency: {profile.currency_code}")
    console.print(f"Appearance: {profile.appearance.value}")
    sys.exit(EXIT_CODE_OK)


@app.command()
def evaluate(
    payload_path: str = typer.Argument(
        ...,
        help="YAML/JSON file with events, provider_totals and an optional snapshot"
    ),
    settings_path: Optional[str] = typer.Option(
        None,
        "--settings",
        "-s",
        help="YAML settings file (defaults are used when omitted)"
    ),
    write_export: bool = typer.Option(
        False,
        "--write-export",
        "-w",
        help="Write the status line to the configured export path"
    ),
    workers: Optional[int] = typer.Option(
        None,
        "--workers",
        help="Run the independent stages on a thread pool of this size"
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable debug logging"
    ),
):
    """
    Evaluate usage analytics for a payload file.

    Prints aggregation tables, the monthly forecast, the live burn rate and
    the status line.
    """
    _configure_logging(verbose)
    try:
        settings = _load_settings(settings_path)
        repository = UsageRepository(payload_path)
        events = repository.get_events()
        provider_totals = repository.get_provider_totals()
        snapshot = repository.get_snapshot()
    except (FileNotFoundError, ValueError, yaml.YAMLError) as e:
        console.print(f"[red]Error loading input:[/] {str(e)}")
        sys.exit(EXIT_CODE_ERROR)

    try:
        engine = AnalyticsEngine(max_workers=workers)
    except ValueError as e:
        console.print(f"[red]Error:[/] {str(e)}")
        sys.exit(EXIT_CODE_ERROR)

    result = engine.evaluate(events, provider_totals, settings, snapshot)
    _display_result(result)

    if write_export:
        try:
            path = write_status_export(result.developer_export)
        except OSError as e:
            console.print(f"[red]Error writing export:[/] {str(e)}")
            sys.exit(EXIT_CODE_ERROR)
        console.print(f"[green]✓[/] Status written to {path}")

    sys.exit(EXIT_CODE_OK)


def _display_result(result: UsageAnalyticsResult) -> None:
    """Display evaluation results as tables."""
    currency = result.personalization.currency_code
    console.print("\n[bold]Usage Analytics[/bold]")
    console.print("-" * 40)

    if not result.aggregations:
        console.print("\n[dim]No usage data found.[/]")

    for metric in result.aggregations:
        table = Table(title=metric.preset.value)
        if metric.preset == UsageAggregationPreset.PROVIDER_TOTALS:
            table.add_column("Provider")
        else:
            table.add_column("Start")
            table.add_column("End")
        table.add_column("Requests", justify="right")
        table.add_column("Spend", justify="right")

        for row in metric.rows:
            if metric.preset == UsageAggregationPreset.PROVIDER_TOTALS:
                cells = [row.provider_identifier or ""]
            else:
                cells = [row.start_date.strftime("%Y-%m-%d %H:%M"), row.end_date.strftime("%Y-%m-%d %H:%M")]
            cells += [f"{row.request_count:,}", format_currency(row.spend_cents, currency)]
            table.add_row(*cells)
        console.print(table)

    for warning in result.warnings:
        style = _SEVERITY_STYLES[warning.severity]
        console.print(
            f"\n[bold]Forecast:[/bold] [{style}]{warning.severity.value.upper()}[/] "
            f"{warning.message} (threshold {format_currency(warning.threshold_cents, currency)})"
        )

    if result.live_metrics is not None:
        live = result.live_metrics
        console.print(
            f"[bold]Live burn rate:[/bold] {format_currency(int(live.burn_rate_cents_per_hour), currency)}/h "
            f"across {len(live.active_events)} event(s)"
        )

    console.print(f"\n{result.developer_export.status_line}")


if __name__ == "__main__":
    app()
