"""
CLI interface for Cost Analytics.

Provides command-line access to trends, anomalies and forecasts.
"""

import sqlite3
import sys
from typing import List, Optional

import typer
from rich.console import Console
from rich.table import Table

from cost_analytics.config.loader import AnalyticsConfig, load_analytics_config
from cost_analytics.core.analytics import CostAnalytics
from cost_analytics.core.anomaly import AnomalyFinding, AnomalySeverity
from cost_analytics.core.forecast import ForecastPoint
from cost_analytics.core.trends import ServiceTrend, TrendPoint, TrendStatus
from cost_analytics.exceptions import InsufficientDataError
from cost_analytics.logging_config import setup_logging
from cost_analytics.storage.csv_import import load_cost_records_csv
from cost_analytics.storage.repository import (
    get_repository,
    initialize_schema,
    insert_cost_records
)

app = typer.Typer()
console = Console()

EXIT_CODE_PASS = 0
EXIT_CODE_FAIL = 1

_CONFIG_HELP = "Path to YAML configuration file"
_DB_HELP = "Path to SQLite database (overrides config)"

_SEVERITY_STYLES = {
    AnomalySeverity.HIGH: "bold red",
    AnomalySeverity.MEDIUM: "yellow",
    AnomalySeverity.LOW: "cyan",
}

_STATUS_STYLES = {
    TrendStatus.ANOMALY: "bold red",
    TrendStatus.HIGH_GROWTH: "yellow",
    TrendStatus.DECLINING: "green",
    TrendStatus.STABLE: "dim",
}


@app.callback(invoke_without_command=True)
def main(ctx: typer.Context):
    """Cost Analytics CLI."""
    setup_logging()
    if ctx.invoked_subcommand is None:
        console.print("Cost Analytics - Use --help to see available commands")


@app.command()
def init(
    config: Optional[str] = typer.Option(None, "--config", "-c", help=_CONFIG_HELP),
    db: Optional[str] = typer.Option(None, "--db", help=_DB_HELP),
):
    """Initialize the cost record database."""
    try:
        settings = load_analytics_config(config)
        initialize_schema(_db_path(settings, db))
        console.print("[green]✓[/] Database initialized successfully")
        sys.exit(EXIT_CODE_PASS)
    except Exception as e:
        console.print(f"[red]Error initializing database:[/] {str(e)}")
        sys.exit(EXIT_CODE_FAIL)


@app.command("import-csv")
def import_csv(
    path: str = typer.Argument(..., help="Billing export CSV file"),
    config: Optional[str] = typer.Option(None, "--config", "-c", help=_CONFIG_HELP),
    db: Optional[str] = typer.Option(None, "--db", help=_DB_HELP),
):
    """Append cost records from a billing export CSV to the database."""
    try:
        settings = load_analytics_config(config)
        db_path = _db_path(settings, db)
        records = load_cost_records_csv(path)
        initialize_schema(db_path)
        count = insert_cost_records(records, db_path)
        console.print(f"[green]✓[/] Imported {count:,} cost records")
        sys.exit(EXIT_CODE_PASS)
    except Exception as e:
        console.print(f"[red]Error importing records:[/] {str(e)}")
        sys.exit(EXIT_CODE_FAIL)


@app.command()
def trends(
    days: Optional[int] = typer.Option(None, "--days", "-d", help="Days of history to aggregate"),
    config: Optional[str] = typer.Option(None, "--config", "-c", help=_CONFIG_HELP),
    db: Optional[str] = typer.Option(None, "--db", help=_DB_HELP),
):
    """Show daily cost totals with the top service per day."""
    try:
        settings = load_analytics_config(config)
        analytics = _build_analytics(settings, db)
        points = analytics.get_cost_trends(days if days is not None else settings.trends.days)
        _display_trends(points)
        sys.exit(EXIT_CODE_PASS)
    except sqlite3.OperationalError as e:
        _handle_database_error(e)
    except Exception as e:
        console.print(f"[red]Error:[/] {str(e)}")
        sys.exit(EXIT_CODE_FAIL)


@app.command("service-trends")
def service_trends(
    days: Optional[int] = typer.Option(None, "--days", "-d", help="Days of history to analyze"),
    config: Optional[str] = typer.Option(None, "--config", "-c", help=_CONFIG_HELP),
    db: Optional[str] = typer.Option(None, "--db", help=_DB_HELP),
):
    """Show the latest trend status for each project and service."""
    try:
        settings = load_analytics_config(config)
        analytics = _build_analytics(settings, db)
        rows = analytics.get_service_trends(days if days is not None else settings.trends.days)
        _display_service_trends(rows)
        sys.exit(EXIT_CODE_PASS)
    except sqlite3.OperationalError as e:
        _handle_database_error(e)
    except Exception as e:
        console.print(f"[red]Error:[/] {str(e)}")
        sys.exit(EXIT_CODE_FAIL)


@app.command()
def anomalies(
    days: Optional[int] = typer.Option(None, "--days", "-d", help="Days of history for the baseline"),
    threshold: Optional[float] = typer.Option(None, "--threshold", "-t", help="Z-score threshold"),
    enforced: bool = typer.Option(
        False,
        "--enforced",
        "-e",
        help="Exit with error code if any HIGH severity anomaly is found"
    ),
    config: Optional[str] = typer.Option(None, "--config", "-c", help=_CONFIG_HELP),
    db: Optional[str] = typer.Option(None, "--db", help=_DB_HELP),
):
    """Detect cost anomalies for yesterday against the historical baseline."""
    try:
        settings = load_analytics_config(config)
        analytics = _build_analytics(settings, db)
        findings = analytics.detect_anomalies(
            days=days if days is not None else settings.anomalies.lookback_days,
            threshold=threshold if threshold is not None else settings.anomalies.threshold,
        )
        _display_anomalies(findings)

        if enforced and any(f.severity == AnomalySeverity.HIGH for f in findings):
            sys.exit(EXIT_CODE_FAIL)
        sys.exit(EXIT_CODE_PASS)
    except sqlite3.OperationalError as e:
        _handle_database_error(e)
    except Exception as e:
        console.print(f"[red]Error:[/] {str(e)}")
        sys.exit(EXIT_CODE_FAIL)


@app.command()
def forecast(
    horizon: Optional[int] = typer.Option(None, "--horizon", "-H", help="Days to forecast"),
    history_days: Optional[int] = typer.Option(
        None,
        "--history-days",
        help="Days of history to fit the trend on"
    ),
    config: Optional[str] = typer.Option(None, "--config", "-c", help=_CONFIG_HELP),
    db: Optional[str] = typer.Option(None, "--db", help=_DB_HELP),
):
    """Forecast daily total cost with a linear trend."""
    try:
        settings = load_analytics_config(config)
        analytics = _build_analytics(settings, db)
        points = analytics.forecast_costs(
            days=horizon if horizon is not None else settings.forecast.horizon_days,
            history_days=history_days if history_days is not None else settings.forecast.history_days,
        )
        _display_forecast(points)
        sys.exit(EXIT_CODE_PASS)
    except InsufficientDataError as e:
        console.print(
            f"\n[bold yellow]Not enough history to forecast[/] "
            f"({e.available} of {e.required} days available)\n"
        )
        sys.exit(EXIT_CODE_FAIL)
    except sqlite3.OperationalError as e:
        _handle_database_error(e)
    except Exception as e:
        console.print(f"[red]Error:[/] {str(e)}")
        sys.exit(EXIT_CODE_FAIL)


def _db_path(settings: AnalyticsConfig, override: Optional[str]) -> str:
    return override or settings.database.path


def _build_analytics(settings: AnalyticsConfig, db_override: Optional[str]) -> CostAnalytics:
    return CostAnalytics(get_repository(_db_path(settings, db_override)))


def _handle_database_error(error: sqlite3.OperationalError) -> None:
    if "no such table" in str(error).lower():
        console.print("\n[bold yellow]No cost data found[/]")
        console.print("\nTo get started with Cost Analytics:")
        console.print("1. Run `cost-analytics init` to initialize the database")
        console.print("2. Run `cost-analytics import-csv <file>` to load a billing export")
        console.print("3. Run this command again\n")
        sys.exit(EXIT_CODE_FAIL)
    console.print(f"[red]Database error:[/] {str(error)}")
    sys.exit(EXIT_CODE_FAIL)


def _format_currency(amount: float) -> str:
    """Format currency with sign and thousands separators."""
    sign = "-" if amount < 0 else ""
    return f"{sign}${abs(amount):,.2f}"


def _format_percent(value: Optional[float]) -> str:
    if value is None:
        return "N/A"
    return f"{'+' if value >= 0 else ''}{value:,.1f}%"


def _display_trends(points: List[TrendPoint]):
    """Display daily totals, one row per day."""
    if not points:
        console.print("\n[dim]No cost data in the selected range.[/]")
        return

    table = Table(title="Daily Cost Trends")
    table.add_column("Date")
    table.add_column("Total Cost", justify="right")
    table.add_column("Top Service")
    table.add_column("Top Service Cost", justify="right")

    for point in points:
        top = point.top_service()
        table.add_row(
            point.date.isoformat(),
            _format_currency(point.total_cost),
            top[0] if top else "",
            _format_currency(top[1]) if top else "",
        )
    console.print(table)


def _display_service_trends(rows: List[ServiceTrend]):
    """Display the most recent trend row of every project/service pair."""
    if not rows:
        console.print("\n[dim]No cost data in the selected range.[/]")
        return

    latest = {}
    for row in rows:
        latest[(row.project_id, row.service_name)] = row

    table = Table(title="Service Trends")
    table.add_column("Date")
    table.add_column("Project")
    table.add_column("Service")
    table.add_column("Daily Cost", justify="right")
    table.add_column("7d Avg", justify="right")
    table.add_column("WoW", justify="right")
    table.add_column("Status")

    for key in sorted(latest):
        row = latest[key]
        style = _STATUS_STYLES[row.status]
        table.add_row(
            row.date.isoformat(),
            row.project_id,
            row.service_name,
            _format_currency(row.daily_cost),
            _format_currency(row.moving_avg_7d),
            _format_percent(row.wow_growth_pct),
            f"[{style}]{row.status.name.replace('_', ' ').title()}[/]",
        )
    console.print(table)


def _display_anomalies(findings: List[AnomalyFinding]):
    """Display anomalies in a financial table."""
    if not findings:
        console.print("\n[green]No cost anomalies detected.[/]")
        return

    dates = sorted({f.date.isoformat() for f in findings})
    table = Table(title=f"Cost Anomalies ({', '.join(dates)})")
    table.add_column("Project")
    table.add_column("Service")
    table.add_column("Actual Cost", justify="right")
    table.add_column("Expected Cost", justify="right")
    table.add_column("Deviation %", justify="right")
    table.add_column("Z-Score", justify="right")
    table.add_column("Severity")

    for finding in findings:
        style = _SEVERITY_STYLES[finding.severity]
        table.add_row(
            finding.project_id,
            finding.service_name,
            _format_currency(finding.actual_cost),
            _format_currency(finding.expected_cost),
            _format_percent(finding.deviation_pct),
            f"{finding.z_score:.2f}",
            f"[{style}]{finding.severity.name.title()}[/]",
        )
    console.print(table)
    for finding in findings:
        console.print(f"[dim]{finding.description}[/]")


def _display_forecast(points: List[ForecastPoint]):
    """Display forecast totals and their sum."""
    table = Table(title="Cost Forecast")
    table.add_column("Date")
    table.add_column("Predicted Cost", justify="right")

    for point in points:
        table.add_row(point.date.isoformat(), _format_currency(point.total_cost))
    console.print(table)
    console.print(
        f"Projected total over {len(points)} days: "
        f"{_format_currency(sum(p.total_cost for p in points))}"
    )


if __name__ == "__main__":
    app()
