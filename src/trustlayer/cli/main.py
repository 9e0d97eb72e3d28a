"""
Trust Layer CLI Main Entry Point

Runs contract validation, placeholder scans and quality analysis over JSON
files, and reports telemetry snapshots.
"""

import json
import sys
from pathlib import Path
from typing import Any, Optional

import click
from rich.console import Console
from rich.table import Table

from trustlayer import __version__
from trustlayer.config import SafetyConfig, TrustSettings
from trustlayer.contracts.builtin import default_contracts
from trustlayer.logging import LoggingSettings, setup_logging
from trustlayer.observability.metrics import compute_stats
from trustlayer.observability.storage import get_snapshot_path, read_snapshot
from trustlayer.quality.analyzer import DataQualityAnalyzer
from trustlayer.results import Severity
from trustlayer.safety.orchestrator import ProductionSafety

console = Console()

SEVERITY_STYLES = {
    Severity.CRITICAL: "bold red",
    Severity.HIGH: "red",
    Severity.MEDIUM: "yellow",
    Severity.LOW: "dim",
}

format_option = click.option(
    "--format",
    "output_format",
    type=click.Choice(["table", "json"]),
    default="table",
    show_default=True,
    help="Output format",
)


@click.group()
@click.version_option(version=__version__, prog_name="trustlayer")
@click.option("--log-level", default="ERROR", show_default=True, help="Log level for diagnostics")
def cli(log_level: str):
    """
    Trust Layer - data contracts, placeholder detection and telemetry.

    Commands read JSON files and exit non-zero when a check fails.
    """
    setup_logging(LoggingSettings(level=log_level.upper()), force=True)


def _load_json(path: str) -> Any:
    try:
        with open(path, encoding="utf-8") as f:
            return json.load(f)
    except json.JSONDecodeError as e:
        console.print(f"[red]✗ {path} is not valid JSON: {e}[/red]")
        raise click.Abort()


def _emit_json(payload: Any) -> None:
    click.echo(json.dumps(payload, indent=2, default=str))


def _safety(environment: str = "development") -> ProductionSafety:
    safety = ProductionSafety(SafetyConfig(environment=environment))
    for key, contract in default_contracts().items():
        safety.register_contract(key, contract)
    return safety


@cli.command()
@format_option
def contracts(output_format: str):
    """List the built-in data contracts."""
    registered = default_contracts()

    if output_format == "json":
        _emit_json({key: contract.to_dict() for key, contract in registered.items()})
        return

    table = Table(title="Built-in contracts", show_header=True, header_style="bold")
    table.add_column("Key", style="cyan")
    table.add_column("Schema")
    table.add_column("Version")
    table.add_column("Rules", justify="right")
    table.add_column("Quality checks", justify="right")
    for key, contract in registered.items():
        table.add_row(
            key,
            getattr(contract.schema, "name", type(contract.schema).__name__),
            contract.version,
            str(len(contract.validation_rules)),
            str(len(contract.quality_checks)),
        )
    console.print(table)


@cli.command()
@click.argument("contract")
@click.argument("data_file", type=click.Path(exists=True, dir_okay=False))
@format_option
def validate(contract: str, data_file: str, output_format: str):
    """
    Validate a JSON record (or list of records) against a built-in contract.

    \b
    Examples:
      trustlayer validate task task.json
      trustlayer validate document docs.json --format json
    """
    safety = _safety()
    data = _load_json(data_file)
    records = data if isinstance(data, list) else [data]
    results = [safety.validate(contract, record) for record in records]
    all_valid = all(result.is_valid for result in results)

    if output_format == "json":
        _emit_json([result.to_dict() for result in results])
    else:
        console.print(f"\n[bold blue]🔍 Validating[/bold blue] {data_file} against [cyan]{contract}[/cyan]\n")
        for index, result in enumerate(results):
            label = f"record {index}" if len(records) > 1 else "record"
            if result.is_valid:
                console.print(f"[green]✓[/green] {label} is valid")
                continue
            console.print(f"[red]✗[/red] {label} has {len(result.errors)} error(s)")
            _print_errors(result.errors)

    if not all_valid:
        sys.exit(1)


@cli.command()
@click.argument("data_file", type=click.Path(exists=True, dir_okay=False))
@click.option("--env", "environment", default=None, help="Environment (default: TRUST_ENV or production)")
@format_option
def scan(data_file: str, environment: Optional[str], output_format: str):
    """
    Scan a JSON file for placeholder and mock values.

    Severities escalate in production environments.
    """
    environment = environment or TrustSettings().env or "production"
    safety = _safety(environment)
    data = _load_json(data_file)
    result = safety.perform_safety_check("scan", data)
    errors = result.placeholder_errors or safety.detect_placeholders(data)

    if output_format == "json":
        payload = result.to_dict()
        payload["placeholder_errors"] = [error.to_dict() for error in errors]
        _emit_json(payload)
    else:
        console.print(f"\n[bold blue]🔎 Scanning[/bold blue] {data_file} ({safety.config.environment})\n")
        if errors:
            _print_errors(errors)
            for recommendation in result.recommendations:
                console.print(f"[yellow]→ {recommendation}[/yellow]")
        else:
            console.print("[green]✓ No placeholders detected[/green]")

    if errors:
        sys.exit(1)


@cli.command()
@click.argument("data_file", type=click.Path(exists=True, dir_okay=False))
@click.option("--id-field", default="id", show_default=True, help="Identifier field for uniqueness")
@click.option("--min-score", default=70, show_default=True, type=int, help="Fail below this score")
@click.option("--contract", default=None, help="Built-in contract used for the validity dimension")
@format_option
def quality(data_file: str, id_field: str, min_score: int, contract: Optional[str], output_format: str):
    """Score the data quality of a JSON list of records."""
    data = _load_json(data_file)
    if not isinstance(data, list):
        console.print("[red]✗ Quality analysis needs a JSON list of records[/red]")
        raise click.Abort()

    schema = None
    if contract is not None:
        registered = default_contracts()
        if contract not in registered:
            console.print(f"[red]✗ Unknown contract '{contract}'[/red]")
            raise click.Abort()
        schema = registered[contract].schema

    metrics = DataQualityAnalyzer().analyze(data, schema, id_field=id_field)

    if output_format == "json":
        _emit_json(metrics.to_dict())
    else:
        table = Table(title=f"Data quality: {data_file}", show_header=True, header_style="bold")
        table.add_column("Dimension", style="cyan")
        table.add_column("Value", justify="right")
        for name in ("completeness", "uniqueness", "consistency", "validity", "timeliness"):
            table.add_row(name, f"{getattr(metrics, name) * 100:.1f}%")
        console.print(table)

        style = "green" if metrics.overall_score >= min_score else "red"
        console.print(f"\nOverall score: [{style}]{metrics.overall_score}[/{style}]")
        for anomaly in metrics.anomalies_detected:
            console.print(f"[yellow]⚠ {anomaly.type.value}: {anomaly.description}[/yellow]")

    if metrics.overall_score < min_score:
        sys.exit(1)


@cli.command()
@click.option(
    "--snapshot",
    "snapshot_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Snapshot file (default: TRUST_SNAPSHOT_PATH or .trustlayer/observability.json)",
)
@format_option
def status(snapshot_path: Optional[Path], output_format: str):
    """Summarize a persisted telemetry snapshot."""
    path = get_snapshot_path(snapshot_path)
    snapshot = read_snapshot(path)
    active = [alert for alert in snapshot.alerts if not alert.resolved]

    values: dict[str, list[float]] = {}
    for metric in snapshot.metrics:
        values.setdefault(metric.name, []).append(metric.value)
    stats = {name: compute_stats(series) for name, series in sorted(values.items())}

    if output_format == "json":
        _emit_json(
            {
                "snapshot": str(path),
                "metrics": len(snapshot.metrics),
                "logs": len(snapshot.logs),
                "alerts": len(snapshot.alerts),
                "active_alerts": [alert.to_dict() for alert in active],
                "metric_stats": {name: s.to_dict() for name, s in stats.items() if s is not None},
            }
        )
        return

    console.print(f"\n[bold blue]📊 Telemetry snapshot[/bold blue]: {path}\n")
    console.print(
        f"Metrics: {len(snapshot.metrics)}  Logs: {len(snapshot.logs)}  "
        f"Alerts: {len(snapshot.alerts)} ({len(active)} active)\n"
    )

    if stats:
        table = Table(title="Metrics", show_header=True, header_style="bold")
        table.add_column("Name", style="cyan")
        table.add_column("Count", justify="right")
        table.add_column("Mean", justify="right")
        table.add_column("p95", justify="right")
        for name, s in stats.items():
            if s is not None:
                table.add_row(name, str(s.count), f"{s.mean:.2f}", f"{s.p95:g}")
        console.print(table)

    if active:
        table = Table(title="Active alerts", show_header=True, header_style="bold")
        table.add_column("Severity")
        table.add_column("Category", style="cyan")
        table.add_column("Title")
        table.add_column("Message")
        for alert in active:
            table.add_row(alert.severity.value, alert.category.value, alert.title, alert.message)
        console.print(table)
    else:
        console.print("[green]✓ No active alerts[/green]")


def _print_errors(errors: list) -> None:
    table = Table(show_header=True, header_style="bold")
    table.add_column("Severity")
    table.add_column("Code", style="cyan")
    table.add_column("Location")
    table.add_column("Message")
    for error in errors:
        style = SEVERITY_STYLES.get(error.severity, "")
        table.add_row(
            f"[{style}]{error.severity.value}[/{style}]" if style else error.severity.value,
            error.code,
            error.location or "",
            error.message,
        )
    console.print(table)


def main():
    cli()


if __name__ == "__main__":
    main()
