"""Command-line interface for Phase Timeline."""

import json
import logging
import sys
from datetime import timedelta
from pathlib import Path
from typing import Dict, List, Optional

import click
import tabulate
from rich.console import Console
from rich.table import Table

from .config import ConfigModel, get_config, load_config, phase_from_config_name
from .domain import CanonicalPhase
from .errors import PhaseTimelineError
from .services import (
    DurationCalculator,
    PhaseMetric,
    ProjectComparator,
    StatisticsSummary,
    phase_ranking,
)
from .sources import CachedTaskFeed, JsonExportFeed, JsonRecordStore, TaskFeed
from .utils.datetime import format_duration_in_weeks


console = Console()

PHASE_STYLES = {
    CanonicalPhase.ONBOARDING: "blue",
    CanonicalPhase.DESIGN: "magenta",
    CanonicalPhase.DEVELOPMENT: "green",
    CanonicalPhase.LAUNCH: "yellow",
    CanonicalPhase.OTHER: "dim",
}


def format_metric(value: float, unit: str = "", format_spec: str = ".1f") -> str:
    """Format a metric value with proper units"""
    formatted = f"{value:{format_spec}}"
    return f"{formatted}{unit}" if unit else formatted


def format_table(data: List[Dict], headers: Optional[List[str]] = None,
                 tablefmt: str = "grid") -> str:
    """Format data as a plain-text table"""
    if not data:
        return "No data available"
    return tabulate.tabulate(data, headers=headers or "keys", tablefmt=tablefmt)


def statistics_rows(stats: StatisticsSummary) -> List[Dict[str, str]]:
    return [
        {"Measure": "Count", "Value": str(stats.count)},
        {"Measure": "Mean", "Value": format_metric(stats.mean, " days")},
        {"Measure": "Median", "Value": format_metric(stats.median, " days")},
        {"Measure": "Range", "Value": format_metric(stats.range, " days")},
        {"Measure": "Std. deviation", "Value": format_metric(stats.standard_deviation, " days")},
        {"Measure": "Skewness", "Value": format_metric(stats.skewness, format_spec=".2f")},
        {"Measure": "Min", "Value": format_metric(stats.min, " days")},
        {"Measure": "Max", "Value": format_metric(stats.max, " days")},
    ]


def print_rows(title: str, rows: List[Dict[str, str]], output_format: str) -> None:
    if output_format == "grid":
        click.echo(f"\n{title}")
        click.echo(format_table(rows))
        return

    if not rows:
        console.print(f"[dim]{title}: no data available[/dim]")
        return
    table = Table(title=title, show_header=True, header_style="bold")
    for column in rows[0]:
        table.add_column(column)
    for row in rows:
        table.add_row(*(str(v) for v in row.values()))
    console.print(table)


def get_feed(ctx: click.Context, export: str) -> TaskFeed:
    """Export feed, served through the record cache unless --no-cache."""
    config: ConfigModel = ctx.obj["config"]
    feed: TaskFeed = JsonExportFeed(Path(export))
    if ctx.obj.get("no_cache"):
        return feed
    store = JsonRecordStore(config.get_cache_path())
    return CachedTaskFeed(
        feed, store,
        expiration=timedelta(hours=config.cache_expiration_hours),
        cache_key=f"export:{Path(export).resolve()}",
    )


@click.group()
@click.option("--config", "config_path", type=click.Path(), help="Path to config file")
@click.option("--no-cache", is_flag=True, help="Read the export directly, bypassing the record cache")
@click.option("--verbose", "-v", is_flag=True, help="Verbose output")
@click.pass_context
def main(ctx, config_path, no_cache, verbose):
    """Phase Timeline - compare delivery phase durations across projects."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["no_cache"] = no_cache
    ctx.obj["config"] = load_config(Path(config_path)) if config_path else get_config()


@main.command()
@click.argument("labels", nargs=-1, required=True)
@click.pass_context
def classify(ctx, labels):
    """Show which phase each LABEL maps to."""
    calculator = DurationCalculator.from_config(ctx.obj["config"])
    table = Table(show_header=True, header_style="bold")
    table.add_column("Label")
    table.add_column("Phase")
    for label in labels:
        phase = calculator.classifier.classify(label)
        style = PHASE_STYLES[phase]
        table.add_row(label, f"[{style}]{phase.value}[/{style}]")
    console.print(table)


@main.command()
@click.argument("export", type=click.Path(exists=True, dir_okay=False))
@click.option("--sort", "-s", "sort_key", help="Sort key, e.g. duration-desc, created-asc, alpha-asc")
@click.option("--format", "-f", "output_format",
              type=click.Choice(["text", "grid", "json"]), default="text", help="Output format")
@click.pass_context
def projects(ctx, export, sort_key, output_format):
    """Overall project durations from an EXPORT file."""
    try:
        records = get_feed(ctx, export).list_projects()
        report = ProjectComparator(ctx.obj["config"]).compare(records, sort_key)
    except (PhaseTimelineError, ValueError) as e:
        raise click.ClickException(str(e))

    if output_format == "json":
        click.echo(json.dumps(report.to_dict(), indent=2))
        return

    rows = [
        {
            "Project": p.project_name,
            "Duration": f"{p.overall_duration_days} days",
            "Weeks": format_duration_in_weeks(p.overall_duration_days),
            "Created": p.created.date().isoformat() if p.created else "-",
            "Completed": p.completed.date().isoformat() if p.completed else "-",
        }
        for p in report.projects
    ]
    print_rows(f"Project durations ({report.sort_key})", rows, output_format)
    print_rows("Summary statistics", statistics_rows(report.project_statistics), output_format)
    if report.without_completion:
        click.echo(f"Not yet launched: {', '.join(report.without_completion)}")


@main.command()
@click.argument("export", type=click.Path(exists=True, dir_okay=False))
@click.option("--phase", "-p", "phase_names", multiple=True,
              help="Phase to show (repeatable); all canonical phases by default")
@click.option("--metric", "-m", type=click.Choice([m.value for m in PhaseMetric]),
              default=PhaseMetric.TOTAL.value, help="Which phase duration to compare")
@click.option("--format", "-f", "output_format",
              type=click.Choice(["text", "grid", "json"]), default="text", help="Output format")
@click.pass_context
def phases(ctx, export, phase_names, metric, output_format):
    """Per-phase durations across projects from an EXPORT file."""
    try:
        selected = [phase_from_config_name(name) for name in phase_names] or list(CanonicalPhase.ordered())
        records = get_feed(ctx, export).list_projects()
        report = ProjectComparator(ctx.obj["config"]).compare(records)
    except (PhaseTimelineError, ValueError) as e:
        raise click.ClickException(str(e))

    phase_metric = PhaseMetric(metric)
    if output_format == "json":
        data = {
            phase.value: {
                "ranking": [
                    {"project": name, "days": days, "in_progress": in_progress}
                    for name, days, in_progress in phase_ranking(report, phase, phase_metric)
                ],
                "statistics": report.phase_statistics(phase, phase_metric).to_dict(),
            }
            for phase in selected
        }
        click.echo(json.dumps(data, indent=2))
        return

    for phase in selected:
        rows = [
            {
                "Project": name,
                "Duration": f"{days} days" + (" (in progress)" if in_progress else ""),
                "Weeks": format_duration_in_weeks(days),
            }
            for name, days, in_progress in phase_ranking(report, phase, phase_metric)
        ]
        print_rows(f"{phase.value} ({phase_metric.value})", rows, output_format)
        print_rows(f"{phase.value} statistics",
                   statistics_rows(report.phase_statistics(phase, phase_metric)),
                   output_format)


if __name__ == "__main__":
    sys.exit(main())
