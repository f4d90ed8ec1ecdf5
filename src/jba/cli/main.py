"""CLI application using Typer for the judicial bias analytics engine."""

import json
from datetime import date
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from ..baseline.cache import SQLiteBaselineCache
from ..baseline.calculator import BaselineCalculator, InMemoryPeerSource
from ..config.settings import settings
from ..core.errors import JBAError
from ..core.normalization import parse_date
from ..io.loader import load_case_file, load_peers_file
from ..io.paths import get_cache_path
from ..narrative.generator import render_text
from ..report.builder import ReportBuilder
from ..utils.logging import get_logger

app = typer.Typer(
    name="jba",
    help="Judicial Bias Analytics - Statistical pattern reports for judges",
    add_completion=False,
)

console = Console()
logger = get_logger(__name__)


def _parse_date_option(value: Optional[str], option: str) -> Optional[date]:
    if value is None:
        return None
    parsed = parse_date(value)
    if parsed is None:
        console.print(f"[red]Error: {option} must be a date (YYYY-MM-DD), got {value!r}[/red]")
        raise typer.Exit(1)
    return parsed


@app.command()
def report(
    cases_file: Path = typer.Argument(..., exists=True, dir_okay=False, help="Case export (JSON, JSONL, CSV, Parquet)"),
    judge_id: str = typer.Option(..., "--judge-id", help="Judge identifier"),
    jurisdiction: str = typer.Option(..., "--jurisdiction", "-j", help="Jurisdiction identifier"),
    judge_name: Optional[str] = typer.Option(None, "--judge-name", help="Display name for the judge"),
    start_date: Optional[str] = typer.Option(None, "--start-date", help="Start of the analysis window (YYYY-MM-DD)"),
    end_date: Optional[str] = typer.Option(None, "--end-date", help="End of the analysis window (YYYY-MM-DD)"),
    as_of: Optional[str] = typer.Option(None, "--as-of", help="Reference date for temporal weighting"),
    peers: Optional[Path] = typer.Option(None, "--peers", exists=True, dir_okay=False, help="Peer judges JSON file"),
    use_cache: bool = typer.Option(True, "--cache/--no-cache", help="Persist peer baselines in the cache directory"),
    output_format: str = typer.Option("json", "--format", "-f", help="Output format: json or text"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write the report to this file"),
) -> None:
    """Build a bias pattern report for one judge."""
    if output_format not in ("json", "text"):
        console.print(f"[red]Error: --format must be json or text, got {output_format!r}[/red]")
        raise typer.Exit(1)

    config = settings.analytics_config()
    cache = None
    calculator = None
    try:
        cases = load_case_file(cases_file)
        if peers is not None:
            source = InMemoryPeerSource.single(jurisdiction, load_peers_file(peers))
            if use_cache:
                cache = SQLiteBaselineCache(get_cache_path("baselines"))
            calculator = BaselineCalculator(source=source, cache=cache, config=config)
        builder = ReportBuilder(config=config, baseline=calculator)
        result = builder.build(
            judge_id,
            jurisdiction,
            cases,
            start_date=_parse_date_option(start_date, "--start-date"),
            end_date=_parse_date_option(end_date, "--end-date"),
            as_of=_parse_date_option(as_of, "--as-of"),
            judge_name=judge_name,
        )
    except JBAError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)
    finally:
        if cache is not None:
            cache.close()

    if output_format == "json":
        rendered = json.dumps(result.model_dump(mode="json"), indent=2)
    else:
        rendered = render_text(result)

    if output is not None:
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(rendered, encoding="utf-8")
        console.print(f"[bold green]✓ Report saved to: {output}[/bold green]")
    else:
        typer.echo(rendered)
        return

    if result.metadata.warning:
        console.print(f"[yellow]{result.metadata.warning}[/yellow]")

    summary = Table(title=f"Report Summary: {judge_name or judge_id}")
    summary.add_column("Field", style="cyan")
    summary.add_column("Value", style="green")
    summary.add_row("State", result.state.value)
    summary.add_row("Total cases", str(result.metadata.total_cases))
    summary.add_row("Effective cases", f"{result.metadata.effective_cases:.1f}")
    summary.add_row("Confidence", f"{result.confidence_tier.label} ({result.confidence_tier.percentage:g}%)")
    summary.add_row("Anomalies", str(len(result.flagged_anomalies)))
    console.print(summary)


@app.command()
def baseline(
    peers_file: Path = typer.Argument(..., exists=True, dir_okay=False, help="Peer judges JSON file"),
    jurisdiction: str = typer.Option(..., "--jurisdiction", "-j", help="Jurisdiction identifier"),
    as_of: Optional[str] = typer.Option(None, "--as-of", help="Reference date for temporal weighting"),
) -> None:
    """Compute and print jurisdiction peer baselines."""
    config = settings.analytics_config()
    try:
        source = InMemoryPeerSource.single(jurisdiction, load_peers_file(peers_file))
        snapshot = BaselineCalculator(source=source, config=config).compute(
            jurisdiction, as_of=_parse_date_option(as_of, "--as-of")
        )
    except JBAError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)

    if not snapshot.profiles:
        console.print(
            f"[yellow]No baseline profiles: fewer than {config.minimum_peer_judges_for_baseline} "
            f"peer judges with sufficient data ({snapshot.judge_count} judges read)[/yellow]"
        )
        return

    table = Table(title=f"Peer Baselines: {jurisdiction} ({snapshot.judge_count} judges)")
    table.add_column("Metric", style="cyan")
    table.add_column("Dimension")
    table.add_column("Mean", justify="right", style="green")
    table.add_column("Std Dev", justify="right")
    table.add_column("Judges", justify="right")
    for profile in snapshot.profiles:
        table.add_row(
            profile.metric_key,
            profile.dimension.value,
            f"{profile.mean:.4g}",
            f"{profile.stddev:.4g}",
            str(profile.sample_size),
        )
    console.print(table)


if __name__ == "__main__":
    app()
