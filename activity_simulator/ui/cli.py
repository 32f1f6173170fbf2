"""Typer-based command line interface for the activity duration simulator."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from ..config import DEFAULT_EXECUTOR, EXECUTORS, OUTPUT_ROOT, RANDOM_ITERATIONS, RunSettings
from ..core.sampling import SAMPLING_MODES
from ..core.validator import ValidationError
from ..engine import ActivitySimulationEngine
from ..models.results import EnumerationResults, SamplingResults
from ..reporting.report_generator import ReportGenerator
from ..utils.numbers import format_decimal

app = typer.Typer(help="Expected project duration from discrete activity outcomes")
console = Console()


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.INFO if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


def _load_engine(input_file: Path, settings: RunSettings) -> ActivitySimulationEngine:
    if not input_file.exists():
        raise typer.BadParameter(f"File not found: {input_file}")
    engine = ActivitySimulationEngine(settings)
    engine.load_data(str(input_file))
    return engine


def _summary_table(results: EnumerationResults) -> Table:
    table = Table(title="Enumeration Summary", show_lines=False)
    table.add_column("Metric")
    table.add_column("Value", justify="right")
    table.add_row("Activities", f"{results.activity_count}")
    table.add_row("Outcomes per activity", f"{results.outcome_count}")
    table.add_row("Scenarios", f"{results.scenario_count:,}")
    table.add_row("Worker ranges", f"{len(results.ranges)}")
    table.add_row("Elapsed (s)", f"{results.elapsed_seconds:.3f}")
    table.add_row("Expected duration", format_decimal(results.expected_duration))
    return table


def _tally_table(results: SamplingResults, limit: int = 20) -> Table:
    table = Table(title="Sampled Durations", show_lines=False)
    table.add_column("Duration", justify="right")
    table.add_column("Occurrences", justify="right")
    table.add_column("Proportion", justify="right")
    for _, row in results.tally.head(limit).iterrows():
        table.add_row(
            format_decimal(row["duration"]),
            f"{int(row['occurrences']):,}",
            format_decimal(row["proportion"], 6),
        )
    return table


@app.command("enumerate")
def enumerate_command(
    input_file: Path = typer.Argument(..., help="CSV of activities, durations and probabilities"),
    output_dir: Path = typer.Option(Path(OUTPUT_ROOT), "--output-dir", "-o", help="Directory for exported files"),
    workers: Optional[int] = typer.Option(None, "--workers", "-w", min=1, help="Number of parallel workers"),
    executor: str = typer.Option(DEFAULT_EXECUTOR, "--executor", help="process, thread or serial"),
    table: Optional[bool] = typer.Option(
        None,
        "--table/--no-table",
        help="Export the full scenario table (default: only when it fits ACTIVITY_SIM_TABLE_ROW_LIMIT)",
    ),
    max_scenarios: Optional[int] = typer.Option(None, "--max-scenarios", min=1, help="Safety ceiling for K^N"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log run progress"),
) -> None:
    """Enumerate every outcome combination and compute the exact expected duration."""
    _configure_logging(verbose)
    if executor not in EXECUTORS:
        raise typer.BadParameter(f"Executor must be one of: {', '.join(EXECUTORS)}")

    settings = RunSettings.from_env()
    settings.executor = executor
    if workers:
        settings.workers = workers
    if max_scenarios:
        settings.max_scenarios = max_scenarios

    try:
        engine = _load_engine(input_file, settings)
        console.print("Assembling comprehensive list of activity & duration combinations...")
        results = engine.run_enumeration(include_table=table)
    except (ValidationError, OverflowError) as exc:
        console.print(f"[red]{escape(str(exc))}[/red]")
        raise typer.Exit(code=1) from exc

    console.print(_summary_table(results))
    reporter = ReportGenerator(output_dir)
    summary_path = reporter.export_summary(results)
    console.print(f"Summary exported to: {summary_path}")
    if results.table is not None:
        table_path = reporter.export_scenarios(results)
        console.print(f"Scenario table exported to: {table_path}")
    console.print(f"[bold green]Expected Duration: {format_decimal(results.expected_duration)}[/bold green]")


@app.command("sample")
def sample_command(
    input_file: Path = typer.Argument(..., help="CSV of activities, durations and probabilities"),
    iterations: int = typer.Option(RANDOM_ITERATIONS, "--iterations", "-n", min=1, help="Number of random trials"),
    mode: str = typer.Option("tally", "--mode", help="tally or scenarios"),
    seed: Optional[int] = typer.Option(None, "--seed", help="Random seed for reproducibility"),
    output_dir: Optional[Path] = typer.Option(None, "--output-dir", "-o", help="Write the tally to this directory"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log run progress"),
) -> None:
    """Estimate the expected duration by random sampling."""
    _configure_logging(verbose)
    if mode not in SAMPLING_MODES:
        raise typer.BadParameter(f"Mode must be one of: {', '.join(SAMPLING_MODES)}")

    try:
        engine = _load_engine(input_file, RunSettings.from_env())
        console.print(
            f"Performing random probabilistic duration calculations with {iterations:,} iterations"
        )
        results = engine.run_sampling(iterations, mode=mode, seed=seed)
    except ValidationError as exc:
        console.print(f"[red]{escape(str(exc))}[/red]")
        raise typer.Exit(code=1) from exc

    console.print(_tally_table(results))
    if output_dir is not None:
        paths = ReportGenerator(output_dir).export_sampling(results)
        console.print(f"Tally exported to: {paths['tally']}")
    console.print(
        f"[bold green]Expected Duration: {format_decimal(results.expected_duration, 3)}[/bold green]"
    )


def main() -> None:
    """Entry point for CLI execution."""
    app()


if __name__ == "__main__":
    main()
