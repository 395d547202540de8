"""CLI entry point for the density histogram engine.

Runs the engine over the configured batch source with a progress bar,
saves the cumulative histograms as JSON and reports failed indices.
"""

import sys
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.progress import (
    BarColumn,
    Progress,
    SpinnerColumn,
    TaskProgressColumn,
    TextColumn,
    TimeElapsedColumn,
)
from rich.table import Table

from densitygraph.models.config import ConfigManager, EngineConfig
from densitygraph.models.data_models import EngineEvent, RunResult
from densitygraph.pipeline.orchestrator import PipelineOrchestrator
from densitygraph.pipeline.output import JSONOutputFormatter


console = Console()


@click.command()
@click.option(
    "--config",
    "-c",
    type=click.Path(dir_okay=False, path_type=Path),
    default="config/config.yaml",
    help="Path to configuration YAML file (skipped if missing)",
)
@click.option(
    "--source",
    "-s",
    type=click.Choice(["simulated", "http"], case_sensitive=False),
    help="Batch source (overrides config)",
)
@click.option(
    "--url",
    "-u",
    help="Batch server base URL for the http source (overrides config)",
)
@click.option(
    "--batches",
    "-b",
    type=int,
    help="Number of batches for the simulated source (overrides config)",
)
@click.option(
    "--max-attempts",
    "-a",
    type=int,
    help="Fetch attempts per batch index (overrides config)",
)
@click.option(
    "--seed",
    type=int,
    help="Random seed for the simulated source (overrides config)",
)
@click.option(
    "--output",
    "-o",
    type=click.Path(path_type=Path),
    help="Output JSON file path (overrides config)",
)
@click.option(
    "--log-level",
    "-l",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    help="Logging level (overrides config)",
)
@click.option(
    "--no-progress",
    is_flag=True,
    help="Disable progress bars (useful for CI/CD)",
)
@click.option(
    "--debug",
    is_flag=True,
    help="Print a traceback when the run fails",
)
@click.version_option(version="1.0.0", prog_name="densitygraph")
def main(
    config: Path,
    source: Optional[str],
    url: Optional[str],
    batches: Optional[int],
    max_attempts: Optional[int],
    seed: Optional[int],
    output: Optional[Path],
    log_level: Optional[str],
    no_progress: bool,
    debug: bool,
) -> None:
    """
    Density Graph - Cumulative point histograms from indexed batches.

    Fetches every batch index in order, retrying failed fetches, and
    accumulates per-point counts into one cumulative histogram per batch.

    Examples:

        # Run against the simulated source
        $ densitygraph --batches 50 --seed 7

        # Run against a batch server
        $ densitygraph --source http --url http://localhost:8001
    """
    try:
        cli_overrides = {
            "source": source.lower() if source else None,
            "server_url": url,
            "batch_count": batches,
            "max_attempts": max_attempts,
            "random_seed": seed,
            "log_level": log_level.upper() if log_level else None,
        }

        config_manager = ConfigManager(config)
        engine_config = config_manager.load_config(cli_overrides)

        output_path = output if output else engine_config.output_path

        _display_config_summary(engine_config, no_progress)

        result = _run_with_progress(engine_config, no_progress)

        formatter = JSONOutputFormatter()
        formatter.save(result, str(output_path))

        _display_results(result, output_path, no_progress)

        sys.exit(0)

    except KeyboardInterrupt:
        console.print("\n[yellow]Run interrupted by user[/yellow]")
        sys.exit(130)  # Standard exit code for SIGINT
    except Exception as e:
        console.print(f"\n[red]Error:[/red] {e}", style="bold red")
        if debug:
            console.print_exception()
        sys.exit(1)


def _run_with_progress(config: EngineConfig, no_progress: bool) -> RunResult:
    """
    Run the engine, driving a progress bar from its notifications.

    Args:
        config: Engine configuration
        no_progress: Whether to disable progress bars

    Returns:
        Engine run result
    """
    orchestrator = PipelineOrchestrator(config)

    if no_progress:
        console.print("[cyan]Accumulating batches...[/cyan]")
        return orchestrator.run()

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        TaskProgressColumn(),
        TimeElapsedColumn(),
        console=console,
    ) as progress:
        task_id = progress.add_task("[green]Accumulating batches...", total=100)

        def on_event(event, engine):
            progress.update(task_id, completed=engine.progress)
            if event is EngineEvent.COMPLETED:
                progress.update(task_id, description="[green]Accumulation complete")

        return orchestrator.run(listener=on_event)


def _display_config_summary(config: EngineConfig, no_progress: bool) -> None:
    """Display configuration summary before running."""
    if no_progress:
        return

    console.print("\n[bold cyan]Engine Configuration[/bold cyan]")
    console.print(f"  Source: {config.source}")
    if config.source == "http":
        console.print(f"  Server: {config.server_url}")
    else:
        console.print(f"  Grid: {config.grid_columns} x {config.grid_rows}")
        console.print(f"  Batches: {config.batch_count}")
    console.print(f"  Max Attempts: {config.max_attempts}")
    console.print()


def _display_results(result: RunResult, output_path: Path, no_progress: bool) -> None:
    """Display final results summary and any failed indices."""
    failed = ", ".join(str(i) for i in result.failed_indices)

    if no_progress:
        console.print(f"✓ Run complete: {len(result.histograms)} histograms, progress {result.progress}%")
        if failed:
            console.print(f"✗ Failed indices: {failed}")
        console.print(f"✓ Output saved to: {output_path}")
        return

    console.print("\n[bold green]Run Complete![/bold green]\n")

    summary_table = Table(title="Execution Summary", show_header=False)
    summary_table.add_column("Metric", style="cyan")
    summary_table.add_column("Value", style="green")

    latest = result.latest
    summary_table.add_row("Grid", f"{result.grid.columns} x {result.grid.rows}")
    summary_table.add_row("Batches", str(result.grid.batch_count))
    summary_table.add_row("Histograms", str(len(result.histograms)))
    summary_table.add_row("Failed", str(len(result.failed_indices)))
    summary_table.add_row("Empty", str(len(result.empty_indices)))
    summary_table.add_row("Progress", f"{result.progress}%")
    summary_table.add_row("Unique Points", str(len(latest) if latest is not None else 0))
    summary_table.add_row("Largest Multiple", str(latest.largest_multiple if latest is not None else 0))
    summary_table.add_row("Processing Time", f"{result.elapsed_seconds:.2f}s")

    console.print(summary_table)
    console.print()

    if failed:
        console.print(f"[bold yellow]Failed indices:[/bold yellow] {failed}")
        console.print()

    console.print(f"[bold]Output saved to:[/bold] {output_path}")
    console.print()


if __name__ == "__main__":
    main()
