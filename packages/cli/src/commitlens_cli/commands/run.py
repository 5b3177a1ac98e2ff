"""run command — host the periodic analysis loop."""

from __future__ import annotations

import click
from rich.console import Console
from rich.table import Table

from commitlens_cli.components import apply_overrides, build_orchestrator
from commitlens_cli.logging_config import setup_logging

console = Console()


def _print_summary(summary) -> None:
    if summary.skipped:
        console.print(f"[yellow]Cycle skipped: {summary.skipped_reason}[/yellow]")
        return

    console.print(
        f"\n[bold]{summary.candidates}[/bold] candidate commit(s), "
        f"[bold]{len(summary.results)}[/bold] analyzed, "
        f"[bold]{summary.files_analyzed}[/bold] file(s) scored"
    )
    if summary.results:
        table = Table(title="Cycle results", show_header=True, header_style="bold cyan")
        table.add_column("Commit", width=10)
        table.add_column("Files analyzed", justify="right")
        for commit_id, count in summary.results.items():
            table.add_row(commit_id[:8], str(count))
        console.print(table)
    for commit_id in summary.failed:
        console.print(f"[red]Commit {commit_id[:8]} failed; it will be retried next cycle.[/red]")


@click.command("run")
@click.option("--repo-path", default=None, help="Git repository to analyze. Overrides config file.")
@click.option("--model", default=None, help="Ollama model name. Overrides config file.")
@click.option("--interval", "scan_interval_minutes", type=int, default=None, help="Minutes between cycles.")
@click.option("--once", is_flag=True, help="Run a single cycle and exit.")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging.")
@click.option("--quiet", "-q", is_flag=True, help="Only log errors.")
@click.option("--log-file", default=None, help="Also append logs to this file.")
@click.pass_context
def run_cmd(
    ctx,
    repo_path: str | None,
    model: str | None,
    scan_interval_minutes: int | None,
    once: bool,
    verbose: bool,
    quiet: bool,
    log_file: str | None,
):
    """Score recent commits on a schedule.

    Every cycle checks that Ollama is up and serves the configured model,
    collects commits from the lookback window, skips those already stored,
    and scores the rest. Stop with Ctrl+C.
    """
    setup_logging(verbose=verbose, quiet=quiet, log_file=log_file)

    config = apply_overrides(
        ctx.obj["config"],
        repo_path=repo_path,
        model=model,
        scan_interval_minutes=scan_interval_minutes,
    )
    orchestrator = build_orchestrator(config, ctx.obj["store"])

    if once:
        _print_summary(orchestrator.run_cycle())
        return

    console.print(
        f"[bold cyan]commitlens[/bold cyan] watching [bold]{config['repo_path']}[/bold] "
        f"with {config['model']} every {config['scan_interval_minutes']} min. Press Ctrl+C to stop."
    )
    orchestrator.start()
    try:
        while not orchestrator.wait(timeout=1.0):
            pass
    except KeyboardInterrupt:
        console.print("\n[yellow]Stopping after in-flight work finishes...[/yellow]")
    finally:
        orchestrator.stop()
