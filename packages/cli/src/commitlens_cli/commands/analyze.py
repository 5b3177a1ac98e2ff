"""analyze command — score one commit immediately."""

from __future__ import annotations

import click
from rich.console import Console
from rich.table import Table

from commitlens_cli.components import apply_overrides, build_orchestrator
from commitlens_core.models import CRITERIA, CRITERION_LABELS
from commitlens_core.scoring import aggregate, quality_level

console = Console()

_SHORT_LABELS = {
    "variable_naming": "Naming",
    "function_size": "Size",
    "self_explanatory": "Clarity",
    "method_cohesion": "Cohesion",
    "dead_code": "Dead code",
}


def _score_style(score: float) -> str:
    if score >= 7.5:
        return "green"
    if score >= 5:
        return "yellow"
    return "red"


def print_commit_analysis(analysis, show_justifications: bool = False) -> None:
    """Render a CommitAnalysis as a per-file score table."""
    score = aggregate(analysis.files)
    subject = analysis.message.splitlines()[0] if analysis.message else ""
    console.print(f"\n[bold]{analysis.commit_id[:8]}[/bold] {subject} [dim]({analysis.author})[/dim]")

    if not score.has_content:
        console.print("[yellow]No analyzable content in this commit.[/yellow]")
        return

    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("File", max_width=48)
    for name in CRITERIA:
        table.add_column(_SHORT_LABELS[name], justify="right")
    table.add_column("Overall", justify="right")

    for f in analysis.files:
        style = _score_style(f.overall_score)
        path = f"{f.file_path} [dim](default)[/dim]" if f.is_degraded else f.file_path
        table.add_row(
            path,
            *(str(f.criteria[name].score) if name in f.criteria else "-" for name in CRITERIA),
            f"[{style}]{f.overall_score:.1f}[/{style}]",
        )
    console.print(table)

    style = _score_style(score.overall)
    console.print(
        f"Commit score: [{style}]{score.overall:.2f}[/{style}] "
        f"({quality_level(score.overall)}, {score.analyzed_files} file(s), type: {analysis.commit_type})"
    )

    if show_justifications:
        for f in analysis.files:
            console.print(f"\n[bold]{f.file_path}[/bold]")
            for name in CRITERIA:
                criterion = f.criteria.get(name)
                if criterion and criterion.justification:
                    console.print(f"  {CRITERION_LABELS[name]}: {criterion.justification}")
            if f.comment:
                console.print(f"  [italic]{f.comment}[/italic]")
            for s in f.suggestions:
                console.print(f"  • [bold]{s.title}[/bold] [dim]({s.priority})[/dim] — {s.description}")


@click.command("analyze")
@click.argument("commit")
@click.option("--repo-path", default=None, help="Git repository to analyze. Overrides config file.")
@click.option("--model", default=None, help="Ollama model name. Overrides config file.")
@click.option("--suggestions/--no-suggestions", default=None, help="Ask the model for improvement suggestions.")
@click.option("--no-save", is_flag=True, help="Do not read or write the store (always re-analyzes).")
@click.option("--details", is_flag=True, help="Show justifications and suggestions.")
@click.pass_context
def analyze_cmd(
    ctx,
    commit: str,
    repo_path: str | None,
    model: str | None,
    suggestions: bool | None,
    no_save: bool,
    details: bool,
):
    """Score a single COMMIT (any revision git understands, e.g. HEAD~2)."""
    from commitlens_store.noop import NoOpStore

    config = apply_overrides(ctx.obj["config"], repo_path=repo_path, model=model, suggestions=suggestions)
    store = NoOpStore() if no_save else ctx.obj["store"]
    orchestrator = build_orchestrator(config, store)

    target = orchestrator.repository.get_commit(commit)
    if target is None:
        raise click.UsageError(f"Commit {commit!r} not found in {config['repo_path']}.")

    if not orchestrator.client.is_available():
        raise click.ClickException(f"Ollama is not reachable at {config['ollama_url']}.")
    if not orchestrator.client.has_model(config["model"]):
        raise click.ClickException(f"Model {config['model']!r} is not available. Run: ollama pull {config['model']}")

    with console.status(f"Analyzing {target.short_id} with {config['model']}..."):
        analysis = orchestrator.analyze_commit(target)

    if analysis is None:
        analysis = store.get_commit_analysis(target.id)
        if analysis is None:
            console.print(
                "[yellow]Analysis incomplete (cancelled or backend errors); the commit was not recorded.[/yellow]"
            )
            return
        console.print("[dim]Already analyzed; showing stored result.[/dim]")

    print_commit_analysis(analysis, show_justifications=details)
