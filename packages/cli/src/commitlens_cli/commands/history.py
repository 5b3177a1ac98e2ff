"""history command — display stored commit analyses."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import click
from rich.console import Console
from rich.table import Table

from commitlens_core.scoring import NO_ANALYZABLE_CONTENT, aggregate, quality_level

console = Console()


def require_store(ctx):
    """Return the configured store, or fail if history cannot be read from it."""
    from commitlens_store.noop import NoOpStore

    store = ctx.obj.get("store") if ctx.obj else None
    if store is None or isinstance(store, NoOpStore):
        raise click.UsageError(
            "No store configured. Set 'store: sqlite' in .commitlens.yml (it is the default) "
            "or run `commitlens init`."
        )
    return store


@click.command("history")
@click.option("--since", "since_days", type=int, default=30, show_default=True, help="Look back this many days.")
@click.option("--author", default=None, help="Only commits by this author name or email.")
@click.option("--commit", "commit_id", default=None, help="Show the full analysis of one commit.")
@click.option("--limit", default=20, show_default=True, help="Maximum number of records to show.")
@click.pass_context
def history_cmd(ctx, since_days: int, author: str | None, commit_id: str | None, limit: int):
    """Show stored commit analyses, most recent first."""
    store = require_store(ctx)

    if commit_id:
        from commitlens_cli.commands.analyze import print_commit_analysis

        analysis = store.get_commit_analysis(commit_id)
        if analysis is None:
            raise click.UsageError(f"No stored analysis for commit {commit_id}. Use the full commit hash.")
        print_commit_analysis(analysis, show_justifications=True)
        return

    since = datetime.now(timezone.utc) - timedelta(days=since_days)
    records = store.list_commit_analyses(since=since, author=author)
    if not records:
        console.print("[yellow]No analyses found.[/yellow]")
        return

    records = list(reversed(records))[:limit]

    table = Table(title=f"Commit analyses — last {since_days} days", show_header=True, header_style="bold cyan")
    table.add_column("Commit", style="bold", width=10, no_wrap=True)
    table.add_column("Date", width=16)
    table.add_column("Author", max_width=20)
    table.add_column("Type", width=9)
    table.add_column("Message", max_width=40)
    table.add_column("Files", justify="right", width=5)
    table.add_column("Score", justify="right", width=6, no_wrap=True)
    table.add_column("Quality", width=18, no_wrap=True)

    for r in records:
        score = aggregate(r.files)
        if score.has_content:
            score_text = f"{score.overall:.2f}"
            quality = quality_level(score.overall)
        else:
            score_text = "-"
            quality = f"[dim]{NO_ANALYZABLE_CONTENT}[/dim]"
        table.add_row(
            r.commit_id[:8],
            r.committed_at[:16].replace("T", " "),
            r.author,
            r.commit_type,
            r.message.splitlines()[0][:40] if r.message else "",
            str(score.analyzed_files),
            score_text,
            quality,
        )

    console.print(table)
