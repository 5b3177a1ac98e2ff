"""stats command — aggregate scores across stored analyses."""

from __future__ import annotations

from collections import Counter, defaultdict
from datetime import datetime, timedelta, timezone

import click
from rich.console import Console
from rich.table import Table

from commitlens_cli.commands.history import require_store
from commitlens_core.models import CRITERIA, CRITERION_LABELS
from commitlens_core.scoring import aggregate, quality_level

console = Console()


@click.command("stats")
@click.option("--since", "since_days", type=int, default=30, show_default=True, help="Look back this many days.")
@click.option("--top", default=10, show_default=True, help="Number of top entries to show per category.")
@click.pass_context
def stats_cmd(ctx, since_days: int, top: int):
    """Show aggregated quality statistics.

    Reports per-criterion averages, the authors with the best and worst
    average commit scores, the commit-type breakdown and the lowest-scoring
    files — useful for spotting where clean-code habits slip.
    """
    store = require_store(ctx)

    since = datetime.now(timezone.utc) - timedelta(days=since_days)
    records = store.list_commit_analyses(since=since)
    if not records:
        console.print("[yellow]No analyses found in this period.[/yellow]")
        return

    scored = [r for r in records if r.files]
    all_files = [f for r in scored for f in r.files]
    overall = aggregate(all_files)

    # --- Summary ---
    console.print(f"\n[bold]Quality stats for the last {since_days} days[/bold]")
    console.print(f"  Commits analyzed:      {len(records)}")
    console.print(f"  Without code to score: {len(records) - len(scored)}")
    console.print(f"  Files scored:          {len(all_files)}")
    if overall.has_content:
        console.print(f"  Average file score:    {overall.overall:.2f} ({quality_level(overall.overall)})")

    # --- Criteria ---
    if overall.criteria:
        criteria_table = Table(title="Average per criterion", show_header=True)
        criteria_table.add_column("Criterion", style="bold")
        criteria_table.add_column("Average", justify="right")
        criteria_table.add_column("Level")
        for name in CRITERIA:
            if name in overall.criteria:
                value = overall.criteria[name]
                criteria_table.add_row(CRITERION_LABELS[name], f"{value:.2f}", quality_level(value))
        console.print(criteria_table)

    # --- Authors ---
    by_author: dict[str, list[float]] = defaultdict(list)
    for r in scored:
        by_author[r.author or r.email or "unknown"].append(r.overall_score)
    if by_author:
        author_table = Table(title=f"Top {top} authors by average commit score", show_header=True)
        author_table.add_column("Author")
        author_table.add_column("Commits", justify="right")
        author_table.add_column("Average", justify="right")
        ranked = sorted(by_author.items(), key=lambda kv: sum(kv[1]) / len(kv[1]), reverse=True)
        for name, scores in ranked[:top]:
            author_table.add_row(name, str(len(scores)), f"{sum(scores) / len(scores):.2f}")
        console.print(author_table)

    # --- Commit types ---
    type_counter: Counter[str] = Counter(r.commit_type for r in records)
    type_table = Table(title="Commit types", show_header=True)
    type_table.add_column("Type", style="bold")
    type_table.add_column("Count", justify="right")
    type_table.add_column("% of total", justify="right")
    for commit_type, count in type_counter.most_common():
        type_table.add_row(commit_type, str(count), f"{count / len(records) * 100:.1f}%")
    console.print(type_table)

    # --- Weakest files ---
    if all_files:
        file_table = Table(title=f"{top} lowest-scoring files", show_header=True)
        file_table.add_column("File")
        file_table.add_column("Commit", width=10)
        file_table.add_column("Score", justify="right")
        for f in sorted(all_files, key=lambda f: f.overall_score)[:top]:
            file_table.add_row(f.file_path, f.commit_id[:8], f"{f.overall_score:.1f}")
        console.print(file_table)
