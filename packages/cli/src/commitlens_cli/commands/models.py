"""models command — check the backend and list what it serves."""

from __future__ import annotations

import click
from rich.console import Console
from rich.table import Table

from commitlens_cli.components import build_client

console = Console()


@click.command("models")
@click.pass_context
def models_cmd(ctx):
    """Check that Ollama is reachable and list its models."""
    config = ctx.obj["config"]
    client = build_client(config)

    if not client.is_available():
        raise click.ClickException(f"Ollama is not reachable at {config['ollama_url']}.")

    served = sorted(client.list_models())
    console.print(f"[green]Ollama is up at {config['ollama_url']}[/green]")
    if not served:
        console.print("[yellow]No models installed. Pull one with `ollama pull <model>`.[/yellow]")
        return

    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("Model")
    table.add_column("Configured", justify="center")
    for name in served:
        marker = "[green]✓[/green]" if name in (config["model"], f"{config['model']}:latest") else ""
        table.add_row(name, marker)
    console.print(table)

    if not client.has_model(config["model"]):
        console.print(
            f"[yellow]Configured model {config['model']!r} is not installed. "
            f"Run: ollama pull {config['model']}[/yellow]"
        )
