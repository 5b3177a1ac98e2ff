"""init command — interactive setup wizard.

Writes .commitlens.yml with the repository to watch, the Ollama endpoint and
model, and the store, so `commitlens run` works with no further flags.
"""

from __future__ import annotations

import subprocess
from pathlib import Path

import click
import yaml
from rich.console import Console

from commitlens_core.config import DEFAULT_CONFIG
from commitlens_core.providers.ollama import OllamaClient

console = Console()


@click.command("init")
@click.option("--path", "config_path", default=".commitlens.yml", show_default=True, help="Where to write the config.")
def init_cmd(config_path: str):
    """Set up commitlens for a repository."""
    console.print("\n[bold cyan]commitlens init[/bold cyan] — setup wizard\n")

    # --- Repository ---
    detected = _detect_repo_root() or "."
    repo_path = click.prompt("Git repository to analyze", default=detected)

    # --- Backend ---
    ollama_url = click.prompt("Ollama URL", default=DEFAULT_CONFIG["ollama_url"])
    served = sorted(OllamaClient(base_url=ollama_url).list_models())
    if served:
        console.print("Models served by Ollama:")
        for name in served:
            console.print(f"  [bold]{name}[/bold]")
        default_model = DEFAULT_CONFIG["model"] if DEFAULT_CONFIG["model"] in served else served[0]
    else:
        console.print("[yellow]Could not list models (is Ollama running?).[/yellow]")
        default_model = DEFAULT_CONFIG["model"]
    model = click.prompt("Model", default=default_model)

    # --- Schedule ---
    interval = click.prompt("Minutes between scans", type=int, default=DEFAULT_CONFIG["scan_interval_minutes"])

    # --- Store ---
    console.print("\nAnalysis store:")
    console.print("  [bold]sqlite[/bold]  — local SQLite file (default; required to skip already analyzed commits)")
    console.print("  [bold]none[/bold]    — nothing persisted, every run re-analyzes")
    store_type = click.prompt("Store backend", type=click.Choice(["sqlite", "none"]), default="sqlite")

    config: dict = {
        "repo_path": repo_path,
        "ollama_url": ollama_url,
        "model": model,
        "scan_interval_minutes": interval,
        "store": store_type,
    }
    if store_type == "sqlite":
        db_path = click.prompt("SQLite database path", default=DEFAULT_CONFIG["store_path"])
        if db_path != DEFAULT_CONFIG["store_path"]:
            config["store_path"] = db_path

    _write_config(config, Path(config_path))
    console.print(f"[green]Wrote {config_path}[/green]")

    if served and model not in served:
        console.print(f"[yellow]Remember to pull the model first: ollama pull {model}[/yellow]")

    console.print("\n[bold green]Setup complete![/bold green]")
    console.print("Start scoring with: [bold]commitlens run[/bold]  (or [bold]commitlens run --once[/bold])")


def _detect_repo_root() -> str | None:
    """Top-level directory of the git work tree containing the cwd."""
    try:
        result = subprocess.run(
            ["git", "rev-parse", "--show-toplevel"],
            capture_output=True,
            text=True,
            timeout=5,
        )
    except (FileNotFoundError, subprocess.TimeoutExpired):
        return None
    if result.returncode != 0:
        return None
    return result.stdout.strip() or None


def _write_config(config: dict, path: Path) -> None:
    """Write or update the config file, preserving any existing keys."""
    existing: dict = {}
    if path.exists():
        existing = yaml.safe_load(path.read_text()) or {}
    existing.update(config)
    path.write_text(yaml.dump(existing, default_flow_style=False, sort_keys=False))
