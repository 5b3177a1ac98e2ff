"""CLI entry point for commitlens.

Commands:
  run      — background loop that scores recent commits on a schedule
  analyze  — score a single commit now
  history  — display stored commit analyses
  stats    — aggregate scores across stored analyses
  models   — check the Ollama backend and list served models
  init     — interactive setup wizard writing .commitlens.yml
"""

from __future__ import annotations

import importlib.metadata

import click
from rich.console import Console

from commitlens_cli.commands.analyze import analyze_cmd
from commitlens_cli.commands.history import history_cmd
from commitlens_cli.commands.init import init_cmd
from commitlens_cli.commands.models import models_cmd
from commitlens_cli.commands.run import run_cmd
from commitlens_cli.commands.stats import stats_cmd

console = Console()


def _build_store(config: dict):
    """Instantiate the configured store from .commitlens.yml settings.

    Store selection:
      store: sqlite (default) → SQLiteStore at store_path (.commitlens.db)
      store: none             → NoOpStore (nothing persisted, nothing skipped)
    """
    from commitlens_store.noop import NoOpStore

    store_type = config.get("store", "sqlite")

    if store_type == "sqlite":
        from commitlens_store.sqlite import SQLiteStore

        return SQLiteStore(db_path=config.get("store_path", ".commitlens.db"))

    if store_type not in ("none", "noop"):
        console.print(f"[yellow]Unknown store {store_type!r}. Falling back to no store.[/yellow]")
    return NoOpStore()


@click.group()
@click.version_option(
    version=importlib.metadata.version("commitlens"),
    prog_name="commitlens",
)
@click.option(
    "--config",
    "config_path",
    default=".commitlens.yml",
    show_default=True,
    help="Path to the configuration file.",
    envvar="COMMITLENS_CONFIG",
)
@click.pass_context
def main(ctx: click.Context, config_path: str):
    """Clean-code scoring of git commits with a local Ollama model."""
    from commitlens_core.config import load_config
    from commitlens_core.errors import ConfigError, PersistenceError

    ctx.ensure_object(dict)

    try:
        config = load_config(config_path)
        store = _build_store(config)
    except (ConfigError, PersistenceError) as e:
        raise click.UsageError(str(e))

    ctx.obj["store"] = store
    ctx.obj["config"] = config
    ctx.call_on_close(store.close)


main.add_command(run_cmd)
main.add_command(analyze_cmd)
main.add_command(history_cmd)
main.add_command(stats_cmd)
main.add_command(models_cmd)
main.add_command(init_cmd)
