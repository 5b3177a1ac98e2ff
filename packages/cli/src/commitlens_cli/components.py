"""Wiring of core components from a loaded config dict.

Lives in the CLI so neither commitlens_core nor commitlens_store know about
the config file format.
"""

from __future__ import annotations

import click

from commitlens_core.analyzer import AnalysisOrchestrator
from commitlens_core.config import validate_config
from commitlens_core.errors import ConfigError, RepositoryError
from commitlens_core.git.repository import GitRepository
from commitlens_core.providers.ollama import OllamaClient


def apply_overrides(config: dict, **overrides) -> dict:
    """Return a copy of config with every non-None override applied."""
    merged = dict(config)
    for key, value in overrides.items():
        if value is not None:
            merged[key] = value
    return merged


def build_client(config: dict) -> OllamaClient:
    return OllamaClient(
        base_url=config["ollama_url"],
        timeout=config["request_timeout"],
        top_p=config["top_p"],
        top_k=config["top_k"],
    )


def build_orchestrator(config: dict, store) -> AnalysisOrchestrator:
    """Validate config, open the repository and assemble the orchestrator.

    Configuration and repository problems are fatal for the command and are
    reported as click usage errors.
    """
    try:
        validate_config(config)
        repository = GitRepository(config["repo_path"])
    except (ConfigError, RepositoryError) as e:
        raise click.UsageError(str(e))
    return AnalysisOrchestrator(repository, build_client(config), store, config)
