import os
from pathlib import Path
from typing import Optional

import yaml

from commitlens_core.errors import ConfigError

DEFAULT_CONFIG: dict = {
    "repo_path": ".",
    "ollama_url": "http://localhost:11434",
    "model": "deepseek-coder:6.7b-instruct-q4_0",
    "request_timeout": 600,
    "temperature": 0.1,
    "top_p": 0.9,
    "top_k": 40,
    "max_tokens": 2048,
    "max_file_size": 100_000,
    "max_files_per_commit": 5,
    "max_commits_per_cycle": 10,
    "lookback_days": 7,
    "scan_interval_minutes": 60,
    "max_workers": 4,
    "chunk_budget": 8000,
    "prompt_source": "content",  # "content" = full file after the commit, "diff" = unified patch
    "suggestions": False,  # one extra backend call per file when enabled
    "exclude": [],  # fnmatch patterns or directory names to skip (e.g. "migrations/", "*.min.js")
    "store": "sqlite",
    "store_path": ".commitlens.db",
}

# Upper bound on commits processed at once, whatever the config says.
MAX_WORKERS_CAP = 4

_POSITIVE_KEYS = (
    "request_timeout",
    "max_tokens",
    "max_file_size",
    "max_files_per_commit",
    "max_commits_per_cycle",
    "lookback_days",
    "scan_interval_minutes",
    "max_workers",
    "chunk_budget",
)


def load_config(config_path: str = ".commitlens.yml", cli_overrides: Optional[dict] = None) -> dict:
    """
    Load configuration by merging (in order of precedence):
      1. Built-in defaults
      2. .commitlens.yml in the current directory
      3. CLI argument overrides
      4. OLLAMA_HOST / COMMITLENS_MODEL environment variables
    """
    config = {**DEFAULT_CONFIG, "exclude": list(DEFAULT_CONFIG["exclude"])}

    path = Path(config_path)
    if path.exists():
        with open(path) as f:
            file_config = yaml.safe_load(f) or {}
        if not isinstance(file_config, dict):
            raise ConfigError(f"{config_path} must contain a mapping, got {type(file_config).__name__}")
        config.update(file_config)

    if cli_overrides:
        for key, value in cli_overrides.items():
            if value is not None:
                config[key] = value

    if os.environ.get("OLLAMA_HOST"):
        config["ollama_url"] = os.environ["OLLAMA_HOST"]
    if os.environ.get("COMMITLENS_MODEL"):
        config["model"] = os.environ["COMMITLENS_MODEL"]

    return config


def validate_config(config: dict) -> dict:
    """Raise ConfigError for values the pipeline cannot run with."""
    for key in _POSITIVE_KEYS:
        value = config.get(key)
        if isinstance(value, bool) or not isinstance(value, (int, float)) or value <= 0:
            raise ConfigError(f"{key} must be a positive number, got {value!r}")

    if not 0 <= float(config.get("temperature", 0)) <= 2:
        raise ConfigError(f"temperature must be between 0 and 2, got {config['temperature']!r}")

    if config.get("prompt_source") not in ("content", "diff"):
        raise ConfigError(f"prompt_source must be 'content' or 'diff', got {config.get('prompt_source')!r}")

    if not config.get("model"):
        raise ConfigError("No model configured. Set 'model' in .commitlens.yml or COMMITLENS_MODEL.")

    if not isinstance(config.get("exclude", []), list):
        raise ConfigError("exclude must be a list of patterns")

    return config
