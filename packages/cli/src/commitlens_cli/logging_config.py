"""Logging setup for the commitlens CLI.

Library modules only call ``logging.getLogger(__name__)``; handlers are
attached here, once, by whichever command hosts the pipeline.
"""

from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler


def setup_logging(verbose: bool = False, quiet: bool = False, log_file: str | None = None) -> logging.Logger:
    """Configure rich console logging on stderr plus an optional plain-text log file."""
    if quiet:
        level = logging.ERROR
    elif verbose:
        level = logging.DEBUG
    else:
        level = logging.INFO

    handlers: list[logging.Handler] = [
        RichHandler(
            console=Console(stderr=True),
            rich_tracebacks=True,
            show_time=True,
            show_path=verbose,
        )
    ]

    if log_file:
        file_handler = logging.FileHandler(log_file, mode="a")
        file_handler.setFormatter(
            logging.Formatter("%(asctime)s - %(threadName)s - %(name)s - %(levelname)s - %(message)s")
        )
        handlers.append(file_handler)

    logging.basicConfig(level=level, format="%(message)s", datefmt="[%X]", handlers=handlers, force=True)

    # Keep urllib3 connection chatter out of -v output.
    logging.getLogger("urllib3").setLevel(logging.WARNING)

    logger = logging.getLogger("commitlens_core")
    logger.setLevel(level)
    return logger
