"""Shared setup logic for CLI commands."""

from __future__ import annotations

import sys
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import Any

import click

SMRITI_DIR = Path.home() / ".smriti"
CONFIG_PATH = SMRITI_DIR / "config.yaml"


def load_config(config_file: str | None = None):
    """Load config from the given file, falling back to ~/.smriti/config.yaml."""
    from smriti.core.config import Config

    path = config_file or (str(CONFIG_PATH) if CONFIG_PATH.exists() else None)
    return Config(config_file=path, data_dir=str(SMRITI_DIR))


def configure_logging(config, level: str | None = None) -> None:
    """Apply the config's logging section; a bad level is a usage error."""
    from smriti.core.exceptions import ConfigurationError
    from smriti.core.utils.logging import setup_logging_from_config

    try:
        setup_logging_from_config(config, level)
    except ConfigurationError as e:
        raise click.BadParameter(str(e), param_hint="--log-level") from e


def run_with_searcher(config, action: Callable[[Any], Awaitable[str]]) -> None:
    """Open a searcher, run *action* with it, print the result.

    Library errors are printed and exit with status 1.
    """
    import asyncio

    from smriti.core.exceptions import SmritiError
    from smriti.journal.search import open_journal_searcher

    async def _run() -> str:
        async with open_journal_searcher(config) as searcher:
            return await action(searcher)

    try:
        output = asyncio.run(_run())
    except SmritiError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)
    click.echo(output)
