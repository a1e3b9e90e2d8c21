"""Smriti CLI: entry point for search and similar commands."""

import click

from smriti import __version__


@click.group()
@click.version_option(version=__version__, package_name="smriti")
def main() -> None:
    """Smriti: search your journal by meaning and by keyword."""


# Register subcommands
from .search_cmd import search, similar

main.add_command(search)
main.add_command(similar)
