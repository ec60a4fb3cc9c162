"""
Main CLI entry point for MDB_RESTORE.

This module provides the command-line interface for restoring dumps.

This module is part of MDB_RESTORE - MongoDB Dump Restore Engine.
"""

import click

from .. import __version__
from .commands.restore import restore
from .commands.show import show


@click.group()
@click.version_option(version=__version__, prog_name="mdb-restore")
def cli() -> None:
    """
    MDB_RESTORE CLI - Restore mongodump directories.

    Restore dumped collections into a MongoDB server and replay captured oplogs.
    """
    pass


# Register commands
cli.add_command(restore)
cli.add_command(show)


def main() -> None:
    """Entry point for the CLI."""
    cli()


if __name__ == "__main__":
    main()
