"""
Show command for CLI.

Displays the files a restore would process, in order, with their
destination namespaces. Does not connect to any server.

This module is part of MDB_RESTORE - MongoDB Dump Restore Engine.
"""

import sys
from pathlib import Path

import click

from ...config import RestoreOptions
from ...core.walker import walk
from ...exceptions import RestoreError
from ..utils import build_plan, format_plan_output


@click.command()
@click.argument(
    "directory",
    default="dump",
    type=click.Path(exists=True, path_type=Path),
)
@click.option("--db", "-d", default=None, help="Database to restore into")
@click.option("--collection", "-c", default=None, help="Collection to restore into")
@click.option(
    "--format",
    "-f",
    type=click.Choice(["json", "pretty"], case_sensitive=False),
    default="pretty",
    help="Output format (default: pretty)",
)
def show(directory: Path, db: str | None, collection: str | None, format: str) -> None:
    """
    Display the restore plan of a dump directory.

    DIRECTORY: Dump directory, or a single .bson file (default: dump)

    Examples:
        mdb-restore show dump
        mdb-restore show dump/app --db app_copy --format json
    """
    options = RestoreOptions(directory=directory, db=db, collection=collection)
    try:
        options.validate()
        units = walk(directory, use_db=options.use_db, use_coll=options.use_coll)
        plan = build_plan(units, options.db, options.collection)
    except RestoreError as e:
        raise click.ClickException(str(e)) from e

    click.echo(format_plan_output(plan, format.lower()))
    sys.exit(0)
