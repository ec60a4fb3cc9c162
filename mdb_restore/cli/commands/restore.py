"""
Restore command for CLI.

Restores a dump directory into a MongoDB server.

This module is part of MDB_RESTORE - MongoDB Dump Restore Engine.
"""

import asyncio
import logging
import sys
from pathlib import Path

import click
from pymongo.errors import PyMongoError

from ...config import RestoreOptions, get_default_uri
from ...core.engine import RestoreEngine
from ...core.types import RestoreReport
from ...database.client import DestinationClient
from ...exceptions import RestoreError
from ..utils import configure_logging, format_report

logger = logging.getLogger(__name__)


async def run_restore(options: RestoreOptions) -> RestoreReport:
    """Connect to the destination and run one restore."""
    async with DestinationClient(options.uri, w=options.w) as client:
        return await RestoreEngine(client, options).run()


@click.command()
@click.argument(
    "directory",
    default="dump",
    type=click.Path(exists=True, path_type=Path),
)
@click.option(
    "--uri",
    default=None,
    help="MongoDB connection string (default: $MONGODB_URI or mongodb://localhost:27017)",
)
@click.option("--db", "-d", default=None, help="Database to restore into")
@click.option("--collection", "-c", default=None, help="Collection to restore into")
@click.option("--drop", is_flag=True, help="Drop each collection before restoring it")
@click.option(
    "--oplog-replay",
    is_flag=True,
    help="Replay oplog.bson from the dump after restoring",
)
@click.option(
    "--oplog-limit",
    default=None,
    metavar="SECONDS[:INC]",
    help="Only replay oplog entries older than this timestamp",
)
@click.option(
    "--no-options-restore",
    is_flag=True,
    help="Don't restore collection options from metadata files",
)
@click.option(
    "--no-index-restore",
    is_flag=True,
    help="Don't restore indexes from metadata files",
)
@click.option(
    "--keep-index-version",
    is_flag=True,
    help="Don't strip the index version from index definitions",
)
@click.option(
    "-w",
    "w",
    default=0,
    type=click.IntRange(min=0),
    help="Wait for this many members to acknowledge each write (default: 0)",
)
@click.option("--verbose", "-v", count=True, help="More output (repeatable)")
@click.option("--quiet", "-q", is_flag=True, help="Only print warnings and errors")
def restore(
    directory: Path,
    uri: str | None,
    db: str | None,
    collection: str | None,
    drop: bool,
    oplog_replay: bool,
    oplog_limit: str | None,
    no_options_restore: bool,
    no_index_restore: bool,
    keep_index_version: bool,
    w: int,
    verbose: int,
    quiet: bool,
) -> None:
    """
    Restore a mongodump directory.

    DIRECTORY: Dump directory, or a single .bson file (default: dump)

    Examples:
        mdb-restore restore dump
        mdb-restore restore dump --drop --oplog-replay
        mdb-restore restore dump/app --db app_copy
        mdb-restore restore dump/app/users.bson --db app --collection users_old
    """
    configure_logging(verbose, quiet)

    options = RestoreOptions(
        uri=uri or get_default_uri(),
        directory=directory,
        db=db,
        collection=collection,
        drop=drop,
        oplog_replay=oplog_replay,
        oplog_limit=oplog_limit,
        restore_options=not no_options_restore,
        restore_indexes=not no_index_restore,
        keep_index_version=keep_index_version,
        w=w,
    )

    try:
        report = asyncio.run(run_restore(options))
    except RestoreError as e:
        logger.error(str(e))
        click.echo(click.style(f"❌ Restore failed: {e}", fg="red"), err=True)
        sys.exit(1)
    except PyMongoError as e:
        logger.error(f"MongoDB error: {e}", exc_info=True)
        click.echo(click.style(f"❌ Restore failed: {e}", fg="red"), err=True)
        sys.exit(1)

    click.echo(click.style(f"✅ {format_report(report)}", fg="green"))
    sys.exit(0)
