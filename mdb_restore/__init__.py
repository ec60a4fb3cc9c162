"""
MDB_RESTORE - MongoDB Dump Restore Engine

Restores a mongodump directory tree into a MongoDB server and optionally
replays the oplog captured with the dump.

Usage:
    from mdb_restore import DestinationClient, RestoreEngine, RestoreOptions

    options = RestoreOptions(uri="mongodb://localhost:27017", directory="dump", drop=True)
    async with DestinationClient(options.uri, w=options.w) as client:
        report = await RestoreEngine(client, options).run()

    # Or from the command line
    mdb-restore restore dump --drop --oplog-replay
"""

from .config import RestoreOptions
from .core import (
    OplogReplayer,
    RestoreEngine,
    RestoreReport,
    RestoreUnit,
    UnitKind,
    walk,
)
from .database import DestinationClient, read_records
from .exceptions import (
    AcknowledgementError,
    CollectionCreationError,
    ConfigurationError,
    DestinationIneligible,
    EmptyNamespace,
    IndexCreationError,
    LayoutViolation,
    MetadataParseError,
    RecordReadError,
    ReplayIneligible,
    RestoreError,
)

__version__ = "0.1.0"

__all__ = [
    # Core
    "RestoreEngine",
    "RestoreOptions",
    "RestoreReport",
    "RestoreUnit",
    "UnitKind",
    "OplogReplayer",
    "walk",
    # Database
    "DestinationClient",
    "read_records",
    # Errors
    "RestoreError",
    "ConfigurationError",
    "LayoutViolation",
    "EmptyNamespace",
    "MetadataParseError",
    "AcknowledgementError",
    "IndexCreationError",
    "CollectionCreationError",
    "ReplayIneligible",
    "DestinationIneligible",
    "RecordReadError",
]
