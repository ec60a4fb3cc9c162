"""
Dump Tree Walker

Turns a dump directory into the ordered list of files to restore.

Traversal rules:
- hidden entries (leading ".") are skipped
- entries are visited in sorted name order
- oplog.bson at the top level is left for oplog replay
- system.indexes.bson is visited after every other entry of its directory,
  and only when that directory has no *.metadata.json sidecars

This module is part of MDB_RESTORE - MongoDB Dump Restore Engine.
"""

import logging
from pathlib import Path
from typing import List

from ..constants import (
    DATA_SUFFIXES,
    INDEXES_FILE,
    METADATA_SUFFIX,
    OPLOG_FILE,
    PROFILE_FILE,
)
from ..exceptions import LayoutViolation, ReplayIneligible
from .types import RestoreUnit, UnitKind

logger = logging.getLogger(__name__)


def classify(path: Path) -> UnitKind:
    """Kind of a dump file, from its name alone."""
    name = path.name
    if name.endswith(METADATA_SUFFIX):
        return UnitKind.METADATA
    if not name.endswith(DATA_SUFFIXES):
        return UnitKind.UNKNOWN
    if name == PROFILE_FILE:
        return UnitKind.SKIP
    if name == INDEXES_FILE:
        return UnitKind.INDEX_DATA
    return UnitKind.DATA


def _is_hidden(path: Path) -> bool:
    return path.name.startswith(".") and path.name not in (".", "..")


def walk(
    root: Path,
    use_db: bool = False,
    use_coll: bool = False,
    oplog_limit_active: bool = False,
) -> List[RestoreUnit]:
    """
    Collect the restore units below root in traversal order.

    Args:
        root: Dump directory, or a single dump file
        use_db: A database name override is in effect
        use_coll: A collection name override is in effect
        oplog_limit_active: An oplog limit was given, so no data units may exist

    Returns:
        Units in the order they must be restored. Metadata sidecars are not
        included; they are read alongside their data file.

    Raises:
        LayoutViolation: If the tree does not fit the override mode
        ReplayIneligible: If a data unit is found while an oplog limit is active
    """
    root = Path(root)
    units: List[RestoreUnit] = []
    _walk_into(root, use_db, use_coll, oplog_limit_active, units, top_level=True)
    return units


def _walk_into(
    path: Path,
    use_db: bool,
    use_coll: bool,
    oplog_limit_active: bool,
    units: List[RestoreUnit],
    top_level: bool = False,
) -> None:
    logger.debug(f"drillDown: {path}")

    if not top_level and _is_hidden(path):
        return

    if path.is_dir():
        _walk_directory(path, use_db, use_coll, oplog_limit_active, units, top_level)
        return

    kind = classify(path)
    if kind is UnitKind.METADATA:
        # Read when the matching data file is restored
        return

    if oplog_limit_active and kind in (UnitKind.DATA, UnitKind.INDEX_DATA):
        raise ReplayIneligible(
            "The oplogLimit option cannot be used if normal databases/collections "
            "exist in the dump directory."
        )

    units.append(RestoreUnit(path=path, kind=kind))


def _walk_directory(
    directory: Path,
    use_db: bool,
    use_coll: bool,
    oplog_limit_active: bool,
    units: List[RestoreUnit],
    top_level: bool,
) -> None:
    entries = sorted(
        (entry for entry in directory.iterdir() if not _is_hidden(entry)),
        key=lambda entry: entry.name,
    )
    has_directory = any(entry.is_dir() for entry in entries)

    if use_db and has_directory:
        raise LayoutViolation(
            "root directory must be a dump of a single database "
            "when specifying a db name with --db"
        )

    if use_coll and (len(entries) > 1 or has_directory):
        raise LayoutViolation(
            "root directory must be a dump of a single collection "
            "when specifying a collection name with --collection"
        )

    has_metadata = any(entry.name.endswith(METADATA_SUFFIX) for entry in entries)
    deferred = None

    # First pass: everything except the legacy index file
    for entry in entries:
        if top_level and not use_db and entry.name == OPLOG_FILE:
            continue
        if entry.name == INDEXES_FILE and not entry.is_dir():
            deferred = entry
            continue
        _walk_into(entry, use_db, use_coll, oplog_limit_active, units)

    # Second pass: indexes once their collections exist
    if deferred is not None:
        if has_metadata:
            logger.debug(f"Ignoring {deferred}: indexes come from metadata files")
        else:
            _walk_into(deferred, use_db, use_coll, oplog_limit_active, units)
