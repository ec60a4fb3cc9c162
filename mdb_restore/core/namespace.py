"""
Namespace & Metadata Resolver

Maps dump files to destination namespaces and reads the
<collection>.metadata.json sidecars written next to them.

This module is part of MDB_RESTORE - MongoDB Dump Restore Engine.
"""

import json
import logging
from pathlib import Path
from typing import Any, Optional, Sequence, Tuple

from bson import json_util
from bson.errors import BSONError

from ..constants import DEFAULT_DB_NAME, METADATA_SUFFIX, SYSTEM_PREFIX
from ..exceptions import EmptyNamespace, MetadataParseError
from .types import UNDEFINED, CollectionMetadata, DataUnit, RestoreUnit

logger = logging.getLogger(__name__)


def original_collection_name(path: Path) -> str:
    """Name of the collection the file was dumped from ("bar.bson" -> "bar")."""
    name = Path(path).name
    return name.rsplit(".", 1)[0] if "." in name else name


def resolve_namespace(
    unit: RestoreUnit,
    db_override: Optional[str] = None,
    coll_override: Optional[str] = None,
) -> DataUnit:
    """
    Destination namespace for a dump file.

    Args:
        unit: Data unit being restored
        db_override: Database name given with --db
        coll_override: Collection name given with --collection

    Returns:
        DataUnit for the destination

    Raises:
        EmptyNamespace: If no database name can be derived
    """
    if db_override is not None:
        # An explicit override is used as given, even when empty
        if not db_override:
            raise EmptyNamespace(f"Empty database name given for {unit.path}")
        db = db_override
    else:
        db = unit.path.parent.name or DEFAULT_DB_NAME

    coll = coll_override or original_collection_name(unit.path)
    return DataUnit(db=db, coll=coll)


def metadata_path(unit: RestoreUnit) -> Path:
    """Sidecar file that belongs to a data file."""
    return unit.path.parent / (original_collection_name(unit.path) + METADATA_SUFFIX)


def _metadata_pairs_hook(pairs: Sequence[Tuple[str, Any]]) -> Any:
    # json_util would turn {"$undefined": true} into None; keep it recognisable
    if len(pairs) == 1 and pairs[0][0] == "$undefined":
        return UNDEFINED
    return json_util.object_pairs_hook(pairs)


def parse_metadata(text: str, path: Path) -> CollectionMetadata:
    """
    Parse the extended JSON of a metadata sidecar.

    Raises:
        MetadataParseError: If the document is malformed
    """
    try:
        document = json.loads(text, object_pairs_hook=_metadata_pairs_hook)
    except (ValueError, TypeError, BSONError) as e:
        raise MetadataParseError(path, str(e)) from e

    if not isinstance(document, dict):
        raise MetadataParseError(path, "top level value is not an object")

    options = document.get("options")
    if options is not None and not isinstance(options, dict):
        raise MetadataParseError(path, '"options" is not an object')

    indexes = document.get("indexes")
    if indexes is not None:
        if not isinstance(indexes, list) or not all(
            isinstance(index, dict) for index in indexes
        ):
            raise MetadataParseError(path, '"indexes" is not an array of objects')

    return CollectionMetadata(options=options, indexes=indexes)


def load_metadata(unit: RestoreUnit) -> Optional[CollectionMetadata]:
    """
    Read the sidecar of a data unit.

    A missing sidecar is normal for old dumps and for system collections.

    Returns:
        Parsed metadata, or None if there is no sidecar

    Raises:
        MetadataParseError: If the sidecar exists but is malformed
    """
    path = metadata_path(unit)
    if not path.exists():
        if not path.name.startswith(SYSTEM_PREFIX):
            logger.info(f"{path} not found. Skipping.")
        return None

    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise MetadataParseError(path, str(e)) from e
    return parse_metadata(text, path)
