"""
Index creation procedure.

Index definitions come either from the "indexes" array of a metadata
sidecar or from the records of a legacy system.indexes.bson file. Both are
rewritten for the destination namespace and inserted into
<db>.system.indexes.

Index errors are held to a stricter bar than data errors: any acknowledged
failure stops the whole restore.

This module is part of MDB_RESTORE - MongoDB Dump Restore Engine.
"""

import logging
from typing import Any, Dict, Mapping, Optional

from ..config import RestoreOptions
from ..constants import INDEX_NS_FIELD, INDEX_VERSION_FIELD, INDEXES_COLLECTION
from ..exceptions import IndexCreationError
from .types import DataUnit

logger = logging.getLogger(__name__)

# Error code the server reports when replication is not enabled
NO_REPLICATION_ENABLED = 76


def rewrite_index_definition(
    definition: Mapping[str, Any],
    namespace: DataUnit,
    keep_collection_name: bool,
    keep_index_version: bool = False,
) -> Dict[str, Any]:
    """
    Point an index definition at the destination namespace.

    The database is always the current one. The collection is the one named
    in the definition's own "ns" when keep_collection_name is set (legacy
    system.indexes files list indexes of every collection of a database),
    otherwise the current collection.
    """
    rewritten: Dict[str, Any] = {}
    for key, value in definition.items():
        if key == INDEX_NS_FIELD:
            rewritten[key] = _target_namespace(value, namespace, keep_collection_name)
        elif key != INDEX_VERSION_FIELD or keep_index_version:
            rewritten[key] = value
    if INDEX_NS_FIELD not in rewritten:
        # Newer dumps do not store "ns" in their index definitions
        rewritten[INDEX_NS_FIELD] = namespace.full_namespace
    return rewritten


def _target_namespace(
    original_ns: Any, namespace: DataUnit, keep_collection_name: bool
) -> str:
    if keep_collection_name:
        _, _, original_coll = str(original_ns).partition(".")
        return f"{namespace.db}.{original_coll}"
    return namespace.full_namespace


def is_norepl_error(error: Mapping[str, Any]) -> bool:
    """Whether an error only says that write concern needs a replica set."""
    if error.get("code") == NO_REPLICATION_ENABLED:
        return True
    message = str(error.get("err", "")).lower()
    return (
        message == "norepl"
        or "standalone" in message
        or "not running with --replset" in message
    )


class IndexCreator:
    """Creates indexes on the destination and enforces their error policy."""

    def __init__(self, client, options: RestoreOptions):
        self.client = client
        self.options = options

    async def create_index(
        self,
        namespace: DataUnit,
        definition: Mapping[str, Any],
        keep_collection_name: bool,
    ) -> None:
        """
        Create one index.

        Raises:
            IndexCreationError: If the destination rejects the index
        """
        index = rewrite_index_definition(
            definition,
            namespace,
            keep_collection_name,
            keep_index_version=self.options.keep_index_version,
        )
        logger.debug(f"\tCreating index: {index}")

        await self.client.insert(f"{namespace.db}.{INDEXES_COLLECTION}", index)
        error: Optional[Dict[str, Any]] = await self.client.get_last_error(
            namespace.db, self.options.w
        )
        if not error:
            return

        if self.options.w > 1 and is_norepl_error(error):
            logger.error("Cannot specify write concern for non-replicas")
            return

        raise IndexCreationError(index[INDEX_NS_FIELD], error)
