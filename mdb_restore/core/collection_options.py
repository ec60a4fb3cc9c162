"""
Collection creation from sidecar options.

This module is part of MDB_RESTORE - MongoDB Dump Restore Engine.
"""

import logging
from typing import Any, Dict, Mapping

from bson import json_util

from ..constants import CREATE_OPTION
from ..exceptions import CollectionCreationError
from .types import UNDEFINED, DataUnit

logger = logging.getLogger(__name__)


def build_create_command(namespace: DataUnit, options: Mapping[str, Any]) -> Dict[str, Any]:
    """
    Create command for the destination collection.

    {create: <name>} comes first with the destination name; the "create"
    entry of the dumped options only records the old name and is dropped,
    as is every field holding an undefined value.
    """
    command: Dict[str, Any] = {CREATE_OPTION: namespace.coll}
    for key, value in options.items():
        if key == CREATE_OPTION:
            continue
        if value is UNDEFINED:
            logger.info(f"{namespace.full_namespace}: skipping undefined field: {key}")
            continue
        command[key] = value
    return command


def options_same(requested: Mapping[str, Any], existing: Mapping[str, Any]) -> bool:
    """
    Whether two sets of collection options are equivalent.

    A "create" field present only in requested is ignored; every other field
    must appear in both with an equal value.
    """
    nfields = 0
    for key, value in requested.items():
        if key not in existing:
            if key == CREATE_OPTION:
                continue
            return False
        nfields += 1
        if existing[key] != value:
            return False
    return nfields == len(existing)


async def create_collection_with_options(
    client, namespace: DataUnit, options: Mapping[str, Any]
) -> bool:
    """
    Create the destination collection with the dumped options.

    An existing collection always wins: it is left as is, with a warning if
    its options differ.

    Returns:
        True if the collection was created

    Raises:
        CollectionCreationError: If the create command fails
    """
    command = build_create_command(namespace, options)

    info = await client.get_collection_info(namespace.full_namespace)
    if info is not None:
        existing = info.get("options")
        if existing is None or not options_same(command, existing):
            logger.warning(
                f"WARNING: collection {namespace.full_namespace} exists with different "
                "options than are in the metadata.json file and not using --drop. "
                "Options in the metadata file will be ignored."
            )
        return False

    reply = await client.run_command(namespace.db, command)
    if not reply.get("ok"):
        raise CollectionCreationError(namespace.full_namespace, reply.get("errmsg"))

    logger.info(
        f"\tCreated collection {namespace.full_namespace} with options: "
        f"{json_util.dumps(command)}"
    )
    return True
