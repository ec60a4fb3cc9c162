"""
Restore Orchestrator

Drives a whole restore run:

    checks -> walk -> per-unit pipeline -> oplog replay

Per data unit the pipeline is

    Init -> DropOrSnapshot -> CreateCollection -> Load -> PostIndexes
         -> Reconcile -> Done

Every stage receives the UnitContext of the unit being restored; nothing
about a unit outlives its pipeline. Fatal conditions raise a RestoreError and
end the run (writes already made stay on the destination). Advisories are
only logged.

This module is part of MDB_RESTORE - MongoDB Dump Restore Engine.
"""

import logging
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, Optional

from ..config import RestoreOptions
from ..constants import (
    OPLOG_FILE,
    SHARDED_CONFIG_DIR,
    USER_ID_FIELD,
    USERS_COLLECTION,
)
from ..database.reader import read_records
from ..exceptions import DestinationIneligible
from .collection_options import create_collection_with_options
from .dispatcher import RestoreDispatcher
from .indexes import IndexCreator
from .namespace import load_metadata, resolve_namespace
from .oplog import OplogReplayer, check_replay_eligibility
from .types import (
    DataUnit,
    OplogReplayLimit,
    RestoreReport,
    RestoreUnit,
    UnitContext,
    UnitKind,
)
from .walker import walk

logger = logging.getLogger(__name__)

RecordReader = Callable[[Path], Iterable[Dict[str, Any]]]


class RestoreEngine:
    """
    Restores a dump directory into a destination server.

    Usage:
        async with DestinationClient(options.uri, w=options.w) as client:
            report = await RestoreEngine(client, options).run()
    """

    def __init__(
        self,
        client,
        options: RestoreOptions,
        reader: Optional[RecordReader] = None,
    ):
        """
        Args:
            client: Connected destination client
            options: Restore options (validated in run())
            reader: Record reader for dump files (default: BSON file reader)
        """
        self.client = client
        self.options = options
        self.reader = reader or read_records
        self.index_creator = IndexCreator(client, options)
        self.dispatcher = RestoreDispatcher(client, options, self.index_creator)

    async def run(self) -> RestoreReport:
        """
        Run the whole restore.

        Raises:
            RestoreError: On any fatal condition
        """
        options = self.options
        options.validate()
        root = options.directory

        await self._check_destination(root)

        replay_limit: Optional[OplogReplayLimit] = None
        if options.oplog_replay:
            replay_limit = await check_replay_eligibility(self.client, options)

        units = walk(
            root,
            use_db=options.use_db,
            use_coll=options.use_coll,
            oplog_limit_active=replay_limit is not None,
        )

        report = RestoreReport()
        for unit in units:
            if not unit.restorable:
                self._log_ignored(unit)
                report.units_skipped += 1
                continue
            ctx = await self.restore_unit(unit)
            report.units_restored += 1
            report.records_loaded += ctx.records
            report.namespaces.append(ctx.namespace.full_namespace)

        error = await self.client.get_last_error(options.db or "admin", options.w)
        if error:
            logger.error(error.get("err"))

        if options.oplog_replay:
            replayer = OplogReplayer(self.dispatcher, replay_limit, reader=self.reader)
            report.replay = await replayer.replay(root / OPLOG_FILE)

        return report

    async def _check_destination(self, root: Path) -> None:
        if not await self.client.is_master():
            raise DestinationIneligible(
                "Destination is not a primary; cannot restore to a server that can't write"
            )
        if (
            not self.options.use_db
            and await self.client.is_router_process()
            and (root / SHARDED_CONFIG_DIR).exists()
        ):
            raise DestinationIneligible("Cannot do a full restore on a sharded system")

    def _log_ignored(self, unit: RestoreUnit) -> None:
        if unit.kind is UnitKind.SKIP:
            logger.info(f"{unit.path}")
            logger.info(f"\t skipping {unit.path.name}")
        else:
            logger.warning(f"don't know what to do with file [{unit.path}]")

    # Per-unit pipeline

    async def restore_unit(self, unit: RestoreUnit) -> UnitContext:
        """Run every pipeline stage for one data unit."""
        ctx = self._init(unit)
        if unit.kind is UnitKind.INDEX_DATA:
            # Legacy index file: every record is an index definition
            await self._load(ctx)
            return ctx
        await self._drop_or_snapshot(ctx)
        await self._create_collection(ctx)
        await self._load(ctx)
        await self._post_indexes(ctx)
        await self._reconcile(ctx)
        return ctx

    def _is_privilege_collection(self, ctx: UnitContext) -> bool:
        return ctx.namespace.coll == USERS_COLLECTION

    def _init(self, unit: RestoreUnit) -> UnitContext:
        logger.info(f"{unit.path}")
        namespace = resolve_namespace(unit, self.options.db, self.options.collection)
        metadata = load_metadata(unit) if self.options.restore_metadata else None
        logger.info(f"\tgoing into namespace [{namespace.full_namespace}]")
        return UnitContext(namespace=namespace, unit=unit, metadata=metadata)

    async def _drop_or_snapshot(self, ctx: UnitContext) -> None:
        namespace: DataUnit = ctx.namespace
        if self.options.drop:
            if self._is_privilege_collection(ctx):
                # Can't drop system.users: remember who is there instead
                existing = await self.client.query(
                    namespace.full_namespace, {}, {USER_ID_FIELD: 1}
                )
                ctx.retention = {
                    doc[USER_ID_FIELD] for doc in existing if USER_ID_FIELD in doc
                }
            else:
                logger.info("\t dropping")
                await self.client.drop_collection(namespace.full_namespace)
            return

        if await self.client.get_collection_info(namespace.full_namespace) is not None:
            logger.warning(
                f"Restoring to {namespace.full_namespace} without dropping. Restored data "
                "will be inserted without raising errors; check your server log"
            )

    async def _create_collection(self, ctx: UnitContext) -> None:
        if not self.options.restore_options:
            return
        if ctx.metadata is None or ctx.metadata.options is None:
            return
        await create_collection_with_options(
            self.client, ctx.namespace, ctx.metadata.options
        )

    async def _load(self, ctx: UnitContext) -> None:
        for record in self.reader(ctx.unit.path):
            await self.dispatcher.dispatch(ctx, record)
            ctx.records += 1
        logger.info(f"\t {ctx.records} objects found")

    async def _post_indexes(self, ctx: UnitContext) -> None:
        if not self.options.restore_indexes:
            return
        if ctx.metadata is None or ctx.metadata.indexes is None:
            return
        for definition in ctx.metadata.indexes:
            await self.index_creator.create_index(
                ctx.namespace, definition, keep_collection_name=False
            )

    async def _reconcile(self, ctx: UnitContext) -> None:
        if not (self.options.drop and self._is_privilege_collection(ctx)):
            return
        # Users that existed before but were not in the dump
        namespace: DataUnit = ctx.namespace
        for user in sorted(ctx.retention):
            await self.client.remove(namespace.full_namespace, {USER_ID_FIELD: user})
        ctx.retention.clear()

