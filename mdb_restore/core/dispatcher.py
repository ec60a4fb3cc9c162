"""
Restore Object Dispatcher

Decides what to do with one decoded record, based only on the current
unit context and the record itself:

1. oplog replay      -> applyOps on the entry's own database
2. system.indexes    -> index creation, keeping the indexed collection name
3. system.users with --drop, user already on the destination
                     -> replace the existing user document
4. anything else     -> plain insert

This module is part of MDB_RESTORE - MongoDB Dump Restore Engine.
"""

import logging
from typing import Any, Dict, Mapping

from ..config import RestoreOptions
from ..constants import INDEXES_COLLECTION, USER_ID_FIELD, USERS_COLLECTION
from ..exceptions import AcknowledgementError
from .indexes import IndexCreator
from .types import DataUnit, LogReplayUnit, UnitContext

logger = logging.getLogger(__name__)


class RestoreDispatcher:
    """Routes records to the destination."""

    def __init__(self, client, options: RestoreOptions, index_creator: IndexCreator):
        self.client = client
        self.options = options
        self.index_creator = index_creator

    async def dispatch(self, ctx: UnitContext, record: Mapping[str, Any]) -> None:
        match ctx.namespace:
            case LogReplayUnit() as replay:
                await self._apply_oplog_entry(replay, record)
            case DataUnit(coll=coll) as namespace if coll == INDEXES_COLLECTION:
                await self.index_creator.create_index(
                    namespace, record, keep_collection_name=True
                )
            case DataUnit() as namespace if self._pending_user(ctx, namespace, record):
                await self._replace_user(ctx, namespace, record)
            case DataUnit() as namespace:
                await self._insert(namespace, record)

    def _pending_user(
        self, ctx: UnitContext, namespace: DataUnit, record: Mapping[str, Any]
    ) -> bool:
        return (
            self.options.drop
            and namespace.coll == USERS_COLLECTION
            and record.get(USER_ID_FIELD) in ctx.retention
        )

    async def _apply_oplog_entry(
        self, replay: LogReplayUnit, entry: Mapping[str, Any]
    ) -> None:
        # no-ops count neither as applied nor as skipped
        if str(entry.get("op", ""))[:1] == "n":
            return

        if replay.limit is not None and not replay.limit.matches(entry):
            replay.counters.skipped += 1
            return

        db = str(entry.get("ns", "")).split(".", 1)[0]
        command: Dict[str, Any] = {"applyOps": [entry]}
        if self.options.w > 0:
            # Blocks until w members have applied the entry
            command["writeConcern"] = {"w": self.options.w}
        reply = await self.client.run_command(db, command)
        replay.counters.applied += 1
        if not reply.get("ok"):
            logger.error(f"Error while replaying oplog: {reply.get('errmsg')}")

        if self.options.w > 0:
            await self._report_acknowledgement(db, db, "Error while replaying oplog: ")

    async def _replace_user(
        self, ctx: UnitContext, namespace: DataUnit, record: Mapping[str, Any]
    ) -> None:
        # System collections can't be dropped, so existing users are replaced
        user = record[USER_ID_FIELD]
        await self.client.update(namespace.full_namespace, {USER_ID_FIELD: user}, record)
        ctx.retention.discard(user)

    async def _insert(self, namespace: DataUnit, record: Mapping[str, Any]) -> None:
        await self.client.insert(namespace.full_namespace, record)
        if self.options.w > 0:
            await self._report_acknowledgement(namespace.db, namespace.full_namespace)

    async def _report_acknowledgement(self, db: str, target: str, prefix: str = "") -> None:
        error = await self.client.get_last_error(db, self.options.w)
        if error:
            logger.error(f"{prefix}{AcknowledgementError(target, error)}")
