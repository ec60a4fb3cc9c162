"""
Destination Server Client

Narrow async facade over motor used by the restore engine. It keeps the
shape of the legacy connection API the engine was designed against: writes
never raise on a server-side failure, the failure is remembered instead and
reported by get_last_error(), exactly like the old per-connection
getLastError command.

Inserts into "<db>.system.indexes" are translated into createIndexes
commands, which is how current servers accept index definitions.

This module is part of MDB_RESTORE - MongoDB Dump Restore Engine.
"""

import logging
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from motor.motor_asyncio import AsyncIOMotorClient
from pymongo import WriteConcern
from pymongo.errors import ConnectionFailure, OperationFailure

from ..constants import INDEX_NS_FIELD, INDEXES_COLLECTION
from ..exceptions import DestinationIneligible

logger = logging.getLogger(__name__)


def split_namespace(ns: str) -> Tuple[str, str]:
    """Split "db.coll.name" into ("db", "coll.name")."""
    db, _, coll = ns.partition(".")
    return db, coll


def error_document(error: OperationFailure) -> Dict[str, Any]:
    """Legacy getLastError-style document for a driver error."""
    details = error.details or {}
    message = details.get("errmsg") or str(error)
    return {"err": message, "code": error.code}


class DestinationClient:
    """
    Connection to the server being restored into.

    Usage:
        async with DestinationClient(uri, w=2) as client:
            await client.insert("db.coll", {"_id": 1})
            error = await client.get_last_error("db", 2)
    """

    def __init__(self, uri: str, w: int = 0):
        """
        Args:
            uri: MongoDB connection string
            w: Write concern for every write (0 uses the server default)
        """
        self.uri = uri
        self.w = w
        self._client: Optional[AsyncIOMotorClient] = None
        self._last_error: Optional[Dict[str, Any]] = None
        self._hello: Optional[Dict[str, Any]] = None

    async def connect(self) -> None:
        """
        Open the connection and make sure the server answers.

        Raises:
            DestinationIneligible: If the server cannot be reached
        """
        if self._client is not None:
            return
        self._client = AsyncIOMotorClient(self.uri)
        try:
            await self._client.admin.command("ping")
        except ConnectionFailure as e:
            self._client.close()
            self._client = None
            raise DestinationIneligible(f"Failed to connect to MongoDB: {e}") from e
        logger.info(f"Connected to {self.uri}")

    def close(self) -> None:
        if self._client is not None:
            self._client.close()
            self._client = None

    async def __aenter__(self) -> "DestinationClient":
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        self.close()

    @property
    def client(self) -> AsyncIOMotorClient:
        if self._client is None:
            raise RuntimeError("DestinationClient not connected. Call connect() first.")
        return self._client

    def _collection(self, ns: str):
        db_name, coll_name = split_namespace(ns)
        write_concern = WriteConcern(w=self.w) if self.w > 0 else None
        return self.client[db_name].get_collection(coll_name, write_concern=write_concern)

    def _remember(self, error: Optional[OperationFailure]) -> None:
        if error is None:
            self._last_error = None
            return
        self._last_error = error_document(error)
        logger.debug(f"Write failed: {self._last_error}")

    # Writes

    async def insert(self, ns: str, document: Mapping[str, Any]) -> None:
        db_name, coll_name = split_namespace(ns)
        if coll_name == INDEXES_COLLECTION:
            await self._create_index(db_name, document)
            return
        try:
            await self._collection(ns).insert_one(dict(document))
        except OperationFailure as e:
            self._remember(e)
        else:
            self._remember(None)

    async def _create_index(self, db_name: str, definition: Mapping[str, Any]) -> None:
        _, target = split_namespace(definition[INDEX_NS_FIELD])
        index = {k: v for k, v in definition.items() if k != INDEX_NS_FIELD}
        command: Dict[str, Any] = {"createIndexes": target, "indexes": [index]}
        if self.w > 0:
            command["writeConcern"] = {"w": self.w}
        try:
            await self.client[db_name].command(command)
        except OperationFailure as e:
            self._remember(e)
        else:
            self._remember(None)

    async def update(
        self, ns: str, query: Mapping[str, Any], document: Mapping[str, Any]
    ) -> None:
        """Replace the first document matching query; no upsert."""
        try:
            await self._collection(ns).replace_one(query, dict(document))
        except OperationFailure as e:
            self._remember(e)
        else:
            self._remember(None)

    async def remove(self, ns: str, query: Mapping[str, Any]) -> None:
        try:
            await self._collection(ns).delete_many(query)
        except OperationFailure as e:
            self._remember(e)
        else:
            self._remember(None)

    async def drop_collection(self, ns: str) -> None:
        db_name, coll_name = split_namespace(ns)
        await self.client[db_name].drop_collection(coll_name)

    async def get_last_error(self, db: str, w: int = 0) -> Optional[Dict[str, Any]]:
        """
        Error of the most recent write on this connection, or None.

        Writes already wait for the configured write concern, so by the time
        this is called the w members have acknowledged (or the wait failed
        and the failure is what gets returned).
        """
        return self._last_error

    # Commands and reads

    async def run_command(self, db: str, command: Mapping[str, Any]) -> Dict[str, Any]:
        """
        Run a command and return the server reply.

        Failed commands are not raised; the reply has ok=0 and errmsg set.
        """
        try:
            reply = await self.client[db].command(dict(command))
        except OperationFailure as e:
            self._remember(e)
            reply = dict(e.details or {})
            reply.setdefault("ok", 0)
            reply.setdefault("errmsg", str(e))
            return reply
        self._remember(None)
        return reply

    async def query(
        self,
        ns: str,
        filter: Optional[Mapping[str, Any]] = None,
        projection: Optional[Mapping[str, Any]] = None,
        limit: int = 0,
        sort: Optional[Sequence[Tuple[str, int]]] = None,
    ) -> List[Dict[str, Any]]:
        cursor = self._collection(ns).find(dict(filter or {}), projection)
        if sort:
            cursor = cursor.sort(list(sort))
        if limit:
            cursor = cursor.limit(limit)
        return await cursor.to_list(length=None)

    async def get_collection_info(self, ns: str) -> Optional[Dict[str, Any]]:
        """listCollections entry for ns, or None if it does not exist."""
        db_name, coll_name = split_namespace(ns)
        cursor = await self.client[db_name].list_collections(filter={"name": coll_name})
        infos = await cursor.to_list(length=None)
        return infos[0] if infos else None

    async def _hello_reply(self) -> Dict[str, Any]:
        if self._hello is None:
            self._hello = await self.client.admin.command("isMaster")
        return self._hello

    async def is_master(self) -> bool:
        reply = await self._hello_reply()
        return bool(reply.get("isWritablePrimary", reply.get("ismaster", False)))

    async def is_router_process(self) -> bool:
        reply = await self._hello_reply()
        return reply.get("msg") == "isdbgrid"

    async def server_version(self) -> Tuple[int, ...]:
        """Version of the destination server as (major, minor, patch)."""
        info = await self.client.admin.command("buildInfo")
        version_array = info.get("versionArray")
        if version_array:
            return tuple(int(part) for part in version_array[:3])
        parts = []
        for part in str(info.get("version", "0")).split("-")[0].split(".")[:3]:
            parts.append(int(part) if part.isdigit() else 0)
        return tuple(parts)
