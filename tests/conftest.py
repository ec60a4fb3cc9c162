"""
Shared fixtures for MDB_RESTORE tests.

FakeDestination is an in-memory stand-in for DestinationClient: it keeps
documents per namespace, records every call in order and reproduces the
"remember the last error" behaviour of the real client.
"""

import json
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Tuple

import bson
import pytest

from mdb_restore.config import RestoreOptions


def _matches(document: Dict[str, Any], query: Dict[str, Any]) -> bool:
    return all(document.get(key) == value for key, value in query.items())


class FakeDestination:
    """In-memory destination server."""

    def __init__(
        self,
        master: bool = True,
        router: bool = False,
        version: Tuple[int, ...] = (7, 0, 2),
    ):
        self.master = master
        self.router = router
        self.version = version
        self.collections: Dict[str, List[Dict[str, Any]]] = {}
        self.options: Dict[str, Dict[str, Any]] = {}
        self.indexes: List[Dict[str, Any]] = []
        self.commands: List[Tuple[str, Dict[str, Any]]] = []
        self.calls: List[Tuple[str, str]] = []
        self.dropped: List[str] = []
        # Error documents to report for writes to a namespace
        self.write_errors: Dict[str, Dict[str, Any]] = {}
        self.index_error: Optional[Dict[str, Any]] = None
        self.command_replies: Dict[str, Dict[str, Any]] = {}
        self._last_error: Optional[Dict[str, Any]] = None

    def seed(self, ns: str, documents: Iterable[Dict[str, Any]], options=None) -> None:
        self.collections[ns] = [dict(doc) for doc in documents]
        self.options[ns] = dict(options or {})

    def documents(self, ns: str) -> List[Dict[str, Any]]:
        return self.collections.get(ns, [])

    async def insert(self, ns: str, document: Dict[str, Any]) -> None:
        self.calls.append(("insert", ns))
        if ns.endswith(".system.indexes"):
            self.indexes.append(dict(document))
            self._last_error = self.index_error
            return
        if ns in self.write_errors:
            self._last_error = self.write_errors[ns]
            return
        self.collections.setdefault(ns, []).append(dict(document))
        self.options.setdefault(ns, {})
        self._last_error = None

    async def update(self, ns: str, query: Dict[str, Any], document: Dict[str, Any]) -> None:
        self.calls.append(("update", ns))
        documents = self.collections.get(ns, [])
        for i, existing in enumerate(documents):
            if _matches(existing, query):
                documents[i] = dict(document)
                break
        self._last_error = None

    async def remove(self, ns: str, query: Dict[str, Any]) -> None:
        self.calls.append(("remove", ns))
        self.collections[ns] = [
            doc for doc in self.collections.get(ns, []) if not _matches(doc, query)
        ]
        self._last_error = None

    async def drop_collection(self, ns: str) -> None:
        self.calls.append(("drop", ns))
        self.dropped.append(ns)
        self.collections.pop(ns, None)
        self.options.pop(ns, None)

    async def run_command(self, db: str, command: Dict[str, Any]) -> Dict[str, Any]:
        name = next(iter(command))
        self.calls.append(("command", f"{db}.{name}"))
        self.commands.append((db, dict(command)))
        reply = self.command_replies.get(name, {"ok": 1})
        if name == "create" and reply.get("ok"):
            ns = f"{db}.{command['create']}"
            self.collections.setdefault(ns, [])
            self.options[ns] = {k: v for k, v in command.items() if k != "create"}
        return reply

    async def query(
        self,
        ns: str,
        filter: Optional[Dict[str, Any]] = None,
        projection: Optional[Dict[str, Any]] = None,
        limit: int = 0,
        sort: Optional[List[Tuple[str, int]]] = None,
    ) -> List[Dict[str, Any]]:
        self.calls.append(("query", ns))
        documents = [
            dict(doc) for doc in self.collections.get(ns, []) if _matches(doc, filter or {})
        ]
        if sort and sort[0] == ("$natural", -1):
            documents.reverse()
        if limit:
            documents = documents[:limit]
        return documents

    async def get_collection_info(self, ns: str) -> Optional[Dict[str, Any]]:
        if ns not in self.collections:
            return None
        return {"name": ns.split(".", 1)[1], "type": "collection", "options": self.options[ns]}

    async def get_last_error(self, db: str, w: int = 0) -> Optional[Dict[str, Any]]:
        return self._last_error

    async def is_master(self) -> bool:
        return self.master

    async def is_router_process(self) -> bool:
        return self.router

    async def server_version(self) -> Tuple[int, ...]:
        return self.version


def write_bson(path: Path, documents: Iterable[Dict[str, Any]]) -> Path:
    """Write documents the way mongodump does: concatenated BSON."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(b"".join(bson.encode(doc) for doc in documents))
    return path


def write_metadata(path: Path, metadata: Dict[str, Any]) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(metadata), encoding="utf-8")
    return path


@pytest.fixture
def destination():
    """Empty writable destination."""
    return FakeDestination()


@pytest.fixture
def dump_dir(tmp_path):
    """Empty dump directory."""
    root = tmp_path / "dump"
    root.mkdir()
    return root


@pytest.fixture
def restore_options(dump_dir):
    """Default options pointing at dump_dir."""
    return RestoreOptions(uri="mongodb://localhost:27017", directory=dump_dir)


@pytest.fixture
def bson_file():
    """Writer for dump data files."""
    return write_bson


@pytest.fixture
def metadata_file():
    """Writer for *.metadata.json sidecars."""
    return write_metadata


@pytest.fixture
def destination_factory():
    """Build destinations with a non-default topology or version."""
    return FakeDestination
