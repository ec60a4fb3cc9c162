"""
Data model of a restore run.

Units and namespace contexts are transient and re-derived for every step of
the traversal. Metadata and the privilege retention set live for one unit.
Replay limit and counters live for the whole run.

This module is part of MDB_RESTORE - MongoDB Dump Restore Engine.
"""

import operator
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Set, Union

from bson import Timestamp

from ..exceptions import ReplayIneligible


class UnitKind(str, Enum):
    DATA = "data"
    INDEX_DATA = "index_data"
    METADATA = "metadata"
    UNKNOWN = "unknown"
    SKIP = "skip"


@dataclass(frozen=True)
class RestoreUnit:
    """One file found in the dump tree."""

    path: Path
    kind: UnitKind

    @property
    def restorable(self) -> bool:
        return self.kind in (UnitKind.DATA, UnitKind.INDEX_DATA)


class _Undefined:
    """Marker for BSON "undefined" values found in metadata files."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNDEFINED"

    def __bool__(self) -> bool:
        return False


UNDEFINED = _Undefined()


@dataclass(frozen=True)
class CollectionMetadata:
    """
    Contents of a <collection>.metadata.json sidecar.

    `indexes` is None when the sidecar has no "indexes" key, which differs
    from an empty list.
    """

    options: Optional[Dict[str, Any]] = None
    indexes: Optional[List[Dict[str, Any]]] = None


@dataclass
class ReplayCounters:
    applied: int = 0
    skipped: int = 0

    @property
    def total(self) -> int:
        return self.applied + self.skipped


# Query operators a replay matcher may use
_MATCH_OPERATORS = {
    "$gt": operator.gt,
    "$lt": operator.lt,
}


@dataclass(frozen=True)
class OplogReplayLimit:
    """
    Upper bound (and optional exclusive lower bound) on replayed entries.

    The window is held as a query document, {"ts": {"$gt": start, "$lt":
    bound}}; matches() evaluates that same document against each entry.

    Raises:
        ReplayIneligible: If start_exclusive is not older than bound
    """

    bound: Timestamp
    start_exclusive: Optional[Timestamp] = None
    matcher: Dict[str, Any] = field(init=False, default_factory=dict)

    def __post_init__(self):
        if self.start_exclusive is not None and not self.start_exclusive < self.bound:
            raise ReplayIneligible(
                "The oplogLimit is not newer than the last oplog entry on the server."
            )
        ts_restrict: Dict[str, Timestamp] = {}
        if self.start_exclusive is not None:
            ts_restrict["$gt"] = self.start_exclusive
        ts_restrict["$lt"] = self.bound
        object.__setattr__(self, "matcher", {"ts": ts_restrict})

    def matches(self, entry: Mapping[str, Any]) -> bool:
        """Whether an oplog entry satisfies the matcher."""
        for key, conditions in self.matcher.items():
            value = entry.get(key)
            for op, operand in conditions.items():
                if not isinstance(value, type(operand)):
                    return False
                if not _MATCH_OPERATORS[op](value, operand):
                    return False
        return True


@dataclass(frozen=True)
class DataUnit:
    """Namespace context while restoring a collection file."""

    db: str
    coll: str

    @property
    def full_namespace(self) -> str:
        return f"{self.db}.{self.coll}"


@dataclass(frozen=True)
class LogReplayUnit:
    """Namespace context while replaying oplog.bson."""

    limit: Optional[OplogReplayLimit]
    counters: ReplayCounters


NamespaceContext = Union[DataUnit, LogReplayUnit]


@dataclass
class UnitContext:
    """
    State of the unit currently being restored.

    Passed explicitly to every pipeline stage and to the dispatcher.
    """

    namespace: NamespaceContext
    unit: Optional[RestoreUnit] = None
    metadata: Optional[CollectionMetadata] = None
    retention: Set[str] = field(default_factory=set)
    records: int = 0


@dataclass
class RestoreReport:
    """Summary of a completed run."""

    units_restored: int = 0
    units_skipped: int = 0
    records_loaded: int = 0
    namespaces: List[str] = field(default_factory=list)
    replay: Optional[ReplayCounters] = None
