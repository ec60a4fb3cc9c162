"""
Core restore components.

This module contains the dump tree walker, the namespace resolver, the
per-collection restore pipeline and the oplog replayer.
"""

from .dispatcher import RestoreDispatcher
from .engine import RestoreEngine
from .indexes import IndexCreator
from .namespace import load_metadata, parse_metadata, resolve_namespace
from .oplog import (
    OplogReplayer,
    check_replay_eligibility,
    compute_replay_limit,
    parse_oplog_limit,
)
from .types import (
    UNDEFINED,
    CollectionMetadata,
    DataUnit,
    LogReplayUnit,
    NamespaceContext,
    OplogReplayLimit,
    ReplayCounters,
    RestoreReport,
    RestoreUnit,
    UnitContext,
    UnitKind,
)
from .walker import classify, walk

__all__ = [
    # Orchestration
    "RestoreEngine",
    "RestoreDispatcher",
    "IndexCreator",
    "OplogReplayer",
    # Functions
    "walk",
    "classify",
    "resolve_namespace",
    "load_metadata",
    "parse_metadata",
    "parse_oplog_limit",
    "compute_replay_limit",
    "check_replay_eligibility",
    # Types
    "UNDEFINED",
    "UnitKind",
    "RestoreUnit",
    "DataUnit",
    "LogReplayUnit",
    "NamespaceContext",
    "UnitContext",
    "CollectionMetadata",
    "OplogReplayLimit",
    "ReplayCounters",
    "RestoreReport",
]
