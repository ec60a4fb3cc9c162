"""
Oplog Replayer

Replays the oplog.bson captured by `mongodump --oplog` after the data has
been restored. Every check runs before anything is written, so a replay is
either refused up front or runs over the whole file.

This module is part of MDB_RESTORE - MongoDB Dump Restore Engine.
"""

import logging
from pathlib import Path
from typing import Callable, Iterable, Optional

from bson import Timestamp

from ..config import RestoreOptions
from ..constants import MIN_OPLOG_REPLAY_VERSION, OPLOG_FILE, SERVER_OPLOG_NS
from ..database.reader import read_records
from ..exceptions import ReplayIneligible
from .dispatcher import RestoreDispatcher
from .types import LogReplayUnit, OplogReplayLimit, ReplayCounters, UnitContext

logger = logging.getLogger(__name__)


def parse_oplog_limit(limit: str) -> Timestamp:
    """
    Parse "<seconds>[:<increment>]" into a Timestamp.

    A missing or empty increment means 0.

    Raises:
        ReplayIneligible: If either part is not a valid number
    """
    seconds, _, increment = limit.partition(":")
    increment = increment or "0"
    if not (seconds.isdigit() and increment.isdigit()):
        raise ReplayIneligible(
            "Could not parse oplogLimit into Timestamp from values "
            f"( {seconds} , {increment} )"
        )
    try:
        return Timestamp(int(seconds), int(increment))
    except ValueError as e:
        raise ReplayIneligible(
            "Could not parse oplogLimit into Timestamp from values "
            f"( {seconds} , {increment} ): {e}"
        ) from e


def format_timestamp(ts: Timestamp) -> str:
    return f"{ts.time}:{ts.inc}"


async def latest_server_timestamp(client) -> Optional[Timestamp]:
    """Timestamp of the newest entry in the destination's own oplog."""
    entries = await client.query(
        SERVER_OPLOG_NS, {}, {"ts": 1}, limit=1, sort=[("$natural", -1)]
    )
    if not entries:
        return None
    return entries[0].get("ts")


async def compute_replay_limit(client, bound: Timestamp) -> OplogReplayLimit:
    """
    Build the replay window (latest server entry, bound).

    Raises:
        ReplayIneligible: If the server already has entries at or past bound
    """
    latest = await latest_server_timestamp(client)
    if latest is not None and not latest < bound:
        raise ReplayIneligible(
            "The oplogLimit is not newer than the last oplog entry on the server."
        )

    limit = OplogReplayLimit(bound=bound, start_exclusive=latest)
    if latest is not None:
        logger.info(f"Latest oplog entry on the server is {format_timestamp(latest)}")
        logger.info(f"Only applying oplog entries matching this criteria: {limit.matcher}")
    return limit


async def check_replay_eligibility(
    client, options: RestoreOptions
) -> Optional[OplogReplayLimit]:
    """
    Validate an --oplog-replay request.

    Returns:
        The replay limit when --oplog-limit was given, else None

    Raises:
        ReplayIneligible: If the replay cannot be done
    """
    if options.use_db:
        raise ReplayIneligible("Can only replay oplog on full restore")

    if not (options.directory / OPLOG_FILE).exists():
        raise ReplayIneligible(
            "No oplog file to replay. Make sure you run mongodump with --oplog."
        )

    version = await client.server_version()
    if tuple(version) < MIN_OPLOG_REPLAY_VERSION:
        minimum = ".".join(str(part) for part in MIN_OPLOG_REPLAY_VERSION)
        raise ReplayIneligible(f"Can only replay oplog to server version >= {minimum}")

    if not options.oplog_limit:
        return None

    bound = parse_oplog_limit(options.oplog_limit)
    return await compute_replay_limit(client, bound)


class OplogReplayer:
    """Feeds oplog entries to the dispatcher in file order."""

    def __init__(
        self,
        dispatcher: RestoreDispatcher,
        limit: Optional[OplogReplayLimit] = None,
        reader: Optional[Callable[[Path], Iterable[dict]]] = None,
    ):
        self.dispatcher = dispatcher
        self.limit = limit
        self.counters = ReplayCounters()
        self.reader = reader or read_records

    async def replay(self, path: Path) -> ReplayCounters:
        logger.info("\t Replaying oplog")
        ctx = UnitContext(namespace=LogReplayUnit(limit=self.limit, counters=self.counters))
        for entry in self.reader(path):
            await self.dispatcher.dispatch(ctx, entry)

        logger.info(
            f"Applied {self.counters.applied} oplog entries out of "
            f"{self.counters.total} ({self.counters.skipped} skipped)."
        )
        return self.counters
