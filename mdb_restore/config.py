"""
Restore configuration.

Options mirror the flags of the `mdb-restore restore` command. The
connection string falls back to the MONGODB_URI environment variable, which
may also come from a .env file.

This module is part of MDB_RESTORE - MongoDB Dump Restore Engine.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from .constants import DEFAULT_MONGO_URI
from .exceptions import ConfigurationError


def get_default_uri() -> str:
    """Return the connection string from the environment (or .env)."""
    load_dotenv()
    return os.getenv("MONGODB_URI", DEFAULT_MONGO_URI)


@dataclass
class RestoreOptions:
    """Options for one restore run."""

    uri: str = DEFAULT_MONGO_URI
    directory: Path = Path("dump")
    db: Optional[str] = None
    collection: Optional[str] = None
    drop: bool = False
    oplog_replay: bool = False
    oplog_limit: Optional[str] = None
    restore_options: bool = True
    restore_indexes: bool = True
    keep_index_version: bool = False
    w: int = 0

    def __post_init__(self):
        self.directory = Path(self.directory)
        # Empty overrides behave as "not given"
        self.db = self.db or None
        self.collection = self.collection or None
        self.oplog_limit = self.oplog_limit or None

    @property
    def use_db(self) -> bool:
        return self.db is not None

    @property
    def use_coll(self) -> bool:
        return self.collection is not None

    @property
    def restore_metadata(self) -> bool:
        """Whether sidecar metadata files need to be read at all."""
        return self.restore_options or self.restore_indexes

    def validate(self) -> None:
        """
        Check option combinations.

        Raises:
            ConfigurationError: If the options cannot be used together
        """
        if self.use_coll and not self.use_db:
            raise ConfigurationError(
                "need to specify a database name with --db to use --collection"
            )
        if self.oplog_limit and not self.oplog_replay:
            raise ConfigurationError("--oplog-limit requires --oplog-replay")
        if self.w < 0:
            raise ConfigurationError(f"write concern must not be negative: {self.w}")
