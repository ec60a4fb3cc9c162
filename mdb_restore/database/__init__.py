"""
Adapters to the outside world: dump file reader and destination client.

This module is part of MDB_RESTORE - MongoDB Dump Restore Engine.
"""

from .client import DestinationClient
from .reader import read_records

__all__ = [
    "DestinationClient",
    "read_records",
]
