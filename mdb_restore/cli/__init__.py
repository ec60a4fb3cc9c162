"""
CLI tool for MDB_RESTORE.

This module provides command-line tools for:
- Restoring a dump directory into a MongoDB server
- Showing what a restore would do, without connecting

This module is part of MDB_RESTORE - MongoDB Dump Restore Engine.
"""

__all__ = []
