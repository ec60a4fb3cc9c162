"""
Exceptions raised while restoring a dump.

Every fatal condition is a RestoreError subclass; the CLI turns any of them
into a non-zero exit status.

This module is part of MDB_RESTORE - MongoDB Dump Restore Engine.
"""

from typing import Any, Dict, Optional


class RestoreError(Exception):
    """Base class for all fatal restore errors."""


class ConfigurationError(RestoreError):
    """Invalid combination of restore options."""


class LayoutViolation(RestoreError):
    """The dump tree does not match the requested --db/--collection mode."""


class EmptyNamespace(RestoreError):
    """A data file resolved to an empty database name."""


class MetadataParseError(RestoreError):
    """A *.metadata.json sidecar could not be parsed."""

    def __init__(self, path, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Could not parse metadata file {path}: {reason}")


class AcknowledgementError(RestoreError):
    """
    A write was not acknowledged by the destination.

    Data writes only log this; it is not raised out of the dispatcher.
    """

    def __init__(self, namespace: str, error: Dict[str, Any]):
        self.namespace = namespace
        self.error = error
        code = error.get("code")
        prefix = f"{code} " if code is not None else ""
        super().__init__(f"{namespace}: {prefix}{error.get('err')}")


class IndexCreationError(RestoreError):
    """An index definition was rejected by the destination."""

    def __init__(self, namespace: str, error: Dict[str, Any]):
        self.namespace = namespace
        self.error = error
        code = error.get("code")
        code_str = f"{code} " if code is not None else ""
        super().__init__(
            f"Error creating index {namespace}: {code_str}{error.get('err')}"
        )


class CollectionCreationError(RestoreError):
    """The create command for a collection failed."""

    def __init__(self, namespace: str, errmsg: Optional[str]):
        self.namespace = namespace
        self.errmsg = errmsg
        super().__init__(f"Creating collection {namespace} failed. Errmsg: {errmsg}")


class ReplayIneligible(RestoreError):
    """Oplog replay cannot run against this dump or destination."""


class DestinationIneligible(RestoreError):
    """The destination server cannot accept this restore."""


class RecordReadError(RestoreError):
    """A dump file contains data that is not valid BSON."""
