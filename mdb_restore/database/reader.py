"""
Record reader for dump files.

Dump files are concatenated BSON documents; they are decoded lazily so a
collection never has to fit in memory.

This module is part of MDB_RESTORE - MongoDB Dump Restore Engine.
"""

import logging
from pathlib import Path
from typing import Any, Dict, Iterator

from bson import decode_file_iter
from bson.codec_options import CodecOptions, DatetimeConversion
from bson.errors import InvalidBSON

from ..exceptions import RecordReadError

logger = logging.getLogger(__name__)

# Dates outside the datetime range (e.g. year 10000) decode as DatetimeMS
# and are written back unchanged
DUMP_CODEC_OPTIONS = CodecOptions(
    tz_aware=True, datetime_conversion=DatetimeConversion.DATETIME_AUTO
)


def read_records(path: Path) -> Iterator[Dict[str, Any]]:
    """
    Yield the documents of a dump file in file order.

    Raises:
        RecordReadError: If the file contains invalid BSON
    """
    path = Path(path)
    with path.open("rb") as fh:
        try:
            yield from decode_file_iter(fh, codec_options=DUMP_CODEC_OPTIONS)
        except InvalidBSON as e:
            raise RecordReadError(f"{path}: {e}") from e
