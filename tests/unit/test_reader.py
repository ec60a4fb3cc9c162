"""
Unit tests for the dump file reader.
"""

import datetime

import bson
import pytest
from bson import DatetimeMS, ObjectId

from mdb_restore.database.reader import read_records
from mdb_restore.exceptions import RecordReadError


class TestReadRecords:
    """Test streaming records out of a BSON dump file."""

    def test_file_order(self, tmp_path, bson_file):
        """Test documents come back in file order with their types."""
        oid = ObjectId()
        when = datetime.datetime(2024, 5, 1, 12, 0, tzinfo=datetime.timezone.utc)
        path = bson_file(
            tmp_path / "app" / "events.bson",
            [{"_id": oid, "at": when}, {"_id": 2, "tags": ["a", "b"]}],
        )

        records = list(read_records(path))

        assert records == [{"_id": oid, "at": when}, {"_id": 2, "tags": ["a", "b"]}]

    def test_empty_file(self, tmp_path, bson_file):
        path = bson_file(tmp_path / "app" / "empty.bson", [])

        assert list(read_records(path)) == []

    def test_truncated_file(self, tmp_path):
        """Test a cut-off document raises RecordReadError."""
        path = tmp_path / "broken.bson"
        path.write_bytes(bson.encode({"_id": 1}) + bson.encode({"_id": 2})[:7])

        records = read_records(path)

        assert next(records) == {"_id": 1}
        with pytest.raises(RecordReadError, match="broken.bson"):
            next(records)

    def test_date_outside_datetime_range(self, tmp_path, bson_file):
        """Test a date MongoDB accepts but datetime cannot hold is kept as is."""
        far_future = DatetimeMS(253402300801000)
        path = bson_file(tmp_path / "app" / "events.bson", [{"_id": 1, "at": far_future}])

        records = list(read_records(path))

        assert records == [{"_id": 1, "at": far_future}]
        assert bson.encode(records[0]) == bson.encode({"_id": 1, "at": far_future})
