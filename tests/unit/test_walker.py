"""
Unit tests for the dump tree walker.

Tests traversal order, deferred index files, override layout rules and
the oplog limit guard.
"""

from pathlib import Path

import pytest

from mdb_restore.core.types import UnitKind
from mdb_restore.core.walker import classify, walk
from mdb_restore.exceptions import LayoutViolation, ReplayIneligible


def touch(path: Path) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(b"")
    return path


def names(units):
    return [unit.path.name for unit in units]


class TestClassify:
    """Test file kind detection."""

    @pytest.mark.parametrize(
        "name,kind",
        [
            ("users.bson", UnitKind.DATA),
            ("users.bin", UnitKind.DATA),
            ("users.metadata.json", UnitKind.METADATA),
            ("system.indexes.bson", UnitKind.INDEX_DATA),
            ("system.profile.bson", UnitKind.SKIP),
            ("README.txt", UnitKind.UNKNOWN),
        ],
    )
    def test_classify(self, name, kind):
        """Test each recognised file name."""
        assert classify(Path("dump/app") / name) is kind


class TestWalkOrder:
    """Test traversal order and deferred index files."""

    def test_sorted_and_recursive(self, dump_dir):
        """Test entries are visited in name order, databases included."""
        touch(dump_dir / "zoo" / "animals.bson")
        touch(dump_dir / "app" / "users.bson")
        touch(dump_dir / "app" / "orders.bson")

        units = walk(dump_dir)

        assert [(u.path.parent.name, u.path.name) for u in units] == [
            ("app", "orders.bson"),
            ("app", "users.bson"),
            ("zoo", "animals.bson"),
        ]
        assert all(unit.kind is UnitKind.DATA for unit in units)

    def test_index_file_visited_after_siblings(self, dump_dir):
        """Test system.indexes.bson comes after every other file of its directory."""
        touch(dump_dir / "app" / "alpha.bson")
        touch(dump_dir / "app" / "system.indexes.bson")
        touch(dump_dir / "app" / "zeta.bson")

        units = walk(dump_dir)

        assert names(units) == ["alpha.bson", "zeta.bson", "system.indexes.bson"]
        assert units[-1].kind is UnitKind.INDEX_DATA

    def test_index_file_ignored_when_metadata_present(self, dump_dir):
        """Test metadata sidecars replace the legacy index file."""
        touch(dump_dir / "app" / "users.bson")
        touch(dump_dir / "app" / "users.metadata.json")
        touch(dump_dir / "app" / "system.indexes.bson")

        units = walk(dump_dir)

        assert names(units) == ["users.bson"]

    def test_metadata_only_affects_its_own_directory(self, dump_dir):
        """Test a sidecar in one database does not hide another's index file."""
        touch(dump_dir / "a" / "users.bson")
        touch(dump_dir / "a" / "users.metadata.json")
        touch(dump_dir / "b" / "items.bson")
        touch(dump_dir / "b" / "system.indexes.bson")

        units = walk(dump_dir)

        assert names(units) == ["users.bson", "items.bson", "system.indexes.bson"]

    def test_hidden_entries_skipped(self, dump_dir):
        """Test dot files and dot directories are not visited."""
        touch(dump_dir / ".hidden" / "secret.bson")
        touch(dump_dir / "app" / ".DS_Store")
        touch(dump_dir / "app" / "users.bson")

        assert names(walk(dump_dir)) == ["users.bson"]

    def test_top_level_oplog_excluded(self, dump_dir):
        """Test oplog.bson at the root is left for replay."""
        touch(dump_dir / "oplog.bson")
        touch(dump_dir / "app" / "users.bson")

        assert names(walk(dump_dir)) == ["users.bson"]

    def test_nested_oplog_is_data(self, dump_dir):
        """Test only the root oplog.bson is special."""
        touch(dump_dir / "app" / "oplog.bson")

        units = walk(dump_dir)

        assert names(units) == ["oplog.bson"]
        assert units[0].kind is UnitKind.DATA

    def test_unknown_and_profile_files_reported(self, dump_dir):
        """Test ignored files are returned with their kind."""
        touch(dump_dir / "app" / "notes.txt")
        touch(dump_dir / "app" / "system.profile.bson")

        kinds = {unit.path.name: unit.kind for unit in walk(dump_dir)}

        assert kinds == {"notes.txt": UnitKind.UNKNOWN, "system.profile.bson": UnitKind.SKIP}

    def test_single_file_root(self, dump_dir):
        """Test walking a single data file."""
        data = touch(dump_dir / "app" / "users.bson")

        units = walk(data)

        assert len(units) == 1
        assert units[0].path == data


class TestWalkOverrides:
    """Test layout rules of --db and --collection."""

    def test_db_override_rejects_directories(self, dump_dir):
        """Test --db requires a flat directory."""
        touch(dump_dir / "app" / "users.bson")

        with pytest.raises(LayoutViolation, match="single database"):
            walk(dump_dir, use_db=True)

    def test_db_override_accepts_flat_directory(self, dump_dir):
        """Test --db with only files."""
        touch(dump_dir / "app" / "users.bson")
        touch(dump_dir / "app" / "orders.bson")

        assert names(walk(dump_dir / "app", use_db=True)) == ["orders.bson", "users.bson"]

    def test_db_override_ignores_hidden_directories(self, dump_dir):
        """Test hidden directories are not traversed, so they do not violate --db."""
        touch(dump_dir / "app" / ".git" / "HEAD")
        touch(dump_dir / "app" / "users.bson")

        assert names(walk(dump_dir / "app", use_db=True)) == ["users.bson"]

    def test_db_override_keeps_root_oplog(self, dump_dir):
        """Test oplog.bson is restored as data when --db is given."""
        touch(dump_dir / "app" / "oplog.bson")

        assert names(walk(dump_dir / "app", use_db=True)) == ["oplog.bson"]

    def test_collection_override_rejects_multiple_files(self, dump_dir):
        """Test --collection requires exactly one entry."""
        touch(dump_dir / "app" / "users.bson")
        touch(dump_dir / "app" / "users.metadata.json")

        with pytest.raises(LayoutViolation, match="single collection"):
            walk(dump_dir / "app", use_db=True, use_coll=True)

    def test_collection_override_single_file(self, dump_dir):
        """Test --collection with a directory holding one file."""
        touch(dump_dir / "app" / "users.bson")

        assert names(walk(dump_dir / "app", use_db=True, use_coll=True)) == ["users.bson"]


class TestWalkOplogLimit:
    """Test the oplog limit guard."""

    def test_data_with_oplog_limit_is_rejected(self, dump_dir):
        """Test a time limited replay cannot be mixed with a data restore."""
        touch(dump_dir / "oplog.bson")
        touch(dump_dir / "app" / "users.bson")

        with pytest.raises(ReplayIneligible, match="oplogLimit"):
            walk(dump_dir, oplog_limit_active=True)

    def test_oplog_only_dump_with_limit(self, dump_dir):
        """Test an oplog-only dump walks to nothing."""
        touch(dump_dir / "oplog.bson")

        assert walk(dump_dir, oplog_limit_active=True) == []

    def test_profile_file_does_not_trip_limit(self, dump_dir):
        """Test skipped files are not data units."""
        touch(dump_dir / "oplog.bson")
        touch(dump_dir / "app" / "system.profile.bson")

        units = walk(dump_dir, oplog_limit_active=True)

        assert [unit.kind for unit in units] == [UnitKind.SKIP]
