"""
Unit tests for pipeline/registry.py — the data_files table.
"""
import sqlite3
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from conftest import TEST_USER, register, write_call_log
from pipeline.errors import IngestionError, NotFoundError
from pipeline.registry import FileRegistry, init_registry


class TestInitRegistry:
    def test_creates_table(self, db_conn):
        tables = {r[0] for r in db_conn.execute(
            "SELECT name FROM sqlite_master WHERE type='table'")}
        assert "data_files" in tables

    def test_idempotent(self, db_conn):
        init_registry(db_conn)
        init_registry(db_conn)


class TestCreateAndGet:
    def test_create_returns_active_record(self, registry, data_dir):
        path = write_call_log(data_dir, "a.csv", ["CallerID"], [["555"]])
        f = register(registry, path, ["CallerID"], 1, original_name="calls.csv")
        assert f.id > 0
        assert f.active is True
        assert f.original_name == "calls.csv"
        assert f.columns == ["CallerID"]
        assert f.uploaded_by == TEST_USER
        assert f.created_at

    def test_to_dict_is_camel_case(self, registry, data_dir):
        path = write_call_log(data_dir, "a.csv", ["CallerID"], [["555"]])
        d = register(registry, path, ["CallerID"], 1).to_dict()
        assert d["originalName"] == "a.csv"
        assert d["rowCount"] == 1
        assert d["active"] is True
        assert "storedPath" in d

    def test_get_missing_raises(self, registry):
        with pytest.raises(NotFoundError):
            registry.get(999)


class TestListing:
    def test_list_in_upload_order(self, registry, data_dir):
        for name in ("first.csv", "second.csv", "third.csv"):
            path = write_call_log(data_dir, name, ["a"], [["1"]])
            register(registry, path, ["a"], 1)
        names = [f.original_name for f in registry.list_active()]
        assert names == ["first.csv", "second.csv", "third.csv"]

    def test_inactive_hidden_by_default(self, registry, data_dir):
        path = write_call_log(data_dir, "a.csv", ["a"], [["1"]])
        f = register(registry, path, ["a"], 1)
        registry.deactivate(f.id)
        assert registry.list_files() == []
        assert [x.id for x in registry.list_files(include_inactive=True)] == [f.id]

    def test_list_active_wraps_sqlite_errors(self):
        conn = sqlite3.connect(":memory:")
        with pytest.raises(IngestionError):
            FileRegistry(conn).list_active()


class TestDeactivateRestore:
    def test_soft_delete_keeps_bytes(self, registry, data_dir):
        path = write_call_log(data_dir, "a.csv", ["a"], [["1"]])
        f = register(registry, path, ["a"], 1)
        out = registry.deactivate(f.id)
        assert out.active is False
        assert path.exists()

    def test_delete_file_unlinks_bytes(self, registry, data_dir):
        path = write_call_log(data_dir, "a.csv", ["a"], [["1"]])
        f = register(registry, path, ["a"], 1)
        registry.deactivate(f.id, delete_file=True)
        assert not path.exists()

    def test_delete_file_tolerates_missing_bytes(self, registry, data_dir):
        path = write_call_log(data_dir, "a.csv", ["a"], [["1"]])
        f = register(registry, path, ["a"], 1)
        path.unlink()
        assert registry.deactivate(f.id, delete_file=True).active is False

    def test_restore(self, registry, data_dir):
        path = write_call_log(data_dir, "a.csv", ["a"], [["1"]])
        f = register(registry, path, ["a"], 1)
        registry.deactivate(f.id)
        assert registry.restore(f.id).active is True
        assert len(registry.list_active()) == 1

    def test_restore_unknown_raises(self, registry):
        with pytest.raises(NotFoundError):
            registry.restore(42)


class TestColumnUnion:
    def test_union_of_active_files(self, registry, data_dir):
        a = write_call_log(data_dir, "a.csv", ["x", "y"], [["1", "2"]])
        b = write_call_log(data_dir, "b.csv", ["y", "z"], [["3", "4"]])
        register(registry, a, ["x", "y"], 1)
        fb = register(registry, b, ["y", "z"], 1)
        assert registry.column_union() == ["x", "y", "z"]
        registry.deactivate(fb.id)
        assert registry.column_union() == ["x", "y"]
