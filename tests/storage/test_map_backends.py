"""Tests for the key-value backends."""

import pytest

from commit_journal.exceptions import StorageError
from commit_journal.storage import DiskCacheStore, MemoryStore, SQLiteStore, open_store


@pytest.fixture(params=["memory", "sqlite", "diskcache"])
def store(request, tmp_path):
    with open_store(request.param, tmp_path / "data") as backend:
        yield backend


class TestMapStoreContract:
    """Behaviour every backend shares."""

    def test_missing_key(self, store):
        assert store.get("commits", "absent") is None

    def test_put_then_get(self, store):
        store.put("commits", "repo", {"commits": [{"hash": "a"}]})
        assert store.get("commits", "repo") == {"commits": [{"hash": "a"}]}

    def test_put_overwrites(self, store):
        store.put("evolution", "repo", {"summary": "old"})
        store.put("evolution", "repo", {"summary": "new"})
        assert store.get("evolution", "repo") == {"summary": "new"}

    def test_namespaces_are_separate(self, store):
        store.put("commits", "repo", 1)
        store.put("evolution", "repo", 2)
        assert store.get("commits", "repo") == 1
        assert store.get("evolution", "repo") == 2

    def test_delete(self, store):
        store.put("snapshots", "k", "v")
        store.delete("snapshots", "k")
        store.delete("snapshots", "never-there")
        assert store.get("snapshots", "k") is None

    def test_keys_by_prefix_sorted(self, store):
        for key in ["repo/b", "repo/a", "other/c"]:
            store.put("snapshots", key, key)
        store.put("commits", "repo/z", 0)
        assert list(store.keys("snapshots", "repo/")) == ["repo/a", "repo/b"]
        assert list(store.keys("snapshots")) == ["other/c", "repo/a", "repo/b"]


class TestMemoryStore:
    def test_values_are_copied(self):
        store = MemoryStore()
        value = {"items": [1]}
        store.put("ns", "k", value)
        value["items"].append(2)
        fetched = store.get("ns", "k")
        fetched["items"].append(3)
        assert store.get("ns", "k") == {"items": [1]}


class TestSQLiteStore:
    def test_persists_across_instances(self, tmp_path):
        with SQLiteStore(tmp_path) as store:
            store.put("commits", "repo", {"n": 1})
        with SQLiteStore(tmp_path) as store:
            assert store.get("commits", "repo") == {"n": 1}

    def test_creates_gitignore(self, tmp_path):
        SQLiteStore(tmp_path / "data").close()
        assert (tmp_path / "data" / ".gitignore").read_text() == "*\n"
        assert (tmp_path / "data" / "journal.db").exists()

    def test_closed_store_raises(self, tmp_path):
        store = SQLiteStore(tmp_path)
        store.close()
        with pytest.raises(StorageError) as exc_info:
            store.get("commits", "repo")
        assert exc_info.value.details["store"] == "sqlite"

    def test_migration_is_idempotent(self, tmp_path):
        SQLiteStore(tmp_path).close()
        with SQLiteStore(tmp_path) as store:
            rows = store.conn.execute("SELECT version FROM schema_version").fetchall()
        assert len(rows) == 1


class TestDiskCacheStore:
    def test_persists_across_instances(self, tmp_path):
        with DiskCacheStore(tmp_path) as store:
            store.put("snapshots", "k", {"diff": "+a"})
        with DiskCacheStore(tmp_path) as store:
            assert store.get("snapshots", "k") == {"diff": "+a"}

    def test_closed_store_raises(self, tmp_path):
        store = DiskCacheStore(tmp_path)
        store.close()
        with pytest.raises(StorageError):
            store.put("ns", "k", 1)


def test_open_store_rejects_unknown_backend(tmp_path):
    with pytest.raises(ValueError):
        open_store("redis", tmp_path)
