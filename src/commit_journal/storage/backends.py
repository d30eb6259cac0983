"""Key-value backends behind the commit, snapshot and result stores.

Every backend maps ``(namespace, key)`` to a JSON-compatible value and is
write-through: a successful ``put`` is durable before it returns. Backend
failures surface as :class:`StorageError`.
"""

from __future__ import annotations

import copy
import json
import sqlite3
import threading
from pathlib import Path
from typing import Any, Iterator, Optional

from diskcache import Cache

from ..exceptions import StorageError
from ..logging_config import get_logger

logger = get_logger(__name__)

# Current schema version (bump when the kv table changes).
_SCHEMA_VERSION = 1


class MemoryStore:
    """Dict-backed store for tests and one-shot runs.

    Values are deep-copied on the way in and out so callers never share
    mutable state with the store.
    """

    name = "memory"

    def __init__(self) -> None:
        self._data: dict[tuple[str, str], Any] = {}
        self._lock = threading.Lock()

    def get(self, namespace: str, key: str) -> Optional[Any]:
        with self._lock:
            value = self._data.get((namespace, key))
        return copy.deepcopy(value)

    def put(self, namespace: str, key: str, value: Any) -> None:
        with self._lock:
            self._data[(namespace, key)] = copy.deepcopy(value)

    def delete(self, namespace: str, key: str) -> None:
        with self._lock:
            self._data.pop((namespace, key), None)

    def keys(self, namespace: str, prefix: str = "") -> Iterator[str]:
        with self._lock:
            found = [k for ns, k in self._data if ns == namespace and k.startswith(prefix)]
        return iter(sorted(found))

    def close(self) -> None:
        pass

    def __enter__(self) -> "MemoryStore":
        return self

    def __exit__(self, *args) -> None:
        self.close()


class SQLiteStore:
    """Single-table SQLite store at ``<data_dir>/journal.db``.

    Usage::

        with SQLiteStore(".data") as store:
            store.put("commits", repo, payload)
    """

    name = "sqlite"

    def __init__(self, data_dir: str | Path) -> None:
        self.db_dir = Path(data_dir)
        self.db_path = self.db_dir / "journal.db"
        self._lock = threading.Lock()
        self._conn: Optional[sqlite3.Connection] = None
        self.connect()

    @property
    def conn(self) -> sqlite3.Connection:
        """Return the active connection. Raises if closed."""
        if self._conn is None:
            raise StorageError("access", self.name, "store is closed")
        return self._conn

    # ── lifecycle ─────────────────────────────────────────────────

    def _ensure_dir(self) -> None:
        """Create the data dir and write a .gitignore so it stays untracked."""
        self.db_dir.mkdir(parents=True, exist_ok=True)
        gitignore = self.db_dir / ".gitignore"
        if not gitignore.exists():
            gitignore.write_text("*\n")

    def connect(self) -> sqlite3.Connection:
        """Open (or create) the database and run migrations."""
        try:
            self._ensure_dir()
            # Route handlers run in a thread pool; access is serialized by _lock.
            conn = sqlite3.connect(str(self.db_path), check_same_thread=False)
            conn.execute("PRAGMA journal_mode=WAL")
            conn.row_factory = sqlite3.Row
            self._conn = conn
            self._migrate()
        except (sqlite3.Error, OSError) as e:
            raise StorageError("connect", self.name, str(e))
        logger.debug("Journal DB connected at %s", self.db_path)
        return conn

    def close(self) -> None:
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    def __enter__(self) -> "SQLiteStore":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    # ── migration ─────────────────────────────────────────────────

    def _migrate(self) -> None:
        """Idempotently create / upgrade the kv table."""
        c = self.conn
        c.execute("CREATE TABLE IF NOT EXISTS schema_version (version INTEGER NOT NULL)")
        row = c.execute("SELECT version FROM schema_version").fetchone()
        if row is None:
            c.execute("INSERT INTO schema_version (version) VALUES (?)", (_SCHEMA_VERSION,))
        c.execute(
            """
            CREATE TABLE IF NOT EXISTS kv (
                namespace  TEXT NOT NULL,
                key        TEXT NOT NULL,
                value      TEXT NOT NULL,
                updated_at TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%fZ', 'now')),
                PRIMARY KEY (namespace, key)
            )
            """
        )
        c.commit()

    # ── operations ────────────────────────────────────────────────

    def get(self, namespace: str, key: str) -> Optional[Any]:
        try:
            with self._lock:
                row = self.conn.execute(
                    "SELECT value FROM kv WHERE namespace = ? AND key = ?", (namespace, key)
                ).fetchone()
        except sqlite3.Error as e:
            raise StorageError("get", self.name, str(e))
        return json.loads(row["value"]) if row else None

    def put(self, namespace: str, key: str, value: Any) -> None:
        payload = json.dumps(value)
        try:
            with self._lock:
                self.conn.execute(
                    """
                    INSERT INTO kv (namespace, key, value) VALUES (?, ?, ?)
                    ON CONFLICT (namespace, key) DO UPDATE SET
                        value = excluded.value,
                        updated_at = strftime('%Y-%m-%dT%H:%M:%fZ', 'now')
                    """,
                    (namespace, key, payload),
                )
                self.conn.commit()
        except sqlite3.Error as e:
            raise StorageError("put", self.name, str(e))

    def delete(self, namespace: str, key: str) -> None:
        try:
            with self._lock:
                self.conn.execute(
                    "DELETE FROM kv WHERE namespace = ? AND key = ?", (namespace, key)
                )
                self.conn.commit()
        except sqlite3.Error as e:
            raise StorageError("delete", self.name, str(e))

    def keys(self, namespace: str, prefix: str = "") -> Iterator[str]:
        try:
            with self._lock:
                rows = self.conn.execute(
                    "SELECT key FROM kv WHERE namespace = ? AND substr(key, 1, ?) = ? ORDER BY key",
                    (namespace, len(prefix), prefix),
                ).fetchall()
        except sqlite3.Error as e:
            raise StorageError("keys", self.name, str(e))
        return iter([row["key"] for row in rows])


class DiskCacheStore:
    """diskcache-backed store at ``<data_dir>/cache``.

    diskcache commits every ``set`` to its SQLite index before returning,
    which gives the same write-through guarantee as :class:`SQLiteStore`.
    """

    name = "diskcache"

    def __init__(self, data_dir: str | Path) -> None:
        self.directory = Path(data_dir) / "cache"
        try:
            self.cache: Optional[Cache] = Cache(str(self.directory))
        except (sqlite3.Error, OSError) as e:
            raise StorageError("connect", self.name, str(e))
        logger.debug("Disk cache initialized at %s", self.directory)

    def _cache(self) -> Cache:
        if self.cache is None:
            raise StorageError("access", self.name, "store is closed")
        return self.cache

    def get(self, namespace: str, key: str) -> Optional[Any]:
        try:
            return self._cache().get((namespace, key))
        except (sqlite3.Error, OSError) as e:
            raise StorageError("get", self.name, str(e))

    def put(self, namespace: str, key: str, value: Any) -> None:
        try:
            self._cache().set((namespace, key), value)
        except (sqlite3.Error, OSError) as e:
            raise StorageError("put", self.name, str(e))

    def delete(self, namespace: str, key: str) -> None:
        try:
            self._cache().delete((namespace, key))
        except (sqlite3.Error, OSError) as e:
            raise StorageError("delete", self.name, str(e))

    def keys(self, namespace: str, prefix: str = "") -> Iterator[str]:
        try:
            found = [
                k[1]
                for k in self._cache().iterkeys()
                if isinstance(k, tuple) and k[0] == namespace and k[1].startswith(prefix)
            ]
        except (sqlite3.Error, OSError) as e:
            raise StorageError("keys", self.name, str(e))
        return iter(sorted(found))

    def close(self) -> None:
        if self.cache is not None:
            self.cache.close()
            self.cache = None

    def __enter__(self) -> "DiskCacheStore":
        return self

    def __exit__(self, *args) -> None:
        self.close()


def open_store(backend: str, data_dir: str | Path):
    """Build the backend named in the configuration."""
    if backend == "memory":
        return MemoryStore()
    if backend == "diskcache":
        return DiskCacheStore(data_dir)
    if backend == "sqlite":
        return SQLiteStore(data_dir)
    raise ValueError(f"Unknown store backend: {backend}")
