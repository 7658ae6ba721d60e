# src/flex_dashboard/storage/sqlite_store.py

from __future__ import annotations

import asyncio
import contextlib
import json
import logging
import sqlite3
import threading
import time
import uuid
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from ..core.errors import DocumentNotFound, StoreError
from ..core.ports import (
    SERVER_TIMESTAMP,
    CollectionListener,
    CollectionSnapshot,
    DocumentListener,
    DocumentSnapshot,
    ErrorListener,
)

logger = logging.getLogger(__name__)


def _split_path(path: str) -> tuple[str, str]:
    """'a/b/c/d' -> ('a/b/c', 'd'). Document paths have an even number of segments."""
    parts = [p for p in path.strip("/").split("/") if p]
    if len(parts) < 2 or len(parts) % 2 != 0:
        raise StoreError(f"not a document path: {path!r}")
    return "/".join(parts[:-1]), parts[-1]


def _collection_path(path: str) -> str:
    parts = [p for p in path.strip("/").split("/") if p]
    if not parts or len(parts) % 2 != 1:
        raise StoreError(f"not a collection path: {path!r}")
    return "/".join(parts)


@dataclass(eq=False)
class _Watch:
    store: "SQLiteStateStore"
    key: str
    on_snapshot: Any
    on_error: ErrorListener
    active: bool = field(default=True)

    def unsubscribe(self) -> None:
        self.active = False
        self.store._remove_watch(self)


class SQLiteStateStore:
    """
    SQLite document store with in-process live subscriptions.

    Layout: one row per document, keyed by full path, JSON body.
    Collections are implicit (documents sharing a parent path).

    Thread-safety:
    - each method opens its own SQLite connection
    - async methods run the blocking work via asyncio.to_thread
    - write + listener fan-out happen under one lock, so listeners see writes in order

    Listeners are called on the writing thread (a worker thread for async writes).
    """

    def __init__(self, db_path: str | Path = "state.sqlite3") -> None:
        self._db_path = Path(db_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._lock = threading.RLock()
        self._doc_watches: dict[str, list[_Watch]] = {}
        self._col_watches: dict[str, list[_Watch]] = {}
        self._ensure_schema()
        try:
            total = self.count_documents()
        except sqlite3.Error:
            total = -1
        logger.info("SQLiteStateStore ready db=%s documents=%s", self._db_path, total)

    def close(self) -> None:
        """Compatibility hook for shutdown (no persistent connections to close)."""
        with self._lock:
            self._doc_watches.clear()
            self._col_watches.clear()

    # ---- low-level helpers ----

    def _get_conn(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self._db_path), timeout=30.0)
        conn.row_factory = sqlite3.Row
        self._configure_conn(conn)
        return conn

    @staticmethod
    def _configure_conn(conn: sqlite3.Connection) -> None:
        with contextlib.suppress(sqlite3.Error):
            conn.execute("PRAGMA journal_mode=WAL")

    def _ensure_schema(self) -> None:
        conn = self._get_conn()
        try:
            cur = conn.cursor()

            cur.execute(
                """
                CREATE TABLE IF NOT EXISTS documents (
                    path TEXT PRIMARY KEY,
                    collection TEXT NOT NULL,
                    doc_id TEXT NOT NULL,
                    data TEXT NOT NULL DEFAULT '{}',
                    created_at REAL NOT NULL,
                    updated_at REAL NOT NULL
                )
                """
            )

            # Migrations (safe): add missing columns.
            cur.execute("PRAGMA table_info(documents)")
            cols = {row["name"] for row in cur.fetchall()}

            def add_col(name: str, decl: str) -> None:
                if name in cols:
                    return
                cur.execute(f"ALTER TABLE documents ADD COLUMN {name} {decl}")
                logger.info("SQLiteStateStore migration: added column %s", name)

            add_col("created_at", "REAL NOT NULL DEFAULT 0")
            add_col("updated_at", "REAL NOT NULL DEFAULT 0")

            cur.execute("CREATE INDEX IF NOT EXISTS idx_documents_collection ON documents(collection, created_at)")

            conn.commit()
        finally:
            conn.close()

    @staticmethod
    def _resolve(data: dict[str, Any], now: float) -> dict[str, Any]:
        return {k: (now if v is SERVER_TIMESTAMP else v) for k, v in data.items()}

    @staticmethod
    def _encode(data: dict[str, Any]) -> str:
        try:
            return json.dumps(data, ensure_ascii=False)
        except (TypeError, ValueError) as e:
            raise StoreError(f"document is not JSON-serializable: {e}") from e

    @staticmethod
    def _decode(s: str | None) -> dict[str, Any]:
        if not s:
            return {}
        try:
            val = json.loads(s)
            return val if isinstance(val, dict) else {}
        except ValueError:
            return {}

    def _read_document(self, path: str) -> DocumentSnapshot:
        _, doc_id = _split_path(path)
        conn = self._get_conn()
        try:
            cur = conn.cursor()
            cur.execute("SELECT data FROM documents WHERE path = ?", (path,))
            row = cur.fetchone()
            data = self._decode(row["data"]) if row else None
            return DocumentSnapshot(id=doc_id, path=path, data=data)
        finally:
            conn.close()

    def _read_collection(self, collection: str, change_count: int) -> CollectionSnapshot:
        conn = self._get_conn()
        try:
            cur = conn.cursor()
            cur.execute(
                """
                SELECT path, doc_id, data
                FROM documents
                WHERE collection = ?
                ORDER BY created_at ASC, doc_id ASC
                """,
                (collection,),
            )
            docs = tuple(
                DocumentSnapshot(id=r["doc_id"], path=r["path"], data=self._decode(r["data"]))
                for r in cur.fetchall()
            )
            return CollectionSnapshot(path=collection, documents=docs, change_count=change_count)
        finally:
            conn.close()

    # ---- sync primitives (used by the async API and by tests) ----

    def count_documents(self) -> int:
        conn = self._get_conn()
        try:
            cur = conn.cursor()
            cur.execute("SELECT COUNT(*) FROM documents")
            (n,) = cur.fetchone()
            return int(n)
        finally:
            conn.close()

    def get_document_sync(self, path: str) -> DocumentSnapshot:
        return self._read_document(path)

    def set_document_sync(self, path: str, data: dict[str, Any]) -> None:
        collection, doc_id = _split_path(path)
        now = time.time()
        body = self._encode(self._resolve(data, now))

        with self._lock:
            conn = self._get_conn()
            try:
                conn.execute(
                    """
                    INSERT INTO documents(path, collection, doc_id, data, created_at, updated_at)
                    VALUES (?, ?, ?, ?, ?, ?)
                    ON CONFLICT(path) DO UPDATE SET data = excluded.data, updated_at = excluded.updated_at
                    """,
                    (path, collection, doc_id, body, now, now),
                )
                conn.commit()
            finally:
                conn.close()
            logger.debug("Document set path=%s", path)
            self._notify(path, collection)

    def update_document_sync(self, path: str, data: dict[str, Any]) -> None:
        collection, _ = _split_path(path)
        now = time.time()

        with self._lock:
            conn = self._get_conn()
            try:
                cur = conn.cursor()
                cur.execute("SELECT data FROM documents WHERE path = ?", (path,))
                row = cur.fetchone()
                if row is None:
                    raise DocumentNotFound(path)

                merged = self._decode(row["data"])
                merged.update(self._resolve(data, now))
                cur.execute(
                    "UPDATE documents SET data = ?, updated_at = ? WHERE path = ?",
                    (self._encode(merged), now, path),
                )
                conn.commit()
            finally:
                conn.close()
            logger.debug("Document updated path=%s fields=%s", path, sorted(data))
            self._notify(path, collection)

    def delete_document_sync(self, path: str) -> None:
        collection, _ = _split_path(path)

        with self._lock:
            conn = self._get_conn()
            try:
                cur = conn.cursor()
                cur.execute("DELETE FROM documents WHERE path = ?", (path,))
                conn.commit()
                deleted = cur.rowcount
            finally:
                conn.close()
            # Deleting a missing document is not an error (same as Firestore).
            if deleted:
                logger.debug("Document deleted path=%s", path)
                self._notify(path, collection)

    def add_document_sync(self, collection_path: str, data: dict[str, Any]) -> str:
        collection = _collection_path(collection_path)
        doc_id = uuid.uuid4().hex[:20]
        self.set_document_sync(f"{collection}/{doc_id}", data)
        return doc_id

    # ---- async API (StateStore port) ----

    async def get_document(self, path: str) -> DocumentSnapshot:
        return await asyncio.to_thread(self._read_document, path)

    async def set_document(self, path: str, data: dict[str, Any]) -> None:
        await asyncio.to_thread(self.set_document_sync, path, data)

    async def update_document(self, path: str, data: dict[str, Any]) -> None:
        await asyncio.to_thread(self.update_document_sync, path, data)

    async def delete_document(self, path: str) -> None:
        await asyncio.to_thread(self.delete_document_sync, path)

    async def add_document(self, collection_path: str, data: dict[str, Any]) -> str:
        return await asyncio.to_thread(self.add_document_sync, collection_path, data)

    # ---- live subscriptions ----

    def watch_document(
            self,
            path: str,
            on_snapshot: DocumentListener,
            on_error: ErrorListener,
    ) -> _Watch:
        _split_path(path)
        watch = _Watch(store=self, key=path, on_snapshot=on_snapshot, on_error=on_error)
        with self._lock:
            self._doc_watches.setdefault(path, []).append(watch)
            self._deliver(watch, lambda: self._read_document(path))
        return watch

    def watch_collection(
            self,
            path: str,
            on_snapshot: CollectionListener,
            on_error: ErrorListener,
    ) -> _Watch:
        collection = _collection_path(path)
        watch = _Watch(store=self, key=collection, on_snapshot=on_snapshot, on_error=on_error)
        with self._lock:
            self._col_watches.setdefault(collection, []).append(watch)
            self._deliver(watch, lambda: self._initial_collection(collection))
        return watch

    def _initial_collection(self, collection: str) -> CollectionSnapshot:
        # First snapshot reports every existing document as a change.
        snap = self._read_collection(collection, 0)
        return CollectionSnapshot(path=snap.path, documents=snap.documents, change_count=snap.size)

    def _remove_watch(self, watch: _Watch) -> None:
        with self._lock:
            for registry in (self._doc_watches, self._col_watches):
                watches = registry.get(watch.key)
                if watches and watch in watches:
                    watches.remove(watch)
                    if not watches:
                        registry.pop(watch.key, None)

    def _deliver(self, watch: _Watch, read: Callable[[], Any]) -> None:
        if not watch.active:
            return
        try:
            snap = read()
        except Exception as e:
            logger.exception("Snapshot read failed key=%s", watch.key)
            watch.active = False
            self._remove_watch(watch)
            with contextlib.suppress(Exception):
                watch.on_error(e)
            return

        try:
            watch.on_snapshot(snap)
        except Exception:
            logger.exception("Snapshot listener raised key=%s", watch.key)

    def _notify(self, path: str, collection: str) -> None:
        for watch in list(self._doc_watches.get(path, ())):
            self._deliver(watch, lambda: self._read_document(path))
        for watch in list(self._col_watches.get(collection, ())):
            self._deliver(watch, lambda: self._read_collection(collection, 1))
