# src/flex_dashboard/storage/firestore_store.py

from __future__ import annotations

import asyncio
import logging
import threading
from typing import Any

import firebase_admin
from firebase_admin import credentials, firestore
from google.api_core import exceptions as gexc

from ..core.errors import DocumentNotFound, InitializationError, StoreError
from ..core.ports import (
    SERVER_TIMESTAMP,
    CollectionListener,
    CollectionSnapshot,
    DocumentListener,
    DocumentSnapshot,
    ErrorListener,
)

logger = logging.getLogger(__name__)


def _get_app(credentials_path: str | None, project_id: str | None) -> firebase_admin.App:
    try:
        return firebase_admin.get_app()
    except ValueError:
        pass

    options = {"projectId": project_id} if project_id else None
    cred = credentials.Certificate(credentials_path) if credentials_path else credentials.ApplicationDefault()
    return firebase_admin.initialize_app(cred, options)


def _to_snapshot(doc: Any) -> DocumentSnapshot:
    data = doc.to_dict() if doc.exists else None
    return DocumentSnapshot(id=doc.id, path=doc.reference.path, data=data)


WATCH_POLL_SECONDS = 1.0


class _WatchHandle:
    """
    Subscription over a firestore Watch.

    The SDK has no error callback: a denied or dropped listen only closes the watch.
    A daemon thread polls Watch.is_active and reports a closure once through on_error.
    """

    def __init__(
            self,
            watch: Any,
            key: str,
            on_error: ErrorListener,
            *,
            poll_interval: float = WATCH_POLL_SECONDS,
    ) -> None:
        self._watch = watch
        self._key = key
        self._on_error = on_error
        self._stopped = threading.Event()
        self._monitor = threading.Thread(
            target=self._run_monitor,
            args=(poll_interval,),
            name="firestore-watch-monitor",
            daemon=True,
        )
        self._monitor.start()

    def _run_monitor(self, interval: float) -> None:
        while not self._stopped.wait(interval):
            if getattr(self._watch, "is_active", True):
                continue
            if self._stopped.is_set():
                return  # closed by unsubscribe()
            self._stopped.set()
            logger.error("Firestore listen closed key=%s", self._key)
            try:
                self._on_error(StoreError(f"listen closed: {self._key}"))
            except Exception:
                logger.exception("Watch error listener raised key=%s", self._key)
            return

    def unsubscribe(self) -> None:
        self._stopped.set()
        self._watch.unsubscribe()


class FirestoreStateStore:
    """
    Cloud Firestore backend (firebase-admin).

    The admin SDK is synchronous: writes run via asyncio.to_thread, and on_snapshot
    callbacks arrive on the SDK's watch thread. Listen failures surface through
    _WatchHandle, which notices the closed watch within WATCH_POLL_SECONDS.
    """

    def __init__(self, credentials_path: str | None = None, project_id: str | None = None) -> None:
        try:
            self._app = _get_app(credentials_path, project_id)
            self._db = firestore.client(self._app)
        except Exception as e:
            raise InitializationError(f"Failed to connect to Firestore: {e}") from e
        logger.info("FirestoreStateStore ready project=%s", self._app.project_id)

    def close(self) -> None:
        self._db.close()

    @staticmethod
    def _resolve(data: dict[str, Any]) -> dict[str, Any]:
        return {k: (firestore.SERVER_TIMESTAMP if v is SERVER_TIMESTAMP else v) for k, v in data.items()}

    # ---- async API (StateStore port) ----

    async def get_document(self, path: str) -> DocumentSnapshot:
        doc = await asyncio.to_thread(self._db.document(path).get)
        return _to_snapshot(doc)

    async def set_document(self, path: str, data: dict[str, Any]) -> None:
        await asyncio.to_thread(self._db.document(path).set, self._resolve(data))

    async def update_document(self, path: str, data: dict[str, Any]) -> None:
        try:
            await asyncio.to_thread(self._db.document(path).update, self._resolve(data))
        except gexc.NotFound as e:
            raise DocumentNotFound(path) from e

    async def delete_document(self, path: str) -> None:
        await asyncio.to_thread(self._db.document(path).delete)

    async def add_document(self, collection_path: str, data: dict[str, Any]) -> str:
        _, ref = await asyncio.to_thread(self._db.collection(collection_path).add, self._resolve(data))
        return ref.id

    # ---- live subscriptions ----

    def watch_document(
            self,
            path: str,
            on_snapshot: DocumentListener,
            on_error: ErrorListener,
    ) -> _WatchHandle:
        def callback(docs: list[Any], changes: list[Any], read_time: Any) -> None:
            try:
                if docs:
                    snap = _to_snapshot(docs[0])
                else:
                    snap = DocumentSnapshot(id=path.rsplit("/", 1)[-1], path=path, data=None)
            except Exception as e:
                logger.exception("Failed to decode document snapshot path=%s", path)
                on_error(e)
                return
            on_snapshot(snap)

        return _WatchHandle(self._db.document(path).on_snapshot(callback), path, on_error)

    def watch_collection(
            self,
            path: str,
            on_snapshot: CollectionListener,
            on_error: ErrorListener,
    ) -> _WatchHandle:
        def callback(docs: list[Any], changes: list[Any], read_time: Any) -> None:
            try:
                snap = CollectionSnapshot(
                    path=path,
                    documents=tuple(_to_snapshot(d) for d in docs),
                    change_count=len(changes),
                )
            except Exception as e:
                logger.exception("Failed to decode collection snapshot path=%s", path)
                on_error(e)
                return
            on_snapshot(snap)

        return _WatchHandle(self._db.collection(path).on_snapshot(callback), path, on_error)
