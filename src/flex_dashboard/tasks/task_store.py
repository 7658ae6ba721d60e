# src/flex_dashboard/tasks/task_store.py

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass

from ..core.errors import DocumentNotFound, ValidationError, WriteFailure
from ..core.ports import CollectionSnapshot, StateStore
from ..core.state import SessionContext
from .task_models import DEFAULT_TASKS, Task, new_task_document

logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class ResetResult:
    """
    Outcome of clearing completed tasks.

    noop: nothing was completed, no deletes were issued.
    error: first failure seen; other deletes still ran and are not rolled back.
    """

    requested: int
    removed: int
    error: BaseException | None = None

    @property
    def noop(self) -> bool:
        return self.requested == 0


class TaskStoreAdapter:
    """
    Maps the user's live task collection to Task records and back.

    Reads come from the session cache (last snapshot seen by the sync engine);
    every mutation is a remote write that round-trips through the subscription.
    """

    def __init__(self, store: StateStore, session: SessionContext) -> None:
        self._store = store
        self._session = session

    @staticmethod
    def tasks_from_snapshot(snapshot: CollectionSnapshot) -> list[Task]:
        """Decode a collection snapshot, ordered by createdAt (pending timestamps first)."""
        tasks = [Task.from_snapshot(doc) for doc in snapshot.documents]
        tasks.sort(key=lambda t: t.sort_key)
        return tasks

    async def add_task(self, name: str, time_label: str = "") -> str:
        name = (name or "").strip()
        time_label = (time_label or "").strip()
        if not name:
            raise ValidationError("task name is required")

        paths = self._session.paths
        try:
            task_id = await self._store.add_document(paths.tasks, new_task_document(name, time_label))
        except Exception as exc:
            raise WriteFailure(f"could not add task {name!r}") from exc

        logger.debug("Task added id=%s name=%r time=%r", task_id, name, time_label)
        return task_id

    async def toggle_task(self, task_id: str, completed: bool) -> None:
        path = self._session.paths.task(task_id)
        try:
            await self._store.update_document(path, {"completed": bool(completed)})
        except DocumentNotFound as exc:
            raise WriteFailure(f"task {task_id} no longer exists") from exc
        except Exception as exc:
            raise WriteFailure(f"could not update task {task_id}") from exc

        logger.debug("Task %s completed=%s", task_id, completed)

    async def reset_completed(self) -> ResetResult:
        """Delete every task the last snapshot showed as completed."""
        done = [t for t in self._session.tasks if t.completed]
        if not done:
            return ResetResult(requested=0, removed=0)

        paths = self._session.paths
        results = await asyncio.gather(
            *(self._store.delete_document(paths.task(t.id)) for t in done),
            return_exceptions=True,
        )

        first_error: BaseException | None = None
        removed = 0
        for task, res in zip(done, results):
            if isinstance(res, BaseException):
                logger.warning("Delete failed task_id=%s: %r", task.id, res)
                if first_error is None:
                    first_error = res
                continue
            removed += 1

        logger.info("Reset completed tasks: removed=%d of %d", removed, len(done))
        return ResetResult(requested=len(done), removed=removed, error=first_error)

    async def seed_defaults(self) -> int:
        """Write the default morning routine. Stops at the first failed write."""
        paths = self._session.paths
        written = 0
        for name, time_label in DEFAULT_TASKS:
            try:
                await self._store.add_document(paths.tasks, new_task_document(name, time_label))
            except Exception as exc:
                raise WriteFailure(f"could not seed default task {name!r}") from exc
            written += 1

        logger.info("Seeded %d default tasks for user=%s", written, self._session.user_id)
        return written
