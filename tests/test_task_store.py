# tests/test_task_store.py

from __future__ import annotations

import random

import pytest

from flex_dashboard.core.errors import ValidationError, WriteFailure
from flex_dashboard.core.ports import CollectionSnapshot, DocumentSnapshot
from flex_dashboard.core.state import SessionContext
from flex_dashboard.tasks.task_models import DEFAULT_TASKS, Task
from flex_dashboard.tasks.task_store import TaskStoreAdapter

from .fakes import APP_ID, USER_ID, FakeStateStore


def _adapter(store: FakeStateStore) -> tuple[TaskStoreAdapter, SessionContext]:
    session = SessionContext(app_id=APP_ID, user_id=USER_ID)
    return TaskStoreAdapter(store, session), session


def _task(task_id: str, *, completed: bool, created_at: float | None = 1.0) -> Task:
    return Task(id=task_id, name=f"task {task_id}", time="", completed=completed, created_at=created_at)


@pytest.mark.asyncio
async def test_add_task_trims_and_writes_once(store: FakeStateStore) -> None:
    adapter, session = _adapter(store)

    task_id = await adapter.add_task("  Feed the cat  ", " 5:00 PM ")

    path = f"{session.paths.tasks}/{task_id}"
    assert store.docs[path]["name"] == "Feed the cat"
    assert store.docs[path]["time"] == "5:00 PM"
    assert store.docs[path]["completed"] is False
    assert isinstance(store.docs[path]["createdAt"], float)
    assert store.count_ops("add") == 1


@pytest.mark.asyncio
@pytest.mark.parametrize("name", ["", "   ", "\t\n"])
async def test_add_task_rejects_blank_name_without_writing(store: FakeStateStore, name: str) -> None:
    adapter, _ = _adapter(store)

    with pytest.raises(ValidationError):
        await adapter.add_task(name, "7:00 AM")

    assert store.writes == []


@pytest.mark.asyncio
async def test_add_task_allows_empty_time_label(store: FakeStateStore) -> None:
    adapter, session = _adapter(store)
    task_id = await adapter.add_task("Read a book")
    assert store.docs[f"{session.paths.tasks}/{task_id}"]["time"] == ""


@pytest.mark.asyncio
async def test_add_task_wraps_store_failure(store: FakeStateStore) -> None:
    adapter, session = _adapter(store)
    store.fail_paths.add(session.paths.tasks)

    with pytest.raises(WriteFailure):
        await adapter.add_task("Homework")


@pytest.mark.asyncio
async def test_toggle_missing_task_fails_without_retry(store: FakeStateStore) -> None:
    adapter, _ = _adapter(store)

    with pytest.raises(WriteFailure):
        await adapter.toggle_task("gone", True)

    assert store.count_ops("update") == 1


@pytest.mark.asyncio
async def test_toggle_existing_task(store: FakeStateStore) -> None:
    adapter, session = _adapter(store)
    task_id = await adapter.add_task("Homework")

    await adapter.toggle_task(task_id, True)

    assert store.docs[session.paths.task(task_id)]["completed"] is True


@pytest.mark.asyncio
async def test_reset_with_nothing_completed_is_noop(store: FakeStateStore) -> None:
    adapter, session = _adapter(store)
    session.tasks = [_task("a", completed=False), _task("b", completed=False)]

    result = await adapter.reset_completed()

    assert result.noop
    assert result.removed == 0
    assert result.error is None
    assert store.count_ops("delete") == 0


@pytest.mark.asyncio
async def test_reset_deletes_each_completed_task_in_any_order(store: FakeStateStore) -> None:
    adapter, session = _adapter(store)
    tasks = [_task(str(i), completed=i % 2 == 0) for i in range(7)]
    random.Random(4).shuffle(tasks)
    session.tasks = tasks
    for t in tasks:
        store.docs[session.paths.task(t.id)] = {"name": t.name, "completed": t.completed}

    result = await adapter.reset_completed()

    assert not result.noop
    assert result.requested == 4
    assert result.removed == 4
    assert result.error is None
    assert store.count_ops("delete") == 4
    remaining = sorted(p.rsplit("/", 1)[-1] for p in store.docs)
    assert remaining == ["1", "3", "5"]


@pytest.mark.asyncio
async def test_reset_partial_failure_reports_first_error_and_keeps_others(store: FakeStateStore) -> None:
    adapter, session = _adapter(store)
    session.tasks = [_task("a", completed=True), _task("b", completed=True), _task("c", completed=True)]
    for t in session.tasks:
        store.docs[session.paths.task(t.id)] = {"completed": True}
    store.fail_paths.add(session.paths.task("b"))

    result = await adapter.reset_completed()

    assert result.requested == 3
    assert result.removed == 2
    assert result.error is not None
    assert session.paths.task("b") in store.docs
    assert session.paths.task("a") not in store.docs
    assert session.paths.task("c") not in store.docs


@pytest.mark.asyncio
async def test_seed_defaults_writes_the_morning_routine(store: FakeStateStore) -> None:
    adapter, session = _adapter(store)

    written = await adapter.seed_defaults()

    assert written == len(DEFAULT_TASKS) == 4
    names = [d["name"] for d in store.docs.values()]
    assert names == [name for name, _ in DEFAULT_TASKS]
    assert all(d["completed"] is False for d in store.docs.values())


def test_tasks_from_snapshot_orders_by_created_at_pending_first() -> None:
    snap = CollectionSnapshot(
        path="users/u/tasks",
        documents=(
            DocumentSnapshot(id="late", path="users/u/tasks/late", data={"name": "late", "createdAt": 30.0}),
            DocumentSnapshot(id="pending", path="users/u/tasks/pending", data={"name": "pending", "createdAt": None}),
            DocumentSnapshot(id="early", path="users/u/tasks/early", data={"name": "early", "createdAt": 10}),
        ),
    )

    tasks = TaskStoreAdapter.tasks_from_snapshot(snap)

    assert [t.id for t in tasks] == ["pending", "early", "late"]
    assert tasks[0].created_at is None
    assert tasks[1].created_at == 10.0
