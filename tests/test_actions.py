# tests/test_actions.py

from __future__ import annotations

import pytest

from flex_dashboard.core.actions import ActionOutcome
from flex_dashboard.core.state import AppState
from flex_dashboard.ledger.ledger import Ledger
from flex_dashboard.tasks.task_models import Task

from .fakes import FakeSoundPlayer, FakeStateStore, RecordingPresenter


def _tasks(*completed: bool) -> list[Task]:
    return [
        Task(id=f"t{i}", name=f"task {i}", time="", completed=done, created_at=float(i))
        for i, done in enumerate(completed, start=1)
    ]


def _put_profile(state: AppState, store: FakeStateStore, ledger: Ledger) -> str:
    path = state.session.paths.profile
    store.docs[path] = {
        "flexTimeMinutes": ledger.flex_time_minutes,
        "screenTimeDebtMinutes": ledger.screen_time_debt_minutes,
    }
    state.session.ledger = ledger
    return path


@pytest.mark.asyncio
async def test_reward_with_incomplete_tasks_is_rejected(
    signed_in: AppState, store: FakeStateStore, presenter: RecordingPresenter, sound: FakeSoundPlayer
) -> None:
    signed_in.session.tasks = _tasks(True, True, False)

    outcome = await signed_in.actions.request_reward()

    assert outcome is ActionOutcome.REJECTED
    assert presenter.popups[-1].title == "MISSION INCOMPLETE"
    assert presenter.popups[-1].body == "You have 1 tasks remaining."
    assert sound.played == ["error"]
    assert store.writes == []


@pytest.mark.asyncio
async def test_reward_with_no_tasks_asks_to_add_some(
    signed_in: AppState, store: FakeStateStore, presenter: RecordingPresenter
) -> None:
    outcome = await signed_in.actions.request_reward()

    assert outcome is ActionOutcome.REJECTED
    assert presenter.titles == ["HOLD UP"]
    assert store.writes == []


@pytest.mark.asyncio
async def test_reward_pays_debt_and_persists_balances(
    signed_in: AppState, store: FakeStateStore, presenter: RecordingPresenter, sound: FakeSoundPlayer
) -> None:
    signed_in.session.tasks = _tasks(True, True, True)
    path = _put_profile(signed_in, store, Ledger(60, 50))

    outcome = await signed_in.actions.request_reward()

    assert outcome is ActionOutcome.OK
    assert store.docs[path]["flexTimeMinutes"] == 60
    assert store.docs[path]["screenTimeDebtMinutes"] == 20
    assert "lastReward" in store.docs[path]
    assert store.count_ops("update") == 1

    assert presenter.titles == ["REQUEST SENT", "ACCESS GRANTED!"]
    assert presenter.popups[-1].body == "+30 min awarded! Debt cleared: 30 min."
    assert sound.played == ["sent", "success"]

    # The ledger cache is only refreshed by the next profile snapshot.
    assert signed_in.session.ledger == Ledger(60, 50)


@pytest.mark.asyncio
async def test_reward_uses_configured_amount(
    signed_in: AppState, store: FakeStateStore, presenter: RecordingPresenter
) -> None:
    signed_in.actions.daily_reward_minutes = 45
    signed_in.session.tasks = _tasks(True)
    path = _put_profile(signed_in, store, Ledger(10, 0))

    await signed_in.actions.request_reward()

    assert store.docs[path]["flexTimeMinutes"] == 55
    assert presenter.popups[0].body == "Processing 45 min Reward..."


@pytest.mark.asyncio
async def test_reward_write_failure_reports_error(
    signed_in: AppState, store: FakeStateStore, presenter: RecordingPresenter
) -> None:
    signed_in.session.tasks = _tasks(True, True)
    path = _put_profile(signed_in, store, Ledger(60, 0))
    store.fail_paths.add(path)

    outcome = await signed_in.actions.request_reward()

    assert outcome is ActionOutcome.FAILED
    assert presenter.titles == ["REQUEST SENT", "ERROR"]
    assert presenter.popups[-1].body == "Failed to update time balance."
    assert store.docs[path]["flexTimeMinutes"] == 60


@pytest.mark.asyncio
async def test_overage_moves_minutes_into_debt(
    signed_in: AppState, store: FakeStateStore, presenter: RecordingPresenter, sound: FakeSoundPlayer
) -> None:
    path = _put_profile(signed_in, store, Ledger(60, 0))

    outcome = await signed_in.actions.report_overage(15)

    assert outcome is ActionOutcome.OK
    assert store.docs[path]["flexTimeMinutes"] == 45
    assert store.docs[path]["screenTimeDebtMinutes"] == 15
    assert "lastDeduction" in store.docs[path]
    assert presenter.titles == ["WARNING: OVERAGE"]
    assert presenter.popups[0].body == "15 min deducted. Debt increased."
    assert sound.played == ["deduct"]


@pytest.mark.asyncio
@pytest.mark.parametrize("minutes", [0, -5, True, 2.5, "10"])
async def test_overage_rejects_non_positive_or_non_integer(
    signed_in: AppState, store: FakeStateStore, presenter: RecordingPresenter, minutes
) -> None:
    _put_profile(signed_in, store, Ledger(60, 0))

    outcome = await signed_in.actions.report_overage(minutes)

    assert outcome is ActionOutcome.INVALID
    assert store.writes == []
    assert presenter.popups == []


@pytest.mark.asyncio
async def test_overage_failure_reports_error(
    signed_in: AppState, store: FakeStateStore, presenter: RecordingPresenter
) -> None:
    path = _put_profile(signed_in, store, Ledger(60, 0))
    store.fail_paths.add(path)

    outcome = await signed_in.actions.report_overage(10)

    assert outcome is ActionOutcome.FAILED
    assert presenter.popups[-1].body == "Failed to deduct time."


@pytest.mark.asyncio
async def test_add_task_notifies_with_trimmed_name(
    signed_in: AppState, store: FakeStateStore, presenter: RecordingPresenter, sound: FakeSoundPlayer
) -> None:
    outcome = await signed_in.actions.add_task("  Walk the dog ", "6:00 PM")

    assert outcome is ActionOutcome.OK
    assert store.count_ops("add") == 1
    assert presenter.titles == ["TASK ADDED"]
    assert presenter.popups[0].body == '"Walk the dog" successfully added.'
    assert sound.played == ["added"]


@pytest.mark.asyncio
async def test_add_blank_task_is_silent(
    signed_in: AppState, store: FakeStateStore, presenter: RecordingPresenter
) -> None:
    outcome = await signed_in.actions.add_task("   ")

    assert outcome is ActionOutcome.INVALID
    assert store.writes == []
    assert presenter.popups == []


@pytest.mark.asyncio
async def test_add_task_failure_reports_error(
    signed_in: AppState, store: FakeStateStore, presenter: RecordingPresenter
) -> None:
    store.fail_paths.add(signed_in.session.paths.tasks)

    outcome = await signed_in.actions.add_task("Homework")

    assert outcome is ActionOutcome.FAILED
    assert presenter.titles == ["ERROR"]
    assert presenter.popups[0].body == "Could not add task. Try again."


@pytest.mark.asyncio
async def test_toggle_flips_cached_completion(signed_in: AppState, store: FakeStateStore) -> None:
    signed_in.session.tasks = _tasks(False, True)
    for t in signed_in.session.tasks:
        store.docs[signed_in.session.paths.task(t.id)] = {"name": t.name, "completed": t.completed}

    assert await signed_in.actions.toggle_task("t1") is ActionOutcome.OK
    assert await signed_in.actions.toggle_task("t2") is ActionOutcome.OK

    assert store.docs[signed_in.session.paths.task("t1")]["completed"] is True
    assert store.docs[signed_in.session.paths.task("t2")]["completed"] is False


@pytest.mark.asyncio
async def test_toggle_deleted_task_reports_error(
    signed_in: AppState, store: FakeStateStore, presenter: RecordingPresenter
) -> None:
    outcome = await signed_in.actions.toggle_task("gone", True)

    assert outcome is ActionOutcome.FAILED
    assert presenter.popups[-1].body == "Could not update task status."


@pytest.mark.asyncio
async def test_reset_noop_and_cleared(
    signed_in: AppState, store: FakeStateStore, presenter: RecordingPresenter
) -> None:
    signed_in.session.tasks = _tasks(False, False)
    assert await signed_in.actions.reset_completed() is ActionOutcome.NOOP
    assert presenter.titles == ["NO TASKS TO RESET"]

    signed_in.session.tasks = _tasks(True, False, True)
    for t in signed_in.session.tasks:
        store.docs[signed_in.session.paths.task(t.id)] = {"completed": t.completed}

    assert await signed_in.actions.reset_completed() is ActionOutcome.OK
    assert presenter.titles[-1] == "TASKS CLEARED"
    assert presenter.popups[-1].body == "2 completed tasks removed!"
    assert store.count_ops("delete") == 2


@pytest.mark.asyncio
async def test_reset_partial_failure_reports_error(
    signed_in: AppState, store: FakeStateStore, presenter: RecordingPresenter
) -> None:
    signed_in.session.tasks = _tasks(True, True)
    for t in signed_in.session.tasks:
        store.docs[signed_in.session.paths.task(t.id)] = {"completed": True}
    store.fail_paths.add(signed_in.session.paths.task("t2"))

    assert await signed_in.actions.reset_completed() is ActionOutcome.FAILED
    assert presenter.popups[-1].body == "Could not reset tasks."


@pytest.mark.asyncio
async def test_actions_without_session_do_nothing(
    state: AppState, store: FakeStateStore, presenter: RecordingPresenter
) -> None:
    assert await state.actions.add_task("Homework") is ActionOutcome.REJECTED
    assert await state.actions.toggle_task("t1") is ActionOutcome.REJECTED
    assert await state.actions.reset_completed() is ActionOutcome.REJECTED
    assert await state.actions.request_reward() is ActionOutcome.REJECTED
    assert await state.actions.report_overage(5) is ActionOutcome.REJECTED

    assert store.writes == []
    assert presenter.popups == []
