# src/flex_dashboard/core/actions.py

from __future__ import annotations

"""
Action dispatch between the presentation layer and the core.

Each action is the error boundary for what it triggers: failures become Notifier events
and an ActionOutcome, never exceptions. Local state is left as-is; the next snapshot
is what changes the screen.
"""

import logging
from enum import StrEnum

from ..ledger.ledger import (
    DAILY_REWARD_MINUTES,
    apply_deduction,
    apply_reward,
    deduction_update,
    is_reward_eligible,
    reward_update,
)
from ..notify.notifier import Notifier, NotifyEvent
from ..tasks.task_store import TaskStoreAdapter
from .errors import ValidationError, WriteFailure
from .ports import StateStore
from .state import SessionContext

logger = logging.getLogger(__name__)


class ActionOutcome(StrEnum):
    OK = "ok"
    NOOP = "noop"  # nothing to do; reported distinctly from success and failure
    REJECTED = "rejected"  # precondition not met (no session, tasks incomplete, ...)
    INVALID = "invalid"  # validation failed before any write
    FAILED = "failed"  # write rejected by the store


class DashboardActions:
    def __init__(
            self,
            session: SessionContext,
            store: StateStore,
            tasks: TaskStoreAdapter,
            notifier: Notifier,
            *,
            daily_reward_minutes: int = DAILY_REWARD_MINUTES,
    ) -> None:
        self._session = session
        self._store = store
        self._tasks = tasks
        self._notifier = notifier
        self.daily_reward_minutes = int(daily_reward_minutes)

    def _signed_in(self) -> bool:
        if self._session.user_id:
            return True
        logger.debug("Action ignored: no user id yet.")
        return False

    async def add_task(self, name: str, time_label: str = "") -> ActionOutcome:
        if not self._signed_in():
            return ActionOutcome.REJECTED

        try:
            await self._tasks.add_task(name, time_label)
        except ValidationError as e:
            logger.debug("add_task rejected: %s", e)
            return ActionOutcome.INVALID
        except WriteFailure:
            logger.exception("Error adding task")
            self._notifier.error("Could not add task. Try again.")
            return ActionOutcome.FAILED

        self._notifier.notify(NotifyEvent.TASK_ADDED, name=name.strip())
        return ActionOutcome.OK

    async def toggle_task(self, task_id: str, completed: bool | None = None) -> ActionOutcome:
        """Set a task's completion flag; with completed=None flip the cached value."""
        if not self._signed_in():
            return ActionOutcome.REJECTED

        if completed is None:
            task = self._session.find_task(task_id)
            completed = not task.completed if task is not None else True

        try:
            await self._tasks.toggle_task(task_id, completed)
        except WriteFailure:
            logger.exception("Error toggling task %s", task_id)
            self._notifier.error("Could not update task status.")
            return ActionOutcome.FAILED

        return ActionOutcome.OK

    async def reset_completed(self) -> ActionOutcome:
        if not self._signed_in():
            return ActionOutcome.REJECTED

        result = await self._tasks.reset_completed()
        if result.noop:
            self._notifier.notify(NotifyEvent.RESET_NOOP)
            return ActionOutcome.NOOP

        if result.error is not None:
            logger.error(
                "Error resetting tasks (removed %d of %d): %r",
                result.removed,
                result.requested,
                result.error,
            )
            self._notifier.error("Could not reset tasks.")
            return ActionOutcome.FAILED

        self._notifier.notify(NotifyEvent.TASKS_CLEARED, count=result.removed)
        return ActionOutcome.OK

    async def request_reward(self) -> ActionOutcome:
        if not self._signed_in():
            return ActionOutcome.REJECTED

        total = len(self._session.tasks)
        completed = self._session.completed_count

        if total == 0:
            self._notifier.notify(NotifyEvent.HOLD_UP)
            return ActionOutcome.REJECTED

        if not is_reward_eligible(completed, total):
            self._notifier.notify(NotifyEvent.MISSION_INCOMPLETE, remaining=total - completed)
            return ActionOutcome.REJECTED

        reward = self.daily_reward_minutes
        self._notifier.notify(NotifyEvent.REQUEST_SENT, reward=reward)

        result = apply_reward(self._session.ledger, reward)
        try:
            await self._store.update_document(self._session.paths.profile, reward_update(result))
        except Exception:
            logger.exception("Error rewarding time")
            self._notifier.error("Failed to update time balance.")
            return ActionOutcome.FAILED

        logger.info(
            "Reward granted user=%s reward=%d debt_cleared=%d flex=%d debt=%d",
            self._session.user_id,
            reward,
            result.debt_cleared,
            result.new_flex_time,
            result.new_debt,
        )
        self._notifier.notify(NotifyEvent.REWARD_GRANTED, reward=reward, debt_cleared=result.debt_cleared)
        return ActionOutcome.OK

    async def report_overage(self, minutes: int) -> ActionOutcome:
        if not self._signed_in():
            return ActionOutcome.REJECTED

        if isinstance(minutes, bool) or not isinstance(minutes, int) or minutes <= 0:
            logger.debug("report_overage rejected: minutes=%r", minutes)
            return ActionOutcome.INVALID

        result = apply_deduction(self._session.ledger, minutes)
        try:
            await self._store.update_document(self._session.paths.profile, deduction_update(result))
        except Exception:
            logger.exception("Error deducting time")
            self._notifier.error("Failed to deduct time.")
            return ActionOutcome.FAILED

        logger.info(
            "Overage deducted user=%s minutes=%d flex=%d debt=%d",
            self._session.user_id,
            minutes,
            result.new_flex_time,
            result.new_debt,
        )
        self._notifier.notify(NotifyEvent.OVERAGE_DEDUCTED, minutes=minutes)
        return ActionOutcome.OK
