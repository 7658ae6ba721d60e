# src/flex_dashboard/core/state.py

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING, Any

from ..ledger.ledger import Ledger, initial_state

if TYPE_CHECKING:
    from ..notify.notifier import Notifier
    from ..sync.sync_engine import SyncEngine
    from ..tasks.task_models import Task
    from ..tasks.task_store import TaskStoreAdapter
    from .actions import DashboardActions
    from .ports import IdentityProvider, Presenter, SoundPlayer, StateStore


class SubscriptionState(StrEnum):
    UNSUBSCRIBED = "unsubscribed"
    SUBSCRIBING = "subscribing"
    ACTIVE = "active"
    ERROR = "error"  # terminal for that subscription; not retried


@dataclass(slots=True, frozen=True)
class StorePaths:
    profile: str
    tasks: str

    def task(self, task_id: str) -> str:
        return f"{self.tasks}/{task_id}"


def store_paths(user_id: str, app_id: str | None = None) -> StorePaths:
    """
    Document locations for one user.

    With an app id the layout is the hosted one (shared with the browser build):
    artifacts/{app_id}/users/{uid}/state/profile and .../daily_tasks.
    Without one, a flat users/{uid}/... layout is used.
    """
    if app_id:
        base = f"artifacts/{app_id}/users/{user_id}"
        return StorePaths(profile=f"{base}/state/profile", tasks=f"{base}/daily_tasks")
    base = f"users/{user_id}"
    return StorePaths(profile=f"{base}/state/profile", tasks=f"{base}/tasks")


@dataclass
class SessionContext:
    """
    Per-session cache of the last remote snapshots.

    Only the sync engine writes ledger/tasks; actions read them to decide what to write.
    """

    app_id: str | None = None
    user_id: str | None = None

    ledger: Ledger = field(default_factory=initial_state)
    tasks: list[Task] = field(default_factory=list)

    # Set on the first task snapshot, empty or not. In-session guard for default seeding;
    # across launches the profile's defaultsSeeded field decides.
    has_seeded: bool = False

    profile_state: SubscriptionState = SubscriptionState.UNSUBSCRIBED
    tasks_state: SubscriptionState = SubscriptionState.UNSUBSCRIBED

    @property
    def paths(self) -> StorePaths:
        if not self.user_id:
            raise RuntimeError("session has no user id yet")
        return store_paths(self.user_id, self.app_id)

    @property
    def completed_count(self) -> int:
        return sum(1 for t in self.tasks if t.completed)

    def find_task(self, task_id: str) -> Task | None:
        for t in self.tasks:
            if t.id == task_id:
                return t
        return None


@dataclass
class AppState:
    # Store Settings on the state for easy access in other modules later.
    settings: Any

    session: SessionContext
    store: StateStore
    identity: IdentityProvider
    presenter: Presenter
    sound: SoundPlayer
    notifier: Notifier
    tasks: TaskStoreAdapter
    actions: DashboardActions
    engine: SyncEngine
