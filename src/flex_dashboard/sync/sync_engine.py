# src/flex_dashboard/sync/sync_engine.py

from __future__ import annotations

"""
Sync engine.

Two live subscriptions (profile document, task collection) scoped to the session's user.
Every remote change:
- replaces the session cache wholesale (never patched incrementally),
- triggers a full re-render.

Store listeners may fire on foreign threads. They only enqueue; a single pump task
applies snapshots on the event loop in delivery order, so both subscriptions share
one ordering and nothing is coalesced.
"""

import asyncio
import contextlib
import logging
from dataclasses import dataclass
from typing import Literal

from ..core.errors import DashboardError
from ..core.ports import (
    CollectionSnapshot,
    DocumentSnapshot,
    Presenter,
    StateStore,
    Subscription,
)
from ..core.state import SessionContext, SubscriptionState
from ..ledger.ledger import (
    DEFAULTS_SEEDED_FIELD,
    initial_profile,
    initial_state,
    ledger_from_profile,
    profile_defaults_seeded,
)
from ..notify.notifier import Notifier, NotifyEvent
from ..tasks.task_store import TaskStoreAdapter
from ..view.renderer import ViewModel, render

logger = logging.getLogger(__name__)

Channel = Literal["profile", "tasks"]


@dataclass(slots=True, frozen=True)
class _SyncEvent:
    channel: Channel
    snapshot: DocumentSnapshot | CollectionSnapshot | None = None
    error: BaseException | None = None


class SyncEngine:
    def __init__(
            self,
            session: SessionContext,
            store: StateStore,
            tasks: TaskStoreAdapter,
            notifier: Notifier,
            presenter: Presenter,
            *,
            initial_flex_minutes: int = 60,
    ) -> None:
        self._session = session
        self._store = store
        self._tasks = tasks
        self._notifier = notifier
        self._presenter = presenter
        self._initial_flex_minutes = int(initial_flex_minutes)

        self._loop: asyncio.AbstractEventLoop | None = None
        self._queue: asyncio.Queue[_SyncEvent] | None = None
        self._pump: asyncio.Task[None] | None = None
        self._subs: dict[Channel, Subscription] = {}
        self._seeding_settled = False

    # ---- lifecycle ----

    async def start(self) -> None:
        """Open both subscriptions. Requires session.user_id."""
        if self._pump is not None:
            return

        paths = self._session.paths
        self._loop = asyncio.get_running_loop()
        self._queue = asyncio.Queue()
        self._pump = asyncio.create_task(self._run_pump(), name="sync-pump")

        self._session.profile_state = SubscriptionState.SUBSCRIBING
        self._subs["profile"] = self._store.watch_document(
            paths.profile,
            lambda snap: self._post(_SyncEvent("profile", snapshot=snap)),
            lambda exc: self._post(_SyncEvent("profile", error=exc)),
        )

        self._session.tasks_state = SubscriptionState.SUBSCRIBING
        self._subs["tasks"] = self._store.watch_collection(
            paths.tasks,
            lambda snap: self._post(_SyncEvent("tasks", snapshot=snap)),
            lambda exc: self._post(_SyncEvent("tasks", error=exc)),
        )

        logger.info("Sync started user=%s", self._session.user_id)

    async def stop(self) -> None:
        for channel in list(self._subs):
            self._unsubscribe(channel)
            self._set_state(channel, SubscriptionState.UNSUBSCRIBED)

        if self._pump is not None:
            self._pump.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._pump
            self._pump = None

        logger.info("Sync stopped user=%s", self._session.user_id)

    async def drain(self) -> None:
        """Wait until every snapshot delivered so far has been applied."""
        if self._queue is not None:
            await self._queue.join()

    # ---- event intake ----

    def _post(self, event: _SyncEvent) -> None:
        loop = self._loop
        queue = self._queue
        if loop is None or queue is None or loop.is_closed():
            return

        try:
            running = asyncio.get_running_loop()
        except RuntimeError:
            running = None

        if running is loop:
            queue.put_nowait(event)
        else:
            loop.call_soon_threadsafe(queue.put_nowait, event)

    async def _run_pump(self) -> None:
        assert self._queue is not None
        while True:
            event = await self._queue.get()
            try:
                await self._dispatch(event)
            except Exception:
                logger.exception("Failed to apply %s event", event.channel)
            finally:
                self._queue.task_done()

    async def _dispatch(self, event: _SyncEvent) -> None:
        if self._state(event.channel) in (SubscriptionState.ERROR, SubscriptionState.UNSUBSCRIBED):
            # Late deliveries after an error or teardown are dropped.
            return

        if event.error is not None:
            self._fail(event.channel, event.error)
            return

        self._set_state(event.channel, SubscriptionState.ACTIVE)
        if event.channel == "profile":
            assert isinstance(event.snapshot, DocumentSnapshot)
            await self.apply_profile_snapshot(event.snapshot)
        else:
            assert isinstance(event.snapshot, CollectionSnapshot)
            await self.apply_tasks_snapshot(event.snapshot)

    # ---- snapshot handlers ----

    async def apply_profile_snapshot(self, snap: DocumentSnapshot) -> None:
        if snap.exists:
            assert snap.data is not None
            self._session.ledger = ledger_from_profile(snap.data)
            logger.debug(
                "Profile snapshot flex=%s debt=%s",
                self._session.ledger.flex_time_minutes,
                self._session.ledger.screen_time_debt_minutes,
            )
        else:
            ledger = initial_state(self._initial_flex_minutes)
            self._session.ledger = ledger
            # The task handler may have settled seeding before the profile existed.
            profile = initial_profile(ledger, defaults_seeded=self._seeding_settled)
            try:
                await self._store.set_document(snap.path, profile)
            except Exception:
                logger.exception("Failed to create profile %s", snap.path)
                self._notifier.error("Failed to create your profile. Check console.")
            else:
                self._notifier.notify(NotifyEvent.READY, flex=ledger.flex_time_minutes)

        self.render()

    async def apply_tasks_snapshot(self, snap: CollectionSnapshot) -> None:
        self._session.tasks = self._tasks.tasks_from_snapshot(snap)

        first_snapshot = not self._session.has_seeded
        self._session.has_seeded = True
        logger.debug(
            "Tasks snapshot size=%d changes=%d first=%s",
            snap.size,
            snap.change_count,
            first_snapshot,
        )

        self.render()

        if first_snapshot:
            await self._seed_once(snap)

    async def _seed_once(self, snap: CollectionSnapshot) -> None:
        """
        Seed the default routine the first time a user is ever seen with no tasks.

        The profile's defaultsSeeded field carries the decision across launches, so a
        user who cleared the list does not get the defaults back on restart.
        """
        profile_path = self._session.paths.profile
        try:
            profile = await self._store.get_document(profile_path)
        except Exception:
            logger.exception("Could not read profile before seeding; skipping defaults.")
            return

        if profile_defaults_seeded(profile.data):
            self._seeding_settled = True
            return

        if snap.empty:
            try:
                await self._tasks.seed_defaults()
            except DashboardError:
                logger.exception("Error populating default tasks")
                return
            self._notifier.notify(NotifyEvent.DEFAULTS_LOADED)

        self._seeding_settled = True

        # A missing profile is created by the profile handler with the marker already set.
        if not profile.exists:
            return
        try:
            await self._store.update_document(profile_path, {DEFAULTS_SEEDED_FIELD: True})
        except Exception:
            logger.exception("Failed to record defaultsSeeded on %s", profile_path)

    def render(self) -> ViewModel:
        view = render(self._session.tasks, self._session.ledger)
        try:
            self._presenter.draw(view)
        except Exception:
            logger.exception("Presenter failed to draw")
        return view

    # ---- subscription state ----

    def _state(self, channel: Channel) -> SubscriptionState:
        if channel == "profile":
            return self._session.profile_state
        return self._session.tasks_state

    def _set_state(self, channel: Channel, state: SubscriptionState) -> None:
        if channel == "profile":
            self._session.profile_state = state
        else:
            self._session.tasks_state = state

    def _fail(self, channel: Channel, exc: BaseException) -> None:
        logger.error("Error listening to %s: %r", channel, exc)
        self._set_state(channel, SubscriptionState.ERROR)
        self._unsubscribe(channel)

    def _unsubscribe(self, channel: Channel) -> None:
        sub = self._subs.pop(channel, None)
        if sub is None:
            return
        try:
            sub.unsubscribe()
        except Exception:
            logger.debug("Unsubscribe %s failed.", channel, exc_info=True)
